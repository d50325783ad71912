"""Access token to current caller resolution."""

import structlog

from condoauth.core.auth.issuer import SessionTokenIssuer
from condoauth.core.auth.jwt import TokenError
from condoauth.core.auth.repository import AuthRepository
from condoauth.core.auth.types import User
from condoauth.core.exceptions import AccessOutcome, IdentityError

logger = structlog.get_logger()


class AuthenticationVerifier:
    """Resolve an access token to a fresh caller record.

    The token only proves identity. Active and super-admin state are
    re-read from storage on every call because they may change after
    the token was issued.
    """

    def __init__(self, issuer: SessionTokenIssuer, repo: AuthRepository) -> None:
        """Initialize the verifier."""
        self._issuer = issuer
        self._repo = repo

    async def resolve_caller(self, token: str) -> User:
        """Verify a token and load its caller.

        Raises:
            IdentityError: INVALID_CREDENTIAL for a bad token or unknown
                subject, INACTIVE_CALLER for a deactivated account.
        """
        try:
            payload = self._issuer.verify_access_token(token)
        except TokenError as e:
            logger.info("access_token_rejected", error=str(e))
            raise IdentityError(AccessOutcome.INVALID_CREDENTIAL, str(e)) from None

        try:
            user_id = payload.user_id
        except ValueError:
            raise IdentityError(AccessOutcome.INVALID_CREDENTIAL, "Malformed subject") from None

        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            logger.info("access_token_unknown_subject", user_id=payload.sub)
            raise IdentityError(AccessOutcome.INVALID_CREDENTIAL, "User not found")

        if not user.is_active:
            logger.info("access_token_inactive_subject", user_id=payload.sub)
            raise IdentityError(AccessOutcome.INACTIVE_CALLER, "User is inactive")

        return user
