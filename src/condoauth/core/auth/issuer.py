"""Session token issuance, verification, rotation and revocation."""

from uuid import UUID

import structlog

from condoauth.core.auth.jwt import TokenSettings, create_access_token, decode_access_token
from condoauth.core.auth.repository import AuthRepository
from condoauth.core.auth.tokens import generate_refresh_token, get_token_expiry, hash_token
from condoauth.core.auth.types import TokenPair, TokenPayload, User

logger = structlog.get_logger()


class SessionTokenIssuer:
    """Mints access tokens and manages single-use refresh credentials.

    Access tokens are short-lived signed JWTs. Refresh credentials are
    opaque random values handed to the caller once; only their SHA-256
    hash reaches the credential store.
    """

    def __init__(self, repo: AuthRepository, settings: TokenSettings) -> None:
        """Initialize the issuer.

        Args:
            repo: Credential store.
            settings: Signing and lifetime configuration.
        """
        self._repo = repo
        self._settings = settings

    def issue_access_token(self, user: User) -> str:
        """Mint a signed access token for a caller."""
        return create_access_token(user, self._settings)

    async def issue_refresh_credential(
        self,
        user: User,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> str:
        """Mint and store a refresh credential.

        Args:
            user: Credential owner.
            ip_address: Client IP, kept for traceability.
            user_agent: Client user agent, kept for traceability.

        Returns:
            The opaque credential. It is not retrievable afterwards.
        """
        token = generate_refresh_token()
        await self._repo.create_refresh_credential(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=get_token_expiry(self._settings.refresh_token_expire_days),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return token

    async def issue_pair(
        self,
        user: User,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TokenPair:
        """Mint an access token and a refresh credential together."""
        access_token = self.issue_access_token(user)
        refresh_token = await self.issue_refresh_credential(user, ip_address, user_agent)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify_access_token(self, token: str) -> TokenPayload:
        """Verify signature, expiry and token type.

        Raises:
            TokenError: If the token is not a valid access token.
        """
        return decode_access_token(token, self._settings)

    async def rotate_refresh_credential(self, token: str) -> UUID | None:
        """Spend a refresh credential.

        The stored row is revoked in the same atomic step that validates it,
        so a replayed credential is always rejected.

        Returns:
            The owner's user ID, or None if the credential is unknown,
            revoked or expired.
        """
        user_id = await self._repo.consume_refresh_credential(hash_token(token))
        if user_id is None:
            logger.info("refresh_credential_rejected")
        return user_id

    async def revoke(self, token: str, user_id: UUID | None = None) -> bool:
        """Revoke one refresh credential, optionally only if owned by user_id."""
        return await self._repo.revoke_refresh_credential(hash_token(token), user_id=user_id)

    async def revoke_all(self, user_id: UUID) -> int:
        """Revoke every live refresh credential of a user."""
        count = await self._repo.revoke_user_refresh_credentials(user_id)
        logger.info("refresh_credentials_revoked", user_id=str(user_id), count=count)
        return count

    async def purge_expired(self) -> int:
        """Hard-delete refresh credentials past expiry."""
        return await self._repo.delete_expired_refresh_credentials()
