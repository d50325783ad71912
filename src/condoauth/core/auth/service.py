"""Session workflows: registration, login, refresh and logout."""

from typing import Protocol
from uuid import UUID

import structlog

from condoauth.core.auth.issuer import SessionTokenIssuer
from condoauth.core.auth.password import BcryptPasswordHasher, PasswordHasher
from condoauth.core.auth.repository import AuthRepository
from condoauth.core.auth.types import AuthEvent, AuthEventCreate, TokenPair, User
from condoauth.core.exceptions import AuthError

logger = structlog.get_logger()

INVALID_LOGIN = "Invalid email or password"
INVALID_REFRESH = "Invalid or expired refresh token"


class AuthEventRecorder(Protocol):
    """Where session workflows send audit entries. Must not block or raise."""

    def write(self, entry: AuthEventCreate) -> None:
        """Queue an auth event for persistence."""
        ...


def normalize_email(email: str) -> str:
    """Normalize an email address for storage and lookup."""
    return email.strip().lower()


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        repo: AuthRepository,
        issuer: SessionTokenIssuer,
        audit: AuthEventRecorder,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Credential store.
            issuer: Session token issuer.
            audit: Auth event sink.
            hasher: Password hashing capability. Defaults to bcrypt.
        """
        self._repo = repo
        self._issuer = issuer
        self._audit = audit
        self._hasher = hasher or BcryptPasswordHasher()

    def _record(
        self,
        event: AuthEvent,
        email: str,
        *,
        user_id: UUID | None = None,
        success: bool = True,
        fail_reason: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._audit.write(
            AuthEventCreate(
                event=event,
                email=email,
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                success=success,
                fail_reason=fail_reason,
            )
        )

    async def register(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> User:
        """Create a caller account.

        Raises:
            ConflictError: If the email is already registered.
        """
        email = normalize_email(email)
        user = await self._repo.create_user(
            email=email,
            password_hash=self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
        )
        logger.info("user_registered", user_id=str(user.id))
        self._record(
            AuthEvent.REGISTER,
            email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return user

    async def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[User, TokenPair]:
        """Authenticate a caller and open a session.

        Every failure raises the same generic error; the specific reason is
        only written to the auth event log.

        Raises:
            AuthError: If authentication fails.
        """
        email = normalize_email(email)
        user = await self._repo.get_user_by_email(email)

        reason: str | None = None
        if user is None:
            reason = "Unknown email"
        elif not user.is_active:
            reason = "Inactive account"
        elif not user.password_hash:
            reason = "Password login not enabled"
        elif not self._hasher.verify(password, user.password_hash):
            reason = "Incorrect password"

        if reason is not None:
            logger.info("login_failed", email_known=user is not None, reason=reason)
            self._record(
                AuthEvent.LOGIN_FAILED,
                email,
                user_id=user.id if user else None,
                success=False,
                fail_reason=reason,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise AuthError(INVALID_LOGIN, reason=reason)

        assert user is not None
        await self._repo.record_login(user.id)
        tokens = await self._issuer.issue_pair(user, ip_address, user_agent)

        logger.info("login_succeeded", user_id=str(user.id))
        self._record(
            AuthEvent.LOGIN,
            email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return user, tokens

    async def refresh(
        self,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TokenPair:
        """Exchange a refresh credential for a new token pair.

        The presented credential is spent whether or not the rest of the
        exchange succeeds.

        Raises:
            AuthError: If the credential is invalid, spent or expired, or
                its owner is missing or inactive.
        """
        user_id = await self._issuer.rotate_refresh_credential(refresh_token)
        if user_id is None:
            raise AuthError(INVALID_REFRESH, reason="Credential rejected")

        user = await self._repo.get_user_by_id(user_id)
        if user is None or not user.is_active:
            logger.info("refresh_owner_rejected", user_id=str(user_id))
            raise AuthError(INVALID_REFRESH, reason="Owner missing or inactive")

        tokens = await self._issuer.issue_pair(user, ip_address, user_agent)
        self._record(
            AuthEvent.REFRESH,
            user.email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return tokens

    async def logout(
        self,
        refresh_token: str,
        caller: User,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Revoke one of the caller's refresh credentials.

        Always succeeds. A credential that is unknown, already revoked or
        owned by someone else is left untouched.
        """
        revoked = await self._issuer.revoke(refresh_token, user_id=caller.id)
        logger.info("logout", user_id=str(caller.id), revoked=revoked)
        self._record(
            AuthEvent.LOGOUT,
            caller.email,
            user_id=caller.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def logout_all(
        self,
        caller: User,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> int:
        """Revoke every refresh credential of the caller.

        Outstanding access tokens stay valid until they expire.
        """
        count = await self._issuer.revoke_all(caller.id)
        self._record(
            AuthEvent.LOGOUT_ALL,
            caller.email,
            user_id=caller.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return count
