"""In-memory AuthRepository for development and tests."""

import threading
from datetime import UTC, datetime
from uuid import UUID, uuid4

from condoauth.core.auth.types import RefreshCredential, User
from condoauth.core.exceptions import ConflictError


class InMemoryAuthRepository:
    """Auth repository backed by dicts.

    A lock guards every read-modify-write so refresh rotation keeps its
    exactly-once guarantee under concurrent callers.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._lock = threading.Lock()
        self._users: dict[UUID, User] = {}
        self._credentials: dict[str, RefreshCredential] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, case-insensitively."""
        wanted = email.lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user
        return None

    async def create_user(
        self,
        email: str,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        is_super_admin: bool = False,
    ) -> User:
        """Create a new user."""
        email = email.lower()
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise ConflictError("User with this email already exists")
            user = User(
                id=uuid4(),
                email=email,
                first_name=first_name,
                last_name=last_name,
                password_hash=password_hash,
                is_super_admin=is_super_admin,
                created_at=self._now(),
            )
            self._users[user.id] = user
        return user

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Activate or deactivate a user."""
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user = user.model_copy(update={"is_active": is_active})
            self._users[user_id] = user
        return user

    async def record_login(self, user_id: UUID) -> None:
        """Stamp the user's last successful login."""
        with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                self._users[user_id] = user.model_copy(update={"last_login_at": self._now()})

    async def create_refresh_credential(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshCredential:
        """Store a refresh credential hash."""
        credential = RefreshCredential(
            id=uuid4(),
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=self._now(),
        )
        with self._lock:
            self._credentials[token_hash] = credential
        return credential

    async def consume_refresh_credential(self, token_hash: str) -> UUID | None:
        """Revoke a live credential and return its owner."""
        with self._lock:
            credential = self._credentials.get(token_hash)
            now = self._now()
            if credential is None or credential.revoked_at is not None:
                return None
            if now >= credential.expires_at:
                return None
            self._credentials[token_hash] = credential.model_copy(update={"revoked_at": now})
            return credential.user_id

    async def revoke_refresh_credential(
        self, token_hash: str, user_id: UUID | None = None
    ) -> bool:
        """Revoke one credential, optionally only if owned by user_id."""
        with self._lock:
            credential = self._credentials.get(token_hash)
            if credential is None or credential.revoked_at is not None:
                return False
            if user_id is not None and credential.user_id != user_id:
                return False
            self._credentials[token_hash] = credential.model_copy(
                update={"revoked_at": self._now()}
            )
            return True

    async def revoke_user_refresh_credentials(self, user_id: UUID) -> int:
        """Revoke every live credential of a user."""
        now = self._now()
        count = 0
        with self._lock:
            for token_hash, credential in self._credentials.items():
                if credential.user_id == user_id and credential.revoked_at is None:
                    self._credentials[token_hash] = credential.model_copy(
                        update={"revoked_at": now}
                    )
                    count += 1
        return count

    async def delete_expired_refresh_credentials(self) -> int:
        """Hard-delete credentials past expiry, revoked or not."""
        now = self._now()
        with self._lock:
            expired = [h for h, c in self._credentials.items() if c.expires_at < now]
            for token_hash in expired:
                del self._credentials[token_hash]
        return len(expired)

    def get_refresh_credential(self, token_hash: str) -> RefreshCredential | None:
        """Inspect a stored credential."""
        return self._credentials.get(token_hash)
