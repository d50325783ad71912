"""Auth repository protocols for database operations."""

from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from condoauth.core.auth.types import AuthEventCreate, AuthEventEntry, RefreshCredential, User


@runtime_checkable
class AuthRepository(Protocol):
    """Protocol for caller and refresh credential storage.

    Implementations provide actual database access (PostgreSQL, in-memory).
    """

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, case-insensitively."""
        ...

    async def create_user(
        self,
        email: str,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        is_super_admin: bool = False,
    ) -> User:
        """Create a new user. Raises ConflictError if the email is taken."""
        ...

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Activate or deactivate a user."""
        ...

    async def record_login(self, user_id: UUID) -> None:
        """Stamp the user's last successful login."""
        ...

    # Refresh credential operations
    async def create_refresh_credential(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshCredential:
        """Persist a newly issued refresh credential (hash only)."""
        ...

    async def consume_refresh_credential(self, token_hash: str) -> UUID | None:
        """Atomically revoke a live credential and return its user ID.

        Returns None when the credential is unknown, already revoked or
        expired. Of two concurrent calls with the same hash at most one
        returns a user ID.
        """
        ...

    async def revoke_refresh_credential(
        self, token_hash: str, user_id: UUID | None = None
    ) -> bool:
        """Revoke one non-revoked credential. Returns whether a row changed."""
        ...

    async def revoke_user_refresh_credentials(self, user_id: UUID) -> int:
        """Revoke every non-revoked credential of a user. Returns the count."""
        ...

    async def delete_expired_refresh_credentials(self) -> int:
        """Hard-delete credentials past expiry. Returns the count."""
        ...


@runtime_checkable
class AuthEventRepository(Protocol):
    """Protocol for the append-only auth event log."""

    async def record(self, entry: AuthEventCreate) -> None:
        """Append an auth event."""
        ...

    async def list_recent_for_user(self, user_id: UUID, limit: int = 10) -> list[AuthEventEntry]:
        """Get the most recent events of a user, newest first."""
        ...
