"""PostgreSQL implementation of AuthRepository."""

from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg

from condoauth.adapters.db.app_db import AppDatabase, affected_rows
from condoauth.core.auth.types import RefreshCredential, User
from condoauth.core.exceptions import ConflictError


class PostgresAuthRepository:
    """PostgreSQL implementation of auth repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            password_hash=row.get("password_hash"),
            is_super_admin=row.get("is_super_admin", False),
            is_active=row.get("is_active", True),
            created_at=row["created_at"],
            last_login_at=row.get("last_login_at"),
        )

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE id = $1",
            user_id,
        )
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, case-insensitively."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE lower(email) = lower($1)",
            email,
        )
        return self._row_to_user(row) if row else None

    async def create_user(
        self,
        email: str,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        is_super_admin: bool = False,
    ) -> User:
        """Create a new user."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO users (email, password_hash, first_name, last_name, is_super_admin)
                VALUES (lower($1), $2, $3, $4, $5)
                RETURNING *
                """,
                email,
                password_hash,
                first_name,
                last_name,
                is_super_admin,
            )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("User with this email already exists") from e
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Activate or deactivate a user."""
        row = await self._db.fetch_one(
            "UPDATE users SET is_active = $2 WHERE id = $1 RETURNING *",
            user_id,
            is_active,
        )
        return self._row_to_user(row) if row else None

    async def record_login(self, user_id: UUID) -> None:
        """Stamp the user's last successful login."""
        await self._db.execute(
            "UPDATE users SET last_login_at = NOW() WHERE id = $1",
            user_id,
        )

    # Refresh credential operations
    async def create_refresh_credential(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshCredential:
        """Store a refresh credential hash."""
        row = await self._db.fetch_one(
            """
            INSERT INTO refresh_credentials
                (user_id, token_hash, expires_at, ip_address, user_agent)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            user_id,
            token_hash,
            expires_at,
            ip_address,
            user_agent,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return RefreshCredential(**row)

    async def consume_refresh_credential(self, token_hash: str) -> UUID | None:
        """Revoke a live credential and return its owner, in one statement.

        Concurrent callers race on the row lock; only the first sees
        revoked_at IS NULL.
        """
        row = await self._db.execute_returning(
            """
            UPDATE refresh_credentials
            SET revoked_at = NOW()
            WHERE token_hash = $1
              AND revoked_at IS NULL
              AND expires_at > NOW()
            RETURNING user_id
            """,
            token_hash,
        )
        return row["user_id"] if row else None

    async def revoke_refresh_credential(
        self, token_hash: str, user_id: UUID | None = None
    ) -> bool:
        """Revoke one credential, optionally only if owned by user_id."""
        result = await self._db.execute(
            """
            UPDATE refresh_credentials
            SET revoked_at = NOW()
            WHERE token_hash = $1
              AND revoked_at IS NULL
              AND ($2::uuid IS NULL OR user_id = $2)
            """,
            token_hash,
            user_id,
        )
        return result == "UPDATE 1"

    async def revoke_user_refresh_credentials(self, user_id: UUID) -> int:
        """Revoke every live credential of a user."""
        result = await self._db.execute(
            """
            UPDATE refresh_credentials
            SET revoked_at = NOW()
            WHERE user_id = $1 AND revoked_at IS NULL
            """,
            user_id,
        )
        return affected_rows(result)

    async def delete_expired_refresh_credentials(self) -> int:
        """Hard-delete credentials past expiry, revoked or not."""
        result = await self._db.execute(
            "DELETE FROM refresh_credentials WHERE expires_at < NOW()",
        )
        return affected_rows(result)
