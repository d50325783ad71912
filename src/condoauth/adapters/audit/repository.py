"""Auth event log repositories."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog

from condoauth.adapters.db.app_db import AppDatabase
from condoauth.core.auth.types import AuthEvent, AuthEventCreate, AuthEventEntry

logger = structlog.get_logger()


class PostgresAuthEventRepository:
    """Repository for the append-only auth event log."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize the repository.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_entry(self, row: dict[str, Any]) -> AuthEventEntry:
        return AuthEventEntry(
            id=row["id"],
            event=AuthEvent(row["event"]),
            email=row["email"],
            user_id=row.get("user_id"),
            ip_address=row.get("ip_address"),
            user_agent=row.get("user_agent"),
            success=row["success"],
            fail_reason=row.get("fail_reason"),
            created_at=row["created_at"],
        )

    async def record(self, entry: AuthEventCreate) -> None:
        """Append an auth event.

        Args:
            entry: Event to record.
        """
        await self._db.execute(
            """
            INSERT INTO auth_events
                (event, email, user_id, ip_address, user_agent, success, fail_reason)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            entry.event.value,
            entry.email,
            entry.user_id,
            entry.ip_address,
            entry.user_agent,
            entry.success,
            entry.fail_reason,
        )

    async def list_recent_for_user(self, user_id: UUID, limit: int = 10) -> list[AuthEventEntry]:
        """List a user's most recent auth events, newest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM auth_events
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        return [self._row_to_entry(row) for row in rows]


class InMemoryAuthEventRepository:
    """Auth event log kept in a list."""

    def __init__(self) -> None:
        """Initialize an empty log."""
        self.entries: list[AuthEventEntry] = []

    async def record(self, entry: AuthEventCreate) -> None:
        """Append an auth event."""
        self.entries.append(
            AuthEventEntry(id=uuid4(), created_at=datetime.now(UTC), **entry.model_dump())
        )

    async def list_recent_for_user(self, user_id: UUID, limit: int = 10) -> list[AuthEventEntry]:
        """List a user's most recent auth events, newest first."""
        mine = [e for e in self.entries if e.user_id == user_id]
        return list(reversed(mine))[:limit]
