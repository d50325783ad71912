"""Background writer for the auth event log."""

import asyncio

import structlog

from condoauth.core.auth.repository import AuthEventRepository
from condoauth.core.auth.types import AuthEventCreate

logger = structlog.get_logger()


class AuthEventWriter:
    """Append auth events without blocking the request that produced them.

    Each write runs as its own task. A failed write is logged and dropped;
    it never reaches the caller.
    """

    def __init__(self, repo: AuthEventRepository) -> None:
        """Initialize the writer.

        Args:
            repo: Auth event storage.
        """
        self._repo = repo
        self._pending: set[asyncio.Task[None]] = set()

    def write(self, entry: AuthEventCreate) -> None:
        """Schedule an auth event for persistence.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._record(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, entry: AuthEventCreate) -> None:
        try:
            await self._repo.record(entry)
        except Exception as e:
            # Log but don't fail the request
            logger.error(
                "auth_event_write_failed",
                auth_event=entry.event.value,
                user_id=str(entry.user_id) if entry.user_id else None,
                error=str(e),
                exc_info=True,
            )

    @property
    def pending(self) -> int:
        """Number of writes still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
