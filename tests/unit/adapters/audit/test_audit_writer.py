"""Tests for AuthEventWriter."""

from unittest.mock import AsyncMock, MagicMock

from condoauth.adapters.audit import AuthEventWriter, InMemoryAuthEventRepository
from condoauth.core.auth.types import AuthEvent, AuthEventCreate


def _entry(event: AuthEvent = AuthEvent.LOGIN, success: bool = True) -> AuthEventCreate:
    return AuthEventCreate(event=event, email="resident@example.com", success=success)


class TestAuthEventWriter:
    """Tests for the background auth event writer."""

    async def test_write_persists_after_drain(
        self, event_writer: AuthEventWriter, memory_events: InMemoryAuthEventRepository
    ) -> None:
        """Should append the entry once pending writes finish."""
        event_writer.write(_entry())
        await event_writer.drain()

        assert len(memory_events.entries) == 1
        assert memory_events.entries[0].event == AuthEvent.LOGIN
        assert event_writer.pending == 0

    async def test_write_does_not_block(self) -> None:
        """Should return before the repository finishes."""
        repo = MagicMock()
        repo.record = AsyncMock()
        writer = AuthEventWriter(repo)

        writer.write(_entry())

        assert writer.pending == 1
        await writer.drain()
        repo.record.assert_awaited_once()

    async def test_failure_is_swallowed(self) -> None:
        """Should log and drop a failed write."""
        repo = MagicMock()
        repo.record = AsyncMock(side_effect=ConnectionError("db down"))
        writer = AuthEventWriter(repo)

        writer.write(_entry(AuthEvent.LOGIN_FAILED, success=False))
        await writer.drain()

        assert writer.pending == 0
