"""Tests for the refresh credential cleanup job."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from condoauth.adapters.auth import InMemoryAuthRepository
from condoauth.config import Settings
from condoauth.jobs.credential_cleanup import purge_expired_credentials


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Load settings with memory storage."""
    monkeypatch.setenv("CONDOAUTH_STORAGE", "memory")
    return Settings()


class TestPurgeExpiredCredentials:
    """Tests for purge_expired_credentials."""

    async def test_purges_expired(
        self, memory_users: InMemoryAuthRepository, settings: Settings
    ) -> None:
        """Should delete expired credentials and keep live ones."""
        user = await memory_users.create_user("resident@example.com")
        now = datetime.now(UTC)
        await memory_users.create_refresh_credential(user.id, "old", now - timedelta(hours=1))
        await memory_users.create_refresh_credential(user.id, "live", now + timedelta(hours=1))

        assert await purge_expired_credentials(memory_users, settings) == 1
        assert memory_users.get_refresh_credential("live") is not None

    async def test_returns_repository_count(
        self, mock_auth_repo: MagicMock, settings: Settings
    ) -> None:
        """Should report the number of deleted rows."""
        mock_auth_repo.delete_expired_refresh_credentials.return_value = 42

        assert await purge_expired_credentials(mock_auth_repo, settings) == 42
