"""Tests for service wiring."""

import pytest

from condoauth.bootstrap import build_services
from condoauth.config import Settings
from condoauth.core.rbac.catalog import DEFAULT_MODULES


@pytest.fixture
def memory_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Load memory-backed settings with a bootstrap admin."""
    monkeypatch.setenv("CONDOAUTH_STORAGE", "memory")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_EMAIL", "root@example.com")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "correct-horse-battery")
    return Settings()


class TestBuildServices:
    """Tests for build_services."""

    async def test_memory_services_seeded(self, memory_settings: Settings) -> None:
        """Should seed the catalog and provision the bootstrap admin."""
        services = await build_services(memory_settings)
        try:
            modules = await services.permissions.list_modules()
            admin = await services.users.get_user_by_email("root@example.com")

            assert len(modules) == len(DEFAULT_MODULES)
            assert services.db is None
            assert admin is not None and admin.is_super_admin
        finally:
            await services.close()

    async def test_services_share_repositories(self, memory_settings: Settings) -> None:
        """Should let a login through AuthService authenticate through the engine."""
        services = await build_services(memory_settings)

        _, pair = await services.auth.login("root@example.com", "correct-horse-battery")
        caller = await services.engine.authenticate(pair.access_token)
        await services.close()

        assert caller.email == "root@example.com"
        assert services.audit.pending == 0
