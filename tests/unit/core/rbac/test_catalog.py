"""Tests for the default module catalog seed."""

from condoauth.adapters.rbac import InMemoryPermissionRepository
from condoauth.core.rbac.catalog import DEFAULT_CAPABILITIES, DEFAULT_MODULES, seed_catalog


class TestSeedCatalog:
    """Tests for seed_catalog."""

    async def test_creates_every_module_and_capability(self) -> None:
        """Should create the default modules with their capabilities."""
        repo = InMemoryPermissionRepository()

        created = await seed_catalog(repo)

        assert created == len(DEFAULT_MODULES) * (1 + len(DEFAULT_CAPABILITIES))
        modules = await repo.list_modules()
        assert [m.code for m in modules] == [code for code, _, _ in DEFAULT_MODULES]
        assert len(await repo.list_capabilities("goals")) == len(DEFAULT_CAPABILITIES)

    async def test_is_idempotent(self, memory_permissions: InMemoryPermissionRepository) -> None:
        """Should create nothing on a second run."""
        assert await seed_catalog(memory_permissions) == 0

    async def test_capability_names(self, memory_permissions: InMemoryPermissionRepository) -> None:
        """Should name capabilities after their module."""
        caps = {c.code: c.name for c in await memory_permissions.list_capabilities("goals")}

        assert caps["update"] == "Update goals"
