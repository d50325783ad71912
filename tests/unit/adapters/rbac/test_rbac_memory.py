"""Tests for InMemoryPermissionRepository."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from condoauth.adapters.rbac import InMemoryPermissionRepository
from condoauth.core.exceptions import ConflictError
from condoauth.core.rbac.types import CapabilityKey, Scope
from tests.fixtures.mocks import set_module_active


class TestInMemoryCatalog:
    """Tests for the in-memory catalog."""

    async def test_duplicate_module(self, memory_permissions: InMemoryPermissionRepository) -> None:
        """Should raise ConflictError for an existing module code."""
        with pytest.raises(ConflictError):
            await memory_permissions.create_module("goals", "Goals")

    async def test_inactive_module_hidden(
        self, memory_permissions: InMemoryPermissionRepository
    ) -> None:
        """Should drop inactive modules from the active listing only."""
        set_module_active(memory_permissions, "groups", False)

        active = [m.code for m in await memory_permissions.list_modules()]
        everything = [m.code for m in await memory_permissions.list_modules(active_only=False)]

        assert "groups" not in active
        assert "groups" in everything

class TestInMemoryGrants:
    """Tests for grant storage."""

    async def test_direct_grants_filtering(
        self, memory_permissions: InMemoryPermissionRepository, sample_user_id: UUID
    ) -> None:
        """Should return only live grants, filtered by capability."""
        read = await memory_permissions.get_capability(CapabilityKey("goals", "read"))
        update = await memory_permissions.get_capability(CapabilityKey("goals", "update"))
        assert read is not None and update is not None
        await memory_permissions.grant_user_capability(
            sample_user_id, read.id, Scope.TENANT, "condo-a"
        )
        await memory_permissions.grant_user_capability(
            sample_user_id,
            update.id,
            Scope.OWN,
            None,
            expires_at=datetime.now(UTC) - timedelta(seconds=1),
        )

        everything = await memory_permissions.direct_grants(sample_user_id)
        only_read = await memory_permissions.direct_grants(
            sample_user_id, CapabilityKey("goals", "read")
        )

        assert [g.capability.capability for g in everything] == ["read"]
        assert len(only_read) == 1

    async def test_pool_membership_once(
        self, memory_permissions: InMemoryPermissionRepository, sample_user_id: UUID
    ) -> None:
        """Should refuse a duplicate membership."""
        pool = await memory_permissions.create_pool("Board")

        assert await memory_permissions.add_pool_member(pool.id, sample_user_id) is not None
        assert await memory_permissions.add_pool_member(pool.id, sample_user_id) is None
        assert [p.id for p in await memory_permissions.list_user_pools(sample_user_id)] == [
            pool.id
        ]

    async def test_user_module_regrant_is_noop(
        self, memory_permissions: InMemoryPermissionRepository, sample_user_id: UUID
    ) -> None:
        """Should report an unchanged grant as already present."""
        goals = await memory_permissions.get_module("goals")
        assert goals is not None

        assert await memory_permissions.grant_user_module(sample_user_id, goals.id)
        assert not await memory_permissions.grant_user_module(sample_user_id, goals.id)
