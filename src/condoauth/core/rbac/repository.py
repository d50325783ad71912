"""Permission repository protocol."""

from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from condoauth.core.rbac.types import (
    Capability,
    CapabilityKey,
    Grant,
    Module,
    Pool,
    PoolMember,
    Scope,
)


@runtime_checkable
class PermissionRepository(Protocol):
    """Protocol for module catalog, grant and pool storage.

    Read operations used by the decision path never filter by scope; scope
    evaluation belongs to the resolvers.
    """

    # Catalog
    async def list_modules(self, active_only: bool = True) -> list[Module]:
        """List modules ordered by navigation position."""
        ...

    async def get_module(self, code: str) -> Module | None:
        """Get a module by code."""
        ...

    async def create_module(
        self,
        code: str,
        name: str,
        description: str | None = None,
        position: int = 0,
    ) -> Module:
        """Create a module."""
        ...

    async def list_capabilities(self, module_code: str | None = None) -> list[Capability]:
        """List capabilities, optionally within one module."""
        ...

    async def get_capability(self, key: CapabilityKey) -> Capability | None:
        """Get a capability by key."""
        ...

    async def create_capability(self, module_code: str, code: str, name: str) -> Capability:
        """Create a capability inside an existing module."""
        ...

    # Decision-path reads
    async def direct_grants(
        self, user_id: UUID, capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Active, unexpired direct grants of a user on active modules."""
        ...

    async def direct_module_codes(self, user_id: UUID) -> list[str]:
        """Codes of active modules the user was granted directly."""
        ...

    async def list_user_pools(self, user_id: UUID) -> list[Pool]:
        """Every pool the user belongs to, active or not."""
        ...

    async def pool_capability_grants(
        self, pool_ids: list[UUID], capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Capability grants of the given pools on active modules."""
        ...

    async def pool_module_codes(self, pool_ids: list[UUID]) -> list[str]:
        """Codes of active modules granted to the given pools."""
        ...

    # Pool administration
    async def create_pool(
        self, name: str, description: str | None = None, created_by: UUID | None = None
    ) -> Pool:
        """Create an active pool."""
        ...

    async def get_pool(self, pool_id: UUID) -> Pool | None:
        """Get a pool by ID."""
        ...

    async def set_pool_active(self, pool_id: UUID, is_active: bool) -> Pool | None:
        """Activate or deactivate a pool."""
        ...

    async def add_pool_member(
        self, pool_id: UUID, user_id: UUID, added_by: UUID | None = None
    ) -> PoolMember | None:
        """Add a member. Returns None if already a member."""
        ...

    async def remove_pool_member(self, pool_id: UUID, user_id: UUID) -> bool:
        """Remove a member."""
        ...

    async def grant_pool_module(self, pool_id: UUID, module_id: UUID) -> bool:
        """Give a pool coarse access to a module. Returns False if already granted."""
        ...

    async def grant_pool_capability(
        self, pool_id: UUID, capability_id: UUID, scope: Scope, scope_id: str | None
    ) -> UUID:
        """Give a pool a scoped capability. Returns the grant ID."""
        ...

    # Direct grant administration
    async def grant_user_capability(
        self,
        user_id: UUID,
        capability_id: UUID,
        scope: Scope,
        scope_id: str | None,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> UUID:
        """Give a user a scoped capability. Returns the grant ID."""
        ...

    async def revoke_user_capability(self, user_id: UUID, grant_id: UUID) -> bool:
        """Deactivate a direct grant held by user_id."""
        ...

    async def grant_user_module(
        self,
        user_id: UUID,
        module_id: UUID,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> bool:
        """Give a user coarse access to a module. Returns False if already granted."""
        ...
