"""Pool-derived grant resolution."""

from uuid import UUID

import structlog

from condoauth.core.rbac.repository import PermissionRepository
from condoauth.core.rbac.types import CapabilityKey, Grant

logger = structlog.get_logger()


class PermissionPoolResolver:
    """Compute what a caller holds through pool membership.

    Only active pools contribute. Membership rows of an inactive pool are
    ignored, so deactivating a pool withdraws everything it conferred on
    the very next check.
    """

    def __init__(self, repo: PermissionRepository) -> None:
        """Initialize the resolver."""
        self._repo = repo

    async def _active_pool_ids(self, user_id: UUID) -> list[UUID]:
        pools = await self._repo.list_user_pools(user_id)
        return [pool.id for pool in pools if pool.is_active]

    async def grants_for_user(
        self, user_id: UUID, capability: CapabilityKey | None = None
    ) -> set[Grant]:
        """Get capability grants inherited from the caller's active pools.

        Args:
            user_id: The caller.
            capability: Restrict to one capability when given.

        Returns:
            Set of pool grants, possibly empty.
        """
        pool_ids = await self._active_pool_ids(user_id)
        if not pool_ids:
            return set()
        grants = await self._repo.pool_capability_grants(pool_ids, capability)
        return set(grants)

    async def modules_for_user(self, user_id: UUID) -> set[str]:
        """Get module codes visible through the caller's active pools.

        Module access is independent of capabilities: a pool module grant
        with no capability grant only makes the module visible.
        """
        pool_ids = await self._active_pool_ids(user_id)
        if not pool_ids:
            return set()
        return set(await self._repo.pool_module_codes(pool_ids))
