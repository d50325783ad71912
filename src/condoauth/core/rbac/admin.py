"""Permission administration service."""

from datetime import datetime
from uuid import UUID

import structlog

from condoauth.core.auth.repository import AuthRepository
from condoauth.core.auth.types import User
from condoauth.core.exceptions import ConflictError, GrantValidationError, NotFoundError
from condoauth.core.rbac.repository import PermissionRepository
from condoauth.core.rbac.types import Capability, CapabilityKey, Module, Pool, PoolMember, Scope

logger = structlog.get_logger()


def validate_scope(scope: Scope, scope_id: str | None) -> None:
    """Enforce the scope/scope_id pairing for a new grant.

    Raises:
        GrantValidationError: If a tenant grant lacks a scope_id, or an own
            or unrestricted grant carries one.
    """
    if scope == Scope.TENANT and not scope_id:
        raise GrantValidationError("Tenant-scoped grants require a scope_id")
    if scope != Scope.TENANT and scope_id is not None:
        raise GrantValidationError(f"{scope.value} grants must not carry a scope_id")


class PermissionAdminService:
    """Administrative writes to pools, memberships and grants.

    Every write is validated here so the decision path never sees a grant
    this service created in a malformed state.
    """

    def __init__(self, permissions: PermissionRepository, users: AuthRepository) -> None:
        """Initialize the service.

        Args:
            permissions: Grant and pool storage.
            users: Caller storage, for existence checks and deactivation.
        """
        self._permissions = permissions
        self._users = users

    async def _require_capability(self, key: str) -> Capability:
        try:
            parsed = CapabilityKey.parse(key)
        except ValueError as e:
            raise GrantValidationError(str(e)) from e
        capability = await self._permissions.get_capability(parsed)
        if capability is None:
            raise NotFoundError(f"Unknown capability: {key}")
        return capability

    async def _require_module(self, code: str) -> Module:
        module = await self._permissions.get_module(code)
        if module is None:
            raise NotFoundError(f"Unknown module: {code}")
        return module

    async def _require_pool(self, pool_id: UUID) -> Pool:
        pool = await self._permissions.get_pool(pool_id)
        if pool is None:
            raise NotFoundError(f"Pool not found: {pool_id}")
        return pool

    async def _require_user(self, user_id: UUID) -> User:
        user = await self._users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    # Pools

    async def create_pool(
        self, name: str, description: str | None = None, created_by: UUID | None = None
    ) -> Pool:
        """Create a new active pool."""
        pool = await self._permissions.create_pool(name, description, created_by)
        logger.info("pool_created", pool_id=str(pool.id), name=name)
        return pool

    async def set_pool_active(self, pool_id: UUID, is_active: bool) -> Pool:
        """Activate or deactivate a pool.

        Deactivation withdraws every pool-derived grant on the next check.

        Raises:
            NotFoundError: If the pool does not exist.
        """
        pool = await self._permissions.set_pool_active(pool_id, is_active)
        if pool is None:
            raise NotFoundError(f"Pool not found: {pool_id}")
        logger.info("pool_active_changed", pool_id=str(pool_id), is_active=is_active)
        return pool

    async def add_member(
        self, pool_id: UUID, user_id: UUID, added_by: UUID | None = None
    ) -> PoolMember:
        """Add a caller to a pool.

        Raises:
            NotFoundError: If the pool or caller does not exist.
            ConflictError: If the caller is already a member.
        """
        await self._require_pool(pool_id)
        await self._require_user(user_id)
        member = await self._permissions.add_pool_member(pool_id, user_id, added_by)
        if member is None:
            raise ConflictError("User is already a member of this pool")
        logger.info("pool_member_added", pool_id=str(pool_id), user_id=str(user_id))
        return member

    async def remove_member(self, pool_id: UUID, user_id: UUID) -> None:
        """Remove a caller from a pool.

        Raises:
            NotFoundError: If the caller is not a member.
        """
        if not await self._permissions.remove_pool_member(pool_id, user_id):
            raise NotFoundError("User is not a member of this pool")
        logger.info("pool_member_removed", pool_id=str(pool_id), user_id=str(user_id))

    async def grant_pool_module(self, pool_id: UUID, module_code: str) -> None:
        """Give a pool coarse access to a module. Idempotent."""
        await self._require_pool(pool_id)
        module = await self._require_module(module_code)
        await self._permissions.grant_pool_module(pool_id, module.id)

    async def grant_pool_capability(
        self, pool_id: UUID, capability: str, scope: Scope, scope_id: str | None = None
    ) -> UUID:
        """Give a pool a scoped capability.

        Raises:
            GrantValidationError: If scope and scope_id disagree.
            NotFoundError: If the pool or capability does not exist.
        """
        validate_scope(scope, scope_id)
        await self._require_pool(pool_id)
        cap = await self._require_capability(capability)
        grant_id = await self._permissions.grant_pool_capability(pool_id, cap.id, scope, scope_id)
        logger.info(
            "pool_capability_granted",
            pool_id=str(pool_id),
            capability=capability,
            scope=scope.value,
        )
        return grant_id

    # Direct grants

    async def grant_user_capability(
        self,
        user_id: UUID,
        capability: str,
        scope: Scope,
        scope_id: str | None = None,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> UUID:
        """Give a caller a scoped capability directly.

        Raises:
            GrantValidationError: If scope and scope_id disagree.
            NotFoundError: If the caller or capability does not exist.
        """
        validate_scope(scope, scope_id)
        await self._require_user(user_id)
        cap = await self._require_capability(capability)
        grant_id = await self._permissions.grant_user_capability(
            user_id, cap.id, scope, scope_id, granted_by, expires_at
        )
        logger.info(
            "user_capability_granted",
            user_id=str(user_id),
            capability=capability,
            scope=scope.value,
            granted_by=str(granted_by) if granted_by else None,
        )
        return grant_id

    async def revoke_user_capability(self, user_id: UUID, grant_id: UUID) -> None:
        """Deactivate one of a user's direct grants.

        Raises:
            NotFoundError: If the user holds no active grant with this ID.
        """
        if not await self._permissions.revoke_user_capability(user_id, grant_id):
            raise NotFoundError(f"Grant not found: {grant_id}")
        logger.info("user_capability_revoked", user_id=str(user_id), grant_id=str(grant_id))

    async def grant_user_module(
        self,
        user_id: UUID,
        module_code: str,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> None:
        """Give a caller coarse access to a module. Idempotent."""
        await self._require_user(user_id)
        module = await self._require_module(module_code)
        await self._permissions.grant_user_module(user_id, module.id, granted_by, expires_at)

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User:
        """Activate or deactivate a caller.

        Deactivation takes effect on the caller's next request; outstanding
        access tokens stop resolving.
        """
        user = await self._users.set_user_active(user_id, is_active)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        logger.info("user_active_changed", user_id=str(user_id), is_active=is_active)
        return user
