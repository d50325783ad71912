"""Capability and scope evaluation."""

from uuid import UUID

import structlog

from condoauth.core.auth.repository import AuthRepository
from condoauth.core.rbac.pool_resolver import PermissionPoolResolver
from condoauth.core.rbac.repository import PermissionRepository
from condoauth.core.rbac.types import (
    SCOPE_PRECEDENCE,
    CallContext,
    CapabilityKey,
    Decision,
    DecisionReason,
    Grant,
    NavigationEntry,
    Scope,
)

logger = structlog.get_logger()


def scope_matches(grant: Grant, caller_id: UUID, context: CallContext) -> bool:
    """Check whether a grant's scope covers the call target.

    Malformed grants never match.
    """
    if not grant.is_well_formed:
        logger.warning(
            "malformed_grant",
            grant_id=str(grant.grant_id) if grant.grant_id else None,
            pool_id=str(grant.pool_id) if grant.pool_id else None,
            capability=str(grant.capability),
            scope=grant.scope.value,
            source=grant.source.value,
        )
        return False

    if grant.scope == Scope.UNRESTRICTED:
        return True

    if grant.scope == Scope.TENANT:
        return context.tenant_id is not None and context.tenant_id == grant.scope_id

    if grant.scope == Scope.OWN:
        return (
            context.resource_owner_id is not None
            and context.resource_owner_id == str(caller_id)
        )

    return False


def _by_precedence(grant: Grant) -> int:
    return SCOPE_PRECEDENCE.index(grant.scope)


class ScopeResolver:
    """Decide whether a caller holds a capability for a call target.

    Contains the only super-administrator bypass in the system. Direct
    grants and pool grants are merged as a plain union: any matching grant
    allows, and absence of a match is the only way to deny.
    """

    def __init__(
        self,
        users: AuthRepository,
        permissions: PermissionRepository,
        pools: PermissionPoolResolver,
    ) -> None:
        """Initialize the resolver.

        Args:
            users: Source of fresh caller records.
            permissions: Direct grants and the module catalog.
            pools: Pool-derived grants.
        """
        self._users = users
        self._permissions = permissions
        self._pools = pools

    async def check(
        self,
        caller_id: UUID,
        capability: str,
        context: CallContext | None = None,
    ) -> Decision:
        """Evaluate a capability for a caller against a call context.

        Args:
            caller_id: The caller.
            capability: "module:capability" key.
            context: Target of the call. Missing means no target ids.

        Returns:
            Decision; never raises for a missing caller or missing grants.
        """
        context = context or CallContext()

        caller = await self._users.get_user_by_id(caller_id)
        if caller is None:
            logger.info("permission_check_unknown_caller", user_id=str(caller_id))
            return Decision.deny(DecisionReason.UNKNOWN_CALLER)

        if caller.is_super_admin:
            return Decision.allow(DecisionReason.SUPER_ADMIN)

        try:
            key = CapabilityKey.parse(capability)
        except ValueError:
            logger.warning("invalid_capability_key", capability=capability)
            return Decision.deny(DecisionReason.CAPABILITY_ABSENT)

        grants = set(await self._permissions.direct_grants(caller_id, key))
        grants |= await self._pools.grants_for_user(caller_id, key)

        if not grants:
            return Decision.deny(DecisionReason.CAPABILITY_ABSENT)

        for grant in sorted(grants, key=_by_precedence):
            if scope_matches(grant, caller_id, context):
                return Decision.allow(DecisionReason.GRANTED, grant)

        logger.debug(
            "permission_scope_mismatch",
            user_id=str(caller_id),
            capability=capability,
            tenant_id=context.tenant_id,
        )
        return Decision.deny(DecisionReason.SCOPE_MISMATCH)

    async def accessible_modules(self, caller_id: UUID) -> set[str]:
        """Get the codes of every module the caller can see."""
        caller = await self._users.get_user_by_id(caller_id)
        if caller is None:
            return set()

        if caller.is_super_admin:
            return {module.code for module in await self._permissions.list_modules()}

        codes = set(await self._permissions.direct_module_codes(caller_id))
        codes |= await self._pools.modules_for_user(caller_id)
        return codes

    async def has_module_access(self, caller_id: UUID, module_code: str) -> bool:
        """Check coarse access to a module."""
        return module_code in await self.accessible_modules(caller_id)

    async def navigation(self, caller_id: UUID) -> list[NavigationEntry]:
        """Build the caller's module navigation.

        Returns active modules in navigation order, each with the capability
        codes the caller holds in it regardless of scope. Modules where the
        caller holds nothing are left out.
        """
        caller = await self._users.get_user_by_id(caller_id)
        if caller is None:
            return []

        modules = await self._permissions.list_modules()
        capabilities = await self._permissions.list_capabilities()

        held: dict[str, set[str]] = {}
        if caller.is_super_admin:
            for cap in capabilities:
                held.setdefault(cap.module_code, set()).add(cap.code)
        else:
            grants = set(await self._permissions.direct_grants(caller_id))
            grants |= await self._pools.grants_for_user(caller_id)
            for grant in grants:
                if grant.is_well_formed:
                    held.setdefault(grant.capability.module, set()).add(
                        grant.capability.capability
                    )

        return [
            NavigationEntry(
                code=module.code,
                name=module.name,
                description=module.description,
                position=module.position,
                capabilities=sorted(held[module.code]),
            )
            for module in modules
            if held.get(module.code)
        ]
