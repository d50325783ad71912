"""Role-based access control: capabilities, scopes and pools."""

from condoauth.core.rbac.admin import PermissionAdminService
from condoauth.core.rbac.pool_resolver import PermissionPoolResolver
from condoauth.core.rbac.repository import PermissionRepository
from condoauth.core.rbac.scope_resolver import ScopeResolver
from condoauth.core.rbac.types import (
    DEFAULT_TARGET,
    NO_TARGET,
    CallContext,
    Capability,
    CapabilityKey,
    Decision,
    DecisionReason,
    Grant,
    GrantSource,
    Module,
    NavigationEntry,
    Pool,
    PoolMember,
    Scope,
    TargetFields,
)

__all__ = [
    "DEFAULT_TARGET",
    "NO_TARGET",
    "CallContext",
    "Capability",
    "CapabilityKey",
    "Decision",
    "DecisionReason",
    "Grant",
    "GrantSource",
    "Module",
    "NavigationEntry",
    "PermissionAdminService",
    "PermissionPoolResolver",
    "PermissionRepository",
    "Pool",
    "PoolMember",
    "Scope",
    "ScopeResolver",
    "TargetFields",
]
