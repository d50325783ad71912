"""RBAC domain types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

CAPABILITY_SEPARATOR = ":"


class Scope(str, Enum):
    """Breadth of a grant."""

    OWN = "own"
    TENANT = "tenant"
    UNRESTRICTED = "unrestricted"


# Evaluation order when several grants hold the same capability
SCOPE_PRECEDENCE = (Scope.UNRESTRICTED, Scope.TENANT, Scope.OWN)


class GrantSource(str, Enum):
    """Where a grant came from."""

    DIRECT = "direct"
    POOL = "pool"


class DecisionReason(str, Enum):
    """Server-side reason attached to a decision."""

    SUPER_ADMIN = "super_admin"
    GRANTED = "granted"
    UNKNOWN_CALLER = "unknown_caller"
    CAPABILITY_ABSENT = "capability_absent"
    SCOPE_MISMATCH = "scope_mismatch"


@dataclass(frozen=True)
class CapabilityKey:
    """A capability identified by module code and capability code."""

    module: str
    capability: str

    @classmethod
    def parse(cls, key: str) -> "CapabilityKey":
        """Parse a "module:capability" string.

        Raises:
            ValueError: If the key is not in module:capability form.
        """
        module, sep, capability = key.partition(CAPABILITY_SEPARATOR)
        if not sep or not module or not capability or CAPABILITY_SEPARATOR in capability:
            raise ValueError(f"Invalid capability key: {key!r}")
        return cls(module=module, capability=capability)

    def __str__(self) -> str:
        return f"{self.module}{CAPABILITY_SEPARATOR}{self.capability}"


@dataclass(frozen=True)
class Grant:
    """A capability held by a caller, directly or through a pool."""

    capability: CapabilityKey
    scope: Scope
    scope_id: str | None
    source: GrantSource
    grant_id: UUID | None = None
    pool_id: UUID | None = None

    @property
    def is_well_formed(self) -> bool:
        """Whether scope and scope_id agree.

        Tenant grants need a scope_id; own and unrestricted grants must not
        carry one.
        """
        if self.scope == Scope.TENANT:
            return bool(self.scope_id)
        return self.scope_id is None


@dataclass(frozen=True)
class CallContext:
    """Per-call target extracted by a transport adapter."""

    tenant_id: str | None = None
    resource_owner_id: str | None = None


@dataclass(frozen=True)
class TargetFields:
    """Request fields a protected call reads its target from.

    A field set to None means the call has no target of that kind, so only
    grants scoped above it can match.
    """

    tenant: str | None = "condominium_id"
    owner: str | None = "user_id"


DEFAULT_TARGET = TargetFields()
NO_TARGET = TargetFields(tenant=None, owner=None)


@dataclass(frozen=True)
class Decision:
    """Outcome of a capability check."""

    allowed: bool
    reason: DecisionReason
    grant: Grant | None = None

    @classmethod
    def allow(cls, reason: DecisionReason, grant: Grant | None = None) -> "Decision":
        """Build an allowing decision."""
        return cls(allowed=True, reason=reason, grant=grant)

    @classmethod
    def deny(cls, reason: DecisionReason) -> "Decision":
        """Build a denying decision."""
        return cls(allowed=False, reason=reason)


@dataclass
class Module:
    """A functional area of the system."""

    id: UUID
    code: str
    name: str
    description: str | None
    position: int
    is_active: bool


@dataclass
class Capability:
    """A named action within a module."""

    id: UUID
    module_id: UUID
    module_code: str
    code: str
    name: str

    @property
    def key(self) -> CapabilityKey:
        """Get the global capability key."""
        return CapabilityKey(module=self.module_code, capability=self.code)


@dataclass
class Pool:
    """A named group of callers sharing grants."""

    id: UUID
    name: str
    description: str | None
    is_active: bool
    created_at: datetime


@dataclass
class PoolMember:
    """A caller's membership in a pool."""

    pool_id: UUID
    user_id: UUID
    added_at: datetime
    added_by: UUID | None = None


@dataclass
class NavigationEntry:
    """A module visible to a caller, with the capability codes they hold in it."""

    code: str
    name: str
    description: str | None
    position: int
    capabilities: list[str]
