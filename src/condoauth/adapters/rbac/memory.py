"""In-memory PermissionRepository for development and tests."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from condoauth.core.exceptions import ConflictError, NotFoundError
from condoauth.core.rbac.types import (
    Capability,
    CapabilityKey,
    Grant,
    GrantSource,
    Module,
    Pool,
    PoolMember,
    Scope,
)


@dataclass
class _UserCapabilityRow:
    id: UUID
    user_id: UUID
    capability_id: UUID
    scope: Scope
    scope_id: str | None
    is_active: bool = True
    granted_by: UUID | None = None
    expires_at: datetime | None = None


@dataclass
class _UserModuleRow:
    user_id: UUID
    module_id: UUID
    is_active: bool = True
    granted_by: UUID | None = None
    expires_at: datetime | None = None


@dataclass
class _PoolCapabilityRow:
    id: UUID
    pool_id: UUID
    capability_id: UUID
    scope: Scope
    scope_id: str | None


def _live(is_active: bool, expires_at: datetime | None, now: datetime) -> bool:
    return is_active and (expires_at is None or now < expires_at)


class InMemoryPermissionRepository:
    """Permission repository backed by dicts.

    Mirrors the PostgreSQL adapter's filtering: inactive modules, inactive
    grants and expired grants are invisible to decision-path reads. Nothing
    is validated on write.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._modules: dict[UUID, Module] = {}
        self._capabilities: dict[UUID, Capability] = {}
        self._pools: dict[UUID, Pool] = {}
        self._members: dict[tuple[UUID, UUID], PoolMember] = {}
        self._pool_modules: set[tuple[UUID, UUID]] = set()
        self._pool_capabilities: dict[UUID, _PoolCapabilityRow] = {}
        self._user_capabilities: dict[UUID, _UserCapabilityRow] = {}
        self._user_modules: dict[tuple[UUID, UUID], _UserModuleRow] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _active_module_ids(self) -> set[UUID]:
        return {m.id for m in self._modules.values() if m.is_active}

    def _grant(
        self,
        row: _UserCapabilityRow | _PoolCapabilityRow,
        capability: CapabilityKey | None,
    ) -> Grant | None:
        cap = self._capabilities.get(row.capability_id)
        if cap is None or cap.module_id not in self._active_module_ids():
            return None
        if capability is not None and cap.key != capability:
            return None
        if isinstance(row, _PoolCapabilityRow):
            source, pool_id = GrantSource.POOL, row.pool_id
        else:
            source, pool_id = GrantSource.DIRECT, None
        return Grant(
            capability=cap.key,
            scope=row.scope,
            scope_id=row.scope_id,
            source=source,
            grant_id=row.id,
            pool_id=pool_id,
        )

    # Catalog
    async def list_modules(self, active_only: bool = True) -> list[Module]:
        """List modules ordered by navigation position."""
        modules = [m for m in self._modules.values() if m.is_active or not active_only]
        return sorted(modules, key=lambda m: (m.position, m.code))

    async def get_module(self, code: str) -> Module | None:
        """Get a module by code."""
        for module in self._modules.values():
            if module.code == code:
                return module
        return None

    async def create_module(
        self,
        code: str,
        name: str,
        description: str | None = None,
        position: int = 0,
    ) -> Module:
        """Create a module."""
        if await self.get_module(code) is not None:
            raise ConflictError(f"Module already exists: {code}")
        module = Module(
            id=uuid4(),
            code=code,
            name=name,
            description=description,
            position=position,
            is_active=True,
        )
        self._modules[module.id] = module
        return module

    async def list_capabilities(self, module_code: str | None = None) -> list[Capability]:
        """List capabilities, optionally within one module."""
        caps = [
            c
            for c in self._capabilities.values()
            if module_code is None or c.module_code == module_code
        ]
        positions = {m.id: (m.position, m.code) for m in self._modules.values()}
        return sorted(caps, key=lambda c: (positions[c.module_id], c.code))

    async def get_capability(self, key: CapabilityKey) -> Capability | None:
        """Get a capability by key."""
        for cap in self._capabilities.values():
            if cap.key == key:
                return cap
        return None

    async def create_capability(self, module_code: str, code: str, name: str) -> Capability:
        """Create a capability inside an existing module."""
        module = await self.get_module(module_code)
        if module is None:
            raise NotFoundError(f"Unknown module: {module_code}")
        key = CapabilityKey(module=module_code, capability=code)
        if await self.get_capability(key) is not None:
            raise ConflictError(f"Capability already exists: {key}")
        cap = Capability(
            id=uuid4(),
            module_id=module.id,
            module_code=module.code,
            code=code,
            name=name,
        )
        self._capabilities[cap.id] = cap
        return cap

    # Decision-path reads
    async def direct_grants(
        self, user_id: UUID, capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Active, unexpired direct grants of a user on active modules."""
        now = self._now()
        grants = []
        for row in self._user_capabilities.values():
            if row.user_id != user_id or not _live(row.is_active, row.expires_at, now):
                continue
            grant = self._grant(row, capability)
            if grant is not None:
                grants.append(grant)
        return grants

    async def direct_module_codes(self, user_id: UUID) -> list[str]:
        """Codes of active modules the user was granted directly."""
        now = self._now()
        active = self._active_module_ids()
        return [
            self._modules[row.module_id].code
            for row in self._user_modules.values()
            if row.user_id == user_id
            and row.module_id in active
            and _live(row.is_active, row.expires_at, now)
        ]

    async def list_user_pools(self, user_id: UUID) -> list[Pool]:
        """Every pool the user belongs to, active or not."""
        pools = [self._pools[pool_id] for pool_id, uid in self._members if uid == user_id]
        return sorted(pools, key=lambda p: p.name)

    async def pool_capability_grants(
        self, pool_ids: list[UUID], capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Capability grants of the given pools on active modules."""
        wanted = set(pool_ids)
        grants = []
        for row in self._pool_capabilities.values():
            if row.pool_id not in wanted:
                continue
            grant = self._grant(row, capability)
            if grant is not None:
                grants.append(grant)
        return grants

    async def pool_module_codes(self, pool_ids: list[UUID]) -> list[str]:
        """Codes of active modules granted to the given pools."""
        wanted = set(pool_ids)
        active = self._active_module_ids()
        return sorted(
            {
                self._modules[module_id].code
                for pool_id, module_id in self._pool_modules
                if pool_id in wanted and module_id in active
            }
        )

    # Pool administration
    async def create_pool(
        self, name: str, description: str | None = None, created_by: UUID | None = None
    ) -> Pool:
        """Create an active pool."""
        pool = Pool(
            id=uuid4(),
            name=name,
            description=description,
            is_active=True,
            created_at=self._now(),
        )
        self._pools[pool.id] = pool
        return pool

    async def get_pool(self, pool_id: UUID) -> Pool | None:
        """Get a pool by ID."""
        return self._pools.get(pool_id)

    async def set_pool_active(self, pool_id: UUID, is_active: bool) -> Pool | None:
        """Activate or deactivate a pool."""
        pool = self._pools.get(pool_id)
        if pool is None:
            return None
        pool = replace(pool, is_active=is_active)
        self._pools[pool_id] = pool
        return pool

    async def add_pool_member(
        self, pool_id: UUID, user_id: UUID, added_by: UUID | None = None
    ) -> PoolMember | None:
        """Add a member. Returns None if already a member."""
        if (pool_id, user_id) in self._members:
            return None
        member = PoolMember(
            pool_id=pool_id, user_id=user_id, added_at=self._now(), added_by=added_by
        )
        self._members[(pool_id, user_id)] = member
        return member

    async def remove_pool_member(self, pool_id: UUID, user_id: UUID) -> bool:
        """Remove a member."""
        return self._members.pop((pool_id, user_id), None) is not None

    async def grant_pool_module(self, pool_id: UUID, module_id: UUID) -> bool:
        """Give a pool coarse access to a module. Returns False if already granted."""
        if (pool_id, module_id) in self._pool_modules:
            return False
        self._pool_modules.add((pool_id, module_id))
        return True

    async def grant_pool_capability(
        self, pool_id: UUID, capability_id: UUID, scope: Scope, scope_id: str | None
    ) -> UUID:
        """Give a pool a scoped capability. Returns the grant ID."""
        row = _PoolCapabilityRow(
            id=uuid4(),
            pool_id=pool_id,
            capability_id=capability_id,
            scope=scope,
            scope_id=scope_id,
        )
        self._pool_capabilities[row.id] = row
        return row.id

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
        row = _UserCapabilityRow(
            id=uuid4(),
            user_id=user_id,
            capability_id=capability_id,
            scope=scope,
            scope_id=scope_id,
            granted_by=granted_by,
            expires_at=expires_at,
        )
        self._user_capabilities[row.id] = row
        return row.id

    async def revoke_user_capability(self, user_id: UUID, grant_id: UUID) -> bool:
        """Deactivate a direct grant held by user_id."""
        row = self._user_capabilities.get(grant_id)
        if row is None or row.user_id != user_id or not row.is_active:
            return False
        row.is_active = False
        return True

    async def grant_user_module(
        self,
        user_id: UUID,
        module_id: UUID,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> bool:
        """Give a user coarse access to a module, reactivating a revoked grant."""
        existing = self._user_modules.get((user_id, module_id))
        if existing is not None and existing.is_active and existing.expires_at == expires_at:
            return False
        self._user_modules[(user_id, module_id)] = _UserModuleRow(
            user_id=user_id,
            module_id=module_id,
            granted_by=granted_by,
            expires_at=expires_at,
        )
        return True
