"""PostgreSQL implementation of PermissionRepository."""

from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg

from condoauth.adapters.db.app_db import AppDatabase
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

_CAPABILITY_SELECT = """
    SELECT c.id, c.module_id, c.code, c.name, m.code AS module_code
    FROM module_capabilities c
    JOIN modules m ON m.id = c.module_id
"""


class PostgresPermissionRepository:
    """Module catalog, grants and pools in PostgreSQL.

    Decision-path reads join through modules and drop inactive ones, so an
    inactive module's capabilities never reach the resolvers.
    """

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_module(self, row: dict[str, Any]) -> Module:
        return Module(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            description=row.get("description"),
            position=row.get("position", 0),
            is_active=row.get("is_active", True),
        )

    def _row_to_capability(self, row: dict[str, Any]) -> Capability:
        return Capability(
            id=row["id"],
            module_id=row["module_id"],
            module_code=row["module_code"],
            code=row["code"],
            name=row["name"],
        )

    def _row_to_pool(self, row: dict[str, Any]) -> Pool:
        return Pool(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            is_active=row["is_active"],
            created_at=row["created_at"],
        )

    def _row_to_grant(self, row: dict[str, Any], source: GrantSource) -> Grant:
        return Grant(
            capability=CapabilityKey(module=row["module_code"], capability=row["capability_code"]),
            scope=Scope(row["scope"]),
            scope_id=row.get("scope_id"),
            source=source,
            grant_id=row["id"],
            pool_id=row.get("pool_id"),
        )

    # Catalog
    async def list_modules(self, active_only: bool = True) -> list[Module]:
        """List modules ordered by navigation position."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM modules
            WHERE ($1 = false OR is_active)
            ORDER BY position, code
            """,
            active_only,
        )
        return [self._row_to_module(row) for row in rows]

    async def get_module(self, code: str) -> Module | None:
        """Get a module by code."""
        row = await self._db.fetch_one("SELECT * FROM modules WHERE code = $1", code)
        return self._row_to_module(row) if row else None

    async def create_module(
        self,
        code: str,
        name: str,
        description: str | None = None,
        position: int = 0,
    ) -> Module:
        """Create a module."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO modules (code, name, description, position)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                """,
                code,
                name,
                description,
                position,
            )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError(f"Module already exists: {code}") from e
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_module(row)

    async def list_capabilities(self, module_code: str | None = None) -> list[Capability]:
        """List capabilities, optionally within one module."""
        rows = await self._db.fetch_all(
            _CAPABILITY_SELECT
            + """
            WHERE ($1::text IS NULL OR m.code = $1)
            ORDER BY m.position, m.code, c.code
            """,
            module_code,
        )
        return [self._row_to_capability(row) for row in rows]

    async def get_capability(self, key: CapabilityKey) -> Capability | None:
        """Get a capability by key."""
        row = await self._db.fetch_one(
            _CAPABILITY_SELECT + " WHERE m.code = $1 AND c.code = $2",
            key.module,
            key.capability,
        )
        return self._row_to_capability(row) if row else None

    async def create_capability(self, module_code: str, code: str, name: str) -> Capability:
        """Create a capability inside an existing module."""
        module = await self.get_module(module_code)
        if module is None:
            raise NotFoundError(f"Unknown module: {module_code}")
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO module_capabilities (module_id, code, name)
                VALUES ($1, $2, $3)
                RETURNING id, module_id, code, name
                """,
                module.id,
                code,
                name,
            )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError(f"Capability already exists: {module_code}:{code}") from e
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_capability({**row, "module_code": module.code})

    # Decision-path reads
    async def direct_grants(
        self, user_id: UUID, capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Active, unexpired direct grants of a user on active modules."""
        rows = await self._db.fetch_all(
            """
            SELECT g.id, g.scope, g.scope_id,
                   m.code AS module_code, c.code AS capability_code
            FROM user_capability_grants g
            JOIN module_capabilities c ON c.id = g.capability_id
            JOIN modules m ON m.id = c.module_id
            WHERE g.user_id = $1
              AND g.is_active
              AND (g.expires_at IS NULL OR g.expires_at > NOW())
              AND m.is_active
              AND ($2::text IS NULL OR (m.code = $2 AND c.code = $3))
            """,
            user_id,
            capability.module if capability else None,
            capability.capability if capability else None,
        )
        return [self._row_to_grant(row, GrantSource.DIRECT) for row in rows]

    async def direct_module_codes(self, user_id: UUID) -> list[str]:
        """Codes of active modules the user was granted directly."""
        rows = await self._db.fetch_all(
            """
            SELECT m.code
            FROM user_module_grants g
            JOIN modules m ON m.id = g.module_id
            WHERE g.user_id = $1
              AND g.is_active
              AND (g.expires_at IS NULL OR g.expires_at > NOW())
              AND m.is_active
            """,
            user_id,
        )
        return [row["code"] for row in rows]

    async def list_user_pools(self, user_id: UUID) -> list[Pool]:
        """Every pool the user belongs to, active or not."""
        rows = await self._db.fetch_all(
            """
            SELECT p.*
            FROM pools p
            JOIN pool_members pm ON pm.pool_id = p.id
            WHERE pm.user_id = $1
            ORDER BY p.name
            """,
            user_id,
        )
        return [self._row_to_pool(row) for row in rows]

    async def pool_capability_grants(
        self, pool_ids: list[UUID], capability: CapabilityKey | None = None
    ) -> list[Grant]:
        """Capability grants of the given pools on active modules."""
        if not pool_ids:
            return []
        rows = await self._db.fetch_all(
            """
            SELECT g.id, g.pool_id, g.scope, g.scope_id,
                   m.code AS module_code, c.code AS capability_code
            FROM pool_capability_grants g
            JOIN module_capabilities c ON c.id = g.capability_id
            JOIN modules m ON m.id = c.module_id
            WHERE g.pool_id = ANY($1::uuid[])
              AND m.is_active
              AND ($2::text IS NULL OR (m.code = $2 AND c.code = $3))
            """,
            pool_ids,
            capability.module if capability else None,
            capability.capability if capability else None,
        )
        return [self._row_to_grant(row, GrantSource.POOL) for row in rows]

    async def pool_module_codes(self, pool_ids: list[UUID]) -> list[str]:
        """Codes of active modules granted to the given pools."""
        if not pool_ids:
            return []
        rows = await self._db.fetch_all(
            """
            SELECT DISTINCT m.code
            FROM pool_module_grants g
            JOIN modules m ON m.id = g.module_id
            WHERE g.pool_id = ANY($1::uuid[]) AND m.is_active
            """,
            pool_ids,
        )
        return [row["code"] for row in rows]

    # Pool administration
    async def create_pool(
        self, name: str, description: str | None = None, created_by: UUID | None = None
    ) -> Pool:
        """Create an active pool."""
        row = await self._db.fetch_one(
            """
            INSERT INTO pools (name, description, created_by)
            VALUES ($1, $2, $3)
            RETURNING *
            """,
            name,
            description,
            created_by,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_pool(row)

    async def get_pool(self, pool_id: UUID) -> Pool | None:
        """Get a pool by ID."""
        row = await self._db.fetch_one("SELECT * FROM pools WHERE id = $1", pool_id)
        return self._row_to_pool(row) if row else None

    async def set_pool_active(self, pool_id: UUID, is_active: bool) -> Pool | None:
        """Activate or deactivate a pool."""
        row = await self._db.fetch_one(
            "UPDATE pools SET is_active = $2 WHERE id = $1 RETURNING *",
            pool_id,
            is_active,
        )
        return self._row_to_pool(row) if row else None

    async def add_pool_member(
        self, pool_id: UUID, user_id: UUID, added_by: UUID | None = None
    ) -> PoolMember | None:
        """Add a member. Returns None if already a member."""
        row = await self._db.fetch_one(
            """
            INSERT INTO pool_members (pool_id, user_id, added_by)
            VALUES ($1, $2, $3)
            ON CONFLICT (pool_id, user_id) DO NOTHING
            RETURNING pool_id, user_id, added_by, created_at
            """,
            pool_id,
            user_id,
            added_by,
        )
        if row is None:
            return None
        return PoolMember(
            pool_id=row["pool_id"],
            user_id=row["user_id"],
            added_at=row["created_at"],
            added_by=row.get("added_by"),
        )

    async def remove_pool_member(self, pool_id: UUID, user_id: UUID) -> bool:
        """Remove a member."""
        result = await self._db.execute(
            "DELETE FROM pool_members WHERE pool_id = $1 AND user_id = $2",
            pool_id,
            user_id,
        )
        return result == "DELETE 1"

    async def grant_pool_module(self, pool_id: UUID, module_id: UUID) -> bool:
        """Give a pool coarse access to a module. Returns False if already granted."""
        result = await self._db.execute(
            """
            INSERT INTO pool_module_grants (pool_id, module_id)
            VALUES ($1, $2)
            ON CONFLICT (pool_id, module_id) DO NOTHING
            """,
            pool_id,
            module_id,
        )
        return result == "INSERT 0 1"

    async def grant_pool_capability(
        self, pool_id: UUID, capability_id: UUID, scope: Scope, scope_id: str | None
    ) -> UUID:
        """Give a pool a scoped capability. Returns the grant ID."""
        row = await self._db.fetch_one(
            """
            INSERT INTO pool_capability_grants (pool_id, capability_id, scope, scope_id)
            VALUES ($1, $2, $3, $4)
            RETURNING id
            """,
            pool_id,
            capability_id,
            scope.value,
            scope_id,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        grant_id: UUID = row["id"]
        return grant_id

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
        row = await self._db.fetch_one(
            """
            INSERT INTO user_capability_grants
                (user_id, capability_id, scope, scope_id, granted_by, expires_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id
            """,
            user_id,
            capability_id,
            scope.value,
            scope_id,
            granted_by,
            expires_at,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        grant_id: UUID = row["id"]
        return grant_id

    async def revoke_user_capability(self, user_id: UUID, grant_id: UUID) -> bool:
        """Deactivate a direct grant held by user_id."""
        result = await self._db.execute(
            """
            UPDATE user_capability_grants
            SET is_active = false
            WHERE id = $1 AND user_id = $2 AND is_active
            """,
            grant_id,
            user_id,
        )
        return result == "UPDATE 1"

    async def grant_user_module(
        self,
        user_id: UUID,
        module_id: UUID,
        granted_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> bool:
        """Give a user coarse access to a module, reactivating a revoked grant."""
        row = await self._db.fetch_one(
            """
            INSERT INTO user_module_grants (user_id, module_id, granted_by, expires_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, module_id) DO UPDATE
                SET is_active = true,
                    granted_by = EXCLUDED.granted_by,
                    expires_at = EXCLUDED.expires_at
                WHERE NOT user_module_grants.is_active
                   OR user_module_grants.expires_at IS DISTINCT FROM EXCLUDED.expires_at
            RETURNING id
            """,
            user_id,
            module_id,
            granted_by,
            expires_at,
        )
        return row is not None
