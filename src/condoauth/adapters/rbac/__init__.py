"""Permission storage adapters."""

from condoauth.adapters.rbac.memory import InMemoryPermissionRepository
from condoauth.adapters.rbac.postgres import PostgresPermissionRepository

__all__ = ["InMemoryPermissionRepository", "PostgresPermissionRepository"]
