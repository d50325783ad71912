"""Credential store adapters."""

from condoauth.adapters.auth.memory import InMemoryAuthRepository
from condoauth.adapters.auth.postgres import PostgresAuthRepository

__all__ = ["InMemoryAuthRepository", "PostgresAuthRepository"]
