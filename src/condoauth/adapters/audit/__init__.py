"""Auth event log adapters."""

from condoauth.adapters.audit.repository import (
    InMemoryAuthEventRepository,
    PostgresAuthEventRepository,
)
from condoauth.adapters.audit.writer import AuthEventWriter

__all__ = [
    "AuthEventWriter",
    "InMemoryAuthEventRepository",
    "PostgresAuthEventRepository",
]
