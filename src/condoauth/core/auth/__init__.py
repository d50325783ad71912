"""Authentication domain: credentials, session tokens and caller resolution."""

from condoauth.core.auth.issuer import SessionTokenIssuer
from condoauth.core.auth.jwt import TokenError, TokenSettings
from condoauth.core.auth.repository import AuthEventRepository, AuthRepository
from condoauth.core.auth.service import AuthService
from condoauth.core.auth.types import (
    AuthEvent,
    AuthEventCreate,
    AuthEventEntry,
    RefreshCredential,
    TokenPair,
    TokenPayload,
    User,
)
from condoauth.core.auth.verifier import AuthenticationVerifier

__all__ = [
    "AuthEvent",
    "AuthEventCreate",
    "AuthEventEntry",
    "AuthEventRepository",
    "AuthRepository",
    "AuthService",
    "AuthenticationVerifier",
    "RefreshCredential",
    "SessionTokenIssuer",
    "TokenError",
    "TokenPair",
    "TokenPayload",
    "TokenSettings",
    "User",
]
