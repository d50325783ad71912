"""Opaque refresh credential generation and hashing."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

REFRESH_TOKEN_BYTES = 64


def generate_refresh_token() -> str:
    """Generate a cryptographically secure refresh credential.

    Returns:
        URL-safe base64 encoded token string.
    """
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hash a token for secure storage.

    Uses SHA-256 for fast lookup. The token itself has enough entropy
    that rainbow tables are infeasible.

    Args:
        token: The plaintext token to hash.

    Returns:
        Hex-encoded SHA-256 hash of the token.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_token_expiry(days: int) -> datetime:
    """Calculate a refresh credential expiry timestamp.

    Args:
        days: Number of days until expiry.

    Returns:
        UTC datetime when the credential expires.
    """
    return datetime.now(UTC) + timedelta(days=days)
