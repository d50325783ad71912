"""JWT access token creation and validation."""

import os
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError

from condoauth.core.auth.types import TokenPayload, User
from condoauth.core.exceptions import CondoAuthError

ACCESS_TOKEN_TYPE = "access"


class TokenError(CondoAuthError):
    """Raised when token validation fails."""

    pass


@dataclass(frozen=True)
class TokenSettings:
    """Signing and lifetime configuration for session tokens."""

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    @classmethod
    def from_env(cls) -> "TokenSettings":
        """Load token settings from environment variables."""
        return cls(
            secret_key=os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production-0123456789"),
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")),
            refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
        )


def create_access_token(user: User, settings: TokenSettings) -> str:
    """Create a short-lived access token.

    Args:
        user: The caller the token identifies.
        settings: Signing configuration.

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        "sub": str(user.id),
        "email": user.email,
        "is_super_admin": user.is_super_admin,
        "type": ACCESS_TOKEN_TYPE,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "jti": uuid.uuid4().hex,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: TokenSettings) -> TokenPayload:
    """Decode and validate an access token.

    Args:
        token: Encoded JWT string
        settings: Signing configuration.

    Returns:
        Decoded token payload

    Raises:
        TokenError: If the token is invalid, expired or not an access token
    """
    try:
        claims = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}") from None

    # A refresh-type artifact must never pass as an access token
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise TokenError("Invalid token type")

    try:
        return TokenPayload(**claims)
    except ValidationError:
        raise TokenError("Invalid token claims") from None
