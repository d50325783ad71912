"""Auth domain types."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthEvent(str, Enum):
    """Authentication events recorded in the auth event log."""

    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    LOGOUT_ALL = "LOGOUT_ALL"
    REFRESH = "REFRESH"
    REGISTER = "REGISTER"


class User(BaseModel):
    """A caller identity."""

    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    password_hash: str | None = None
    is_super_admin: bool = False
    is_active: bool = True
    created_at: datetime
    last_login_at: datetime | None = None


class RefreshCredential(BaseModel):
    """Stored refresh credential. Only the token hash is ever persisted."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    revoked_at: datetime | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class TokenPayload(BaseModel):
    """Access token claims."""

    sub: str  # user_id
    email: str
    is_super_admin: bool
    type: str
    exp: int
    iat: int
    jti: str | None = None

    @property
    def user_id(self) -> UUID:
        """Get the subject as UUID."""
        return UUID(self.sub)


class TokenPair(BaseModel):
    """Access token plus the one-time visible refresh credential."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthEventCreate(BaseModel):
    """Request to append an auth event."""

    model_config = ConfigDict(frozen=True)

    event: AuthEvent
    email: str
    user_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    fail_reason: str | None = None


class AuthEventEntry(BaseModel):
    """Auth event from storage."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    event: AuthEvent
    email: str
    user_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    fail_reason: str | None = None
    created_at: datetime
