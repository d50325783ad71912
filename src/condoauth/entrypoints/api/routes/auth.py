"""Auth API routes for registration, login, token refresh and logout."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, EmailStr, Field

from condoauth.core.access import AccessEngine
from condoauth.core.auth import AuthEventRepository, AuthService
from condoauth.core.auth.types import AuthEvent, User
from condoauth.core.exceptions import AccessDenied, AuthError, ConflictError
from condoauth.entrypoints.api.deps import (
    get_access_engine,
    get_auth_service,
    get_client_ip,
    get_event_repository,
    get_user_agent,
)
from condoauth.entrypoints.api.middleware.jwt_auth import CurrentCaller, http_error

router = APIRouter(prefix="/auth", tags=["auth"])


# Request/Response models
class RegisterRequest(BaseModel):
    """Registration request body."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Token refresh request body."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Logout request body."""

    refresh_token: str


class UserResponse(BaseModel):
    """Caller profile."""

    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    is_super_admin: bool
    last_login_at: datetime | None = None


class TokenResponse(BaseModel):
    """Token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse | None = None


class ModuleResponse(BaseModel):
    """A navigable module and the capabilities the caller holds in it."""

    code: str
    name: str
    description: str | None = None
    position: int
    capabilities: list[str]


class AuthEventResponse(BaseModel):
    """An auth event of the caller."""

    event: AuthEvent
    success: bool
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        is_super_admin=user.is_super_admin,
        last_login_at=user.last_login_at,
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Create a caller account."""
    try:
        user = await service.register(
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return _user_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Authenticate with email and password.

    Every failure returns the same 401 so account existence is not revealed.
    """
    try:
        user, tokens = await service.login(
            email=body.email,
            password=body.password,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from None
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=_user_response(user),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Exchange a refresh token for a new token pair.

    The presented refresh token is spent and cannot be used again.
    """
    try:
        tokens = await service.refresh(
            body.refresh_token,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from None
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/logout", status_code=204)
async def logout(
    body: LogoutRequest,
    request: Request,
    caller: CurrentCaller,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    """Revoke the given refresh token of the caller."""
    await service.logout(
        body.refresh_token,
        caller,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return Response(status_code=204)


@router.post("/logout-all", status_code=204)
async def logout_all(
    request: Request,
    caller: CurrentCaller,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    """Revoke every refresh token of the caller."""
    await service.logout_all(
        caller,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return Response(status_code=204)


@router.get("/me", response_model=UserResponse)
async def get_me(caller: CurrentCaller) -> UserResponse:
    """Get the caller's profile."""
    return _user_response(caller)


@router.get("/me/modules", response_model=list[ModuleResponse])
async def get_my_modules(
    caller: CurrentCaller,
    engine: Annotated[AccessEngine, Depends(get_access_engine)],
) -> list[ModuleResponse]:
    """Get the caller's navigation: visible modules and held capabilities."""
    try:
        entries = await engine.navigation(caller)
    except AccessDenied as e:
        raise http_error(e) from None
    return [
        ModuleResponse(
            code=entry.code,
            name=entry.name,
            description=entry.description,
            position=entry.position,
            capabilities=entry.capabilities,
        )
        for entry in entries
    ]


@router.get("/me/events", response_model=list[AuthEventResponse])
async def get_my_events(
    caller: CurrentCaller,
    events: Annotated[AuthEventRepository, Depends(get_event_repository)],
    limit: int = 10,
) -> list[AuthEventResponse]:
    """Get the caller's most recent auth events."""
    entries = await events.list_recent_for_user(caller.id, limit=min(max(limit, 1), 100))
    return [
        AuthEventResponse(
            event=entry.event,
            success=entry.success,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            created_at=entry.created_at,
        )
        for entry in entries
    ]
