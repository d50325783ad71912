"""Permission administration routes: pools, memberships and grants."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from condoauth.core.auth.types import User
from condoauth.core.exceptions import (
    CondoAuthError,
    ConflictError,
    GrantValidationError,
    NotFoundError,
)
from condoauth.core.rbac import NO_TARGET, PermissionAdminService, Pool, Scope
from condoauth.entrypoints.api.deps import get_admin_service
from condoauth.entrypoints.api.middleware.jwt_auth import require_capability

router = APIRouter(prefix="/admin", tags=["admin"])

# Administration is global; only unrestricted grants authorize it
ManagePermissions = Annotated[
    User, Depends(require_capability("permissions:manage", NO_TARGET))
]
UpdateUsers = Annotated[User, Depends(require_capability("users:update", NO_TARGET))]
AdminService = Annotated[PermissionAdminService, Depends(get_admin_service)]


def _admin_error(exc: CondoAuthError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, GrantValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# Request/Response models
class PoolCreateRequest(BaseModel):
    """Pool creation body."""

    name: str
    description: str | None = None


class PoolActiveRequest(BaseModel):
    """Pool activation body."""

    is_active: bool


class PoolResponse(BaseModel):
    """Pool details."""

    id: UUID
    name: str
    description: str | None = None
    is_active: bool
    created_at: datetime


class MemberRequest(BaseModel):
    """Pool membership body."""

    user_id: UUID


class ModuleGrantRequest(BaseModel):
    """Module grant body."""

    module: str
    expires_at: datetime | None = None


class CapabilityGrantRequest(BaseModel):
    """Capability grant body."""

    capability: str
    scope: Scope
    scope_id: str | None = None
    expires_at: datetime | None = None


class GrantResponse(BaseModel):
    """Created grant."""

    id: UUID


class UserActiveRequest(BaseModel):
    """User activation body."""

    is_active: bool


def _pool_response(pool: Pool) -> PoolResponse:
    return PoolResponse(
        id=pool.id,
        name=pool.name,
        description=pool.description,
        is_active=pool.is_active,
        created_at=pool.created_at,
    )


# Pools
@router.post("/pools", response_model=PoolResponse, status_code=201)
async def create_pool(
    body: PoolCreateRequest, caller: ManagePermissions, service: AdminService
) -> PoolResponse:
    """Create a pool."""
    pool = await service.create_pool(body.name, body.description, created_by=caller.id)
    return _pool_response(pool)


@router.put("/pools/{pool_id}/active", response_model=PoolResponse)
async def set_pool_active(
    pool_id: UUID, body: PoolActiveRequest, caller: ManagePermissions, service: AdminService
) -> PoolResponse:
    """Activate or deactivate a pool."""
    try:
        pool = await service.set_pool_active(pool_id, body.is_active)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return _pool_response(pool)


@router.post("/pools/{pool_id}/members", status_code=204)
async def add_pool_member(
    pool_id: UUID, body: MemberRequest, caller: ManagePermissions, service: AdminService
) -> Response:
    """Add a member to a pool."""
    try:
        await service.add_member(pool_id, body.user_id, added_by=caller.id)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)


@router.delete("/pools/{pool_id}/members/{member_id}", status_code=204)
async def remove_pool_member(
    pool_id: UUID, member_id: UUID, caller: ManagePermissions, service: AdminService
) -> Response:
    """Remove a member from a pool."""
    try:
        await service.remove_member(pool_id, member_id)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)


@router.post("/pools/{pool_id}/modules", status_code=204)
async def grant_pool_module(
    pool_id: UUID, body: ModuleGrantRequest, caller: ManagePermissions, service: AdminService
) -> Response:
    """Give a pool access to a module."""
    try:
        await service.grant_pool_module(pool_id, body.module)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)


@router.post("/pools/{pool_id}/capabilities", response_model=GrantResponse, status_code=201)
async def grant_pool_capability(
    pool_id: UUID,
    body: CapabilityGrantRequest,
    caller: ManagePermissions,
    service: AdminService,
) -> GrantResponse:
    """Give a pool a scoped capability."""
    try:
        grant_id = await service.grant_pool_capability(
            pool_id, body.capability, body.scope, body.scope_id
        )
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return GrantResponse(id=grant_id)


# Direct grants
@router.post("/users/{user_id}/capabilities", response_model=GrantResponse, status_code=201)
async def grant_user_capability(
    user_id: UUID,
    body: CapabilityGrantRequest,
    caller: ManagePermissions,
    service: AdminService,
) -> GrantResponse:
    """Give a user a scoped capability."""
    try:
        grant_id = await service.grant_user_capability(
            user_id,
            body.capability,
            body.scope,
            body.scope_id,
            granted_by=caller.id,
            expires_at=body.expires_at,
        )
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return GrantResponse(id=grant_id)


@router.delete("/users/{user_id}/capabilities/{grant_id}", status_code=204)
async def revoke_user_capability(
    user_id: UUID, grant_id: UUID, caller: ManagePermissions, service: AdminService
) -> Response:
    """Revoke a direct capability grant."""
    try:
        await service.revoke_user_capability(user_id, grant_id)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)


@router.post("/users/{user_id}/modules", status_code=204)
async def grant_user_module(
    user_id: UUID, body: ModuleGrantRequest, caller: ManagePermissions, service: AdminService
) -> Response:
    """Give a user access to a module."""
    try:
        await service.grant_user_module(
            user_id, body.module, granted_by=caller.id, expires_at=body.expires_at
        )
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)


@router.put("/users/{user_id}/active", status_code=204)
async def set_user_active(
    user_id: UUID, body: UserActiveRequest, caller: UpdateUsers, service: AdminService
) -> Response:
    """Activate or deactivate a user."""
    try:
        await service.set_user_active(user_id, body.is_active)
    except CondoAuthError as e:
        raise _admin_error(e) from None
    return Response(status_code=204)
