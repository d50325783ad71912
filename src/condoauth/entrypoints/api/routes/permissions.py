"""Capability check route."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from condoauth.core.access import AccessEngine
from condoauth.core.exceptions import AccessDenied
from condoauth.core.rbac.types import CallContext
from condoauth.entrypoints.api.deps import get_access_engine
from condoauth.entrypoints.api.middleware.jwt_auth import CurrentCaller, http_error

router = APIRouter(prefix="/permissions", tags=["permissions"])


class CheckRequest(BaseModel):
    """Capability check request body."""

    capability: str
    condominium_id: str | None = None
    user_id: str | None = None


class CheckResponse(BaseModel):
    """Capability check result. Denial reasons are not exposed."""

    allowed: bool


@router.post("/check", response_model=CheckResponse)
async def check_permission(
    body: CheckRequest,
    caller: CurrentCaller,
    engine: Annotated[AccessEngine, Depends(get_access_engine)],
) -> CheckResponse:
    """Check whether the caller holds a capability for a target."""
    context = CallContext(tenant_id=body.condominium_id, resource_owner_id=body.user_id)
    try:
        decision = await engine.check(caller.id, body.capability, context)
    except AccessDenied as e:
        raise http_error(e) from None
    return CheckResponse(allowed=decision.allowed)
