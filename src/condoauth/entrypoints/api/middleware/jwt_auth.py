"""Bearer token authentication and capability enforcement for HTTP routes."""

from collections.abc import Callable
from typing import Annotated, Any

import structlog
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from condoauth.core.access import AccessEngine
from condoauth.core.auth.types import User
from condoauth.core.exceptions import AccessDenied, AccessOutcome
from condoauth.core.rbac.types import DEFAULT_TARGET, CallContext, TargetFields
from condoauth.entrypoints.api.deps import get_access_engine

logger = structlog.get_logger()

# Use Bearer token authentication
bearer_scheme = HTTPBearer(auto_error=False)


# Every outcome maps to exactly one status and caller-facing message
OUTCOME_STATUS: dict[AccessOutcome, tuple[int, str]] = {
    AccessOutcome.NO_CREDENTIAL: (401, "Missing authentication token"),
    AccessOutcome.INVALID_CREDENTIAL: (401, "Invalid or expired token"),
    AccessOutcome.INACTIVE_CALLER: (401, "Invalid or expired token"),
    AccessOutcome.CAPABILITY_ABSENT: (403, "Forbidden"),
    AccessOutcome.SCOPE_MISMATCH: (403, "Forbidden"),
    AccessOutcome.UNAVAILABLE: (503, "Service unavailable"),
}


def http_error(exc: AccessDenied) -> HTTPException:
    """Translate an access denial into an HTTP error."""
    status_code, detail = OUTCOME_STATUS[exc.outcome]
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _first(sources: list[Any], field: str | None) -> str | None:
    if field is None:
        return None
    for source in sources:
        value = _as_text(source.get(field))
        if value is not None:
            return value
    return None


async def call_context_from_request(
    request: Request, target: TargetFields = DEFAULT_TARGET
) -> CallContext:
    """Locate the call target declared by the route.

    The tenant comes from path params, then the JSON body, then the query
    string. The owner comes from path params or the JSON body only.
    """
    body: dict[str, Any] = {}
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            body = payload

    return CallContext(
        tenant_id=_first([request.path_params, body, request.query_params], target.tenant),
        resource_owner_id=_first([request.path_params, body], target.owner),
    )


async def get_current_caller(
    request: Request,
    engine: Annotated[AccessEngine, Depends(get_access_engine)],
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> User:
    """Resolve the bearer token to an active caller.

    Raises:
        HTTPException: 401 if the token is missing, invalid or belongs to an
            unknown or inactive caller; 503 if storage is unavailable.
    """
    token = credentials.credentials if credentials else None
    try:
        caller = await engine.authenticate(token)
    except AccessDenied as e:
        raise http_error(e) from None

    # Store in request state for downstream use
    request.state.user = caller
    return caller


CurrentCaller = Annotated[User, Depends(get_current_caller)]


def require_capability(
    capability: str, target: TargetFields = DEFAULT_TARGET
) -> Callable[..., Any]:
    """Dependency to require a capability for the call target.

    Usage:
        @router.patch("/condominiums/{condominium_id}/goals/{goal_id}")
        async def update_goal(
            caller: Annotated[User, Depends(require_capability("goals:update"))],
        ):
            ...

    Args:
        capability: "module:capability" key.
        target: Request fields naming the call's tenant and owner. Routes
            without a tenant or owner target pass NO_TARGET, so only
            unrestricted grants match.

    Returns:
        Dependency function returning the authorized caller.
    """

    async def capability_checker(
        request: Request,
        caller: CurrentCaller,
        engine: Annotated[AccessEngine, Depends(get_access_engine)],
    ) -> User:
        context = await call_context_from_request(request, target)
        try:
            await engine.authorize(caller, capability, context)
        except AccessDenied as e:
            raise http_error(e) from None
        return caller

    return capability_checker


def require_module(module_code: str) -> Callable[..., Any]:
    """Dependency to require coarse access to a module."""

    async def module_checker(
        caller: CurrentCaller,
        engine: Annotated[AccessEngine, Depends(get_access_engine)],
    ) -> User:
        try:
            await engine.require_module(caller, module_code)
        except AccessDenied as e:
            raise http_error(e) from None
        return caller

    return module_checker
