"""gRPC servicers. Messages are JSON objects."""

from typing import Any
from uuid import UUID

import grpc
import structlog
from grpc.aio import ServicerContext

from condoauth.core.exceptions import AccessDenied, NotFoundError
from condoauth.core.rbac import NO_TARGET, PermissionAdminService
from condoauth.entrypoints.grpc.auth import GrpcAccessAdapter, call_context_from_message

logger = structlog.get_logger()

Message = dict[str, Any]


class SessionContextServicer:
    """condoauth.v1.SessionContext: who is calling and what they can see."""

    def __init__(self, access: GrpcAccessAdapter) -> None:
        """Initialize the servicer."""
        self._access = access

    async def GetSessionContext(  # noqa: N802
        self, request: Message, context: ServicerContext
    ) -> Message:
        """Return the caller's identity and navigable modules."""
        caller = await self._access.authenticate(context)
        try:
            modules = await self._access.engine.navigation(caller)
        except AccessDenied as e:
            await self._access.deny(context, e)
        return {
            "user_id": str(caller.id),
            "email": caller.email,
            "first_name": caller.first_name,
            "last_name": caller.last_name,
            "is_super_admin": caller.is_super_admin,
            "modules": [
                {"code": m.code, "name": m.name, "capabilities": m.capabilities} for m in modules
            ],
        }


class PermissionsServicer:
    """condoauth.v1.Permissions: capability checks for other services."""

    def __init__(self, access: GrpcAccessAdapter) -> None:
        """Initialize the servicer."""
        self._access = access

    async def Check(self, request: Message, context: ServicerContext) -> Message:  # noqa: N802
        """Check whether the caller holds a capability for the target in the request."""
        caller = await self._access.authenticate(context)
        capability = request.get("capability")
        if not isinstance(capability, str) or not capability:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "capability is required")
        try:
            decision = await self._access.engine.check(
                caller.id, capability, call_context_from_message(request)
            )
        except AccessDenied as e:
            await self._access.deny(context, e)
        return {"allowed": decision.allowed}


class PoolsServicer:
    """condoauth.v1.Pools: pool administration."""

    def __init__(self, access: GrpcAccessAdapter, admin: PermissionAdminService) -> None:
        """Initialize the servicer."""
        self._access = access
        self._admin = admin

    async def SetPoolActive(  # noqa: N802
        self, request: Message, context: ServicerContext
    ) -> Message:
        """Activate or deactivate a pool. Requires permissions:manage."""
        await self._access.authorize(request, context, "permissions:manage", NO_TARGET)
        try:
            pool_id = UUID(str(request.get("pool_id")))
        except ValueError:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "pool_id must be a UUID")
        is_active = request.get("is_active")
        if not isinstance(is_active, bool):
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "is_active must be a boolean")
        try:
            pool = await self._admin.set_pool_active(pool_id, is_active)
        except NotFoundError as e:
            await context.abort(grpc.StatusCode.NOT_FOUND, str(e))
        return {"pool_id": str(pool.id), "is_active": pool.is_active}
