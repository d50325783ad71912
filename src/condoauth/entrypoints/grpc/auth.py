"""Bearer token authentication and capability enforcement for gRPC methods."""

from collections.abc import Mapping
from typing import Any, NoReturn

import grpc
import structlog
from grpc.aio import ServicerContext

from condoauth.core.access import AccessEngine
from condoauth.core.auth.types import User
from condoauth.core.exceptions import AccessDenied, AccessOutcome
from condoauth.core.rbac.types import DEFAULT_TARGET, CallContext, TargetFields

logger = structlog.get_logger()

AUTHORIZATION_KEY = "authorization"
BEARER_PREFIX = "bearer "

# Every outcome maps to exactly one status and caller-facing message
OUTCOME_STATUS: dict[AccessOutcome, tuple[grpc.StatusCode, str]] = {
    AccessOutcome.NO_CREDENTIAL: (grpc.StatusCode.UNAUTHENTICATED, "Missing authentication token"),
    AccessOutcome.INVALID_CREDENTIAL: (grpc.StatusCode.UNAUTHENTICATED, "Invalid or expired token"),
    AccessOutcome.INACTIVE_CALLER: (grpc.StatusCode.UNAUTHENTICATED, "Invalid or expired token"),
    AccessOutcome.CAPABILITY_ABSENT: (grpc.StatusCode.PERMISSION_DENIED, "Forbidden"),
    AccessOutcome.SCOPE_MISMATCH: (grpc.StatusCode.PERMISSION_DENIED, "Forbidden"),
    AccessOutcome.UNAVAILABLE: (grpc.StatusCode.UNAVAILABLE, "Service unavailable"),
}


def bearer_token(context: ServicerContext) -> str | None:
    """Extract the bearer token from the call's metadata."""
    for key, value in context.invocation_metadata() or ():
        if key.lower() != AUTHORIZATION_KEY:
            continue
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if value.lower().startswith(BEARER_PREFIX):
            token = value[len(BEARER_PREFIX) :].strip()
            return token or None
        return None
    return None


def _field(request: Any, name: str | None) -> str | None:
    if name is None:
        return None
    if isinstance(request, Mapping):
        value = request.get(name)
    else:
        value = getattr(request, name, None)
    # Proto3 scalars default to "" when unset
    if value is None or value == "":
        return None
    return str(value)


def call_context_from_message(
    request: Any, target: TargetFields = DEFAULT_TARGET
) -> CallContext:
    """Read the call target from the request message fields the method declares."""
    return CallContext(
        tenant_id=_field(request, target.tenant),
        resource_owner_id=_field(request, target.owner),
    )


class GrpcAccessAdapter:
    """Enforce access on gRPC calls through the shared AccessEngine."""

    def __init__(self, engine: AccessEngine) -> None:
        """Initialize the adapter.

        Args:
            engine: Shared decision core.
        """
        self._engine = engine

    @property
    def engine(self) -> AccessEngine:
        """The shared decision core."""
        return self._engine

    async def deny(self, context: ServicerContext, exc: AccessDenied) -> NoReturn:
        """Abort the call with the status mapped from a denial."""
        code, message = OUTCOME_STATUS[exc.outcome]
        await context.abort(code, message)
        raise AssertionError("context.abort() returned")

    async def authenticate(self, context: ServicerContext) -> User:
        """Resolve the call's bearer token to an active caller, or abort."""
        try:
            return await self._engine.authenticate(bearer_token(context))
        except AccessDenied as e:
            await self.deny(context, e)

    async def authorize(
        self,
        request: Any,
        context: ServicerContext,
        capability: str,
        target: TargetFields = DEFAULT_TARGET,
    ) -> User:
        """Require a capability for the call target named in the request, or abort.

        Args:
            request: Decoded request message.
            context: Servicer context of the call.
            capability: "module:capability" key.
            target: Message fields naming the call's tenant and owner.

        Returns:
            The authorized caller.
        """
        caller = await self.authenticate(context)
        call_context = call_context_from_message(request, target)
        try:
            await self._engine.authorize(caller, capability, call_context)
        except AccessDenied as e:
            await self.deny(context, e)
        return caller
