"""Transport-independent access decisions.

Both transport adapters call into AccessEngine and nothing else. It turns
a bearer credential into a caller and a (caller, capability, context)
triple into an allow or an AccessDenied, so the HTTP and gRPC surfaces
cannot drift apart.
"""

from collections.abc import Awaitable
from typing import TypeVar
from uuid import UUID

import structlog

from condoauth.core.auth.types import User
from condoauth.core.auth.verifier import AuthenticationVerifier
from condoauth.core.exceptions import (
    AccessDenied,
    AccessOutcome,
    AuthorizationError,
    IdentityError,
)
from condoauth.core.rbac.scope_resolver import ScopeResolver
from condoauth.core.rbac.types import CallContext, Decision, DecisionReason, NavigationEntry

logger = structlog.get_logger()

T = TypeVar("T")

_DENIAL_OUTCOMES = {
    DecisionReason.UNKNOWN_CALLER: AccessOutcome.CAPABILITY_ABSENT,
    DecisionReason.CAPABILITY_ABSENT: AccessOutcome.CAPABILITY_ABSENT,
    DecisionReason.SCOPE_MISMATCH: AccessOutcome.SCOPE_MISMATCH,
}


class AccessEngine:
    """Shared decision core for every inbound call."""

    def __init__(self, verifier: AuthenticationVerifier, resolver: ScopeResolver) -> None:
        """Initialize the engine.

        Args:
            verifier: Resolves bearer credentials to callers.
            resolver: Evaluates capabilities against call contexts.
        """
        self._verifier = verifier
        self._resolver = resolver

    async def _guarded(self, operation: str, call: Awaitable[T]) -> T:
        """Await a decision step, failing closed on storage errors."""
        try:
            return await call
        except AccessDenied:
            raise
        except Exception:
            logger.exception("access_decision_unavailable", operation=operation)
            raise AccessDenied(
                AccessOutcome.UNAVAILABLE, "Authorization temporarily unavailable"
            ) from None

    async def authenticate(self, token: str | None) -> User:
        """Resolve a bearer credential to an active caller.

        Raises:
            IdentityError: If the credential is missing, invalid or belongs
                to an unknown or inactive caller.
            AccessDenied: UNAVAILABLE if storage fails.
        """
        if not token:
            raise IdentityError(AccessOutcome.NO_CREDENTIAL, "Missing credentials")
        return await self._guarded("authenticate", self._verifier.resolve_caller(token))

    async def check(
        self,
        caller_id: UUID,
        capability: str,
        context: CallContext | None = None,
    ) -> Decision:
        """Evaluate a capability without raising on denial.

        Raises:
            AccessDenied: UNAVAILABLE if storage fails.
        """
        return await self._guarded(
            "check", self._resolver.check(caller_id, capability, context)
        )

    async def authorize(
        self,
        caller: User,
        capability: str,
        context: CallContext | None = None,
    ) -> Decision:
        """Require a capability for the call.

        Returns:
            The allowing decision.

        Raises:
            AuthorizationError: CAPABILITY_ABSENT or SCOPE_MISMATCH.
            AccessDenied: UNAVAILABLE if storage fails.
        """
        decision = await self.check(caller.id, capability, context)
        if decision.allowed:
            return decision

        outcome = _DENIAL_OUTCOMES[decision.reason]
        logger.info(
            "access_denied",
            user_id=str(caller.id),
            capability=capability,
            outcome=outcome.value,
        )
        raise AuthorizationError(outcome, f"{capability} denied")

    async def require_module(self, caller: User, module_code: str) -> None:
        """Require coarse access to a module.

        Raises:
            AuthorizationError: CAPABILITY_ABSENT if the module is not visible.
            AccessDenied: UNAVAILABLE if storage fails.
        """
        visible = await self._guarded(
            "require_module", self._resolver.has_module_access(caller.id, module_code)
        )
        if not visible:
            logger.info("module_access_denied", user_id=str(caller.id), module=module_code)
            raise AuthorizationError(AccessOutcome.CAPABILITY_ABSENT, f"{module_code} denied")

    async def navigation(self, caller: User) -> list[NavigationEntry]:
        """Get the modules and capabilities the caller can see.

        Raises:
            AccessDenied: UNAVAILABLE if storage fails.
        """
        return await self._guarded("navigation", self._resolver.navigation(caller.id))
