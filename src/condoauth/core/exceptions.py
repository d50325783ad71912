"""Domain-specific exceptions.

All exceptions in the condoauth system inherit from CondoAuthError,
making it easy to catch all system errors while still being able
to handle specific error types.
"""

from __future__ import annotations

from enum import Enum


class CondoAuthError(Exception):
    """Base exception for all condoauth errors."""

    pass


class AccessOutcome(str, Enum):
    """Why an inbound call was refused.

    Every transport maps each of these to one native status. The
    capability/scope distinction never reaches the caller.
    """

    NO_CREDENTIAL = "no_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    INACTIVE_CALLER = "inactive_caller"
    CAPABILITY_ABSENT = "capability_absent"
    SCOPE_MISMATCH = "scope_mismatch"
    UNAVAILABLE = "unavailable"

    @property
    def is_identity_failure(self) -> bool:
        """Whether the outcome is an authentication (not authorization) failure."""
        return self in (
            AccessOutcome.NO_CREDENTIAL,
            AccessOutcome.INVALID_CREDENTIAL,
            AccessOutcome.INACTIVE_CALLER,
        )


class AccessDenied(CondoAuthError):
    """An inbound call was refused by the access engine.

    Attributes:
        outcome: The internal reason, for transport mapping and diagnostics.
    """

    def __init__(self, outcome: AccessOutcome, message: str | None = None) -> None:
        """Initialize AccessDenied.

        Args:
            outcome: The internal reason for the refusal.
            message: Optional server-side description.
        """
        super().__init__(message or outcome.value)
        self.outcome = outcome


class IdentityError(AccessDenied):
    """The caller could not be identified (missing, invalid or stale identity)."""

    pass


class AuthorizationError(AccessDenied):
    """The caller is identified but may not perform the call."""

    pass


class AuthError(CondoAuthError):
    """A session workflow (login, refresh) failed.

    The message is safe to show to the caller. The specific reason is kept
    in `reason` for audit and logs only.
    """

    def __init__(self, message: str, reason: str | None = None) -> None:
        """Initialize AuthError.

        Args:
            message: Generic, caller-facing message.
            reason: Specific server-side reason.
        """
        super().__init__(message)
        self.reason = reason


class GrantValidationError(CondoAuthError):
    """A grant violates the scope/scope_id invariant or names an unknown capability."""

    pass


class ConflictError(CondoAuthError):
    """The requested record already exists."""

    pass


class NotFoundError(CondoAuthError):
    """The requested record does not exist."""

    pass
