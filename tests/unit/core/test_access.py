"""Tests for AccessEngine."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from condoauth.core.access import AccessEngine
from condoauth.core.auth.types import User
from condoauth.core.exceptions import AccessDenied, AccessOutcome, AuthorizationError, IdentityError
from condoauth.core.rbac.types import CallContext, Decision, DecisionReason


@pytest.fixture
def verifier() -> MagicMock:
    """Return a mock AuthenticationVerifier."""
    verifier = MagicMock()
    verifier.resolve_caller = AsyncMock()
    return verifier


@pytest.fixture
def resolver() -> MagicMock:
    """Return a mock ScopeResolver."""
    resolver = MagicMock()
    resolver.check = AsyncMock(return_value=Decision.allow(DecisionReason.GRANTED))
    resolver.has_module_access = AsyncMock(return_value=True)
    resolver.navigation = AsyncMock(return_value=[])
    return resolver


@pytest.fixture
def engine(verifier: MagicMock, resolver: MagicMock) -> AccessEngine:
    """Create an engine over mocks."""
    return AccessEngine(verifier, resolver)


class TestAuthenticate:
    """Tests for AccessEngine.authenticate."""

    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token(
        self, engine: AccessEngine, verifier: MagicMock, token: str | None
    ) -> None:
        """Should raise NO_CREDENTIAL without calling the verifier."""
        with pytest.raises(IdentityError) as exc_info:
            await engine.authenticate(token)

        assert exc_info.value.outcome == AccessOutcome.NO_CREDENTIAL
        verifier.resolve_caller.assert_not_called()

    async def test_returns_caller(
        self, engine: AccessEngine, verifier: MagicMock, sample_user: User
    ) -> None:
        """Should return the verified caller."""
        verifier.resolve_caller.return_value = sample_user

        assert await engine.authenticate("token") == sample_user

    async def test_identity_error_passes_through(
        self, engine: AccessEngine, verifier: MagicMock
    ) -> None:
        """Should keep the verifier's outcome."""
        verifier.resolve_caller.side_effect = IdentityError(
            AccessOutcome.INVALID_CREDENTIAL, "bad"
        )

        with pytest.raises(IdentityError) as exc_info:
            await engine.authenticate("token")

        assert exc_info.value.outcome == AccessOutcome.INVALID_CREDENTIAL

    async def test_storage_failure_is_unavailable(
        self, engine: AccessEngine, verifier: MagicMock
    ) -> None:
        """Should fail closed with UNAVAILABLE."""
        verifier.resolve_caller.side_effect = ConnectionError("db down")

        with pytest.raises(AccessDenied) as exc_info:
            await engine.authenticate("token")

        assert exc_info.value.outcome == AccessOutcome.UNAVAILABLE


class TestAuthorize:
    """Tests for AccessEngine.authorize."""

    async def test_allowed(
        self, engine: AccessEngine, resolver: MagicMock, sample_user: User
    ) -> None:
        """Should return the allowing decision and forward the context."""
        context = CallContext(tenant_id="condo-a")

        decision = await engine.authorize(sample_user, "goals:update", context)

        assert decision.allowed
        resolver.check.assert_awaited_once_with(sample_user.id, "goals:update", context)

    @pytest.mark.parametrize(
        ("reason", "outcome"),
        [
            (DecisionReason.CAPABILITY_ABSENT, AccessOutcome.CAPABILITY_ABSENT),
            (DecisionReason.UNKNOWN_CALLER, AccessOutcome.CAPABILITY_ABSENT),
            (DecisionReason.SCOPE_MISMATCH, AccessOutcome.SCOPE_MISMATCH),
        ],
    )
    async def test_denial_outcomes(
        self,
        engine: AccessEngine,
        resolver: MagicMock,
        sample_user: User,
        reason: DecisionReason,
        outcome: AccessOutcome,
    ) -> None:
        """Should raise AuthorizationError carrying the mapped outcome."""
        resolver.check.return_value = Decision.deny(reason)

        with pytest.raises(AuthorizationError) as exc_info:
            await engine.authorize(sample_user, "goals:update")

        assert exc_info.value.outcome == outcome

    async def test_storage_failure_is_unavailable(
        self, engine: AccessEngine, resolver: MagicMock, sample_user: User
    ) -> None:
        """Should never allow when storage fails."""
        resolver.check.side_effect = RuntimeError("pool exhausted")

        with pytest.raises(AccessDenied) as exc_info:
            await engine.authorize(sample_user, "goals:update")

        assert exc_info.value.outcome == AccessOutcome.UNAVAILABLE
        assert not isinstance(exc_info.value, AuthorizationError)


class TestModules:
    """Tests for module access and navigation."""

    async def test_require_module_denied(
        self, engine: AccessEngine, resolver: MagicMock, sample_user: User
    ) -> None:
        """Should raise CAPABILITY_ABSENT for an invisible module."""
        resolver.has_module_access.return_value = False

        with pytest.raises(AuthorizationError) as exc_info:
            await engine.require_module(sample_user, "goals")

        assert exc_info.value.outcome == AccessOutcome.CAPABILITY_ABSENT

    async def test_require_module_allowed(self, engine: AccessEngine, sample_user: User) -> None:
        """Should return quietly when the module is visible."""
        await engine.require_module(sample_user, "goals")

    async def test_navigation_failure_is_unavailable(
        self, engine: AccessEngine, resolver: MagicMock, sample_user: User
    ) -> None:
        """Should fail closed when navigation cannot be read."""
        resolver.navigation.side_effect = OSError("timeout")

        with pytest.raises(AccessDenied) as exc_info:
            await engine.navigation(sample_user)

        assert exc_info.value.outcome == AccessOutcome.UNAVAILABLE
