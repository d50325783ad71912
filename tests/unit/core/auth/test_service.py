"""Tests for AuthService session workflows."""

from unittest.mock import MagicMock

import pytest

from condoauth.adapters.auth import InMemoryAuthRepository
from condoauth.core.auth.issuer import SessionTokenIssuer
from condoauth.core.auth.jwt import TokenSettings
from condoauth.core.auth.password import hash_password
from condoauth.core.auth.service import INVALID_LOGIN, AuthService
from condoauth.core.auth.types import AuthEvent, AuthEventCreate, User
from condoauth.core.exceptions import AuthError, ConflictError

PASSWORD = "correct-password"  # pragma: allowlist secret


def _written(mock_audit: MagicMock) -> list[AuthEventCreate]:
    return [call.args[0] for call in mock_audit.write.call_args_list]


@pytest.fixture
def service(
    memory_users: InMemoryAuthRepository, token_settings: TokenSettings, mock_audit: MagicMock
) -> AuthService:
    """Create a service over the in-memory store and a mock audit sink."""
    return AuthService(memory_users, SessionTokenIssuer(memory_users, token_settings), mock_audit)


@pytest.fixture
async def account(memory_users: InMemoryAuthRepository) -> User:
    """Create an account with a password."""
    return await memory_users.create_user(
        email="owner@example.com", password_hash=hash_password(PASSWORD)
    )


class TestRegister:
    """Tests for registration."""

    async def test_register_normalizes_email(
        self, service: AuthService, mock_audit: MagicMock
    ) -> None:
        """Should store the email lower-cased and audit REGISTER."""
        user = await service.register("  New.Owner@Example.COM ", "long-password", "Ana")

        assert user.email == "new.owner@example.com"
        assert user.is_super_admin is False
        assert user.password_hash and user.password_hash != "long-password"
        [entry] = _written(mock_audit)
        assert entry.event == AuthEvent.REGISTER
        assert entry.user_id == user.id

    async def test_register_duplicate_email(self, service: AuthService, account: User) -> None:
        """Should raise ConflictError for a taken email in any case."""
        with pytest.raises(ConflictError):
            await service.register("OWNER@example.com", "another-password")


class TestLogin:
    """Tests for login."""

    async def test_login_success(
        self, service: AuthService, account: User, mock_audit: MagicMock
    ) -> None:
        """Should return a token pair and audit LOGIN."""
        user, tokens = await service.login("Owner@Example.com", PASSWORD, "10.0.0.1", "pytest")

        assert user.id == account.id
        assert tokens.access_token and tokens.refresh_token
        [entry] = _written(mock_audit)
        assert entry.event == AuthEvent.LOGIN
        assert entry.success is True
        assert entry.ip_address == "10.0.0.1"

    async def test_login_records_last_login(
        self, service: AuthService, account: User, memory_users: InMemoryAuthRepository
    ) -> None:
        """Should stamp last_login_at."""
        await service.login(account.email, PASSWORD)

        stored = await memory_users.get_user_by_id(account.id)
        assert stored is not None and stored.last_login_at is not None

    async def test_wrong_password_is_generic_but_audited(
        self, service: AuthService, account: User, mock_audit: MagicMock
    ) -> None:
        """Should return the generic message and audit the specific reason."""
        with pytest.raises(AuthError) as exc_info:
            await service.login(account.email, "wrong-password")

        assert str(exc_info.value) == INVALID_LOGIN
        [entry] = _written(mock_audit)
        assert entry.event == AuthEvent.LOGIN_FAILED
        assert entry.success is False
        assert entry.fail_reason == "Incorrect password"
        assert entry.user_id == account.id

    async def test_unknown_email(self, service: AuthService, mock_audit: MagicMock) -> None:
        """Should return the same generic message for an unknown email."""
        with pytest.raises(AuthError) as exc_info:
            await service.login("nobody@example.com", PASSWORD)

        assert str(exc_info.value) == INVALID_LOGIN
        [entry] = _written(mock_audit)
        assert entry.fail_reason == "Unknown email"
        assert entry.user_id is None

    async def test_inactive_account(
        self,
        service: AuthService,
        account: User,
        memory_users: InMemoryAuthRepository,
        mock_audit: MagicMock,
    ) -> None:
        """Should reject a deactivated account with the generic message."""
        await memory_users.set_user_active(account.id, False)

        with pytest.raises(AuthError) as exc_info:
            await service.login(account.email, PASSWORD)

        assert str(exc_info.value) == INVALID_LOGIN
        assert _written(mock_audit)[0].fail_reason == "Inactive account"


class TestRefresh:
    """Tests for refresh."""

    async def test_refresh_rotates(
        self, service: AuthService, account: User, mock_audit: MagicMock
    ) -> None:
        """Should issue a new pair and spend the old refresh token."""
        _, tokens = await service.login(account.email, PASSWORD)

        new_tokens = await service.refresh(tokens.refresh_token)

        assert new_tokens.refresh_token != tokens.refresh_token
        assert _written(mock_audit)[-1].event == AuthEvent.REFRESH
        with pytest.raises(AuthError):
            await service.refresh(tokens.refresh_token)

    async def test_refresh_rejects_inactive_owner(
        self,
        service: AuthService,
        account: User,
        memory_users: InMemoryAuthRepository,
    ) -> None:
        """Should reject a valid credential whose owner was deactivated."""
        _, tokens = await service.login(account.email, PASSWORD)
        await memory_users.set_user_active(account.id, False)

        with pytest.raises(AuthError):
            await service.refresh(tokens.refresh_token)

    async def test_refresh_unknown(self, service: AuthService) -> None:
        """Should reject an unknown refresh token."""
        with pytest.raises(AuthError):
            await service.refresh("made-up")


class TestLogout:
    """Tests for logout and logout_all."""

    async def test_logout_revokes_presented_token(
        self, service: AuthService, account: User, mock_audit: MagicMock
    ) -> None:
        """Should revoke the presented refresh token and audit LOGOUT."""
        _, tokens = await service.login(account.email, PASSWORD)

        await service.logout(tokens.refresh_token, account)

        assert _written(mock_audit)[-1].event == AuthEvent.LOGOUT
        with pytest.raises(AuthError):
            await service.refresh(tokens.refresh_token)

    async def test_logout_unknown_token_succeeds(self, service: AuthService, account: User) -> None:
        """Should succeed silently for an unknown token."""
        await service.logout("not-a-token", account)

    async def test_logout_all_revokes_every_session(
        self, service: AuthService, account: User, mock_audit: MagicMock
    ) -> None:
        """Should revoke every refresh token of the caller."""
        _, first = await service.login(account.email, PASSWORD)
        _, second = await service.login(account.email, PASSWORD)

        count = await service.logout_all(account)

        assert count == 2
        assert _written(mock_audit)[-1].event == AuthEvent.LOGOUT_ALL
        for tokens in (first, second):
            with pytest.raises(AuthError):
                await service.refresh(tokens.refresh_token)
