"""Tests for PostgresPermissionRepository."""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import asyncpg
import pytest

from condoauth.adapters.rbac import PostgresPermissionRepository
from condoauth.core.exceptions import ConflictError, NotFoundError
from condoauth.core.rbac.types import CapabilityKey, GrantSource, Scope


@pytest.fixture
def repo(mock_db: MagicMock) -> PostgresPermissionRepository:
    """Create a repository over the mock database."""
    return PostgresPermissionRepository(mock_db)


class TestDecisionReads:
    """Tests for the reads used by the resolvers."""

    async def test_direct_grants_filtered_by_capability(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should filter liveness and module state in SQL and map rows to grants."""
        user_id, grant_id = uuid4(), uuid4()
        mock_db.fetch_all.return_value = [
            {
                "id": grant_id,
                "scope": "tenant",
                "scope_id": "condo-a",
                "module_code": "goals",
                "capability_code": "update",
            }
        ]

        grants = await repo.direct_grants(user_id, CapabilityKey("goals", "update"))

        query, *args = mock_db.fetch_all.call_args.args
        assert "g.is_active" in query
        assert "g.expires_at > NOW()" in query
        assert "m.is_active" in query
        assert args == [user_id, "goals", "update"]
        assert grants[0].capability == CapabilityKey("goals", "update")
        assert grants[0].scope == Scope.TENANT
        assert grants[0].source == GrantSource.DIRECT
        assert grants[0].grant_id == grant_id

    async def test_direct_grants_unfiltered(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should pass null filters when no capability is given."""
        user_id = uuid4()

        await repo.direct_grants(user_id)

        assert mock_db.fetch_all.call_args.args[1:] == (user_id, None, None)

    async def test_pool_grants_empty_pool_list(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should not query when no pools are given."""
        assert await repo.pool_capability_grants([]) == []
        mock_db.fetch_all.assert_not_called()

    async def test_pool_grants_carry_pool_id(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should tag pool grants with their pool."""
        pool_id = uuid4()
        mock_db.fetch_all.return_value = [
            {
                "id": uuid4(),
                "pool_id": pool_id,
                "scope": "unrestricted",
                "scope_id": None,
                "module_code": "resources",
                "capability_code": "read",
            }
        ]

        grants = await repo.pool_capability_grants([pool_id])

        assert grants[0].source == GrantSource.POOL
        assert grants[0].pool_id == pool_id
        assert "ANY($1::uuid[])" in mock_db.fetch_all.call_args.args[0]


class TestCatalog:
    """Tests for catalog writes."""

    async def test_create_capability_unknown_module(
        self, repo: PostgresPermissionRepository
    ) -> None:
        """Should raise NotFoundError when the module is missing."""
        with pytest.raises(NotFoundError):
            await repo.create_capability("parking", "read", "Read parking")

    async def test_create_module_duplicate(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should translate a unique violation into ConflictError."""
        mock_db.fetch_one.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ConflictError):
            await repo.create_module("goals", "Goals")


class TestPoolWrites:
    """Tests for pool administration writes."""

    async def test_add_member_conflict_returns_none(
        self, repo: PostgresPermissionRepository
    ) -> None:
        """Should return None when ON CONFLICT skipped the insert."""
        assert await repo.add_pool_member(uuid4(), uuid4()) is None

    async def test_add_member(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should map the inserted membership."""
        pool_id, user_id = uuid4(), uuid4()
        mock_db.fetch_one.return_value = {
            "pool_id": pool_id,
            "user_id": user_id,
            "added_by": None,
            "created_at": datetime.now(UTC),
        }

        member = await repo.add_pool_member(pool_id, user_id)

        assert member is not None and member.user_id == user_id

    async def test_set_pool_active_missing(self, repo: PostgresPermissionRepository) -> None:
        """Should return None for an unknown pool."""
        assert await repo.set_pool_active(uuid4(), False) is None

    async def test_grant_pool_capability_stores_scope_value(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should persist the scope as its string value."""
        grant_id = uuid4()
        mock_db.fetch_one.return_value = {"id": grant_id}

        result = await repo.grant_pool_capability(uuid4(), uuid4(), Scope.TENANT, "condo-a")

        assert result == grant_id
        assert mock_db.fetch_one.call_args.args[3:] == ("tenant", "condo-a")

    async def test_revoke_user_capability(
        self, repo: PostgresPermissionRepository, mock_db: MagicMock
    ) -> None:
        """Should deactivate only an active grant held by the given user."""
        user_id, grant_id = uuid4(), uuid4()
        assert not await repo.revoke_user_capability(user_id, grant_id)

        mock_db.execute.return_value = "UPDATE 1"
        assert await repo.revoke_user_capability(user_id, grant_id)

        sql = mock_db.execute.call_args.args[0]
        assert "user_id = $2" in sql
        assert mock_db.execute.call_args.args[1:] == (grant_id, user_id)
