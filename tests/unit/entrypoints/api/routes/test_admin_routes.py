"""Tests for permission administration routes."""

from fastapi.testclient import TestClient

from tests.fixtures.api import Session


def _create_pool(client: TestClient, headers: dict[str, str], name: str = "Board") -> str:
    response = client.post("/api/v1/admin/pools", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    pool_id: str = response.json()["id"]
    return pool_id


def _check(client: TestClient, headers: dict[str, str], **body: str) -> bool:
    response = client.post("/api/v1/permissions/check", json=body, headers=headers)
    allowed: bool = response.json()["allowed"]
    return allowed


class TestAdminAccess:
    """Tests for who may administer permissions."""

    def test_resident_forbidden(self, api_client: TestClient, resident: Session) -> None:
        """Should return 403 without permissions:manage."""
        response = api_client.post(
            "/api/v1/admin/pools", json={"name": "Board"}, headers=resident.headers
        )

        assert response.status_code == 403

    def test_unauthenticated(self, api_client: TestClient) -> None:
        """Should return 401 without a bearer token."""
        assert api_client.post("/api/v1/admin/pools", json={"name": "Board"}).status_code == 401

    def test_delegated_manager(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should let a caller holding permissions:manage administer pools."""
        api_client.post(
            f"/api/v1/admin/users/{resident.user_id}/capabilities",
            json={"capability": "permissions:manage", "scope": "unrestricted"},
            headers=admin_headers,
        )

        response = api_client.post(
            "/api/v1/admin/pools", json={"name": "Board"}, headers=resident.headers
        )

        assert response.status_code == 201


class TestScopedManagers:
    """Tests for managers whose grant is narrower than unrestricted."""

    def _delegate(
        self, client: TestClient, admin_headers: dict[str, str], user_id: str, **grant: str
    ) -> None:
        response = client.post(
            f"/api/v1/admin/users/{user_id}/capabilities",
            json={"capability": "permissions:manage", **grant},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text

    def test_tenant_scoped_manager_refused(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should refuse administration to a tenant-scoped manager whatever target it names."""
        self._delegate(
            api_client, admin_headers, resident.user_id, scope="tenant", scope_id="condo-1"
        )
        url = f"/api/v1/admin/users/{resident.user_id}/capabilities"
        body = {"capability": "users:update", "scope": "unrestricted"}

        plain = api_client.post(url, json=body, headers=resident.headers)
        via_query = api_client.post(
            url, params={"condominium_id": "condo-1"}, json=body, headers=resident.headers
        )
        via_body = api_client.post(
            url, json={**body, "condominium_id": "condo-1"}, headers=resident.headers
        )

        assert plain.status_code == via_query.status_code == via_body.status_code == 403

    def test_own_scoped_manager_refused(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should refuse administration to an own-scoped manager, even on their own user."""
        self._delegate(api_client, admin_headers, resident.user_id, scope="own")

        pool = api_client.post(
            "/api/v1/admin/pools",
            params={"user_id": resident.user_id},
            json={"name": "Board"},
            headers=resident.headers,
        )
        self_grant = api_client.post(
            f"/api/v1/admin/users/{resident.user_id}/capabilities",
            json={"capability": "users:update", "scope": "unrestricted"},
            headers=resident.headers,
        )

        assert pool.status_code == 403
        assert self_grant.status_code == 403


class TestPoolLifecycle:
    """Tests for pools, members and pool grants."""

    def test_pool_grant_then_deactivate(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should grant through the pool and withdraw when the pool is deactivated."""
        pool_id = _create_pool(api_client, admin_headers)
        api_client.post(
            f"/api/v1/admin/pools/{pool_id}/capabilities",
            json={"capability": "goals:update", "scope": "tenant", "scope_id": "condo-a"},
            headers=admin_headers,
        )
        member = api_client.post(
            f"/api/v1/admin/pools/{pool_id}/members",
            json={"user_id": resident.user_id},
            headers=admin_headers,
        )
        assert member.status_code == 204

        body = {"capability": "goals:update", "condominium_id": "condo-a"}
        assert _check(api_client, resident.headers, **body)

        response = api_client.put(
            f"/api/v1/admin/pools/{pool_id}/active",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert not _check(api_client, resident.headers, **body)

    def test_duplicate_member(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should return 409 when adding a member twice."""
        pool_id = _create_pool(api_client, admin_headers)
        url = f"/api/v1/admin/pools/{pool_id}/members"
        api_client.post(url, json={"user_id": resident.user_id}, headers=admin_headers)

        response = api_client.post(url, json={"user_id": resident.user_id}, headers=admin_headers)

        assert response.status_code == 409

    def test_remove_member(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should remove a member, then 404 on a second removal."""
        pool_id = _create_pool(api_client, admin_headers)
        api_client.post(
            f"/api/v1/admin/pools/{pool_id}/members",
            json={"user_id": resident.user_id},
            headers=admin_headers,
        )
        url = f"/api/v1/admin/pools/{pool_id}/members/{resident.user_id}"

        assert api_client.delete(url, headers=admin_headers).status_code == 204
        assert api_client.delete(url, headers=admin_headers).status_code == 404

    def test_malformed_grant_rejected(
        self, api_client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        """Should return 422 for a tenant grant without scope_id."""
        pool_id = _create_pool(api_client, admin_headers)

        response = api_client.post(
            f"/api/v1/admin/pools/{pool_id}/capabilities",
            json={"capability": "goals:update", "scope": "tenant"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_unknown_module(self, api_client: TestClient, admin_headers: dict[str, str]) -> None:
        """Should return 404 for a module outside the catalog."""
        pool_id = _create_pool(api_client, admin_headers)

        response = api_client.post(
            f"/api/v1/admin/pools/{pool_id}/modules",
            json={"module": "parking"},
            headers=admin_headers,
        )

        assert response.status_code == 404

    def test_unknown_pool(self, api_client: TestClient, admin_headers: dict[str, str]) -> None:
        """Should return 404 for a missing pool."""
        response = api_client.put(
            "/api/v1/admin/pools/00000000-0000-0000-0000-000000000000/active",
            json={"is_active": False},
            headers=admin_headers,
        )

        assert response.status_code == 404


class TestDirectGrants:
    """Tests for direct grants and user activation."""

    def test_grant_and_revoke(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should allow after the grant and deny after revocation."""
        response = api_client.post(
            f"/api/v1/admin/users/{resident.user_id}/capabilities",
            json={"capability": "resources:read", "scope": "own"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        grant_id = response.json()["id"]
        body = {"capability": "resources:read", "user_id": resident.user_id}
        assert _check(api_client, resident.headers, **body)

        revoke = api_client.delete(
            f"/api/v1/admin/users/{resident.user_id}/capabilities/{grant_id}",
            headers=admin_headers,
        )

        assert revoke.status_code == 204
        assert not _check(api_client, resident.headers, **body)

    def test_revoke_through_other_user_not_found(
        self,
        api_client: TestClient,
        admin_headers: dict[str, str],
        resident: Session,
        neighbor: Session,
    ) -> None:
        """Should return 404 and keep the grant when the path names another user."""
        response = api_client.post(
            f"/api/v1/admin/users/{resident.user_id}/capabilities",
            json={"capability": "resources:read", "scope": "own"},
            headers=admin_headers,
        )
        grant_id = response.json()["id"]

        revoke = api_client.delete(
            f"/api/v1/admin/users/{neighbor.user_id}/capabilities/{grant_id}",
            headers=admin_headers,
        )

        assert revoke.status_code == 404
        body = {"capability": "resources:read", "user_id": resident.user_id}
        assert _check(api_client, resident.headers, **body)

    def test_module_grant_confers_no_capability(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should keep module visibility apart from capabilities."""
        response = api_client.post(
            f"/api/v1/admin/users/{resident.user_id}/modules",
            json={"module": "resources"},
            headers=admin_headers,
        )

        assert response.status_code == 204
        assert not _check(api_client, resident.headers, capability="resources:read")

    def test_deactivate_user_rejects_outstanding_token(
        self, api_client: TestClient, admin_headers: dict[str, str], resident: Session
    ) -> None:
        """Should make the user's live access token stop resolving."""
        response = api_client.put(
            f"/api/v1/admin/users/{resident.user_id}/active",
            json={"is_active": False},
            headers=admin_headers,
        )

        assert response.status_code == 204
        assert api_client.get("/api/v1/auth/me", headers=resident.headers).status_code == 401
