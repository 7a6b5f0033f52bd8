"""
HTTP API tests for invitation, access, audit, tenant and user endpoints
"""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.models.base import utcnow
from app.services.auth_service import auth_service


@pytest_asyncio.fixture
async def user_headers(accepted_invite):
    """Headers for a regular (non-admin) user"""
    token = auth_service.create_access_token({"sub": str(accepted_invite.user_id)})
    return {"Authorization": f"Bearer {token}"}


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health(client):
    async with _client() as ac:
        response = await ac.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.invitations
class TestInvitationEndpoints:

    @pytest.mark.asyncio
    async def test_issue_invitation(self, client, admin_headers, tenants):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/invitations",
                json={"email": "alice@example.com", "tenants": ["myapp", "dashboard"], "expiry_days": 7},
                headers=admin_headers,
            )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Invitation sent successfully"
        assert data["invitation"]["email"] == "alice@example.com"
        assert data["invitation"]["tenants"] == ["myapp", "dashboard"]
        assert "token" not in data["invitation"]

        expires_at = datetime.fromisoformat(data["invitation"]["expires_at"])
        assert abs((expires_at - (utcnow() + timedelta(days=7))).total_seconds()) < 10

    @pytest.mark.asyncio
    async def test_issue_requires_admin(self, client, user_headers):
        async with _client() as ac:
            as_user = await ac.post(
                "/api/v1/invitations",
                json={"email": "bob@example.com", "tenants": ["myapp"]},
                headers=user_headers,
            )
            anonymous = await ac.post(
                "/api/v1/invitations",
                json={"email": "bob@example.com", "tenants": ["myapp"]},
            )

        assert as_user.status_code == 403
        assert as_user.json()["detail"] == "Unauthorized"
        assert anonymous.status_code == 401

    @pytest.mark.asyncio
    async def test_issue_unknown_tenant(self, client, admin_headers, tenants):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/invitations",
                json={"email": "bob@example.com", "tenants": ["ghost"]},
                headers=admin_headers,
            )

        assert response.status_code == 404
        assert "ghost" in response.json()["detail"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"email": "bob@example.com", "tenants": []},
        {"email": "not-an-email", "tenants": ["myapp"]},
        {"email": "bob@example.com", "tenants": ["myapp"], "expiry_days": -1},
        {"email": "bob@example.com", "tenants": ["myapp"], "expiry_days": 0, "expiry_months": 0, "expiry_years": 0},
        {"tenants": ["myapp"]},
    ])
    async def test_issue_validation(self, client, admin_headers, tenants, payload):
        async with _client() as ac:
            response = await ac.post("/api/v1/invitations", json=payload, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_accept_once(self, client, db_session, invitation_service, tenants):
        invitation = await invitation_service.issue(db_session, "alice@example.com", ["myapp"])

        async with _client() as ac:
            first = await ac.post("/api/v1/invitations/accept", json={"token": invitation.token})
            second = await ac.post("/api/v1/invitations/accept", json={"token": invitation.token})

        assert first.status_code == 200
        data = first.json()
        assert data["email"] == "alice@example.com"
        assert data["username"].startswith("user_")
        assert len(data["password"]) == 32

        assert second.status_code == 400
        assert second.json() == {"detail": "Invalid or expired invitation"}

    @pytest.mark.asyncio
    async def test_accept_then_signin(self, client, db_session, invitation_service, tenants):
        invitation = await invitation_service.issue(db_session, "alice@example.com", ["myapp"])

        async with _client() as ac:
            accepted = await ac.post("/api/v1/invitations/accept", json={"token": invitation.token})
            signin = await ac.post(
                "/api/v1/auth/signin",
                json={"email": "alice@example.com", "password": accepted.json()["password"], "tenant_id": "myapp"},
            )

        assert signin.status_code == 200
        assert signin.json()["accessible_tenants"] == ["myapp"]

    @pytest.mark.asyncio
    async def test_list_invitations(self, client, db_session, invitation_service, admin_headers, tenants):
        for name in ("a", "b", "c"):
            await invitation_service.issue(db_session, f"{name}@example.com", ["myapp"])
        await invitation_service.issue(db_session, "d@example.com", ["dashboard"])

        async with _client() as ac:
            page = await ac.get("/api/v1/invitations?limit=2", headers=admin_headers)
            by_tenant = await ac.get("/api/v1/invitations?tenant_id=dashboard", headers=admin_headers)
            too_big = await ac.get("/api/v1/invitations?limit=101", headers=admin_headers)

        assert page.status_code == 200
        data = page.json()
        assert [inv["email"] for inv in data["invitations"]] == ["d@example.com", "c@example.com"]
        assert data["pagination"] == {"total": 4, "skip": 0, "limit": 2, "has_more": True}
        assert all("token" not in inv for inv in data["invitations"])
        assert data["invitations"][0]["status"] == "pending"

        assert [inv["email"] for inv in by_tenant.json()["invitations"]] == ["d@example.com"]
        assert too_big.status_code == 400

    @pytest.mark.asyncio
    async def test_get_invitation(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            found = await ac.get(f"/api/v1/invitations/{accepted_invite.invitation_id}", headers=admin_headers)
            missing = await ac.get("/api/v1/invitations/9999", headers=admin_headers)

        assert found.status_code == 200
        assert found.json()["status"] == "accepted"
        assert found.json()["tenants"] == ["myapp", "dashboard"]
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_revoke_single_invitation(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.post(
                f"/api/v1/invitations/{accepted_invite.invitation_id}/revoke",
                json={"tenants": ["dashboard"], "reason": "moved teams"},
                headers=admin_headers,
            )
            listed = await ac.get(f"/api/v1/invitations/{accepted_invite.invitation_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["revoked_count"] == 1
        assert listed.json()["tenants"] == ["myapp"]
        assert listed.json()["revoked_at"] is None


@pytest.mark.access
class TestAccessEndpoints:

    @pytest.mark.asyncio
    async def test_revoke_access(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/access/revoke",
                json={"user_id": accepted_invite.user_id, "tenants": ["myapp", "dashboard"], "reason": "offboarded"},
                headers=admin_headers,
            )
            revoked = await ac.get("/api/v1/invitations?is_revoked=true", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Access revoked successfully"
        assert data["revoked_count"] == 2
        assert data["revoked_at"]

        invitations = revoked.json()["invitations"]
        assert len(invitations) == 1
        assert invitations[0]["revoked_reason"] == "offboarded"
        assert invitations[0]["status"] == "revoked"

    @pytest.mark.asyncio
    async def test_revoke_access_validation(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/access/revoke",
                json={"user_id": accepted_invite.user_id, "tenants": []},
                headers=admin_headers,
            )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_revoke_access_requires_admin(self, client, user_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/access/revoke",
                json={"user_id": accepted_invite.user_id, "tenants": ["myapp"]},
                headers=user_headers,
            )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_extend_access(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/access/extend",
                json={"invitation_id": accepted_invite.invitation_id, "expiry_months": 2},
                headers=admin_headers,
            )
            missing = await ac.post(
                "/api/v1/access/extend",
                json={"invitation_id": 9999, "expiry_days": 1},
                headers=admin_headers,
            )

        assert response.status_code == 200
        expires_at = datetime.fromisoformat(response.json()["expires_at"])
        assert expires_at > utcnow() + timedelta(days=58)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_access_logs(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            everything = await ac.get("/api/v1/access-logs", headers=admin_headers)
            invites = await ac.get(
                f"/api/v1/access-logs?action=invite&user_id={accepted_invite.user_id}",
                headers=admin_headers,
            )
            too_big = await ac.get("/api/v1/access-logs?limit=501", headers=admin_headers)
            bad_action = await ac.get("/api/v1/access-logs?action=delete", headers=admin_headers)

        assert everything.status_code == 200
        # Two invite entries and two accept entries, one per tenant
        assert everything.json()["pagination"]["total"] == 4
        assert everything.json()["logs"][0]["action"] == "accept-invitation"

        assert [log["tenant_id"] for log in invites.json()["logs"]] == ["dashboard", "myapp"]
        assert too_big.status_code == 400
        assert bad_action.status_code == 400

    @pytest.mark.asyncio
    async def test_access_logs_require_admin(self, client, user_headers):
        async with _client() as ac:
            response = await ac.get("/api/v1/access-logs", headers=user_headers)

        assert response.status_code == 403


class TestTenantEndpoints:

    @pytest.mark.asyncio
    async def test_tenant_lifecycle(self, client, admin_headers, admin_user):
        async with _client() as ac:
            created = await ac.post(
                "/api/v1/tenants",
                json={"name": "My App", "slug": "myapp", "domain": "https://myapp.example.com"},
                headers=admin_headers,
            )
            duplicate = await ac.post(
                "/api/v1/tenants",
                json={"name": "Other", "slug": "myapp"},
                headers=admin_headers,
            )
            tenant_id = created.json()["id"]
            updated = await ac.patch(
                f"/api/v1/tenants/{tenant_id}",
                json={"description": "Main product"},
                headers=admin_headers,
            )
            deactivated = await ac.post(f"/api/v1/tenants/{tenant_id}/deactivate", headers=admin_headers)
            active = await ac.get("/api/v1/tenants", headers=admin_headers)
            everything = await ac.get("/api/v1/tenants?include_inactive=true", headers=admin_headers)

        assert created.status_code == 201
        assert created.json()["created_by"] == admin_user.id
        assert duplicate.status_code == 409
        assert updated.json()["description"] == "Main product"
        assert updated.json()["name"] == "My App"
        assert deactivated.json()["is_active"] is False
        assert active.json()["tenants"] == []
        assert [t["slug"] for t in everything.json()["tenants"]] == ["myapp"]

    @pytest.mark.asyncio
    async def test_invalid_slug(self, client, admin_headers):
        async with _client() as ac:
            response = await ac.post(
                "/api/v1/tenants",
                json={"name": "Bad", "slug": "Has Spaces"},
                headers=admin_headers,
            )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, client, admin_headers):
        async with _client() as ac:
            response = await ac.patch("/api/v1/tenants/9999", json={"name": "x"}, headers=admin_headers)

        assert response.status_code == 404


class TestUserEndpoints:

    @pytest.mark.asyncio
    async def test_user_count(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            response = await ac.get("/api/v1/users/count", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"count": 2}

    @pytest.mark.asyncio
    async def test_get_and_deactivate_user(self, client, admin_headers, accepted_invite):
        async with _client() as ac:
            found = await ac.get(f"/api/v1/users/{accepted_invite.user_id}", headers=admin_headers)
            deactivated = await ac.post(
                f"/api/v1/users/{accepted_invite.user_id}/deactivate", headers=admin_headers
            )
            signin = await ac.post(
                "/api/v1/auth/signin",
                json={"email": "alice@example.com", "password": accepted_invite.password},
            )

        assert found.json()["username"] == accepted_invite.username
        assert found.json()["is_invitation_accepted"] is True
        assert deactivated.json()["is_active"] is False
        assert signin.status_code == 401
