"""Tests for admin endpoints."""

import pytest
from datetime import datetime, timedelta

from modules.notifications.models import NotificationKind, Severity
from modules.users.models import UserRole


@pytest.fixture
def admin_headers(add_user, headers_for):
    add_user("root", email="root@example.com", role=UserRole.ADMIN)
    return headers_for("root", "root@example.com")


class TestUpdateRole:
    def test_upgrade_to_pro(self, api_client, admin_headers, add_user, user_store, dispatcher):
        add_user("u1")

        response = api_client.put("/api/admin/users/u1/role", json={"role": "pro"}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["previous_role"] == "free"
        assert data["email_sent"] is True
        assert user_store.find_by_id("u1").role == UserRole.PRO
        assert dispatcher.sent_to("u1@example.com")[0].kind == NotificationKind.ROLE_UPGRADED

    def test_invalid_role(self, api_client, admin_headers, add_user):
        add_user("u1")
        response = api_client.put("/api/admin/users/u1/role", json={"role": "admin"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid_role"

    def test_admin_locked(self, api_client, admin_headers, add_user):
        add_user("root2", role=UserRole.ADMIN)
        response = api_client.put("/api/admin/users/root2/role", json={"role": "free"}, headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "admin_role_locked"

    def test_unknown_user(self, api_client, admin_headers):
        response = api_client.put("/api/admin/users/ghost/role", json={"role": "pro"}, headers=admin_headers)
        assert response.status_code == 404


class TestDuration:
    def test_extend(self, api_client, admin_headers, add_user, clock):
        add_user("u1")

        response = api_client.post(
            "/api/admin/users/u1/duration",
            json={"amount": 2, "unit": "monthly"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["added_days"] == 60
        new_expiry = datetime.fromisoformat(data["new_expiry"].replace("Z", "+00:00"))
        assert new_expiry == clock.now + timedelta(days=60)
        assert data["user"]["role"] == "pro"

    def test_invalid_duration(self, api_client, admin_headers, add_user):
        add_user("u1")
        response = api_client.post(
            "/api/admin/users/u1/duration",
            json={"amount": 0, "unit": "daily"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid_duration"

    def test_invalid_unit(self, api_client, admin_headers, add_user):
        add_user("u1")
        response = api_client.post(
            "/api/admin/users/u1/duration",
            json={"amount": 1, "unit": "weekly"},
            headers=admin_headers,
        )
        assert response.json()["detail"]["reason"] == "invalid_unit"


class TestUnlimited:
    def test_set_unlimited(self, api_client, admin_headers, add_user, subscription_service, user_store):
        add_user("u1")

        response = api_client.post("/api/admin/users/u1/unlimited", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["unlimited"] is True
        assert subscription_service.is_unlimited(user_store.find_by_id("u1")) is True


class TestSubscriptionCheck:
    def test_check_only(self, api_client, admin_headers, add_user, user_store, clock):
        add_user("expired", role=UserRole.PRO, subscription_expires=clock.now - timedelta(days=1))

        response = api_client.post(
            "/api/admin/subscriptions/check",
            json={"check_only": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["downgraded"] == 0
        assert user_store.find_by_id("expired").role == UserRole.PRO

    def test_full_check(self, api_client, admin_headers, add_user, user_store, clock):
        add_user("expired", role=UserRole.PRO, subscription_expires=clock.now - timedelta(days=1))
        add_user("soon", role=UserRole.PRO, subscription_expires=clock.now + timedelta(days=2))

        response = api_client.post(
            "/api/admin/subscriptions/check",
            json={"notify_days": 3},
            headers=admin_headers,
        )

        data = response.json()
        assert data["downgraded"] == 1
        assert data["before"]["pro"] == 2
        assert data["after"]["pro"] == 1
        assert [s["user"]["id"] for s in data["expiring_soon"]] == ["soon"]
        assert user_store.find_by_id("expired").role == UserRole.FREE


class TestQuotaReset:
    def test_reset(self, api_client, admin_headers, add_user, user_store):
        add_user("f1", prompts_used_today=2)

        response = api_client.post("/api/admin/quota/reset", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert user_store.find_by_id("f1").prompts_used_today == 0


class TestNotificationTest:
    def test_sends_admin_notification(self, api_client, admin_headers, dispatcher):
        response = api_client.post(
            "/api/admin/notifications/test",
            json={"severity": "warning", "message": "ping"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        sent = dispatcher.admin_notifications[0]
        assert sent.severity == Severity.WARNING
        assert sent.message == "ping"
        assert sent.data["admin"] == "root@example.com"

    def test_invalid_severity(self, api_client, admin_headers):
        response = api_client.post(
            "/api/admin/notifications/test",
            json={"severity": "critical"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestListUsers:
    def test_lists_with_pagination(self, api_client, admin_headers, add_user):
        add_user("u1", username="budi")
        add_user("u2", username="sari")

        response = api_client.get("/api/admin/users?search=bud&limit=5", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert [u["id"] for u in data["users"]] == ["u1"]
        assert data["pagination"] == {"total": 1, "page": 1, "pages": 1}

    def test_requires_admin(self, api_client, add_user, headers_for):
        add_user("u1")
        response = api_client.get("/api/admin/users", headers=headers_for("u1", "u1@example.com"))
        assert response.status_code == 403


class TestCreateUser:
    def test_creates_pro_user(self, api_client, admin_headers, user_store, clock):
        response = api_client.post(
            "/api/admin/users",
            json={"username": "budi", "email": "budi@example.com", "password": "secret1", "role": "pro"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        created = user_store.find_by_email("budi@example.com")
        assert response.json()["user"]["id"] == created.id
        assert created.role == UserRole.PRO
        assert created.subscription_expires == clock.now + timedelta(days=30)

    def test_duplicate_email(self, api_client, admin_headers, add_user):
        add_user("u1", email="budi@example.com")

        response = api_client.post(
            "/api/admin/users",
            json={"username": "budi", "email": "budi@example.com", "password": "secret1"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "email_taken"

    def test_validates_body(self, api_client, admin_headers):
        response = api_client.post(
            "/api/admin/users",
            json={"username": "bu", "email": "not-an-email", "password": "123"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestDeleteUser:
    def test_deletes_user(self, api_client, admin_headers, add_user, user_store):
        add_user("u1")

        response = api_client.delete("/api/admin/users/u1", headers=admin_headers)

        assert response.status_code == 200
        assert user_store.find_by_id("u1") is None

    def test_admin_is_protected(self, api_client, admin_headers, add_user):
        add_user("root2", role=UserRole.ADMIN)
        response = api_client.delete("/api/admin/users/root2", headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "admin_protected"

    def test_unknown_user(self, api_client, admin_headers):
        response = api_client.delete("/api/admin/users/ghost", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["reason"] == "user_not_found"


class TestAdminResetPassword:
    def test_resets_password(self, api_client, admin_headers, add_user, user_store):
        add_user("u1")

        response = api_client.post(
            "/api/admin/users/u1/reset-password",
            json={"new_password": "n3w-secret"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert user_store.password_for("u1") == "n3w-secret"

    def test_other_admin_is_protected(self, api_client, admin_headers, add_user):
        add_user("root2", role=UserRole.ADMIN)

        response = api_client.post(
            "/api/admin/users/root2/reset-password",
            json={"new_password": "n3w-secret"},
            headers=admin_headers,
        )

        assert response.status_code == 403

    def test_short_password(self, api_client, admin_headers, add_user):
        add_user("u1")
        response = api_client.post(
            "/api/admin/users/u1/reset-password",
            json={"new_password": "123"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestErrorSchema:
    def test_refusals_are_documented(self, api_client):
        schema = api_client.get("/openapi.json").json()

        refused = schema["paths"]["/api/admin/users"]["post"]["responses"]["400"]
        assert refused["content"]["application/json"]["schema"]["$ref"].endswith("/RefusalResponse")
        assert "ErrorResponse" in schema["components"]["schemas"]
        assert "ReasonDetail" in schema["components"]["schemas"]
