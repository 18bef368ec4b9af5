"""Tests for account endpoints (email verification, password reset)."""

from modules.notifications.recording import RecordingDispatcher


def _last_code(dispatcher: RecordingDispatcher) -> str:
    return dispatcher.user_notifications[-1].data["code"]


class TestEmailVerification:
    def test_send_and_confirm(self, api_client, add_user, auth_headers, dispatcher, user_store):
        add_user("test-user-123", email="test@example.com")

        sent = api_client.post("/api/account/verify-email/send", headers=auth_headers)
        assert sent.status_code == 200
        assert sent.json()["expires_at"] is not None

        response = api_client.post(
            "/api/account/verify-email",
            json={"code": _last_code(dispatcher)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert user_store.find_by_id("test-user-123").email_verified is True

    def test_send_for_missing_profile(self, api_client, auth_headers):
        response = api_client.post("/api/account/verify-email/send", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["reason"] == "user_not_found"

    def test_send_already_verified(self, api_client, add_user, auth_headers):
        add_user("test-user-123", email_verified=True)
        response = api_client.post("/api/account/verify-email/send", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "already_verified"

    def test_send_failure_returns_502(self, api_client, add_user, auth_headers, dispatcher):
        add_user("test-user-123")
        dispatcher.succeed = False

        response = api_client.post("/api/account/verify-email/send", headers=auth_headers)

        assert response.status_code == 502

    def test_wrong_code(self, api_client, add_user, auth_headers, dispatcher):
        add_user("test-user-123")
        api_client.post("/api/account/verify-email/send", headers=auth_headers)
        code = _last_code(dispatcher)
        wrong = "000000" if code != "000000" else "111111"

        response = api_client.post("/api/account/verify-email", json={"code": wrong}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid_code"

    def test_expired_code(self, api_client, add_user, auth_headers, dispatcher, clock):
        add_user("test-user-123")
        api_client.post("/api/account/verify-email/send", headers=auth_headers)
        clock.advance(minutes=11)

        response = api_client.post(
            "/api/account/verify-email",
            json={"code": _last_code(dispatcher)},
            headers=auth_headers,
        )

        assert response.json()["detail"]["reason"] == "code_expired"

    def test_requires_auth(self, api_client):
        response = api_client.post("/api/account/verify-email", json={"code": "123456"})
        assert response.status_code == 401


class TestPasswordReset:
    def test_request_and_confirm(self, api_client, add_user, dispatcher, user_store):
        add_user("u1", email="u1@example.com")

        requested = api_client.post(
            "/api/account/password-reset/request", json={"email": "u1@example.com"}
        )
        assert requested.status_code == 200

        response = api_client.post(
            "/api/account/password-reset/confirm",
            json={"email": "u1@example.com", "code": _last_code(dispatcher), "new_password": "n3w-secret"},
        )

        assert response.status_code == 200
        assert user_store.password_for("u1") == "n3w-secret"

    def test_request_does_not_reveal_accounts(self, api_client, add_user):
        add_user("u1", email="u1@example.com")

        known = api_client.post("/api/account/password-reset/request", json={"email": "u1@example.com"})
        unknown = api_client.post("/api/account/password-reset/request", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_confirm_unknown_email(self, api_client):
        response = api_client.post(
            "/api/account/password-reset/confirm",
            json={"email": "nobody@example.com", "code": "123456", "new_password": "n3w-secret"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "no_code_found"

    def test_confirm_rejects_short_password(self, api_client):
        response = api_client.post(
            "/api/account/password-reset/confirm",
            json={"email": "u1@example.com", "code": "123456", "new_password": "123"},
        )
        assert response.status_code == 422
