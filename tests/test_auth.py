"""
Tests for registration, login and bearer tokens.
"""

import pytest

from app import db
from app.models import User, UserRole


@pytest.fixture
def registration():
    return {
        "email": "new@example.org",
        "password": "long-enough",
        "first_name": "Nia",
        "last_name": "Newcomer",
        "phone": "(614) 555-0100",
        "family_size": "3",
    }


class TestRegister:

    def test_creates_user_and_returns_token(self, api_app, api_client, registration):
        response = api_client.post("/auth/register", json=registration)
        assert response.status_code == 201

        body = response.get_json()
        assert body["token"]
        assert body["user"]["email"] == "new@example.org"
        assert body["user"]["family_size"] == 3
        assert body["user"]["role"] == UserRole.USER

        profile = api_client.get("/auth/profile", headers={"Authorization": f"Bearer {body['token']}"})
        assert profile.get_json()["display_name"] == "Nia Newcomer"

        with api_app.app_context():
            assert User.query.filter_by(email="new@example.org").count() == 1

    def test_duplicate_email(self, api_client, seed_user, registration):
        seed_user("new@example.org")
        response = api_client.post("/auth/register", json=registration)
        assert response.status_code == 409

    @pytest.mark.parametrize("field,value", [
        ("password", "short"),
        ("email", "not-an-email"),
        ("phone", "12"),
        ("family_size", "0"),
        ("family_size", "many"),
    ])
    def test_rejects_invalid_fields(self, api_client, registration, field, value):
        registration[field] = value
        response = api_client.post("/auth/register", json=registration)
        assert response.status_code == 422
        assert response.get_json()["details"]["field"] == field


class TestLogin:

    def test_wrong_password(self, api_client, seed_user):
        seed_user("rita@example.org")
        response = api_client.post("/auth/login", json={"email": "rita@example.org", "password": "nope"})
        assert response.status_code == 401

    def test_unknown_email(self, api_client):
        response = api_client.post("/auth/login", json={"email": "ghost@example.org", "password": "whatever"})
        assert response.status_code == 401

    def test_inactive_user_cannot_log_in(self, api_app, api_client, seed_user):
        user_id, _ = seed_user("rita@example.org")
        with api_app.app_context():
            db.session.get(User, user_id).is_active = False
            db.session.commit()

        response = api_client.post("/auth/login", json={"email": "rita@example.org", "password": "correct-horse"})
        assert response.status_code == 401

    def test_session_login_and_logout(self, api_client, seed_user):
        seed_user("rita@example.org")
        response = api_client.post("/auth/login", json={"email": "rita@example.org", "password": "correct-horse"})
        assert response.status_code == 200
        assert response.get_json()["expires_in"] == 3600

        # the session cookie alone authenticates
        assert api_client.get("/auth/profile").get_json()["email"] == "rita@example.org"

        assert api_client.post("/auth/logout").status_code == 200
        assert api_client.get("/auth/profile").status_code == 401


class TestTokens:

    def test_bearer_token(self, api_client, seed_user):
        _, headers = seed_user("rita@example.org")
        response = api_client.get("/auth/profile", headers=headers)
        assert response.status_code == 200
        assert response.get_json()["email"] == "rita@example.org"

    def test_refresh_token(self, api_client, seed_user):
        _, headers = seed_user("rita@example.org")
        token = api_client.post("/auth/token", headers=headers).get_json()["token"]
        assert api_client.get("/auth/profile", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    def test_forged_token(self, api_client, seed_user):
        seed_user("rita@example.org")
        response = api_client.get("/auth/profile", headers={"Authorization": "Bearer forged.token.value"})
        assert response.status_code == 401

    def test_expired_token(self, api_app, api_client, seed_user):
        _, headers = seed_user("rita@example.org")
        api_app.config["API_TOKEN_MAX_AGE"] = -1
        assert api_client.get("/auth/profile", headers=headers).status_code == 401

    def test_token_for_deactivated_user(self, api_app, api_client, seed_user):
        user_id, headers = seed_user("rita@example.org")
        with api_app.app_context():
            db.session.get(User, user_id).is_active = False
            db.session.commit()
        assert api_client.get("/auth/profile", headers=headers).status_code == 401
