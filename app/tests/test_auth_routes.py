# app/tests/test_auth_routes.py
"""Tests for sign-up / sign-in / sign-out routes."""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from auth.middleware import SESSION_COOKIE_NAME


PASSWORD = "password123"


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


def _sign_up(client, email="new@example.edu", password=PASSWORD):
    return client.post("/users", data={"email": email, "password": password})


class TestSignUp:
    def test_creates_account_and_sets_cookie(self, client):
        response = _sign_up(client)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "new@example.edu"
        assert "password_hash" not in body["user"]
        assert SESSION_COOKIE_NAME in response.cookies

    def test_duplicate_email(self, client):
        _sign_up(client)
        response = _sign_up(client)

        assert response.status_code == 422
        assert response.json() == {"error": "Email has already been taken"}

    def test_invalid_email(self, client):
        response = _sign_up(client, email="not-an-email")
        assert response.status_code == 422
        assert response.json() == {"error": "Email is invalid"}

    def test_weak_password(self, client):
        response = _sign_up(client, password="short")
        assert response.status_code == 422
        assert "at least 8 characters" in response.json()["error"]


class TestSignIn:
    def test_valid_credentials(self, client):
        _sign_up(client)
        client.delete("/users/sign_out")

        response = client.post("/users/sign_in", data={"email": "new@example.edu", "password": PASSWORD})

        assert response.status_code == 200
        assert SESSION_COOKIE_NAME in response.cookies
        assert client.get("/api/v1/evaluations").status_code == 200

    @pytest.mark.parametrize("email, password", [
        ("new@example.edu", "wrongpass1"),
        ("nobody@example.edu", PASSWORD),
    ])
    def test_invalid_credentials(self, client, email, password):
        _sign_up(client)
        client.delete("/users/sign_out")

        response = client.post("/users/sign_in", data={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}


class TestSignOut:
    def test_sign_out_ends_session(self, client):
        _sign_up(client)

        response = client.delete("/users/sign_out")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/v1/evaluations").status_code == 401

    def test_sign_out_without_session(self, client):
        assert client.delete("/users/sign_out").status_code == 200
