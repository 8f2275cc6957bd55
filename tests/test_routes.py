"""
API route tests
"""

import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch
from urllib.parse import urlsplit

from auth_portal.main import create_app
from auth_portal.models.messages import StatusMessage
from auth_portal.utils.creem_client import CreemClient
from auth_portal.utils.dependencies import get_auth_provider
from auth_portal.utils.redirects import decode_query_string

from conftest import SESSION_KEY, FakeAuthProvider


def checkout_handler(request: httpx.Request) -> httpx.Response:
    if b"prod_broken" in request.content:
        return httpx.Response(500, text="internal error")
    return httpx.Response(200, json={"checkout_url": "https://checkout.creem.test/ch_1"})


@pytest.fixture
def app(settings, fake_provider):
    creem_client = CreemClient(
        api_url=settings.creem_api_url,
        api_key=settings.creem_api_key,
        transport=httpx.MockTransport(checkout_handler),
    )
    app = create_app(settings, creem_client=creem_client)
    app.dependency_overrides[get_auth_provider] = lambda: fake_provider
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def message_of(response):
    return decode_query_string(urlsplit(response.headers["location"]).query)


class TestAuthActions:
    def test_sign_up_missing_fields(self, client, fake_provider):
        response = client.post("/actions/sign-up", data={"email": "a@b.com"}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].startswith("/sign-up?error=")
        assert fake_provider.calls == []

    def test_sign_up_uses_origin_header(self, client, fake_provider):
        response = client.post(
            "/actions/sign-up",
            data={"email": "a@b.com", "password": "secret"},
            headers={"Origin": "https://origin.example.com"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/sign-in?success=")
        assert fake_provider.called("sign_up")[0][2].startswith("https://origin.example.com/auth/callback")

    def test_sign_in_sets_session_cookie(self, client, fake_provider):
        response = client.post(
            "/actions/sign-in",
            data={"email": "a@b.com", "password": "secret"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        assert SESSION_KEY in response.headers["set-cookie"]
        # background task ran after the response was produced
        assert len(fake_provider.called("initialize_account")) == 1

    def test_sign_in_survives_initialization_failure(self, client, fake_provider):
        fake_provider.fail("initialize_account", "rpc failed")
        response = client.post(
            "/actions/sign-in",
            data={"email": "a@b.com", "password": "secret"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    def test_forgot_password_callback(self, client):
        response = client.post(
            "/actions/forgot-password",
            data={"email": "a@b.com", "callbackUrl": "/check-email"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "/check-email"

    def test_reset_password_mismatch(self, client, fake_provider):
        response = client.post(
            "/actions/reset-password",
            data={"password": "a", "confirmPassword": "b"},
            follow_redirects=False,
        )
        assert message_of(response) == StatusMessage.error("Passwords do not match")
        assert fake_provider.called("update_password") == []

    def test_sign_out_clears_cookie(self, app):
        provider = FakeAuthProvider(cookies={SESSION_KEY: "base64-e30"})
        app.dependency_overrides[get_auth_provider] = lambda: provider
        response = TestClient(app).post("/actions/sign-out", follow_redirects=False)
        assert response.headers["location"] == "/sign-in"
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_oauth_redirects_to_provider(self, client, fake_provider):
        response = client.post("/actions/oauth/google", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == fake_provider.oauth_url

    def test_auth_callback(self, client, fake_provider):
        response = client.get(
            "/auth/callback",
            params={"code": "abc", "redirect_to": "/dashboard/reset-password"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "/dashboard/reset-password"
        assert fake_provider.called("exchange_code_for_session") == [("abc",)]


class TestPages:
    def test_page_decodes_message(self, client):
        response = client.get("/sign-in", params={"error": "bad", "success": "good"})
        assert response.status_code == 200
        assert response.json() == {
            "page": "sign-in",
            "message": {"kind": "success", "text": "good"},
        }

    def test_page_uses_first_of_repeated_parameter(self, client):
        response = client.get("/sign-in", params=[("error", "first"), ("error", "second")])
        assert response.json()["message"] == {"kind": "error", "text": "first"}

    def test_page_without_message(self, client):
        response = client.get("/dashboard/reset-password")
        assert response.json() == {"page": "reset-password", "message": None}

    def test_full_redirect_round_trip(self, client):
        response = client.post("/actions/sign-up", data={}, follow_redirects=True)
        assert response.status_code == 200
        assert response.json()["message"] == {"kind": "error", "text": "Email and password are required"}


class TestCheckout:
    def test_creates_checkout(self, client):
        response = client.post("/api/checkout", json={
            "product_id": "prod_123",
            "email": "buyer@example.com",
            "user_id": "user-42",
            "product_type": "subscription",
        })
        assert response.status_code == 200
        assert response.json() == {"checkout_url": "https://checkout.creem.test/ch_1"}

    def test_payment_failure_is_bad_gateway(self, client):
        response = client.post("/api/checkout", json={
            "product_id": "prod_broken",
            "email": "buyer@example.com",
            "user_id": "user-42",
            "product_type": "credits",
            "credits_amount": 100,
        })
        assert response.status_code == 502
        assert response.json()["error"] is True

    def test_invalid_product_type(self, client):
        response = client.post("/api/checkout", json={
            "product_id": "prod_123",
            "email": "buyer@example.com",
            "user_id": "user-42",
            "product_type": "lifetime",
        })
        assert response.status_code == 422


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_config_reports_usable_providers(self, client):
        assert client.get("/health/config").json() == {
            "status": "healthy", "auth_provider": "configured", "payment_api": "configured"
        }

    def test_config_degraded_when_client_cannot_be_built(self, settings):
        with patch("auth_portal.utils.supabase_client.create_client", side_effect=Exception("Invalid URL")):
            config = TestClient(create_app(settings)).get("/health/config").json()
        assert config["status"] == "degraded"
        assert config["auth_provider"] == "unconfigured"

    def test_unconfigured_app_still_serves(self, unconfigured_settings):
        client = TestClient(create_app(unconfigured_settings))
        config = client.get("/health/config").json()
        assert config == {"status": "degraded", "auth_provider": "unconfigured", "payment_api": "unconfigured"}

        response = client.post(
            "/actions/sign-in",
            data={"email": "a@b.com", "password": "secret"},
            follow_redirects=False,
        )
        assert message_of(response) == StatusMessage.error("Authentication service is not configured")
