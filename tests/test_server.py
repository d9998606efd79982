"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from surfacecheck.core.verification import TurnstileVerifier
from surfacecheck.server import create_app

from conftest import FakeResponse, FakeSession


@pytest.fixture
def make_client(make_config, make_scanner, monkeypatch):
    """Factory for a TestClient around fakes; the secret is set unless told otherwise."""
    def _make(secret="real-secret", verify_success=True, overrides=None):
        if secret:
            monkeypatch.setenv("TURNSTILE_SECRET_KEY", secret)
        config = make_config(overrides)
        scanner = make_scanner(config=config)
        verify_session = FakeSession({
            "challenges.cloudflare.com": FakeResponse(payload={"success": verify_success}),
        })
        verifier = TurnstileVerifier(config, session=verify_session)
        client = TestClient(create_app(scanner=scanner, verifier=verifier))
        client.verify_session = verify_session
        return client
    return _make


def quickcheck(client, domain="example.com", token="tok", headers=None):
    return client.post(
        "/api/quickcheck",
        json={"domain": domain, "verificationToken": token},
        headers=headers or {"X-Forwarded-For": "203.0.113.50"},
    )


class TestHealth:
    def test_health(self, make_client):
        response = make_client().get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestQuickCheck:
    """Test the quick-check endpoint and its gates."""

    def test_success(self, make_client):
        response = quickcheck(make_client())

        assert response.status_code == 200
        body = response.json()
        assert body["domain"] == "example.com"
        assert body["overallVerdict"] == "secure"
        assert len(body["signals"]) == 9
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "9"

    def test_token_forwarded_to_verifier(self, make_client):
        client = make_client()
        quickcheck(client, token="abc")

        _, _, kwargs = client.verify_session.calls[0]
        assert kwargs["data"]["response"] == "abc"
        assert kwargs["data"]["remoteip"] == "203.0.113.50"

    def test_invalid_domain_is_400(self, make_client):
        response = quickcheck(make_client(), domain="not a domain")

        assert response.status_code == 400
        assert response.json()["code"] == "VALID-001"

    def test_non_text_domain_is_400(self, make_client):
        response = quickcheck(make_client(), domain=123)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALID-001"
        assert "detail" not in body
        assert "input" not in body

    def test_non_text_token_is_401(self, make_client):
        response = quickcheck(make_client(), token=["abc"])

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH-001"

    def test_malformed_body_is_structured_400(self, make_client):
        response = make_client().post(
            "/api/quickcheck",
            json=["example.com"],
            headers={"X-Forwarded-For": "203.0.113.50"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALID-001"
        assert "example.com" not in response.text

    def test_malformed_requests_count_against_limit(self, make_client):
        client = make_client()
        headers = {"X-Forwarded-For": "203.0.113.77"}
        codes = [quickcheck(client, domain=123, headers=headers).status_code for _ in range(10)]
        codes += [client.post("/api/quickcheck", json="junk", headers=headers).status_code for _ in range(2)]

        assert codes[:10] == [400] * 10
        assert codes[10:] == [429, 429]

    def test_missing_token_is_401(self, make_client):
        response = quickcheck(make_client(), token=None)

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH-001"

    def test_rejected_token_is_401(self, make_client):
        response = quickcheck(make_client(verify_success=False))

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH-002"

    def test_missing_secret_fails_closed(self, make_client):
        response = quickcheck(make_client(secret=None))

        assert response.status_code == 500
        assert response.json()["code"] == "CONFIG-002"

    def test_test_secret_refused_in_production(self, make_client):
        client = make_client(
            secret="1x0000000000000000000000000000000AA",
            overrides={"environment": "production"},
        )
        response = quickcheck(client)

        assert response.status_code == 500
        assert response.json()["code"] == "CONFIG-003"

    def test_eleventh_request_is_429(self, make_client):
        client = make_client()
        for _ in range(10):
            assert quickcheck(client).status_code == 200

        response = quickcheck(client)

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.json()["code"] == "RATE-001"

    def test_rate_limit_checked_before_verification(self, make_client):
        client = make_client()
        for _ in range(10):
            quickcheck(client, token=None)

        assert quickcheck(client, token=None).status_code == 429

    def test_callers_limited_separately(self, make_client):
        client = make_client()
        for _ in range(10):
            quickcheck(client)

        response = quickcheck(client, headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})
        assert response.status_code == 200

    def test_error_body_has_no_internal_details(self, make_client):
        body = quickcheck(make_client(), domain="localhost").json()
        assert set(body) == {"code", "error", "category", "timestamp"}


class TestCatalog:
    def test_catalog(self, make_client):
        response = make_client().get("/api/checks")

        assert response.status_code == 200
        body = response.json()
        assert len(body["checks"]) == 9
        assert body["lockedChecks"] == ["Port Scan", "API Review"]
        assert response.headers["X-RateLimit-Limit"] == "30"

    def test_catalog_rate_limited(self, make_client):
        client = make_client(overrides={"rate_limits": {"catalog": 2}})
        client.get("/api/checks")
        client.get("/api/checks")

        assert client.get("/api/checks").status_code == 429


class TestClientIdentity:
    """Test caller identity header precedence."""

    @pytest.mark.parametrize("headers,expected", [
        ({"X-Forwarded-For": "198.51.100.7, 10.0.0.1", "X-Real-IP": "198.51.100.8"}, "198.51.100.7"),
        ({"X-Real-IP": "198.51.100.8", "X-NF-Client-Connection-IP": "198.51.100.9"}, "198.51.100.8"),
        ({"X-NF-Client-Connection-IP": "198.51.100.9"}, "198.51.100.9"),
    ])
    def test_header_precedence(self, make_client, headers, expected):
        client = make_client()
        quickcheck(client, headers=headers)

        _, _, kwargs = client.verify_session.calls[0]
        assert kwargs["data"]["remoteip"] == expected
