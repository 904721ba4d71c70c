"""Tests for the generate endpoint.

Covers request validation, rate limiting, method handling, pre-flight
answers, and both responder backends behind the HTTP contract.
"""

import logging
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from fastapi.testclient import TestClient

import app.core.rate_limit as rate_limit_module
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.app_factory import create_app
from app.core.errors import (
    EMAIL_REQUIRED_MESSAGE,
    GENERATION_FAILED_MESSAGE,
    METHOD_NOT_ALLOWED_MESSAGE,
    RATE_LIMITED_MESSAGE,
)
from app.main import app
from app.services.canned_catalog import DEFAULT_CATALOG, ResponseCategory
from app.services.canned_responder import CannedResponder
from app.services.generation_service import GenerationService

ENDPOINT = "/api/generate"
REFUND_BUNDLE = next(
    rule.responses.model_dump()
    for rule in DEFAULT_CATALOG.rules
    if rule.category is ResponseCategory.REFUND_OR_CANCEL
)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def clock(monkeypatch) -> Mock:
    """Swap in a limiter driven by a controllable clock."""
    fake_clock = Mock(return_value=1_700_000_000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=900, clock=fake_clock)
    monkeypatch.setattr(rate_limit_module, "get_rate_limiter", lambda: limiter)
    return fake_clock


def _generative_client(raw=None, side_effect=None) -> tuple[TestClient, AsyncMock]:
    llm = MagicMock()
    llm.model = "gpt-3.5-turbo"
    llm.generate_json = AsyncMock(return_value=raw, side_effect=side_effect)
    generative_app = create_app(responder=GenerationService(llm=llm))
    return TestClient(generative_app), llm.generate_json


class TestCannedVariant:
    def test_refund_scenario(self, client: TestClient) -> None:
        resp = client.post(ENDPOINT, json={"email": "I want a refund for order 123"})

        assert resp.status_code == 200
        assert resp.json() == {"responses": REFUND_BUNDLE}

    def test_response_has_exactly_three_fields(self, client: TestClient) -> None:
        resp = client.post(ENDPOINT, json={"email": "Hello there"})

        assert set(resp.json()["responses"]) == {"professional", "friendly", "brief"}

    def test_success_carries_quota_headers(self, client: TestClient) -> None:
        resp = client.post(ENDPOINT, json={"email": "Hello there"})

        assert resp.headers["X-RateLimit-Limit"] == "3"
        assert resp.headers["X-RateLimit-Remaining"] == "2"


class TestValidation:
    @pytest.mark.parametrize(
        "body",
        [
            {"email": ""},
            {"email": "   \n\t "},
            {},
            {"email": None},
            {"email": 123},
        ],
    )
    def test_missing_or_blank_email_is_400(self, client: TestClient, body: dict) -> None:
        resp = client.post(ENDPOINT, json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": EMAIL_REQUIRED_MESSAGE}

    def test_malformed_json_is_400(self, client: TestClient) -> None:
        resp = client.post(
            ENDPOINT,
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": EMAIL_REQUIRED_MESSAGE}

    def test_blank_email_is_400_even_when_rate_limited(self, client: TestClient) -> None:
        for _ in range(3):
            assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 200
        assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 429

        resp = client.post(ENDPOINT, json={"email": "  "})

        assert resp.status_code == 400
        assert resp.json() == {"error": EMAIL_REQUIRED_MESSAGE}

    def test_blank_email_does_not_spend_quota(self, client: TestClient) -> None:
        for _ in range(5):
            client.post(ENDPOINT, json={"email": ""})

        for _ in range(3):
            assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 200


class TestRateLimiting:
    def test_fourth_request_in_window_is_429(self, client: TestClient) -> None:
        statuses = [
            client.post(ENDPOINT, json={"email": f"message {i}"}).status_code for i in range(4)
        ]

        assert statuses == [200, 200, 200, 429]

    def test_429_body_and_headers(self, client: TestClient) -> None:
        for _ in range(3):
            client.post(ENDPOINT, json={"email": "hi"})

        resp = client.post(ENDPOINT, json={"email": "I want a refund"})

        assert resp.status_code == 429
        assert resp.json() == {"error": RATE_LIMITED_MESSAGE}
        assert int(resp.headers["Retry-After"]) > 0
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    def test_429_log_carries_limiter_counters(self, client: TestClient, caplog) -> None:
        for _ in range(3):
            client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "203.0.113.9"})

        with caplog.at_level(logging.WARNING, logger="app.core.rate_limit"):
            client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "203.0.113.9"})

        record = next(r for r in caplog.records if r.getMessage() == "rate_limit.exceeded")
        assert record.tracked_keys == 1
        assert record.evictions == 0
        assert "203.0.113.9" not in caplog.text

    def test_clients_are_keyed_by_forwarded_address(self, client: TestClient) -> None:
        for _ in range(3):
            client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "203.0.113.1"})

        blocked = client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "203.0.113.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_first_forwarded_address_is_the_key(self, client: TestClient) -> None:
        for proxy in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            client.post(
                ENDPOINT,
                json={"email": "hi"},
                headers={"X-Forwarded-For": f"198.51.100.7, {proxy}"},
            )

        resp = client.post(ENDPOINT, json={"email": "hi"}, headers={"X-Forwarded-For": "198.51.100.7"})

        assert resp.status_code == 429

    def test_admissible_again_after_window(self, client: TestClient, clock: Mock) -> None:
        for _ in range(3):
            assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 200
        assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 429

        clock.return_value += 899
        assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 429

        clock.return_value += 2
        assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 200


class TestMethods:
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    def test_non_post_is_405(self, client: TestClient, method: str) -> None:
        resp = client.request(method, ENDPOINT)

        assert resp.status_code == 405
        assert resp.json() == {"error": METHOD_NOT_ALLOWED_MESSAGE}

    def test_options_is_empty_200(self, client: TestClient) -> None:
        resp = client.options(ENDPOINT)

        assert resp.status_code == 200
        assert resp.content == b""

    def test_preflight_is_empty_200_with_cors_headers(self, client: TestClient) -> None:
        resp = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert resp.status_code == 200
        assert resp.content == b""
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]
        assert resp.headers["Access-Control-Allow-Origin"] in ("*", "https://example.com")

    def test_preflight_for_unlisted_header_is_still_empty_200(self, client: TestClient) -> None:
        resp = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization",
            },
        )

        assert resp.status_code == 200
        assert resp.content == b""
        assert "authorization" not in resp.headers["Access-Control-Allow-Headers"].lower()

    def test_preflight_for_unlisted_method_is_still_empty_200(self, client: TestClient) -> None:
        resp = client.options(
            ENDPOINT,
            headers={"Origin": "https://example.com", "Access-Control-Request-Method": "PUT"},
        )

        assert resp.status_code == 200
        assert resp.content == b""
        assert "PUT" not in resp.headers["Access-Control-Allow-Methods"]

    def test_options_never_touches_limiter(self, client: TestClient) -> None:
        for _ in range(3):
            client.post(ENDPOINT, json={"email": "hi"})
        assert client.post(ENDPOINT, json={"email": "hi"}).status_code == 429

        for _ in range(5):
            resp = client.options(ENDPOINT)
            assert resp.status_code == 200
            assert resp.content == b""

        assert len(rate_limit_module.get_rate_limiter()) == 1

    def test_simple_request_gets_cors_header(self, client: TestClient) -> None:
        resp = client.post(
            ENDPOINT,
            json={"email": "hi"},
            headers={"Origin": "https://example.com"},
        )

        assert resp.status_code == 200
        assert "access-control-allow-origin" in resp.headers


class TestGenerativeVariant:
    def test_valid_bundle_passed_through(self) -> None:
        raw = {"professional": "P text", "friendly": "F text", "brief": "B text"}
        gen_client, generate_json = _generative_client(raw=dict(raw))

        resp = gen_client.post(ENDPOINT, json={"email": "I want a refund for order 123"})

        assert resp.status_code == 200
        assert resp.json() == {"responses": raw}
        assert "I want a refund for order 123" in generate_json.call_args.args[0]

    @pytest.mark.parametrize(
        "raw",
        [
            {"professional": "P", "friendly": "F"},
            {"professional": "P", "friendly": "F", "brief": "B", "extra": "x"},
        ],
    )
    def test_malformed_bundle_is_generic_500(self, raw: dict) -> None:
        gen_client, _ = _generative_client(raw=raw)

        resp = gen_client.post(ENDPOINT, json={"email": "hello"})

        assert resp.status_code == 500
        assert resp.json() == {"error": GENERATION_FAILED_MESSAGE}

    def test_upstream_failure_is_generic_500(self) -> None:
        gen_client, generate_json = _generative_client(
            side_effect=RuntimeError("LLM returned invalid JSON: Extra data: line 1")
        )

        resp = gen_client.post(ENDPOINT, json={"email": "hello"})

        assert resp.status_code == 500
        assert resp.json() == {"error": GENERATION_FAILED_MESSAGE}
        assert "Extra data" not in resp.text
        assert generate_json.await_count == 1

    def test_unexpected_responder_error_is_generic_500(self) -> None:
        responder = CannedResponder(delay_ms=0)
        broken_app = create_app(responder=responder)
        broken_app.state.responder = MagicMock(mode="broken", respond=AsyncMock(side_effect=KeyError("boom")))
        broken_client = TestClient(broken_app, raise_server_exceptions=False)

        resp = broken_client.post(
            ENDPOINT,
            json={"email": "hello"},
            headers={"Origin": "https://example.com", "X-Request-ID": "req-broken-1"},
        )

        assert resp.status_code == 500
        assert resp.json() == {"error": GENERATION_FAILED_MESSAGE}
        assert "boom" not in resp.text
        assert "access-control-allow-origin" in resp.headers
        assert resp.headers["X-Request-ID"] == "req-broken-1"


class TestHealthAndUI:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_index_page_points_at_endpoint(self, client: TestClient) -> None:
        resp = client.get("/")

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert '"/api/generate"' in resp.text
        assert "__API_PREFIX__" not in resp.text

    def test_unknown_path_is_404(self, client: TestClient) -> None:
        resp = client.get("/nope")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}
