"""Tests for client identification and the rate-limit route dependency."""

import httpx
import pytest
from fastapi.testclient import TestClient

from edge_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from edge_proxy.adapters.upstream.anthropic_client import AnthropicMessagesClient
from edge_proxy.core.app_factory import create_app
from edge_proxy.core.rate_limit import extract_client_identifier


class TestExtractClientIdentifier:
    """Parsing of the forwarded-for header."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("203.0.113.7", "203.0.113.7"),
            ("203.0.113.7, 10.0.0.1, 10.0.0.2", "203.0.113.7"),
            ("  198.51.100.4 ,10.0.0.1", "198.51.100.4"),
            ("2001:db8::1", "2001:db8::1"),
            (None, "unknown"),
            ("", "unknown"),
            (",10.0.0.1", "unknown"),
            ("   ", "unknown"),
        ],
    )
    def test_first_value_or_unknown(self, header, expected) -> None:
        assert extract_client_identifier(header) == expected


class TestEnforceRateLimit:
    """Rate limiting as seen through the proxy endpoint (limit=3 in fixtures)."""

    def test_remaining_header_counts_down(self, client: TestClient) -> None:
        headers = {"X-Forwarded-For": "1.2.3.4"}

        values = [
            client.post("/api/proxy", json={}, headers=headers).headers["X-RateLimit-Remaining"]
            for _ in range(3)
        ]

        assert values == ["2", "1", "0"]

    def test_blocks_after_limit_with_headers(self, client: TestClient, upstream) -> None:
        headers = {"X-Forwarded-For": "1.2.3.4"}
        for _ in range(3):
            assert client.post("/api/proxy", json={}, headers=headers).status_code == 200

        resp = client.post("/api/proxy", json={}, headers=headers)

        assert resp.status_code == 429
        assert resp.json()["detail"] == "Rate limit exceeded. Try again later."
        assert resp.headers["X-RateLimit-Limit"] == "3"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert int(resp.headers["Retry-After"]) >= 1
        assert "X-RateLimit-Reset" in resp.headers
        assert len(upstream.requests) == 3

    def test_throttled_request_never_reaches_upstream_or_body_parsing(
        self, client: TestClient, upstream
    ) -> None:
        headers = {"X-Forwarded-For": "1.2.3.4", "Content-Type": "application/json"}
        for _ in range(3):
            client.post("/api/proxy", json={}, headers=headers)

        resp = client.post("/api/proxy", content=b"not json", headers=headers)

        assert resp.status_code == 429
        assert len(upstream.requests) == 3

    def test_ips_are_isolated(self, client: TestClient) -> None:
        for _ in range(3):
            client.post("/api/proxy", json={}, headers={"X-Forwarded-For": "1.1.1.1"})
        assert client.post("/api/proxy", json={}, headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429

        resp = client.post("/api/proxy", json={}, headers={"X-Forwarded-For": "2.2.2.2, 1.1.1.1"})

        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "2"

    def test_missing_header_shares_unknown_bucket(
        self, client: TestClient, limiter: InMemoryFixedWindowRateLimiter
    ) -> None:
        client.post("/api/proxy", json={})
        client.post("/api/proxy", json={}, headers={"X-Forwarded-For": ""})

        entry = limiter.peek("unknown")
        assert entry is not None
        assert entry.count == 2

    def test_omits_headers_when_disabled_in_settings(self, make_app, settings) -> None:
        settings.app.rate_limit_include_headers = False
        client = TestClient(make_app())
        for _ in range(3):
            client.post("/api/proxy", json={})

        resp = client.post("/api/proxy", json={})

        assert resp.status_code == 429
        assert "Retry-After" not in resp.headers
        assert "X-RateLimit-Limit" not in resp.headers

    def test_disabled_rate_limit_skips_limiter(self, make_app, settings, limiter) -> None:
        settings.app.rate_limit_enabled = False
        client = TestClient(make_app())

        responses = [client.post("/api/proxy", json={}) for _ in range(5)]

        assert all(r.status_code == 200 for r in responses)
        assert all("X-RateLimit-Remaining" not in r.headers for r in responses)
        assert len(limiter) == 0

    def test_preflight_is_not_counted(self, client: TestClient, limiter) -> None:
        for _ in range(5):
            assert client.options("/api/proxy").status_code == 204

        assert len(limiter) == 0

    def test_each_app_owns_its_limiter(self, settings) -> None:
        first = TestClient(create_app(settings))
        second = TestClient(create_app(settings))

        assert first.app.state.rate_limiter is not second.app.state.rate_limiter
        assert first.app.state.rate_limiter.limit == settings.app.rate_limit_requests

    def test_injected_collaborators_are_used_even_when_empty(self, settings, upstream) -> None:
        injected = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60)
        upstream_client = AnthropicMessagesClient(
            api_key="sk-ant-test-key",
            base_url=settings.upstream.base_url,
            transport=httpx.MockTransport(upstream),
        )
        assert len(injected) == 0

        app = create_app(settings, rate_limiter=injected, upstream_client=upstream_client)
        TestClient(app).post("/api/proxy", json={}, headers={"X-Forwarded-For": "7.7.7.7"})

        assert app.state.rate_limiter is injected
        assert app.state.proxy_service.upstream is upstream_client
        assert injected.peek("7.7.7.7").count == 1
        assert len(upstream.requests) == 1
