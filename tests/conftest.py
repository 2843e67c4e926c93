"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module,
so no .env file or real API key is needed.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test-key"
os.environ["ANTHROPIC_BASE_URL"] = "https://api.anthropic.com"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import json
from typing import Callable

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from edge_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from edge_proxy.adapters.upstream.anthropic_client import AnthropicMessagesClient
from edge_proxy.core.app_factory import create_app
from edge_proxy.core.config import Settings


UPSTREAM_OK_BODY = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "content": [{"type": "text", "text": "hola"}],
}


class RecordingUpstream:
    """httpx transport handler that records requests and returns a canned reply."""

    def __init__(self, status_code: int = 200, body: object = UPSTREAM_OK_BODY) -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def settings() -> Settings:
    """Fresh settings built from the test environment."""
    return Settings()


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def limiter() -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60)


@pytest.fixture
def make_app(settings: Settings, limiter: InMemoryFixedWindowRateLimiter) -> Callable[..., FastAPI]:
    """Build an app wired to a mock upstream transport."""

    def _make(handler=None, *, api_key: str | None = "sk-ant-test-key", app_settings: Settings | None = None) -> FastAPI:
        cfg = app_settings or settings
        client = AnthropicMessagesClient(
            api_key=api_key,
            base_url=cfg.upstream.base_url,
            transport=httpx.MockTransport(handler or RecordingUpstream()),
        )
        return create_app(cfg, rate_limiter=limiter, upstream_client=client)

    return _make


@pytest.fixture
def client(make_app, upstream: RecordingUpstream) -> TestClient:
    """Test client for an app whose upstream is the ``upstream`` fixture."""
    return TestClient(make_app(upstream))
