"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from edge_proxy.core.config import AppSettings, Settings, UpstreamSettings, parse_csv


def test_defaults_match_edge_function_policy(monkeypatch) -> None:
    for name in ("APP_RATE_LIMIT_REQUESTS", "APP_RATE_LIMIT_WINDOW_SECONDS", "APP_ALLOWED_MODELS"):
        monkeypatch.delenv(name, raising=False)

    cfg = AppSettings()

    assert cfg.rate_limit_requests == 20
    assert cfg.rate_limit_window_seconds == 3600
    assert cfg.models == ["claude-sonnet-4-6", "claude-haiku-4-5-20251001"]
    assert cfg.cors_origins[0] == "https://contaleacarlitos.vercel.app"
    assert cfg.max_tokens_cap == 1500
    assert cfg.default_max_tokens == 1000


def test_api_key_read_from_anthropic_env(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-from-env")

    assert UpstreamSettings().api_key == "sk-ant-from-env"


def test_env_overrides_rate_limit(monkeypatch) -> None:
    monkeypatch.setenv("APP_RATE_LIMIT_REQUESTS", "5")
    monkeypatch.setenv("APP_RATE_LIMIT_WINDOW_SECONDS", "60")
    monkeypatch.setenv("APP_CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example")

    cfg = Settings()

    assert cfg.app.rate_limit_requests == 5
    assert cfg.app.rate_limit_window_seconds == 60
    assert cfg.app.cors_origins == ["https://a.example", "https://b.example"]


def test_rejects_zero_limit(monkeypatch) -> None:
    monkeypatch.setenv("APP_RATE_LIMIT_REQUESTS", "0")

    with pytest.raises(ValidationError):
        AppSettings()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("a,b", ["a", "b"]),
        (" a , ,b ", ["a", "b"]),
        ("", []),
        (None, []),
    ],
)
def test_parse_csv(raw, expected) -> None:
    assert parse_csv(raw) == expected
