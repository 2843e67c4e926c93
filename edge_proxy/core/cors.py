"""CORS header selection for the proxy endpoint.

Browsers only accept a single concrete origin in
``Access-Control-Allow-Origin``, so the request origin is echoed when it is
allow-listed and the first configured origin is returned otherwise.
"""

from __future__ import annotations

from typing import Sequence

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type"


def resolve_allowed_origin(origin: str | None, allowed_origins: Sequence[str]) -> str:
    """Pick the value for Access-Control-Allow-Origin.

    Args:
        origin: The request's Origin header (may be missing).
        allowed_origins: Configured allow-list, in priority order.

    Returns:
        ``origin`` if allow-listed, else the first allowed origin, else "null"
        when nothing is configured.

    Examples:
        >>> resolve_allowed_origin("http://localhost:3000", ["https://a.app", "http://localhost:3000"])
        'http://localhost:3000'
        >>> resolve_allowed_origin("https://evil.example", ["https://a.app"])
        'https://a.app'
    """
    if origin and origin in allowed_origins:
        return origin
    if allowed_origins:
        return allowed_origins[0]
    return "null"


def build_cors_headers(origin: str | None, allowed_origins: Sequence[str]) -> dict[str, str]:
    """Build the full CORS header set for a proxy response."""
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(origin, allowed_origins),
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Vary": "Origin",
    }
