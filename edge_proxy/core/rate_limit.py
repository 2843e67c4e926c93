"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Fixed-window limit per client IP, taken from the first X-Forwarded-For value.
- Clients whose IP cannot be determined share the "unknown" bucket.
- The limiter lives on ``app.state`` so each app (and each test) owns its own.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from edge_proxy.adapters.rate_limit.base import (
    UNKNOWN_IDENTIFIER,
    AbstractRateLimiter,
    RateLimitResult,
)
from edge_proxy.core.config import Settings
from edge_proxy.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def extract_client_identifier(header_value: str | None) -> str:
    """Return the client IP from a forwarded-for style header.

    Examples:
        >>> extract_client_identifier("203.0.113.7, 10.0.0.1")
        '203.0.113.7'
        >>> extract_client_identifier(None)
        'unknown'
        >>> extract_client_identifier(" , 10.0.0.1")
        'unknown'
    """

    if not header_value:
        return UNKNOWN_IDENTIFIER
    first = header_value.split(",", 1)[0].strip()
    return first or UNKNOWN_IDENTIFIER


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def _build_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 1),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_at)),
    }


async def enforce_rate_limit(request: Request) -> RateLimitResult | None:
    """FastAPI dependency enforcing the per-IP quota.

    Counts one request for the caller before the route reads the body or
    calls upstream.

    Returns:
        The limiter decision, or None when rate limiting is disabled.

    Raises:
        HTTPException: 429 Too Many Requests when the quota is exhausted.
    """

    settings: Settings = request.app.state.settings
    if not settings.app.rate_limit_enabled:
        return None

    identifier = extract_client_identifier(
        request.headers.get(settings.app.client_ip_header)
    )
    result = get_rate_limiter(request).check(identifier)

    log_extra = {
        "key_type": "unknown" if identifier == UNKNOWN_IDENTIFIER else "ip",
        "key_hash": hash_identifier(identifier),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "retry_after_s": result.retry_after_seconds},
    )

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=_build_headers(result) if settings.app.rate_limit_include_headers else None,
    )
