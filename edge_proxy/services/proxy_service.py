"""Proxy service: clamps client requests and forwards them upstream.

Clients may not pick expensive models or unbounded token budgets, so the
body is rewritten before it leaves the server. All other fields pass
through untouched.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Sequence

from edge_proxy.adapters.upstream.base import AbstractUpstreamClient, UpstreamResponse
from edge_proxy.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestPolicy:
    """Limits applied to every proxied request body."""

    allowed_models: Sequence[str]
    default_model: str
    max_tokens_cap: int
    default_max_tokens: int


def _is_valid_max_tokens(value: Any, cap: int) -> bool:
    # bool is an int subclass; JSON true must not pass as 1 token
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 < value <= cap


def sanitize_payload(payload: Any, policy: RequestPolicy) -> dict[str, Any]:
    """Return a copy of ``payload`` with model and max_tokens clamped.

    Args:
        payload: Decoded JSON body from the client.
        policy: Allowed models and token limits.

    Returns:
        A new dict safe to forward upstream.

    Raises:
        ValidationAppError: If the body is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="invalid_body",
            message="Request body must be a JSON object",
            details={"body_type": type(payload).__name__},
        )

    sanitized = dict(payload)

    if sanitized.get("model") not in policy.allowed_models:
        sanitized["model"] = policy.default_model

    if not _is_valid_max_tokens(sanitized.get("max_tokens"), policy.max_tokens_cap):
        sanitized["max_tokens"] = policy.default_max_tokens

    return sanitized


class ProxyService:
    """Sanitizes a request body and relays it to the upstream client."""

    def __init__(self, upstream: AbstractUpstreamClient, policy: RequestPolicy) -> None:
        self.upstream = upstream
        self.policy = policy

    async def forward(self, payload: Any) -> UpstreamResponse:
        """Sanitize and forward a client payload.

        Raises:
            ValidationAppError: If the body is not a JSON object.
            ConfigurationAppError: If the upstream key is missing.
            UpstreamAppError: If the upstream call fails.
        """
        sanitized = sanitize_payload(payload, self.policy)

        if payload.get("model") != sanitized["model"]:
            logger.info("proxy.model_overridden", extra={"model": sanitized["model"]})

        start = time.perf_counter()
        response = await self.upstream.forward(sanitized)
        logger.info(
            "proxy.forwarded",
            extra={
                "model": sanitized["model"],
                "max_tokens": sanitized["max_tokens"],
                "upstream_status": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response
