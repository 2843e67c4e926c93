"""HTTP middleware for request correlation and CORS headers.

``request_id_middleware``:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for access throughout the request lifecycle
- Injects request_id and total duration into response headers
- Clears context after request completion to prevent context leaks

``cors_middleware`` stamps the proxy's CORS headers on every response under
the proxied path prefix, including 4xx/5xx responses produced by handlers.

``unhandled_error_middleware`` renders unexpected exceptions as the generic
500 body inside the middleware stack. Starlette would otherwise handle them in
``ServerErrorMiddleware``, outside the other two, so the 500 would lack CORS
headers and its request id.

Usage (innermost first):
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from edge_proxy.core.config import Settings
from edge_proxy.core.cors import build_cors_headers
from edge_proxy.core.exception_handlers import general_exception_handler
from edge_proxy.core.logging import clear_request_id, set_request_id

CORS_PATH_PREFIX = "/api/"


def _settings(request: Request) -> Settings:
    return request.app.state.settings


async def request_id_middleware(request: Request, call_next) -> Response:
    """Generate or propagate the request correlation id.

    Example:
        >>> # Request arrives with {"X-Request-ID": "req-abc-123"}
        >>> # Response includes:
        >>> # {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "45.67"}
    """

    header_name = _settings(request).log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """Attach CORS headers to responses from the proxied endpoints."""

    response: Response = await call_next(request)
    if not request.url.path.startswith(CORS_PATH_PREFIX):
        return response

    headers = build_cors_headers(
        request.headers.get("origin"),
        _settings(request).app.cors_origins,
    )
    for name, value in headers.items():
        response.headers[name] = value
    return response


async def unhandled_error_middleware(request: Request, call_next) -> Response:
    """Turn unexpected exceptions into the generic 500 JSON response."""

    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)
