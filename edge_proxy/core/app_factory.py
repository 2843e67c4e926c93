"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the mutable collaborators: the rate limiter and the upstream client are
built here and stored on ``app.state``, so every app instance (and every
test) gets its own counters.
"""

from __future__ import annotations

from fastapi import FastAPI

from edge_proxy.adapters.rate_limit.base import AbstractRateLimiter
from edge_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from edge_proxy.adapters.upstream.base import AbstractUpstreamClient
from edge_proxy.adapters.upstream.factory import create_upstream_client
from edge_proxy.api.routes import health_router, proxy_router
from edge_proxy.core.config import Settings
from edge_proxy.core.config import settings as default_settings
from edge_proxy.core.exception_handlers import setup_exception_handlers
from edge_proxy.core.logging import configure_logging
from edge_proxy.core.middleware import (
    cors_middleware,
    request_id_middleware,
    unhandled_error_middleware,
)
from edge_proxy.core.openapi import TAGS_METADATA, apply_openapi_customizations
from edge_proxy.services.proxy_service import ProxyService, RequestPolicy


def create_app(
    settings: Settings | None = None,
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    upstream_client: AbstractUpstreamClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the environment-loaded instance.
        rate_limiter: Limiter to use; defaults to an in-memory fixed window
            sized from settings.
        upstream_client: Upstream client; defaults to the Anthropic client.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = settings if settings is not None else default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Edge Proxy",
        description=(
            "Relays Anthropic Messages API calls from browser clients using a "
            "server-held API key, with a per-IP fixed-window quota, model and "
            "max_tokens clamping, and origin-restricted CORS."
        ),
        version="0.1.0",
        openapi_tags=TAGS_METADATA,
    )

    app.state.settings = cfg
    # An empty limiter has len() == 0, so test for None, not truthiness
    if rate_limiter is None:
        rate_limiter = InMemoryFixedWindowRateLimiter(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
        )
    if upstream_client is None:
        upstream_client = create_upstream_client(cfg.upstream)

    app.state.rate_limiter = rate_limiter
    app.state.proxy_service = ProxyService(
        upstream=upstream_client,
        policy=RequestPolicy(
            allowed_models=tuple(cfg.app.models),
            default_model=cfg.app.default_model,
            max_tokens_cap=cfg.app.max_tokens_cap,
            default_max_tokens=cfg.app.default_max_tokens,
        ),
    )

    # Last registered runs outermost: request id wraps CORS wraps error rendering
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(proxy_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
