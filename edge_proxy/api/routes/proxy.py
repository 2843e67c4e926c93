from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from edge_proxy.adapters.rate_limit.base import RateLimitResult
from edge_proxy.core.errors import ValidationAppError
from edge_proxy.core.rate_limit import enforce_rate_limit
from edge_proxy.services.proxy_service import ProxyService

router = APIRouter(tags=["Proxy"])


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


@router.options("/api/proxy", status_code=status.HTTP_204_NO_CONTENT)
async def proxy_preflight() -> Response:
    """CORS preflight. Headers are added by the CORS middleware."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/api/proxy",
    responses={
        400: {"description": "Body is not a JSON object"},
        429: {"description": "Per-IP quota exhausted"},
        500: {"description": "Upstream API key not configured"},
        502: {"description": "Upstream API unreachable"},
    },
)
async def proxy_messages(
    request: Request,
    rate_limit: Annotated[RateLimitResult | None, Depends(enforce_rate_limit)],
    service: Annotated[ProxyService, Depends(get_proxy_service)],
) -> JSONResponse:
    """Forward a Messages API request using the server's credentials.

    The body is the Anthropic Messages request as the client would send it.
    ``model`` and ``max_tokens`` are clamped before forwarding; the upstream
    status and JSON body are relayed unchanged.

    Raises:
        ValidationAppError: 400 if the body is not valid JSON.
    """
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_body",
            message="Request body must be valid JSON",
        ) from exc

    upstream = await service.forward(payload)

    headers: dict[str, str] = {}
    if rate_limit is not None:
        headers["X-RateLimit-Remaining"] = str(rate_limit.remaining)

    return JSONResponse(
        content=upstream.body,
        status_code=upstream.status_code,
        headers=headers,
    )
