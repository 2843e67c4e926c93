"""Anthropic Messages API upstream adapter."""

import json
import logging
from typing import Any

import httpx

from edge_proxy.adapters.upstream.base import AbstractUpstreamClient, UpstreamResponse
from edge_proxy.core.errors import ConfigurationAppError, UpstreamAppError

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/v1/messages"


class AnthropicMessagesClient(AbstractUpstreamClient):
    """Forwards Messages requests to Anthropic with the server's API key.

    A fresh ``httpx.AsyncClient`` is opened per request. There are no retries.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key. May be None; requests then fail with a
                configuration error instead of reaching the network.
            base_url: API base URL.
            api_version: Value for the anthropic-version header.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._api_key = api_key
        self.url = base_url.rstrip("/") + MESSAGES_PATH
        self.api_version = api_version
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key or "",
            "anthropic-version": self.api_version,
        }

    async def forward(self, payload: dict[str, Any]) -> UpstreamResponse:
        """POST the payload to the Messages endpoint and decode the JSON reply.

        Raises:
            ConfigurationAppError: If no API key is configured.
            UpstreamAppError: On transport failure or a non-JSON reply.
        """
        if not self.configured:
            raise ConfigurationAppError(
                code="api_key_not_configured",
                message="Upstream API key is not configured",
                details={"hint": "Set the ANTHROPIC_API_KEY environment variable"},
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.url,
                    headers=self._headers(),
                    content=json.dumps(payload),
                )
        except httpx.HTTPError as exc:
            logger.error(
                "upstream.request_failed",
                extra={"error_type": type(exc).__name__, "upstream_url": self.url},
            )
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="Error connecting to the upstream API",
                details={"error_type": type(exc).__name__},
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            logger.error(
                "upstream.invalid_json",
                extra={"status_code": response.status_code, "upstream_url": self.url},
            )
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="Error connecting to the upstream API",
                details={"error_type": "invalid_json"},
            ) from exc

        return UpstreamResponse(status_code=response.status_code, body=body)
