"""Factory for the upstream client."""

import httpx

from edge_proxy.adapters.upstream.anthropic_client import AnthropicMessagesClient
from edge_proxy.adapters.upstream.base import AbstractUpstreamClient
from edge_proxy.core.config import UpstreamSettings


def create_upstream_client(
    upstream: UpstreamSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AbstractUpstreamClient:
    """Build the upstream client from settings.

    A missing API key is not an error here; the proxy keeps serving and
    reports the misconfiguration per request.
    """
    return AnthropicMessagesClient(
        api_key=upstream.api_key,
        base_url=upstream.base_url,
        api_version=upstream.api_version,
        timeout_seconds=upstream.timeout_seconds,
        transport=transport,
    )
