"""Upstream adapter layer - forwards proxied requests to the AI provider."""

from edge_proxy.adapters.upstream.anthropic_client import AnthropicMessagesClient
from edge_proxy.adapters.upstream.base import AbstractUpstreamClient, UpstreamResponse
from edge_proxy.adapters.upstream.factory import create_upstream_client

__all__ = [
    "AbstractUpstreamClient",
    "AnthropicMessagesClient",
    "UpstreamResponse",
    "create_upstream_client",
]
