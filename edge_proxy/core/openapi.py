"""OpenAPI metadata and customization utilities.

Adds tag descriptions and documents the rate-limit response headers on the
proxy operation. Kept separate from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Proxy",
        "description": "Credential-shielding relay to the Anthropic Messages API.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Remaining": {
        "description": "Requests left in the caller's current window.",
        "schema": {"type": "integer"},
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and header docs."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        proxy_post = schema.get("paths", {}).get("/api/proxy", {}).get("post")
        if isinstance(proxy_post, dict):
            ok = proxy_post.setdefault("responses", {}).setdefault("200", {})
            ok.setdefault("headers", {}).update(_RATE_LIMIT_HEADERS)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
