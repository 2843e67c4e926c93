"""Rate limiting adapters.

The proxy starts with a per-process, in-memory limiter. The abstract base
keeps the HTTP layer independent of where counters are stored.
"""

from edge_proxy.adapters.rate_limit.base import (
    UNKNOWN_IDENTIFIER,
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitResult,
)
from edge_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "UNKNOWN_IDENTIFIER",
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitEntry",
    "RateLimitResult",
]
