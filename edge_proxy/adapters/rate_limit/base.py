"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
and receives an instance at app construction time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

UNKNOWN_IDENTIFIER = "unknown"


@dataclass(frozen=True)
class RateLimitResult:
    """Decision returned by ``AbstractRateLimiter.check``.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        remaining: Requests left in the current window (0 when blocked).
        limit: Max requests per window.
        reset_at: Window boundary (window start + window length), in clock units.
        retry_after_seconds: Suggested wait in whole seconds when blocked.
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: float
    retry_after_seconds: int | None = None


@dataclass
class RateLimitEntry:
    """Per-identifier counter for one fixed window."""

    count: int
    window_start: float


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, now: float | None = None) -> RateLimitResult:
        """Count one request for ``identifier`` and decide whether it may proceed.

        Args:
            identifier: Client key (typically an IP address).
            now: Current time; defaults to the limiter's clock.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def peek(self, identifier: str) -> RateLimitEntry | None:
        """Return a copy of the stored entry without counting a request."""
        raise NotImplementedError
