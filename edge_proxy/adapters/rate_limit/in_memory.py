"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock serializes every read-modify-write on the mapping.
- Windows start at each identifier's first request, not on clock boundaries.
- Stale entries are replaced lazily on the next request and never swept.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import replace
from typing import Callable

from edge_proxy.adapters.rate_limit.base import (
    UNKNOWN_IDENTIFIER,
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitResult,
)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in a fixed window.

    A window opens on an identifier's first request and lasts
    ``window_seconds``. A request exactly on the boundary still belongs to the
    old window; the first request strictly after it opens a new one. Because
    windows are fixed, a client can send up to ``2 * limit`` requests across a
    boundary.

    ``window_seconds`` is expressed in whatever unit ``clock`` (or the ``now``
    argument) uses.
    """

    def __init__(
        self,
        *,
        limit: int = 20,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of requests per window.
            window_seconds: Length of the window.
            clock: Time source used when ``check`` is called without ``now``.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _is_expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now - entry.window_start > self._window_seconds

    def _allowed(self, entry: RateLimitEntry) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            remaining=self._limit - entry.count,
            limit=self._limit,
            reset_at=entry.window_start + self._window_seconds,
        )

    def _blocked(self, entry: RateLimitEntry, now: float) -> RateLimitResult:
        reset_at = entry.window_start + self._window_seconds
        # The window only reopens strictly after reset_at, so never suggest 0
        retry_after = max(1, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=self._limit,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )

    def check(self, identifier: str, now: float | None = None) -> RateLimitResult:
        """Count one request for ``identifier``.

        Blocked requests do not touch the stored entry.

        Args:
            identifier: Client key; an empty value falls into the shared
                ``"unknown"`` bucket.
            now: Current time; defaults to ``clock()``.

        Returns:
            RateLimitResult with allowance decision and metadata.
        """
        key = identifier or UNKNOWN_IDENTIFIER
        if now is None:
            now = self._clock()

        with self._lock:
            entry = self._entries.get(key)

            if entry is None or self._is_expired(entry, now):
                entry = RateLimitEntry(count=1, window_start=now)
                self._entries[key] = entry
                return self._allowed(entry)

            if entry.count >= self._limit:
                return self._blocked(entry, now)

            entry.count += 1
            return self._allowed(entry)

    def peek(self, identifier: str) -> RateLimitEntry | None:
        with self._lock:
            entry = self._entries.get(identifier or UNKNOWN_IDENTIFIER)
            return replace(entry) if entry is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
