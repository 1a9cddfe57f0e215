"""Simple in-memory rate limiting helpers."""

from __future__ import annotations

import asyncio
import os
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional


class RateLimitExceeded(Exception):
    def __init__(self, key: str) -> None:
        super().__init__(f"rate limit exceeded for {key}")
        self.key = key


@dataclass
class _Bucket:
    hits: Deque[float]


class RateLimiter:
    """An asyncio-friendly sliding window rate limiter."""

    def __init__(self, *, limit: int, window_seconds: float) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window = window_seconds
        self._lock = asyncio.Lock()
        self._buckets: Dict[str, _Bucket] = {}
        self._last_sweep = time.monotonic()

    def tracked_keys(self) -> int:
        return len(self._buckets)

    def _sweep(self, now: float, cutoff: float) -> None:
        """Forget keys whose every hit has left the window."""

        if now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        for key in [k for k, b in self._buckets.items() if not b.hits or b.hits[-1] <= cutoff]:
            del self._buckets[key]

    async def try_acquire(self, key: str) -> bool:
        now = time.monotonic()
        cutoff = now - self.window

        async with self._lock:
            self._sweep(now, cutoff)
            bucket = self._buckets.setdefault(key, _Bucket(deque()))

            hits = bucket.hits
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.limit:
                return False

            hits.append(now)
            return True

    async def check(self, key: str) -> None:
        if not await self.try_acquire(key):
            raise RateLimitExceeded(key)


_registration_limiter: Optional[RateLimiter] = None
_registration_limiter_loaded = False


def get_registration_rate_limiter() -> Optional[RateLimiter]:
    """Return the shared limiter for registration submissions (if configured)."""

    global _registration_limiter, _registration_limiter_loaded
    if _registration_limiter_loaded:
        return _registration_limiter

    try:
        limit = int(os.getenv("REGISTRATION_RATE_LIMIT", "0"))
        window = float(os.getenv("REGISTRATION_RATE_WINDOW", "60"))
    except ValueError:
        limit = 0
        window = 60.0

    _registration_limiter = RateLimiter(limit=limit, window_seconds=window) if limit > 0 else None
    _registration_limiter_loaded = True
    return _registration_limiter


__all__ = ["RateLimitExceeded", "RateLimiter", "get_registration_rate_limiter"]
