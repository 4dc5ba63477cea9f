"""
Sliding-window rate limiting over the cache store.

Each key keeps the timestamps of its hits; a request is allowed while fewer
than ``max_attempts`` hits fall inside the rolling window.
"""

import logging
import math
import time
from typing import Callable, Optional

from tenantgate.app.services.cache import CacheStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window counters keyed by caller-chosen strings."""

    def __init__(self, cache: CacheStore, clock: Callable[[], float] = time.time):
        self.cache = cache
        self.clock = clock

    @staticmethod
    def _key(key: str) -> str:
        return f"rate_limit:{key}"

    async def check(self, key: str, max_attempts: int, window_seconds: int) -> Optional[int]:
        """
        Check whether another attempt is allowed.

        Args:
            key: Limiter key (e.g. "login:{ip}")
            max_attempts: Attempts allowed inside the window
            window_seconds: Length of the rolling window

        Returns:
            None if allowed, otherwise seconds until the oldest hit leaves the window
        """
        now = self.clock()
        hits = await self.cache.hits_since(self._key(key), now - window_seconds)
        if len(hits) < max_attempts:
            return None

        oldest = hits[len(hits) - max_attempts]
        retry_after = max(1, math.ceil(oldest + window_seconds - now))
        logger.warning(
            f"Rate limit exceeded for {key}: {len(hits)}/{max_attempts} "
            f"attempts. Retry after {retry_after}s"
        )
        return retry_after

    async def hit(self, key: str, window_seconds: int) -> None:
        """Record one attempt"""
        await self.cache.record_hit(self._key(key), self.clock(), window_seconds)

    async def clear(self, key: str) -> None:
        """Reset the window, e.g. after a successful login"""
        await self.cache.clear_hits(self._key(key))
