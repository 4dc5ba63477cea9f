import copy
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from tenantgate.app.services.cache import CacheStore


class InMemoryCacheStore(CacheStore):
    """
    Process-local CacheStore for development and tests.

    Methods never await internally, so each one runs atomically on the event
    loop. The clock is injectable so TTL expiry can be tested without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._values: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._hits: Dict[str, List[float]] = {}

    def _live(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._values[key]
            return None
        return value

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._live(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        self._values[key] = (copy.deepcopy(value), self.clock() + ttl_seconds)

    async def add(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        self._values[key] = (copy.deepcopy(value), self.clock() + ttl_seconds)
        return True

    async def pop(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._live(key)
        if value is None:
            return None
        del self._values[key]
        return value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def record_hit(self, key: str, at: float, window_seconds: int) -> None:
        hits = [hit for hit in self._hits.get(key, []) if hit > at - window_seconds]
        hits.append(at)
        self._hits[key] = sorted(hits)

    async def hits_since(self, key: str, since: float) -> List[float]:
        return [hit for hit in self._hits.get(key, []) if hit >= since]

    async def clear_hits(self, key: str) -> None:
        self._hits.pop(key, None)
