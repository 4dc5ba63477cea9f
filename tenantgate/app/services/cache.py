from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class CacheStore(ABC):
    """
    Key-value store with TTL semantics - application layer.

    Holds every piece of short-lived shared state: login challenges,
    magic-link tokens, rate-limit windows, the token denylist and delivery
    locks. Values are JSON-serializable dicts.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Value stored under key, or None if missing/expired"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        """Store value, replacing any previous one"""
        pass

    @abstractmethod
    async def add(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> bool:
        """Store value only if key is absent. Returns True if stored."""
        pass

    @abstractmethod
    async def pop(self, key: str) -> Optional[Dict[str, Any]]:
        """Atomically read and delete. At most one concurrent caller gets the value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key if present"""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True if key holds a live value"""
        pass

    @abstractmethod
    async def record_hit(self, key: str, at: float, window_seconds: int) -> None:
        """Add a timestamped hit and drop hits older than the window"""
        pass

    @abstractmethod
    async def hits_since(self, key: str, since: float) -> List[float]:
        """Timestamps of hits at or after `since`, oldest first"""
        pass

    @abstractmethod
    async def clear_hits(self, key: str) -> None:
        """Forget all hits under key"""
        pass
