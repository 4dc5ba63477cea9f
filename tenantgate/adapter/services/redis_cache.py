import json
import uuid
from typing import Any, Dict, List, Optional

from redis.asyncio import Redis

from tenantgate.app.services.cache import CacheStore


class RedisCacheStore(CacheStore):
    """
    Redis implementation of CacheStore.

    Hit windows are sorted sets scored by timestamp; pop() relies on GETDEL
    (Redis >= 6.2) so challenge and magic-link resolution is a single atomic
    command.
    """

    def __init__(self, client: Redis, prefix: str = "tenantgate:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "tenantgate:") -> "RedisCacheStore":
        return cls(Redis.from_url(url, decode_responses=True), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self.client.get(self._key(key))
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        await self.client.set(self._key(key), json.dumps(value), ex=max(1, ttl_seconds))

    async def add(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> bool:
        stored = await self.client.set(
            self._key(key), json.dumps(value), ex=max(1, ttl_seconds), nx=True
        )
        return bool(stored)

    async def pop(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self.client.getdel(self._key(key))
        return json.loads(raw) if raw is not None else None

    async def delete(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def exists(self, key: str) -> bool:
        return bool(await self.client.exists(self._key(key)))

    async def record_hit(self, key: str, at: float, window_seconds: int) -> None:
        redis_key = self._key(key)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.zadd(redis_key, {f"{at}:{uuid.uuid4().hex}": at})
            pipe.zremrangebyscore(redis_key, "-inf", at - window_seconds)
            pipe.expire(redis_key, window_seconds + 60)
            await pipe.execute()

    async def hits_since(self, key: str, since: float) -> List[float]:
        entries = await self.client.zrangebyscore(
            self._key(key), since, "+inf", withscores=True
        )
        return [score for _, score in entries]

    async def clear_hits(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def close(self) -> None:
        await self.client.aclose()
