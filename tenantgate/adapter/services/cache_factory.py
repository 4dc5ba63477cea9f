import time
from typing import Callable

from tenantgate.adapter.services.memory_cache import InMemoryCacheStore
from tenantgate.adapter.services.redis_cache import RedisCacheStore
from tenantgate.app.services.cache import CacheStore
from tenantgate.domain.errors import ConfigurationError


def create_cache_store(config, clock: Callable[[], float] = time.time) -> CacheStore:
    """Cache store selected by CACHE_BACKEND"""
    if config.CACHE_BACKEND == "redis":
        return RedisCacheStore.from_url(config.REDIS_URL)
    if config.CACHE_BACKEND == "memory":
        return InMemoryCacheStore(clock=clock)
    raise ConfigurationError(f"Unknown CACHE_BACKEND {config.CACHE_BACKEND!r}")
