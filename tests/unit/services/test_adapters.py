from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from config import ApplicationConfig
from tenantgate.adapter.services.cache_factory import create_cache_store
from tenantgate.adapter.services.celery_queue import CeleryDeliveryQueue
from tenantgate.adapter.services.memory_cache import InMemoryCacheStore
from tenantgate.adapter.services.redis_cache import RedisCacheStore
from tenantgate.domain.errors import ConfigurationError


class _Config:
    CACHE_BACKEND = "memory"
    REDIS_URL = "redis://localhost:6379/0"


@pytest.mark.asyncio
async def test_celery_queue_passes_id_and_eta():
    task = MagicMock()
    delivery_id = uuid4()
    eta = datetime(2024, 1, 1, tzinfo=UTC)

    await CeleryDeliveryQueue(task).enqueue(delivery_id, eta=eta)

    task.apply_async.assert_called_once_with(args=[str(delivery_id)], eta=eta)


def test_cache_factory_selects_backend():
    class WithRedis(_Config):
        CACHE_BACKEND = "redis"

    assert isinstance(create_cache_store(_Config), InMemoryCacheStore)
    assert isinstance(create_cache_store(WithRedis), RedisCacheStore)


def test_cache_factory_rejects_unknown_backend():
    class Broken(_Config):
        CACHE_BACKEND = "memcached"

    with pytest.raises(ConfigurationError):
        create_cache_store(Broken)


@pytest.mark.parametrize(
    "setting, value",
    [
        ("JWT_SECRET", ""),
        ("APP_KEY", ""),
        ("CACHE_BACKEND", "memcached"),
        ("WEBHOOK_MAX_RETRIES", 11),
        ("WEBHOOK_RETRY_DELAY", 1),
    ],
)
def test_config_validation_fails_fast(monkeypatch, setting, value):
    monkeypatch.setattr(ApplicationConfig, setting, value)

    with pytest.raises(ConfigurationError):
        ApplicationConfig.validate()
