"""
Celery worker for webhook delivery.

Run with: celery -A tenantgate.worker worker --loglevel=INFO
"""

import asyncio
import logging
from uuid import UUID

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from tenantgate.adapter.services.cache_factory import create_cache_store
from tenantgate.adapter.services.celery_queue import CeleryDeliveryQueue
from tenantgate.adapter.services.redis_cache import RedisCacheStore
from tenantgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from tenantgate.app.services.delivery_engine import DeliveryEngine

logger = logging.getLogger(__name__)

celery_app = Celery("tenantgate", broker=ApplicationConfig.CELERY_BROKER_URL)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    task_ignore_result=True,
    task_acks_late=True,
    timezone="UTC",
    enable_utc=True,
)


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, **extra):
    """Log task start."""
    logger.info(f"Task started: {task.name} (task_id: {task_id}, args: {args})")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, state=None, **extra):
    """Log task completion."""
    logger.info(f"Task completed: {task.name} (task_id: {task_id}, state: {state})")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, einfo=None, **extra):
    """Log task failure."""
    logger.error(
        f"Task failed: {sender.name} (task_id: {task_id}) - {exception}", exc_info=einfo
    )


async def run_delivery(delivery_id: UUID) -> None:
    """One delivery attempt with its own engine, session and cache connection"""
    # Each task runs in a fresh event loop, so pooled connections cannot be shared
    db_engine = create_async_engine(ApplicationConfig.DB_URI, poolclass=NullPool)
    cache = create_cache_store(ApplicationConfig)
    try:
        async with AsyncSession(db_engine, expire_on_commit=False, autoflush=False) as session:
            delivery_engine = DeliveryEngine(
                uow=SqlAlchemyUnitOfWork(session),
                queue=CeleryDeliveryQueue(deliver_webhook),
                cache=cache,
                timeout_seconds=ApplicationConfig.WEBHOOK_TIMEOUT_SECONDS,
            )
            await delivery_engine.deliver(delivery_id)
    finally:
        if isinstance(cache, RedisCacheStore):
            await cache.close()
        await db_engine.dispose()


@celery_app.task(name="tenantgate.deliver_webhook")
def deliver_webhook(delivery_id: str) -> None:
    asyncio.run(run_delivery(UUID(delivery_id)))
