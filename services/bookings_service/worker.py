"""Celery worker and beat schedule for the bookings service.

Run with:
    celery -A services.bookings_service.worker worker --loglevel=info
    celery -A services.bookings_service.worker beat --loglevel=info
"""

import asyncio
from datetime import timedelta
from typing import Any

from celery import Celery, shared_task
from celery.signals import setup_logging
from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)

COMPLETE_DUE_BOOKINGS_TASK = "bookings.complete_due_bookings"


def create_celery_app() -> Celery:
    settings = get_settings()
    celery_app = Celery(
        "bookings_service",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
    )
    celery_app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=settings.TIMEZONE,
        enable_utc=True,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_hijack_root_logger=False,
        task_soft_time_limit=240,
        task_time_limit=300,
    )
    celery_app.conf.beat_schedule = {
        "complete-due-bookings": {
            "task": COMPLETE_DUE_BOOKINGS_TASK,
            "schedule": timedelta(minutes=settings.COMPLETION_SWEEP_INTERVAL_MINUTES),
            "options": {"expires": settings.COMPLETION_SWEEP_INTERVAL_MINUTES * 60},
        },
    }
    return celery_app


@setup_logging.connect
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Use the service's logging setup instead of Celery's."""
    configure_logging()


celery_app = create_celery_app()


async def _complete_due_bookings() -> int:
    from libs.db.config import engine
    from services.bookings_service.events import get_dispatcher
    from services.bookings_service.notifications import (
        register_notification_forwarder,
    )
    from services.bookings_service.tasks import complete_due_bookings

    dispatcher = get_dispatcher()
    register_notification_forwarder(dispatcher)
    try:
        return await complete_due_bookings()
    finally:
        # asyncio.run cancels tasks still pending when it returns
        await dispatcher.drain()
        # Pooled connections belong to this event loop
        await engine.dispose()


@shared_task(name=COMPLETE_DUE_BOOKINGS_TASK, ignore_result=True)
def task_complete_due_bookings() -> int:
    logger.info("Running: complete_due_bookings")
    return asyncio.run(_complete_due_bookings())
