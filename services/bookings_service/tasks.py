"""Background tasks for the bookings service."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.bookings_service.errors import BookingPolicyError, VersionConflict
from services.bookings_service.events import EventDispatcher
from services.bookings_service.models import BookingAction
from services.bookings_service.services.lifecycle import (
    SYSTEM_ACTOR,
    transition_with_retry,
)
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


async def complete_due_bookings(
    now: Optional[datetime] = None,
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    settings: Optional[Settings] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> int:
    """Complete confirmed bookings whose session has ended.

    Safe to run concurrently with itself and with parties completing by
    hand: a booking that is already completed is a no-op. Returns how many
    bookings this run completed.
    """
    settings = settings or get_settings()
    now = ensure_utc(now) if now else utc_now()
    session_factory = session_factory or AsyncSessionLocal
    completed = 0

    async with session_factory() as db:
        store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
        due = await store.list_due_for_completion(
            now, settings.COMPLETION_SWEEP_BATCH_SIZE
        )
        booking_ids = [booking.id for booking in due]

        for booking_id in booking_ids:
            try:
                booking = await transition_with_retry(
                    db,
                    booking_id=booking_id,
                    actor_id=SYSTEM_ACTOR,
                    action=BookingAction.COMPLETE,
                    now=now,
                    settings=settings,
                    dispatcher=dispatcher,
                )
            except (BookingPolicyError, VersionConflict) as exc:
                logger.warning(
                    "Completion sweep skipped booking %s: %s", booking_id, exc.code
                )
                continue
            if booking.completed_at == now:
                completed += 1

    if booking_ids:
        logger.info(
            "Completion sweep: %d due, %d completed", len(booking_ids), completed
        )
    return completed
