"""Trainer availability: declare bookable hours and test windows against them.

A trainer who has never declared open hours takes requests at any aligned
time. Once open hours exist, a window must sit entirely inside them (slots
that touch are merged, so 20:00-00:00 Monday plus 00:00-02:00 Tuesday covers
a session across midnight). Blocked slots always win.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import to_local
from libs.common.logging import get_logger
from services.bookings_service.errors import InvalidAvailability, TrainerNotFound
from services.bookings_service.models import TrainerAvailabilitySlot
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

END_OF_DAY = time(0, 0)


@dataclass(frozen=True)
class AvailabilityRule:
    start_time: time
    end_time: time
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    is_blocked: bool = False


def validate_rule(rule: AvailabilityRule) -> None:
    if (rule.day_of_week is None) == (rule.specific_date is None):
        raise InvalidAvailability(
            "Each slot needs either a day of the week or a specific date."
        )
    if rule.day_of_week is not None and not 0 <= rule.day_of_week <= 6:
        raise InvalidAvailability("Day of the week must be between 0 and 6.")
    if rule.end_time != END_OF_DAY and rule.end_time <= rule.start_time:
        raise InvalidAvailability("Slot must end after it starts.")


def _interval_on(
    slot: TrainerAvailabilitySlot, local_date: date
) -> tuple[datetime, datetime]:
    start = datetime.combine(local_date, slot.start_time)
    if slot.end_time == END_OF_DAY:
        end = datetime.combine(local_date + timedelta(days=1), END_OF_DAY)
    else:
        end = datetime.combine(local_date, slot.end_time)
    return start, end


def _merge(intervals: Iterable[tuple[datetime, datetime]]) -> list[list[datetime]]:
    merged: list[list[datetime]] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return merged


def is_within_availability(
    slots: Sequence[TrainerAvailabilitySlot],
    start: datetime,
    end: datetime,
    timezone: str,
) -> bool:
    """Whether the UTC window ``[start, end)`` is bookable under ``slots``."""
    if not slots:
        return True

    # Wall-clock comparison in the trainer's zone
    local_start = to_local(start, timezone).replace(tzinfo=None)
    local_end = to_local(end, timezone).replace(tzinfo=None)

    # One day of margin so slots crossing midnight are seen from both sides
    dates = []
    day = local_start.date() - timedelta(days=1)
    while day <= local_end.date():
        dates.append(day)
        day += timedelta(days=1)

    open_intervals = []
    for slot in slots:
        for local_date in dates:
            if not slot.applies_to(local_date):
                continue
            slot_start, slot_end = _interval_on(slot, local_date)
            if slot.is_blocked:
                if slot_start < local_end and local_start < slot_end:
                    return False
            else:
                open_intervals.append((slot_start, slot_end))

    if not any(not slot.is_blocked for slot in slots):
        return True
    return any(
        slot_start <= local_start and local_end <= slot_end
        for slot_start, slot_end in _merge(open_intervals)
    )


async def set_trainer_availability(
    db: AsyncSession,
    *,
    trainer_id: str,
    rules: Sequence[AvailabilityRule],
    settings: Optional[Settings] = None,
) -> list[TrainerAvailabilitySlot]:
    """Replace the trainer's availability with ``rules``.

    Existing bookings are left alone; only new requests are checked.

    Raises:
        TrainerNotFound: the trainer has no profile yet.
        InvalidAvailability: a rule is malformed.
    """
    settings = settings or get_settings()
    for rule in rules:
        validate_rule(rule)

    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    if await store.get_trainer_profile(trainer_id) is None:
        raise TrainerNotFound()

    slots = await store.replace_availability(
        trainer_id,
        [
            TrainerAvailabilitySlot(
                trainer_id=trainer_id,
                day_of_week=rule.day_of_week,
                specific_date=rule.specific_date,
                start_time=rule.start_time,
                end_time=rule.end_time,
                is_blocked=rule.is_blocked,
            )
            for rule in rules
        ],
    )
    logger.info(
        "Trainer %s availability set: %d open, %d blocked",
        trainer_id,
        sum(1 for rule in rules if not rule.is_blocked),
        sum(1 for rule in rules if rule.is_blocked),
    )
    return slots


async def get_trainer_availability(
    db: AsyncSession, trainer_id: str, *, settings: Optional[Settings] = None
) -> list[TrainerAvailabilitySlot]:
    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    return await store.list_availability(trainer_id)
