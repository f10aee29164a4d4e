"""Match request resolver: athlete request + trainer calendar -> pending booking.

Checks run in order and the first failure wins:

1. window/party validation (no store access)
2. trainer exists, is active, offers the sport
3. the window fits the trainer's declared availability
4. no non-cancelled booking of the trainer overlaps the window
   (``DuplicateRequest`` when every overlap is the athlete's own booking,
   ``SlotConflict`` otherwise)

Step 4 is re-enforced atomically by the slot-claim unique key, so two
concurrent requests for overlapping windows can never both succeed.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence, Union

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.bookings_service.errors import (
    DuplicateRequest,
    InvalidParties,
    InvalidWindow,
    OutsideAvailability,
    SlotConflict,
    TrainerNotFound,
    UnsupportedSport,
)
from services.bookings_service.models import Booking, BookingStatus, Sport
from services.bookings_service.services.availability import is_within_availability
from services.bookings_service.services.store import BookingStore, SlotClaimTaken
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestedWindow:
    start: datetime
    duration_minutes: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap: windows that merely touch do not overlap."""
        return self.start < end and start < self.end


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_request(
    *,
    athlete_id: str,
    trainer_id: str,
    window: RequestedWindow,
    now: datetime,
    settings: Settings,
) -> RequestedWindow:
    """Reject malformed requests before the store is touched.

    Returns the window normalised to UTC.
    """
    duration = window.duration_minutes
    if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
        raise InvalidWindow("Session duration must be a positive number of minutes.")

    start = ensure_utc(window.start)
    if start <= ensure_utc(now):
        raise InvalidWindow("Session must start in the future.")

    granularity = settings.SLOT_GRANULARITY_MINUTES
    if start.second or start.microsecond or start.minute % granularity:
        raise InvalidWindow(
            f"Sessions must start on a {granularity}-minute boundary."
        )
    if duration % granularity:
        raise InvalidWindow(
            f"Session duration must be a multiple of {granularity} minutes."
        )
    if duration > settings.MAX_SESSION_MINUTES:
        raise InvalidWindow(
            f"Sessions cannot be longer than {settings.MAX_SESSION_MINUTES} minutes."
        )

    if athlete_id == trainer_id:
        raise InvalidParties()

    return RequestedWindow(start=start, duration_minutes=duration)


def slot_starts(window: RequestedWindow, granularity_minutes: int) -> list[datetime]:
    """Every slot bucket the window covers."""
    step = timedelta(minutes=granularity_minutes)
    count = window.duration_minutes // granularity_minutes
    return [window.start + step * index for index in range(count)]


def overlap_error(
    overlapping: Sequence[Booking], athlete_id: str
) -> Union[DuplicateRequest, SlotConflict]:
    """Classify an overlap: the athlete's own booking vs someone else's."""
    if overlapping and all(b.athlete_id == athlete_id for b in overlapping):
        return DuplicateRequest()
    return SlotConflict()


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


async def resolve(
    db: AsyncSession,
    *,
    athlete_id: str,
    trainer_id: str,
    sport: Union[Sport, str],
    window: RequestedWindow,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> Booking:
    """Turn a match request into a ``pending`` booking or raise a typed rejection."""
    settings = settings or get_settings()
    now = now or utc_now()
    window = validate_request(
        athlete_id=athlete_id,
        trainer_id=trainer_id,
        window=window,
        now=now,
        settings=settings,
    )

    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)

    profile = await store.get_trainer_profile(trainer_id)
    if profile is None or not profile.is_active:
        raise TrainerNotFound()

    try:
        sport = Sport(sport)
    except ValueError:
        raise UnsupportedSport() from None
    if not profile.offers(sport):
        raise UnsupportedSport()

    availability = await store.list_availability(trainer_id)
    if not is_within_availability(
        availability, window.start, window.end, profile.timezone
    ):
        raise OutsideAvailability()

    overlapping = await store.find_overlapping(trainer_id, window.start, window.end)
    if overlapping:
        raise overlap_error(overlapping, athlete_id)

    price = profile.hourly_rate.multiply(Decimal(window.duration_minutes) / 60)
    if not price.is_positive():
        raise InvalidWindow("Session is too short to be priced.")

    booking = Booking(
        id=uuid.uuid4(),
        athlete_id=athlete_id,
        trainer_id=trainer_id,
        sport=sport,
        scheduled_at=window.start,
        duration_minutes=window.duration_minutes,
        ends_at=window.end,
        status=BookingStatus.PENDING,
        currency=price.currency,
        price_cents=price.minor_units,
        late_cancellation=False,
        created_at=now,
        updated_at=now,
        version=0,
    )

    try:
        booking = await store.create_booking(
            booking,
            slot_starts(window, settings.SLOT_GRANULARITY_MINUTES),
            actor_id=athlete_id,
        )
    except SlotClaimTaken:
        logger.info(
            "Lost slot race for trainer %s at %s", trainer_id, window.start.isoformat()
        )
        overlapping = await store.find_overlapping(
            trainer_id, window.start, window.end
        )
        raise overlap_error(overlapping, athlete_id)

    logger.info(
        "Booking %s created: athlete=%s trainer=%s sport=%s start=%s price=%s",
        booking.id,
        athlete_id,
        trainer_id,
        sport.value,
        window.start.isoformat(),
        price,
    )
    return booking
