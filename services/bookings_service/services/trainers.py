"""Trainer catalog operations: the rate and sports the resolver prices against."""

from typing import Optional, Sequence

from libs.common.config import Settings, get_settings
from libs.common.currency import Money
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.bookings_service.errors import CurrencyLocked
from services.bookings_service.models import Sport, TrainerProfile
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def upsert_trainer_profile(
    db: AsyncSession,
    *,
    trainer_id: str,
    hourly_rate: Money,
    sports: Sequence[Sport],
    timezone: str,
    is_active: bool = True,
    settings: Optional[Settings] = None,
) -> TrainerProfile:
    """Create or replace the trainer's profile.

    Rate changes only affect bookings created afterwards; existing prices
    are frozen on the booking.

    Raises:
        CurrencyLocked: the currency differs from the stored one and the
            trainer has bookings that are not cancelled.
    """
    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)

    profile = await store.get_trainer_profile(trainer_id)
    created = profile is None
    if profile is None:
        profile = TrainerProfile(trainer_id=trainer_id)
    elif (
        profile.currency != hourly_rate.currency
        and await store.trainer_has_live_bookings(trainer_id)
    ):
        # Earnings are summed in one currency
        raise CurrencyLocked()

    profile.hourly_rate_cents = hourly_rate.minor_units
    profile.currency = hourly_rate.currency
    # Keep declaration order, drop repeats
    profile.sports = list(dict.fromkeys(Sport(sport).value for sport in sports))
    profile.timezone = timezone
    profile.is_active = is_active
    profile.updated_at = utc_now()

    profile = await store.save_trainer_profile(profile)
    logger.info(
        "%s trainer profile %s (rate=%s, sports=%s)",
        "Created" if created else "Updated",
        trainer_id,
        hourly_rate,
        ",".join(profile.sports),
    )
    return profile


async def get_trainer_profile(
    db: AsyncSession, trainer_id: str, *, settings: Optional[Settings] = None
) -> Optional[TrainerProfile]:
    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    return await store.get_trainer_profile(trainer_id)
