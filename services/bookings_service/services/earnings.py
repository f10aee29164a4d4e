"""Earnings and rating projections for trainer dashboards.

Pure functions over committed records; nothing here is stored. The async
loaders only fetch the inputs and delegate.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import Money
from libs.common.datetime_utils import to_local
from libs.common.logging import get_logger
from services.bookings_service.models import Booking, BookingReview, BookingStatus
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class MonthlyEarnings:
    year: int
    month: int
    earnings: Money
    fees: Money
    net: Money
    sessions: int


@dataclass(frozen=True)
class EarningsSummary:
    currency: str
    total_earnings: Money
    total_fees: Money
    net_earnings: Money
    sessions: int
    monthly: list[MonthlyEarnings] = field(default_factory=list)


@dataclass(frozen=True)
class RatingBucket:
    stars: int
    count: int
    percentage: int


@dataclass(frozen=True)
class RatingSummary:
    user_id: str
    average: Optional[Decimal]
    total_reviews: int
    distribution: list[RatingBucket]


def summarize_earnings(
    bookings: Iterable[Booking], timezone: str, currency: str
) -> EarningsSummary:
    """Totals and a (year, month) breakdown over completed bookings.

    Months follow ``scheduled_at`` in the trainer's local calendar, so a
    23:30 session on the 31st stays in that month for a trainer west of UTC.
    Bookings priced in another currency are left out of the totals.
    """
    zero = Money.zero(currency)
    groups: dict[tuple[int, int], list[Booking]] = {}
    foreign = 0
    for booking in bookings:
        if booking.status != BookingStatus.COMPLETED:
            continue
        if booking.currency != currency:
            foreign += 1
            continue
        local = to_local(booking.scheduled_at, timezone)
        groups.setdefault((local.year, local.month), []).append(booking)

    if foreign:
        logger.warning(
            "Earnings in %s skip %d completed bookings in other currencies",
            currency,
            foreign,
        )

    monthly = []
    for (year, month) in sorted(groups):
        earnings, fees, net = zero, zero, zero
        for booking in groups[(year, month)]:
            earnings = earnings + booking.price
            fees = fees + (booking.platform_fee or zero)
            net = net + (booking.net_amount or zero)
        monthly.append(
            MonthlyEarnings(
                year=year,
                month=month,
                earnings=earnings,
                fees=fees,
                net=net,
                sessions=len(groups[(year, month)]),
            )
        )

    total_earnings, total_fees, net_earnings = zero, zero, zero
    for group in monthly:
        total_earnings = total_earnings + group.earnings
        total_fees = total_fees + group.fees
        net_earnings = net_earnings + group.net

    return EarningsSummary(
        currency=currency,
        total_earnings=total_earnings,
        total_fees=total_fees,
        net_earnings=net_earnings,
        sessions=sum(group.sessions for group in monthly),
        monthly=monthly,
    )


def _round_half_up(value: Decimal, places: str) -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def summarize_ratings(reviews: Iterable[BookingReview], user_id: str) -> RatingSummary:
    """Average (one decimal) and 5→1 star distribution of reviews about ``user_id``."""
    ratings = [review.rating for review in reviews if review.reviewee_id == user_id]
    total = len(ratings)
    counts = Counter(ratings)

    average = None
    if total:
        average = _round_half_up(Decimal(sum(ratings)) / total, "0.1")

    distribution = []
    for stars in range(5, 0, -1):
        count = counts.get(stars, 0)
        percentage = (
            int(_round_half_up(Decimal(count * 100) / total, "1")) if total else 0
        )
        distribution.append(
            RatingBucket(stars=stars, count=count, percentage=percentage)
        )

    return RatingSummary(
        user_id=user_id,
        average=average,
        total_reviews=total,
        distribution=distribution,
    )


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


async def get_trainer_earnings(
    db: AsyncSession, trainer_id: str, *, settings: Optional[Settings] = None
) -> EarningsSummary:
    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    profile = await store.get_trainer_profile(trainer_id)
    bookings = await store.list_completed_for_trainer(trainer_id)

    timezone = profile.timezone if profile else settings.TIMEZONE
    # Bookings carry their own currency; the profile only prices new ones
    if bookings:
        currency = bookings[-1].currency
    elif profile:
        currency = profile.currency
    else:
        currency = settings.CURRENCY
    return summarize_earnings(bookings, timezone, currency)


async def get_trainer_ratings(
    db: AsyncSession, trainer_id: str, *, settings: Optional[Settings] = None
) -> RatingSummary:
    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    reviews = await store.list_reviews_for_reviewee(trainer_id)
    return summarize_ratings(reviews, trainer_id)
