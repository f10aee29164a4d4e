"""Unit tests for trainer earnings and rating summaries."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from libs.common.config import Settings
from libs.common.currency import Money
from services.bookings_service.models import BookingStatus
from services.bookings_service.services.earnings import (
    get_trainer_earnings,
    get_trainer_ratings,
    summarize_earnings,
    summarize_ratings,
)
from tests.factories import BookingFactory, ReviewFactory, TrainerProfileFactory

TRAINER = "trainer-earnings"


def _settings(**overrides) -> Settings:
    return Settings(DATABASE_URL="sqlite+aiosqlite://", **overrides)


def _completed(price_cents: int, scheduled_at: datetime, **overrides):
    return BookingFactory.create(
        trainer_id=TRAINER,
        status=BookingStatus.COMPLETED,
        price_cents=price_cents,
        platform_fee_cents=price_cents // 10,
        net_amount_cents=price_cents - price_cents // 10,
        scheduled_at=scheduled_at,
        **overrides,
    )


# ---------------------------------------------------------------------------
# summarize_earnings
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_totals_over_completed_bookings():
    bookings = [
        _completed(5000, datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc)),
        _completed(7000, datetime(2025, 3, 18, 15, 0, tzinfo=timezone.utc)),
        BookingFactory.create(
            trainer_id=TRAINER,
            status=BookingStatus.CANCELLED,
            scheduled_at=datetime(2025, 3, 20, 15, 0, tzinfo=timezone.utc),
        ),
    ]

    summary = summarize_earnings(bookings, "America/New_York", "USD")

    assert summary.total_earnings == Money("120.00", "USD")
    assert summary.total_fees == Money("12.00", "USD")
    assert summary.net_earnings == Money("108.00", "USD")
    assert summary.sessions == 2
    assert [(m.year, m.month, m.sessions) for m in summary.monthly] == [(2025, 3, 2)]


@pytest.mark.unit
def test_months_follow_trainer_local_calendar():
    # 02:30 UTC on April 1st is still March 31st in New York
    late_session = _completed(5000, datetime(2025, 4, 1, 2, 30, tzinfo=timezone.utc))
    april_session = _completed(
        6000, datetime(2025, 4, 2, 15, 0, tzinfo=timezone.utc)
    )

    summary = summarize_earnings(
        [april_session, late_session], "America/New_York", "USD"
    )

    assert [(m.year, m.month) for m in summary.monthly] == [(2025, 3), (2025, 4)]
    assert summary.monthly[0].earnings == Money("50.00", "USD")
    assert summary.monthly[1].net == Money("54.00", "USD")

    in_utc = summarize_earnings([april_session, late_session], "UTC", "USD")
    assert [(m.year, m.month, m.sessions) for m in in_utc.monthly] == [(2025, 4, 2)]


@pytest.mark.unit
def test_disputed_bookings_are_not_earnings():
    disputed = BookingFactory.create(
        trainer_id=TRAINER,
        status=BookingStatus.DISPUTED,
        scheduled_at=datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc),
    )

    summary = summarize_earnings([disputed], "UTC", "USD")

    assert summary.sessions == 0
    assert summary.total_earnings == Money.zero("USD")
    assert summary.monthly == []


# ---------------------------------------------------------------------------
# summarize_ratings
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_rating_average_and_distribution():
    reviews = [ReviewFactory.create(reviewee_id=TRAINER, rating=r) for r in (5, 5, 4, 3)]

    summary = summarize_ratings(reviews, TRAINER)

    assert summary.average == Decimal("4.3")
    assert summary.total_reviews == 4
    assert [(b.stars, b.count, b.percentage) for b in summary.distribution] == [
        (5, 2, 50),
        (4, 1, 25),
        (3, 1, 25),
        (2, 0, 0),
        (1, 0, 0),
    ]


@pytest.mark.unit
def test_rating_summary_without_reviews():
    summary = summarize_ratings([], TRAINER)

    assert summary.average is None
    assert summary.total_reviews == 0
    assert all(b.percentage == 0 for b in summary.distribution)


@pytest.mark.unit
def test_ratings_about_others_are_ignored():
    reviews = [
        ReviewFactory.create(reviewee_id=TRAINER, rating=4),
        ReviewFactory.create(reviewee_id="athlete-1", rating=1),
    ]

    summary = summarize_ratings(reviews, TRAINER)

    assert summary.total_reviews == 1
    assert summary.average == Decimal("4.0")


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_earnings_loader_uses_profile_timezone_and_currency(db_session):
    db_session.add(
        TrainerProfileFactory.create(trainer_id=TRAINER, timezone="America/Los_Angeles")
    )
    db_session.add_all(
        [
            _completed(5000, datetime(2025, 4, 1, 5, 0, tzinfo=timezone.utc)),
            _completed(7000, datetime(2025, 4, 10, 15, 0, tzinfo=timezone.utc)),
        ]
    )
    await db_session.commit()

    summary = await get_trainer_earnings(db_session, TRAINER, settings=_settings())

    assert summary.currency == "USD"
    assert summary.sessions == 2
    # 05:00 UTC on April 1st is March 31st in Los Angeles
    assert [(m.month, m.sessions) for m in summary.monthly] == [(3, 1), (4, 1)]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_earnings_loader_without_profile_or_bookings(db_session):
    summary = await get_trainer_earnings(
        db_session, "trainer-new", settings=_settings(CURRENCY="CAD")
    )

    assert summary.currency == "CAD"
    assert summary.sessions == 0
    assert summary.net_earnings == Money.zero("CAD")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_ratings_loader(db_session):
    booking = _completed(5000, datetime(2025, 4, 1, 15, 0, tzinfo=timezone.utc))
    db_session.add(booking)
    await db_session.flush()
    db_session.add(
        ReviewFactory.create(
            booking_id=booking.id,
            reviewer_id=booking.athlete_id,
            reviewee_id=TRAINER,
            rating=4,
        )
    )
    await db_session.commit()

    summary = await get_trainer_ratings(db_session, TRAINER, settings=_settings())

    assert summary.average == Decimal("4.0")
    assert summary.total_reviews == 1


@pytest.mark.unit
def test_bookings_in_another_currency_are_left_out():
    bookings = [
        _completed(5000, datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc)),
        _completed(
            9000, datetime(2025, 3, 5, 15, 0, tzinfo=timezone.utc), currency="CAD"
        ),
    ]

    summary = summarize_earnings(bookings, "America/New_York", "USD")

    assert summary.sessions == 1
    assert summary.total_earnings == Money("50.00", "USD")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_earnings_loader_follows_booking_currency_over_profile(db_session):
    db_session.add(TrainerProfileFactory.create(trainer_id=TRAINER, currency="CAD"))
    db_session.add(_completed(5000, datetime(2025, 4, 1, 15, 0, tzinfo=timezone.utc)))
    await db_session.commit()

    summary = await get_trainer_earnings(db_session, TRAINER, settings=_settings())

    assert summary.currency == "USD"
    assert summary.total_earnings == Money("50.00", "USD")
    assert summary.net_earnings == Money("45.00", "USD")
