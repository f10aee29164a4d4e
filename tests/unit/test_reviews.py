"""Unit tests for post-completion reviews."""

import pytest
from services.bookings_service.errors import (
    BookingNotCompleted,
    BookingNotFound,
    DuplicateReview,
    InvalidRating,
    NotAParty,
)
from services.bookings_service.models import BookingStatus, DomainEventType
from services.bookings_service.services.reviews import submit_review
from tests.factories import BookingFactory


async def _completed_booking(db_session, **overrides):
    overrides.setdefault("status", BookingStatus.COMPLETED)
    booking = BookingFactory.create(**overrides)
    db_session.add(booking)
    await db_session.commit()
    return booking


@pytest.mark.asyncio
@pytest.mark.unit
async def test_athlete_reviews_trainer(db_session, dispatcher, recorded_events):
    booking = await _completed_booking(db_session)

    review = await submit_review(
        db_session,
        booking_id=booking.id,
        reviewer_id=booking.athlete_id,
        rating=5,
        review_text="  Great backhand drills  ",
        dispatcher=dispatcher,
    )

    assert review.reviewee_id == booking.trainer_id
    assert review.rating == 5
    assert review.review_text == "Great backhand drills"
    assert recorded_events[0].type == DomainEventType.REVIEW_SUBMITTED
    assert recorded_events[0].payload["reviewee_id"] == booking.trainer_id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_both_parties_may_review_once(db_session):
    booking = await _completed_booking(db_session)
    booking_id, athlete_id, trainer_id = (
        booking.id,
        booking.athlete_id,
        booking.trainer_id,
    )

    by_trainer = await submit_review(
        db_session, booking_id=booking_id, reviewer_id=trainer_id, rating=4
    )
    await submit_review(
        db_session, booking_id=booking_id, reviewer_id=athlete_id, rating=3
    )

    assert by_trainer.reviewee_id == athlete_id
    with pytest.raises(DuplicateReview):
        await submit_review(
            db_session, booking_id=booking_id, reviewer_id=athlete_id, rating=5
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_blank_text_is_stored_as_none(db_session):
    booking = await _completed_booking(db_session)

    review = await submit_review(
        db_session,
        booking_id=booking.id,
        reviewer_id=booking.athlete_id,
        rating=4,
        review_text="   ",
    )

    assert review.review_text is None


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("rating", [0, 6, -1, True, 4.5, "5"])
async def test_rating_out_of_range(db_session, rating):
    booking = await _completed_booking(db_session)

    with pytest.raises(InvalidRating):
        await submit_review(
            db_session,
            booking_id=booking.id,
            reviewer_id=booking.athlete_id,
            rating=rating,
        )


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "status",
    [
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.DISPUTED,
    ],
)
async def test_only_completed_bookings_can_be_reviewed(db_session, status):
    booking = await _completed_booking(db_session, status=status)

    with pytest.raises(BookingNotCompleted):
        await submit_review(
            db_session,
            booking_id=booking.id,
            reviewer_id=booking.athlete_id,
            rating=5,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_outsider_cannot_review(db_session):
    booking = await _completed_booking(db_session)

    with pytest.raises(NotAParty):
        await submit_review(
            db_session, booking_id=booking.id, reviewer_id="someone-else", rating=5
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_review_of_missing_booking(db_session):
    with pytest.raises(BookingNotFound):
        await submit_review(
            db_session,
            booking_id=BookingFactory.create().id,
            reviewer_id="athlete-1",
            rating=5,
        )
