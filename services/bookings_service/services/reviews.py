"""Review linkage: one post-completion review per party per booking."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.bookings_service.errors import (
    BookingNotCompleted,
    BookingNotFound,
    DuplicateReview,
    InvalidRating,
    NotAParty,
)
from services.bookings_service.events import (
    DomainEvent,
    EventDispatcher,
    get_dispatcher,
)
from services.bookings_service.models import (
    BookingReview,
    BookingStatus,
    DomainEventType,
)
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


async def submit_review(
    db: AsyncSession,
    *,
    booking_id: uuid.UUID,
    reviewer_id: str,
    rating: int,
    review_text: Optional[str] = None,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> BookingReview:
    """Attach a review to a completed booking.

    The reviewee is always the other party of the booking.
    """
    if (
        not isinstance(rating, int)
        or isinstance(rating, bool)
        or not MIN_RATING <= rating <= MAX_RATING
    ):
        raise InvalidRating()

    settings = settings or get_settings()
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)

    booking = await store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound()
    if booking.status != BookingStatus.COMPLETED:
        raise BookingNotCompleted()
    if not booking.is_party(reviewer_id):
        raise NotAParty()
    if await store.get_review(booking.id, reviewer_id) is not None:
        raise DuplicateReview()

    text = review_text.strip() if review_text else None
    review = await store.add_review(
        BookingReview(
            id=uuid.uuid4(),
            booking_id=booking.id,
            reviewer_id=reviewer_id,
            reviewee_id=booking.other_party(reviewer_id),
            rating=rating,
            review_text=text or None,
            created_at=now or utc_now(),
        )
    )
    logger.info(
        "Review %s on booking %s: %s rated %s %d/5",
        review.id,
        booking.id,
        reviewer_id,
        review.reviewee_id,
        rating,
    )

    await (dispatcher or get_dispatcher()).publish(
        DomainEvent(
            type=DomainEventType.REVIEW_SUBMITTED,
            booking_id=booking.id,
            occurred_at=review.created_at,
            payload={
                "review_id": str(review.id),
                "reviewer_id": reviewer_id,
                "reviewee_id": review.reviewee_id,
                "rating": rating,
            },
        )
    )
    return review
