"""Review model: one post-completion rating per party per booking."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, UTCDateTime
from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class BookingReview(Base):
    """Immutable once created."""

    __tablename__ = "booking_reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), index=True, nullable=False
    )
    reviewer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reviewee_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "booking_id", "reviewer_id", name="uq_booking_reviews_booking_reviewer"
        ),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_booking_review_rating_range"),
        CheckConstraint(
            "reviewer_id <> reviewee_id", name="ck_booking_review_distinct_parties"
        ),
    )

    def __repr__(self) -> str:
        return f"<BookingReview {self.id} booking={self.booking_id} rating={self.rating}>"
