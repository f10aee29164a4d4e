"""Booking model: one scheduled, paid session between an athlete and a trainer."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.currency import Money
from libs.common.datetime_utils import utc_now
from libs.db.base import Base, UTCDateTime
from services.bookings_service.models.enums import BookingStatus, Sport, enum_values
from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column


class Booking(Base):
    """Durable booking record.

    Created by the resolver, mutated only through version-checked writes,
    never deleted. ``price`` is fixed at creation; the fee/net split is
    written once, at completion.
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    athlete_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    trainer_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    sport: Mapped[Sport] = mapped_column(
        SAEnum(
            Sport,
            name="sport_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    scheduled_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(
            BookingStatus,
            name="booking_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=BookingStatus.PENDING,
        nullable=False,
    )

    # Money, stored in minor units
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_fee_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    net_amount_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    payout_hold_until: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # Cancellation / dispute details
    late_cancellation: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    cancelled_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    disputed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    dispute_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        CheckConstraint("athlete_id <> trainer_id", name="ck_booking_distinct_parties"),
        CheckConstraint("duration_minutes > 0", name="ck_booking_duration_positive"),
        CheckConstraint("price_cents > 0", name="ck_booking_price_positive"),
        CheckConstraint(
            "platform_fee_cents IS NULL OR "
            "(platform_fee_cents >= 0 AND platform_fee_cents <= price_cents)",
            name="ck_booking_fee_within_price",
        ),
        CheckConstraint(
            "net_amount_cents IS NULL OR "
            "net_amount_cents = price_cents - platform_fee_cents",
            name="ck_booking_net_matches_split",
        ),
        CheckConstraint(
            "(net_amount_cents IS NULL AND status NOT IN ('completed', 'disputed')) OR "
            "(net_amount_cents IS NOT NULL AND status IN ('completed', 'disputed'))",
            name="ck_booking_settled_iff_completed",
        ),
        Index("ix_bookings_trainer_window", "trainer_id", "scheduled_at", "ends_at"),
        Index("ix_bookings_status_ends_at", "status", "ends_at"),
    )

    @property
    def price(self) -> Money:
        return Money.from_minor_units(self.price_cents, self.currency)

    @property
    def platform_fee(self) -> Optional[Money]:
        if self.platform_fee_cents is None:
            return None
        return Money.from_minor_units(self.platform_fee_cents, self.currency)

    @property
    def net_amount(self) -> Optional[Money]:
        if self.net_amount_cents is None:
            return None
        return Money.from_minor_units(self.net_amount_cents, self.currency)

    @property
    def is_settled(self) -> bool:
        return self.platform_fee_cents is not None

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.athlete_id, self.trainer_id)

    def other_party(self, user_id: str) -> str:
        """Return the counterpart of ``user_id`` in this booking."""
        if user_id == self.athlete_id:
            return self.trainer_id
        if user_id == self.trainer_id:
            return self.athlete_id
        raise ValueError(f"{user_id} is not a party to booking {self.id}")

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id} trainer={self.trainer_id} "
            f"status={self.status.value} v{self.version}>"
        )
