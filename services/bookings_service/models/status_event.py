"""Booking status history: append-only audit trail of every transition."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, UTCDateTime
from services.bookings_service.models.enums import (
    BookingAction,
    BookingStatus,
    enum_values,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class BookingStatusEvent(Base):
    __tablename__ = "booking_status_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), index=True, nullable=False
    )
    from_status: Mapped[Optional[BookingStatus]] = mapped_column(
        SAEnum(
            BookingStatus,
            name="booking_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )
    to_status: Mapped[BookingStatus] = mapped_column(
        SAEnum(
            BookingStatus,
            name="booking_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    action: Mapped[Optional[BookingAction]] = mapped_column(
        SAEnum(
            BookingAction,
            name="booking_action_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        from_value = self.from_status.value if self.from_status else None
        return f"<BookingStatusEvent {self.booking_id} {from_value}->{self.to_status.value}>"
