"""Active-slot claims: the uniqueness key that prevents double booking."""

import uuid
from datetime import datetime

from libs.db.base import Base, UTCDateTime
from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class BookingSlotClaim(Base):
    """One row per slot bucket a non-cancelled booking occupies.

    Rows are inserted together with the booking and deleted when the booking
    is cancelled, so the unique key only ever covers live bookings.
    """

    __tablename__ = "booking_slot_claims"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), index=True, nullable=False
    )
    trainer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    slot_start: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "trainer_id", "slot_start", name="uq_booking_slot_claims_trainer_slot"
        ),
    )

    def __repr__(self) -> str:
        return f"<BookingSlotClaim trainer={self.trainer_id} slot={self.slot_start}>"
