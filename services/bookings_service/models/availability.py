"""Trainer availability: weekly recurring hours, one-off dates and blocks.

Times are wall-clock times in the trainer profile's timezone. ``day_of_week``
follows ``date.weekday()`` (Monday is 0). An ``end_time`` of 00:00 means the
slot runs to the end of the day.
"""

import uuid
from datetime import date, datetime, time
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, UTCDateTime
from sqlalchemy import Boolean, CheckConstraint, Date, Integer, String, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class TrainerAvailabilitySlot(Base):
    __tablename__ = "trainer_availability_slots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    specific_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="ck_availability_day_of_week",
        ),
        CheckConstraint(
            "(day_of_week IS NULL) <> (specific_date IS NULL)",
            name="ck_availability_recurring_or_dated",
        ),
    )

    @property
    def is_recurring(self) -> bool:
        return self.day_of_week is not None

    def applies_to(self, local_date: date) -> bool:
        if self.specific_date is not None:
            return self.specific_date == local_date
        return self.day_of_week == local_date.weekday()

    def __repr__(self) -> str:
        when = self.specific_date or f"weekday={self.day_of_week}"
        return (
            f"<TrainerAvailabilitySlot {self.trainer_id} {when} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"
            f"{' blocked' if self.is_blocked else ''}>"
        )
