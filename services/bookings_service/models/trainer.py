"""Trainer profile: rate, sports offered and calendar timezone."""

import uuid
from datetime import datetime

from libs.common.currency import Money
from libs.common.datetime_utils import utc_now
from libs.db.base import Base, UTCDateTime
from services.bookings_service.models.enums import Sport
from sqlalchemy import JSON, Boolean, CheckConstraint, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class TrainerProfile(Base):
    __tablename__ = "trainer_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    hourly_rate_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    sports: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    timezone: Mapped[str] = mapped_column(
        String(64), default="America/New_York", nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("hourly_rate_cents > 0", name="ck_trainer_rate_positive"),
    )

    @property
    def hourly_rate(self) -> Money:
        return Money.from_minor_units(self.hourly_rate_cents, self.currency)

    def offers(self, sport: Sport) -> bool:
        return Sport(sport).value in (self.sports or [])

    def __repr__(self) -> str:
        return f"<TrainerProfile {self.trainer_id} rate={self.hourly_rate}>"
