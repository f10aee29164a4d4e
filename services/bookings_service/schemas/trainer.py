"""Trainer profile schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.bookings_service.models import (
    Sport,
    TrainerAvailabilitySlot,
    TrainerProfile,
)


class TrainerProfileRequest(BaseModel):
    hourly_rate: Decimal = Field(..., gt=0, decimal_places=2)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$")
    sports: list[Sport] = Field(..., min_length=1)
    timezone: str = "America/New_York"
    is_active: bool = True

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class TrainerProfileResponse(BaseModel):
    trainer_id: str
    hourly_rate: Decimal
    currency: str
    sports: list[Sport]
    timezone: str
    is_active: bool
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: TrainerProfile) -> "TrainerProfileResponse":
        return cls(
            trainer_id=profile.trainer_id,
            hourly_rate=profile.hourly_rate.amount,
            currency=profile.currency,
            sports=[Sport(sport) for sport in profile.sports],
            timezone=profile.timezone,
            is_active=profile.is_active,
            updated_at=profile.updated_at,
        )


class AvailabilitySlotRequest(BaseModel):
    """One open or blocked slot; ``end_time`` 00:00 means end of day."""

    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    specific_date: Optional[date] = None
    start_time: time
    end_time: time
    is_blocked: bool = False


class AvailabilityRequest(BaseModel):
    slots: list[AvailabilitySlotRequest] = Field(default_factory=list)


class AvailabilitySlotResponse(BaseModel):
    day_of_week: Optional[int]
    specific_date: Optional[date]
    start_time: time
    end_time: time
    is_blocked: bool

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    trainer_id: str
    timezone: str
    slots: list[AvailabilitySlotResponse]

    @classmethod
    def from_slots(
        cls,
        profile: TrainerProfile,
        slots: list[TrainerAvailabilitySlot],
    ) -> "AvailabilityResponse":
        return cls(
            trainer_id=profile.trainer_id,
            timezone=profile.timezone,
            slots=[AvailabilitySlotResponse.model_validate(slot) for slot in slots],
        )
