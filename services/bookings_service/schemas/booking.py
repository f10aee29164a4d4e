"""Booking request/response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.bookings_service.models import (
    Booking,
    BookingAction,
    BookingStatus,
    Sport,
)


class MatchRequest(BaseModel):
    """Athlete asks a trainer for a session."""

    trainer_id: str = Field(..., min_length=1, max_length=64)
    sport: Sport
    scheduled_at: datetime
    duration_minutes: int = Field(..., gt=0)


class BookingResponse(BaseModel):
    id: uuid.UUID
    athlete_id: str
    trainer_id: str
    sport: Sport
    status: BookingStatus
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int

    currency: str
    price: Decimal
    platform_fee: Optional[Decimal] = None
    net_amount: Optional[Decimal] = None
    payout_hold_until: Optional[datetime] = None

    late_cancellation: bool = False
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancel_reason: Optional[str] = None
    disputed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    version: int

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        fee = booking.platform_fee
        net = booking.net_amount
        return cls(
            id=booking.id,
            athlete_id=booking.athlete_id,
            trainer_id=booking.trainer_id,
            sport=booking.sport,
            status=booking.status,
            scheduled_at=booking.scheduled_at,
            ends_at=booking.ends_at,
            duration_minutes=booking.duration_minutes,
            currency=booking.currency,
            price=booking.price.amount,
            platform_fee=fee.amount if fee else None,
            net_amount=net.amount if net else None,
            payout_hold_until=booking.payout_hold_until,
            late_cancellation=booking.late_cancellation,
            cancelled_at=booking.cancelled_at,
            cancelled_by=booking.cancelled_by,
            cancel_reason=booking.cancel_reason,
            disputed_at=booking.disputed_at,
            dispute_reason=booking.dispute_reason,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            completed_at=booking.completed_at,
            version=booking.version,
        )


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    page: int
    page_size: int


class TransitionRequest(BaseModel):
    action: BookingAction
    expected_version: int = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=500)


class StatusEventResponse(BaseModel):
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    action: Optional[BookingAction] = None
    actor_id: str
    reason: Optional[str] = None
    version: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
