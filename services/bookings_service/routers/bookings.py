"""Booking endpoints: match requests, lifecycle transitions, reviews."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_role
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.bookings_service.errors import BookingNotFound, NotAParty
from services.bookings_service.models import Booking, BookingStatus
from services.bookings_service.schemas import (
    BookingListResponse,
    BookingResponse,
    ErrorResponse,
    MatchRequest,
    ReviewCreateRequest,
    ReviewResponse,
    StatusEventResponse,
    TransitionRequest,
)
from services.bookings_service.services.lifecycle import SYSTEM_ACTOR, transition
from services.bookings_service.services.resolver import RequestedWindow, resolve
from services.bookings_service.services.reviews import submit_review
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


async def _get_visible_booking(
    db: AsyncSession, booking_id: uuid.UUID, current_user: AuthUser
) -> Booking:
    booking = await BookingStore(db).get_booking(booking_id)
    if booking is None:
        raise BookingNotFound()
    if not current_user.is_admin and not booking.is_party(current_user.user_id):
        raise NotAParty()
    return booking


@router.post(
    "/match",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_match(
    payload: MatchRequest,
    current_user: AuthUser = Depends(require_role("athlete")),
    db: AsyncSession = Depends(get_async_db),
):
    """Request a session with a trainer. Creates a pending booking."""
    booking = await resolve(
        db,
        athlete_id=current_user.user_id,
        trainer_id=payload.trainer_id,
        sport=payload.sport,
        window=RequestedWindow(
            start=payload.scheduled_at, duration_minutes=payload.duration_minutes
        ),
    )
    return BookingResponse.from_booking(booking)


@router.get("", response_model=BookingListResponse)
async def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List bookings where the caller is athlete or trainer."""
    bookings, total = await BookingStore(db).list_bookings(
        party_id=current_user.user_id,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    booking = await _get_visible_booking(db, booking_id, current_user)
    return BookingResponse.from_booking(booking)


@router.get("/{booking_id}/history", response_model=list[StatusEventResponse])
async def get_booking_history(
    booking_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Status changes of a booking, oldest first."""
    booking = await _get_visible_booking(db, booking_id, current_user)
    events = await BookingStore(db).list_status_history(booking.id)
    return [StatusEventResponse.model_validate(event) for event in events]


@router.post("/{booking_id}/transitions", response_model=BookingResponse)
async def transition_booking(
    booking_id: uuid.UUID,
    payload: TransitionRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Confirm, cancel, complete or dispute a booking.

    ``expected_version`` must be the version the caller last read; a stale
    version is rejected with ``VersionConflict``.
    """
    # Internal callers (schedulers, ops tooling) act as the automated actor
    actor_id = (
        SYSTEM_ACTOR if current_user.role == "service_role" else current_user.user_id
    )
    booking = await transition(
        db,
        booking_id=booking_id,
        actor_id=actor_id,
        action=payload.action,
        expected_version=payload.expected_version,
        reason=payload.reason,
    )
    return BookingResponse.from_booking(booking)


@router.post(
    "/{booking_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    booking_id: uuid.UUID,
    payload: ReviewCreateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Review the other party of a completed booking."""
    review = await submit_review(
        db,
        booking_id=booking_id,
        reviewer_id=current_user.user_id,
        rating=payload.rating,
        review_text=payload.review_text,
    )
    return ReviewResponse.model_validate(review)
