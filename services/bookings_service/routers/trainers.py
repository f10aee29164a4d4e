"""Trainer endpoints: profile, availability, earnings, ratings and reviews."""

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user, require_role
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import Money
from libs.db.session import get_async_db
from services.bookings_service.errors import TrainerNotFound
from services.bookings_service.schemas import (
    AvailabilityRequest,
    AvailabilityResponse,
    EarningsSummaryResponse,
    ErrorResponse,
    RatingSummaryResponse,
    ReviewListResponse,
    ReviewResponse,
    TrainerProfileRequest,
    TrainerProfileResponse,
)
from services.bookings_service.services.availability import (
    AvailabilityRule,
    get_trainer_availability,
    set_trainer_availability,
)
from services.bookings_service.services.earnings import (
    get_trainer_earnings,
    get_trainer_ratings,
)
from services.bookings_service.services.store import BookingStore
from services.bookings_service.services.trainers import (
    get_trainer_profile,
    upsert_trainer_profile,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/trainers",
    tags=["trainers"],
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)


@router.put("/me/profile", response_model=TrainerProfileResponse)
async def update_my_profile(
    payload: TrainerProfileRequest,
    current_user: AuthUser = Depends(require_role("trainer")),
    db: AsyncSession = Depends(get_async_db),
):
    """Create or update the caller's trainer profile."""
    currency = payload.currency or get_settings().CURRENCY
    profile = await upsert_trainer_profile(
        db,
        trainer_id=current_user.user_id,
        hourly_rate=Money(payload.hourly_rate, currency),
        sports=payload.sports,
        timezone=payload.timezone,
        is_active=payload.is_active,
    )
    return TrainerProfileResponse.from_profile(profile)


@router.put("/me/availability", response_model=AvailabilityResponse)
async def update_my_availability(
    payload: AvailabilityRequest,
    current_user: AuthUser = Depends(require_role("trainer")),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the caller's availability; an empty list reopens every hour."""
    slots = await set_trainer_availability(
        db,
        trainer_id=current_user.user_id,
        rules=[AvailabilityRule(**slot.model_dump()) for slot in payload.slots],
    )
    profile = await get_trainer_profile(db, current_user.user_id)
    return AvailabilityResponse.from_slots(profile, slots)


@router.get("/{trainer_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    trainer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    profile = await get_trainer_profile(db, trainer_id)
    if profile is None:
        raise TrainerNotFound()
    slots = await get_trainer_availability(db, trainer_id)
    return AvailabilityResponse.from_slots(profile, slots)


@router.get("/{trainer_id}/profile", response_model=TrainerProfileResponse)
async def get_profile(
    trainer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    profile = await get_trainer_profile(db, trainer_id)
    if profile is None:
        raise TrainerNotFound()
    return TrainerProfileResponse.from_profile(profile)


@router.get("/{trainer_id}/earnings", response_model=EarningsSummaryResponse)
async def get_earnings(
    trainer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Totals and monthly breakdown over completed sessions."""
    if not current_user.is_admin and current_user.user_id != trainer_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view your own earnings",
        )
    summary = await get_trainer_earnings(db, trainer_id)
    return EarningsSummaryResponse.from_summary(trainer_id, summary)


@router.get("/{trainer_id}/ratings", response_model=RatingSummaryResponse)
async def get_ratings(
    trainer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    summary = await get_trainer_ratings(db, trainer_id)
    return RatingSummaryResponse.from_summary(summary)


@router.get("/{trainer_id}/reviews", response_model=ReviewListResponse)
async def list_reviews(
    trainer_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Reviews written about the trainer, newest first."""
    reviews = await BookingStore(db).list_reviews_for_reviewee(trainer_id)
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(review) for review in reviews],
        total=len(reviews),
    )
