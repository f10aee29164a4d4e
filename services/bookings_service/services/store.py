"""Durable store for bookings, reviews, trainer profiles and availability.

All booking mutations go through two atomic primitives:

1. ``create_booking``: insert the booking, its slot claims and the first
   history row in one transaction. The unique key on
   ``(trainer_id, slot_start)`` makes check-and-create race free.
2. ``compare_and_swap``: ``UPDATE ... WHERE id = :id AND version = :expected``.
   Zero affected rows means someone else moved the record first.

Every call is bounded by ``STORE_TIMEOUT_SECONDS``; timeouts and driver
failures surface as ``StoreUnavailable`` after a rollback.

Sessions must be created with ``expire_on_commit=False``.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any, Awaitable, Optional, Sequence, TypeVar

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.bookings_service.errors import (
    BookingNotFound,
    DuplicateReview,
    StoreUnavailable,
    VersionConflict,
)
from services.bookings_service.models import (
    Booking,
    BookingReview,
    BookingSlotClaim,
    BookingStatus,
    BookingStatusEvent,
    TrainerAvailabilitySlot,
    TrainerProfile,
)
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

T = TypeVar("T")

_SLOT_CLAIM_KEY = "booking_slot_claims"
_REVIEW_KEY = "booking_reviews"


class SlotClaimTaken(Exception):
    """Another booking already holds one of the requested slot buckets."""


def _violates(exc: IntegrityError, key: str) -> bool:
    return key in str(exc.orig)


class BookingStore:
    """SQLAlchemy-backed store bound to one ``AsyncSession``."""

    def __init__(self, db: AsyncSession, *, timeout: Optional[float] = None):
        self.db = db
        self.timeout = (
            timeout if timeout is not None else get_settings().STORE_TIMEOUT_SECONDS
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _run(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except IntegrityError:
            raise
        except (asyncio.TimeoutError, DBAPIError) as exc:
            logger.warning("Store operation failed: %s", type(exc).__name__)
            await self._rollback_quietly()
            raise StoreUnavailable() from exc

    async def _rollback_quietly(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after store failure also failed", exc_info=True)

    async def _select_booking(self, booking_id: uuid.UUID) -> Optional[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id: uuid.UUID) -> Optional[Booking]:
        """Read the latest committed state of a booking."""
        return await self._run(self._select_booking(booking_id))

    async def create_booking(
        self,
        booking: Booking,
        slot_starts: Sequence[datetime],
        *,
        actor_id: str,
    ) -> Booking:
        """Atomically insert a booking together with its slot claims.

        Raises:
            SlotClaimTaken: one of the slot buckets is already claimed.
        """
        if booking.id is None:
            booking.id = uuid.uuid4()

        async def _op() -> Booking:
            self.db.add(booking)
            # Claims reference the booking row
            await self.db.flush()
            self.db.add_all(
                [
                    BookingSlotClaim(
                        booking_id=booking.id,
                        trainer_id=booking.trainer_id,
                        slot_start=slot_start,
                    )
                    for slot_start in slot_starts
                ]
            )
            self.db.add(
                BookingStatusEvent(
                    booking_id=booking.id,
                    from_status=None,
                    to_status=booking.status,
                    action=None,
                    actor_id=actor_id,
                    version=booking.version,
                    created_at=booking.created_at,
                )
            )
            await self.db.commit()
            return booking

        try:
            return await self._run(_op())
        except IntegrityError as exc:
            await self._rollback_quietly()
            if _violates(exc, _SLOT_CLAIM_KEY):
                raise SlotClaimTaken() from exc
            raise

    async def compare_and_swap(
        self,
        booking_id: uuid.UUID,
        expected_version: int,
        values: dict[str, Any],
        *,
        event: BookingStatusEvent,
        release_claims: bool = False,
    ) -> Booking:
        """Apply ``values`` only if the stored version is still ``expected_version``.

        Bumps ``version`` and ``updated_at``, appends ``event`` and, when
        ``release_claims`` is set, frees the booking's slot claims, all in one
        transaction.

        Raises:
            VersionConflict: the stored version has moved on.
            BookingNotFound: no such booking.
        """

        async def _op() -> Optional[Booking]:
            now = values.get("updated_at") or utc_now()
            result = await self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.version == expected_version)
                .values(
                    {**values, "updated_at": now, "version": expected_version + 1}
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                exists = await self.db.scalar(
                    select(Booking.id).where(Booking.id == booking_id)
                )
                await self.db.rollback()
                if exists is None:
                    raise BookingNotFound()
                return None

            if release_claims:
                await self.db.execute(
                    delete(BookingSlotClaim).where(
                        BookingSlotClaim.booking_id == booking_id
                    )
                )
            event.booking_id = booking_id
            event.version = expected_version + 1
            event.created_at = now
            self.db.add(event)
            await self.db.flush()

            booking = await self._select_booking(booking_id)
            await self.db.commit()
            return booking

        booking = await self._run(_op())
        if booking is None:
            logger.info(
                "Version conflict on booking %s (expected v%d)",
                booking_id,
                expected_version,
            )
            raise VersionConflict()
        return booking

    async def find_overlapping(
        self, trainer_id: str, start: datetime, end: datetime
    ) -> list[Booking]:
        """Non-cancelled bookings of ``trainer_id`` sharing any instant with [start, end)."""

        async def _op() -> list[Booking]:
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.trainer_id == trainer_id,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.scheduled_at < end,
                    Booking.ends_at > start,
                )
                .order_by(Booking.scheduled_at.asc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

        return await self._run(_op())

    async def list_bookings(
        self,
        *,
        party_id: Optional[str] = None,
        athlete_id: Optional[str] = None,
        trainer_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        """Range query by party/status/time, newest first, with total count."""
        query = select(Booking)
        if party_id:
            query = query.where(
                or_(Booking.athlete_id == party_id, Booking.trainer_id == party_id)
            )
        if athlete_id:
            query = query.where(Booking.athlete_id == athlete_id)
        if trainer_id:
            query = query.where(Booking.trainer_id == trainer_id)
        if status:
            query = query.where(Booking.status == status)
        if from_date:
            query = query.where(Booking.scheduled_at >= from_date)
        if to_date:
            query = query.where(Booking.scheduled_at < to_date)

        async def _op() -> tuple[list[Booking], int]:
            total = await self.db.scalar(
                select(func.count()).select_from(query.subquery())
            )
            result = await self.db.execute(
                query.order_by(Booking.scheduled_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            return list(result.scalars().all()), total or 0

        return await self._run(_op())

    async def list_due_for_completion(
        self, now: datetime, limit: int
    ) -> list[Booking]:
        async def _op() -> list[Booking]:
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.status == BookingStatus.CONFIRMED,
                    Booking.ends_at <= now,
                )
                .order_by(Booking.ends_at.asc())
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

        return await self._run(_op())

    async def list_completed_for_trainer(self, trainer_id: str) -> list[Booking]:
        async def _op() -> list[Booking]:
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.trainer_id == trainer_id,
                    Booking.status == BookingStatus.COMPLETED,
                )
                .order_by(Booking.scheduled_at.asc())
            )
            return list(result.scalars().all())

        return await self._run(_op())

    async def count_completed_for_trainer(self, trainer_id: str) -> int:
        count = await self._run(
            self.db.scalar(
                select(func.count(Booking.id)).where(
                    Booking.trainer_id == trainer_id,
                    Booking.status.in_(
                        (BookingStatus.COMPLETED, BookingStatus.DISPUTED)
                    ),
                )
            )
        )
        return count or 0

    async def list_status_history(
        self, booking_id: uuid.UUID
    ) -> list[BookingStatusEvent]:
        async def _op() -> list[BookingStatusEvent]:
            result = await self.db.execute(
                select(BookingStatusEvent)
                .where(BookingStatusEvent.booking_id == booking_id)
                .order_by(BookingStatusEvent.version.asc())
            )
            return list(result.scalars().all())

        return await self._run(_op())

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def get_review(
        self, booking_id: uuid.UUID, reviewer_id: str
    ) -> Optional[BookingReview]:
        async def _op() -> Optional[BookingReview]:
            result = await self.db.execute(
                select(BookingReview).where(
                    BookingReview.booking_id == booking_id,
                    BookingReview.reviewer_id == reviewer_id,
                )
            )
            return result.scalar_one_or_none()

        return await self._run(_op())

    async def add_review(self, review: BookingReview) -> BookingReview:
        """Insert a review; the (booking, reviewer) key is unique.

        Raises:
            DuplicateReview: this reviewer already reviewed this booking.
        """

        async def _op() -> BookingReview:
            self.db.add(review)
            await self.db.commit()
            return review

        try:
            return await self._run(_op())
        except IntegrityError as exc:
            await self._rollback_quietly()
            if _violates(exc, _REVIEW_KEY):
                raise DuplicateReview() from exc
            raise

    async def list_reviews_for_reviewee(self, reviewee_id: str) -> list[BookingReview]:
        async def _op() -> list[BookingReview]:
            result = await self.db.execute(
                select(BookingReview)
                .where(BookingReview.reviewee_id == reviewee_id)
                .order_by(BookingReview.created_at.desc())
            )
            return list(result.scalars().all())

        return await self._run(_op())

    # ------------------------------------------------------------------
    # Trainer profiles
    # ------------------------------------------------------------------

    async def get_trainer_profile(self, trainer_id: str) -> Optional[TrainerProfile]:
        async def _op() -> Optional[TrainerProfile]:
            result = await self.db.execute(
                select(TrainerProfile).where(TrainerProfile.trainer_id == trainer_id)
            )
            return result.scalar_one_or_none()

        return await self._run(_op())

    async def save_trainer_profile(self, profile: TrainerProfile) -> TrainerProfile:
        async def _op() -> TrainerProfile:
            self.db.add(profile)
            await self.db.commit()
            return profile

        return await self._run(_op())

    async def trainer_has_live_bookings(self, trainer_id: str) -> bool:
        """Whether any non-cancelled booking of ``trainer_id`` exists."""
        found = await self._run(
            self.db.scalar(
                select(Booking.id)
                .where(
                    Booking.trainer_id == trainer_id,
                    Booking.status != BookingStatus.CANCELLED,
                )
                .limit(1)
            )
        )
        return found is not None

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def list_availability(self, trainer_id: str) -> list[TrainerAvailabilitySlot]:
        async def _op() -> list[TrainerAvailabilitySlot]:
            result = await self.db.execute(
                select(TrainerAvailabilitySlot)
                .where(TrainerAvailabilitySlot.trainer_id == trainer_id)
                .order_by(
                    TrainerAvailabilitySlot.specific_date.asc(),
                    TrainerAvailabilitySlot.day_of_week.asc(),
                    TrainerAvailabilitySlot.start_time.asc(),
                )
            )
            return list(result.scalars().all())

        return await self._run(_op())

    async def replace_availability(
        self, trainer_id: str, slots: Sequence[TrainerAvailabilitySlot]
    ) -> list[TrainerAvailabilitySlot]:
        """Swap the trainer's whole availability set in one transaction."""

        async def _op() -> list[TrainerAvailabilitySlot]:
            await self.db.execute(
                delete(TrainerAvailabilitySlot).where(
                    TrainerAvailabilitySlot.trainer_id == trainer_id
                )
            )
            self.db.add_all(slots)
            await self.db.commit()
            return list(slots)

        return await self._run(_op())
