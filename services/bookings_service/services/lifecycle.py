"""Booking lifecycle: validates and applies status transitions.

    pending ──confirm──▶ confirmed ──complete──▶ completed ──dispute──▶ disputed
       │                    │
       └──────cancel────────┴──────▶ cancelled

Every transition is a single version-checked write that also appends a
status-history row. Completion settles the booking in that same write.
Domain events are published only after the write has committed.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.bookings_service.errors import (
    ActionNotPermitted,
    BookingNotFound,
    CompletionTooEarly,
    DisputeWindowClosed,
    InvalidAction,
    InvalidTransition,
    NotAParty,
    VersionConflict,
)
from services.bookings_service.events import (
    EventDispatcher,
    booking_event,
    get_dispatcher,
)
from services.bookings_service.models import (
    Booking,
    BookingAction,
    BookingStatus,
    BookingStatusEvent,
    DomainEventType,
)
from services.bookings_service.services.settlement import (
    FeePolicy,
    fee_policy_from_settings,
    payout_hold_until,
    settle,
)
from services.bookings_service.services.store import BookingStore
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Reserved actor id for automated completion
SYSTEM_ACTOR = "system"

TRANSITIONS: dict[tuple[BookingStatus, BookingAction], BookingStatus] = {
    (BookingStatus.PENDING, BookingAction.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingAction.COMPLETE): BookingStatus.COMPLETED,
    (BookingStatus.COMPLETED, BookingAction.DISPUTE): BookingStatus.DISPUTED,
}

EVENT_TYPES: dict[BookingStatus, DomainEventType] = {
    BookingStatus.CONFIRMED: DomainEventType.BOOKING_CONFIRMED,
    BookingStatus.CANCELLED: DomainEventType.BOOKING_CANCELLED,
    BookingStatus.COMPLETED: DomainEventType.BOOKING_COMPLETED,
    BookingStatus.DISPUTED: DomainEventType.BOOKING_DISPUTED,
}


def next_status(status: BookingStatus, action: BookingAction) -> BookingStatus:
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise InvalidTransition(
            f"Cannot {action.value} a booking that is {status.value}."
        ) from None


def check_actor(booking: Booking, actor_id: str, action: BookingAction) -> None:
    """Raise unless ``actor_id`` may perform ``action`` on ``booking``."""
    if actor_id == SYSTEM_ACTOR:
        if action != BookingAction.COMPLETE:
            raise ActionNotPermitted("Automated actors may only complete bookings.")
        return
    if not booking.is_party(actor_id):
        raise NotAParty()
    if action == BookingAction.CONFIRM and actor_id != booking.trainer_id:
        raise ActionNotPermitted("Only the trainer can confirm a booking.")


def allowed_actions(booking: Booking, actor_id: str) -> list[BookingAction]:
    """Actions ``actor_id`` could attempt right now, ignoring timing rules."""
    actions = []
    for (status, action) in TRANSITIONS:
        if status != booking.status:
            continue
        try:
            check_actor(booking, actor_id, action)
        except (NotAParty, ActionNotPermitted):
            continue
        actions.append(action)
    return actions


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------


async def transition(
    db: AsyncSession,
    *,
    booking_id,
    actor_id: str,
    action: Union[BookingAction, str],
    expected_version: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    fee_policy: Optional[FeePolicy] = None,
    settings: Optional[Settings] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> Booking:
    """Apply ``action`` to a booking if the state machine, actor and version allow it."""
    settings = settings or get_settings()
    now = ensure_utc(now) if now else utc_now()
    try:
        action = BookingAction(action)
    except ValueError:
        raise InvalidAction(f"Unknown booking action: {action}") from None

    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound()

    # Completion may be delivered more than once (sweep + party)
    if action == BookingAction.COMPLETE and booking.status == BookingStatus.COMPLETED:
        check_actor(booking, actor_id, action)
        logger.info("Booking %s already completed; ignoring repeat", booking.id)
        return booking

    target = next_status(booking.status, action)
    check_actor(booking, actor_id, action)
    if booking.version != expected_version:
        raise VersionConflict()

    values: dict = {"status": target, "updated_at": now}
    event_extra: dict = {"action": action.value, "actor_id": actor_id}
    release_claims = False

    if action == BookingAction.CANCEL:
        cutoff = timedelta(hours=settings.LATE_CANCELLATION_CUTOFF_HOURS)
        late = (
            booking.status == BookingStatus.CONFIRMED
            and booking.scheduled_at - now < cutoff
        )
        values.update(
            cancelled_at=now,
            cancelled_by=actor_id,
            cancel_reason=reason,
            late_cancellation=late,
        )
        event_extra["late_cancellation"] = late
        release_claims = True

    elif action == BookingAction.COMPLETE:
        if now < booking.ends_at:
            raise CompletionTooEarly()
        settlement = settle(booking, fee_policy or fee_policy_from_settings(settings))
        completed_sessions = await store.count_completed_for_trainer(
            booking.trainer_id
        )
        hold_until = payout_hold_until(now, completed_sessions, settings)
        values.update(
            completed_at=now,
            platform_fee_cents=settlement.platform_fee.minor_units,
            net_amount_cents=settlement.net_amount.minor_units,
            payout_hold_until=hold_until,
        )
        event_extra.update(
            price=str(booking.price.amount),
            platform_fee=str(settlement.platform_fee.amount),
            net_amount=str(settlement.net_amount.amount),
            currency=booking.currency,
            payout_hold_until=hold_until.isoformat(),
        )

    elif action == BookingAction.DISPUTE:
        window = timedelta(hours=settings.DISPUTE_WINDOW_HOURS)
        if booking.completed_at is None or now > booking.completed_at + window:
            raise DisputeWindowClosed()
        values.update(disputed_at=now, dispute_reason=reason)

    previous = booking.status
    updated = await store.compare_and_swap(
        booking.id,
        expected_version,
        values,
        event=BookingStatusEvent(
            from_status=previous,
            to_status=target,
            action=action,
            actor_id=actor_id,
            reason=reason,
        ),
        release_claims=release_claims,
    )
    logger.info(
        "Booking %s %s -> %s by %s (v%d)",
        updated.id,
        previous.value,
        target.value,
        actor_id,
        updated.version,
    )

    await (dispatcher or get_dispatcher()).publish(
        booking_event(EVENT_TYPES[target], updated, occurred_at=now, **event_extra)
    )
    return updated


async def transition_with_retry(
    db: AsyncSession,
    *,
    booking_id,
    actor_id: str,
    action: Union[BookingAction, str],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    fee_policy: Optional[FeePolicy] = None,
    settings: Optional[Settings] = None,
    dispatcher: Optional[EventDispatcher] = None,
    max_retries: Optional[int] = None,
) -> Booking:
    """Re-read and retry on ``VersionConflict`` a bounded number of times.

    For callers that do not hold a version of their own, e.g. the
    completion sweep.
    """
    settings = settings or get_settings()
    retries = (
        max_retries if max_retries is not None else settings.VERSION_CONFLICT_MAX_RETRIES
    )
    store = BookingStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)

    attempt = 0
    while True:
        booking = await store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound()
        try:
            return await transition(
                db,
                booking_id=booking_id,
                actor_id=actor_id,
                action=action,
                expected_version=booking.version,
                reason=reason,
                now=now,
                fee_policy=fee_policy,
                settings=settings,
                dispatcher=dispatcher,
            )
        except VersionConflict:
            attempt += 1
            if attempt > retries:
                logger.warning(
                    "Giving up on booking %s after %d version conflicts",
                    booking_id,
                    attempt,
                )
                raise
            logger.info(
                "Version conflict on booking %s, retry %d/%d",
                booking_id,
                attempt,
                retries,
            )
