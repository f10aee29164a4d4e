"""In-process domain events for the Bookings Service.

Operations publish after their transaction commits. A failing handler is
logged and never undoes the write that produced the event. Handlers that
talk to other services subscribe as background handlers and are not awaited
by the publisher.
"""

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.bookings_service.models import Booking, DomainEventType

logger = get_logger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    type: DomainEventType
    booking_id: uuid.UUID
    occurred_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "booking_id": str(self.booking_id),
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }


EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventDispatcher:
    """Fan events out to subscribers.

    Inline handlers run inside ``publish``. Background handlers are spawned
    as tasks so slow subscribers (HTTP forwarding) stay off the caller's
    path; the dispatcher keeps a reference to each task until it finishes,
    and ``drain`` waits for whatever is still running.
    """

    def __init__(self) -> None:
        self._handlers: dict[DomainEventType, list[EventHandler]] = defaultdict(list)
        self._background: dict[DomainEventType, list[EventHandler]] = defaultdict(
            list
        )
        self._tasks: set[asyncio.Task] = set()

    def subscribe(
        self,
        event_type: DomainEventType,
        handler: EventHandler,
        *,
        background: bool = False,
    ) -> None:
        handlers = self._background if background else self._handlers
        if handler not in handlers[event_type]:
            handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler, *, background: bool = False) -> None:
        for event_type in DomainEventType:
            self.subscribe(event_type, handler, background=background)

    def clear(self) -> None:
        self._handlers.clear()
        self._background.clear()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def publish(self, event: DomainEvent) -> None:
        """Run inline handlers and spawn background ones; failures are logged."""
        for handler in self._background.get(event.type, ()):
            task = asyncio.create_task(handler(event))
            self._tasks.add(task)
            task.add_done_callback(
                lambda done, handler=handler: self._finished(done, handler, event)
            )

        handlers = list(self._handlers.get(event.type, ()))
        if not handlers:
            return
        results = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                self._log_failure(handler, event, result)

    async def drain(self) -> None:
        """Wait for every background handler spawned so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _finished(
        self, task: asyncio.Task, handler: EventHandler, event: DomainEvent
    ) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log_failure(handler, event, exc)

    @staticmethod
    def _log_failure(
        handler: EventHandler, event: DomainEvent, exc: BaseException
    ) -> None:
        logger.error(
            "Event handler %s failed for %s on booking %s",
            getattr(handler, "__name__", repr(handler)),
            event.type.value,
            event.booking_id,
            exc_info=exc,
        )


# Process-wide dispatcher used by the app and the worker
dispatcher = EventDispatcher()


def get_dispatcher() -> EventDispatcher:
    return dispatcher


def booking_event(
    event_type: DomainEventType,
    booking: Booking,
    *,
    occurred_at: Optional[datetime] = None,
    **extra: Any,
) -> DomainEvent:
    """Build an event carrying the booking fields subscribers usually need."""
    payload: dict[str, Any] = {
        "athlete_id": booking.athlete_id,
        "trainer_id": booking.trainer_id,
        "sport": booking.sport.value,
        "status": booking.status.value,
        "scheduled_at": booking.scheduled_at.isoformat(),
        "duration_minutes": booking.duration_minutes,
        "version": booking.version,
    }
    payload.update(extra)
    return DomainEvent(
        type=event_type,
        booking_id=booking.id,
        occurred_at=occurred_at or utc_now(),
        payload=payload,
    )
