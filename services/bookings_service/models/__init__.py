"""Bookings Service models package.

Re-exports all models and enums so that:
  - ``from services.bookings_service.models import Booking`` works
  - Alembic env.py imports see every table
  - SQLAlchemy's mapper registry sees every model class on import

When adding a new model, add both its import and its __all__ entry.
"""

from services.bookings_service.models.availability import (  # noqa: F401
    TrainerAvailabilitySlot,
)
from services.bookings_service.models.booking import Booking  # noqa: F401
from services.bookings_service.models.enums import (  # noqa: F401
    ACTIVE_BOOKING_STATUSES,
    BookingAction,
    BookingStatus,
    DomainEventType,
    Sport,
)
from services.bookings_service.models.review import BookingReview  # noqa: F401
from services.bookings_service.models.slot_claim import BookingSlotClaim  # noqa: F401
from services.bookings_service.models.status_event import (  # noqa: F401
    BookingStatusEvent,
)
from services.bookings_service.models.trainer import TrainerProfile  # noqa: F401

__all__ = [
    # Enums
    "ACTIVE_BOOKING_STATUSES",
    "BookingAction",
    "BookingStatus",
    "DomainEventType",
    "Sport",
    # Models
    "Booking",
    "BookingReview",
    "BookingSlotClaim",
    "BookingStatusEvent",
    "TrainerProfile",
    "TrainerAvailabilitySlot",
]
