"""Bookings Service schemas package.

Re-exports all schemas so that:
  - ``from services.bookings_service.schemas import BookingResponse`` works
  - Router files import from one place

When adding a new schema, add its import and __all__ entry.
"""

from services.bookings_service.schemas.booking import (  # noqa: F401
    BookingListResponse,
    BookingResponse,
    MatchRequest,
    StatusEventResponse,
    TransitionRequest,
)
from services.bookings_service.schemas.common import ErrorResponse  # noqa: F401
from services.bookings_service.schemas.earnings import (  # noqa: F401
    EarningsSummaryResponse,
    MonthlyEarningsResponse,
    RatingBucketResponse,
    RatingSummaryResponse,
)
from services.bookings_service.schemas.review import (  # noqa: F401
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewResponse,
)
from services.bookings_service.schemas.trainer import (  # noqa: F401
    AvailabilityRequest,
    AvailabilityResponse,
    AvailabilitySlotRequest,
    AvailabilitySlotResponse,
    TrainerProfileRequest,
    TrainerProfileResponse,
)

__all__ = [
    # Booking
    "BookingListResponse",
    "BookingResponse",
    "MatchRequest",
    "StatusEventResponse",
    "TransitionRequest",
    # Review
    "ReviewCreateRequest",
    "ReviewListResponse",
    "ReviewResponse",
    # Trainer
    "AvailabilityRequest",
    "AvailabilityResponse",
    "AvailabilitySlotRequest",
    "AvailabilitySlotResponse",
    "TrainerProfileRequest",
    "TrainerProfileResponse",
    # Earnings / ratings
    "EarningsSummaryResponse",
    "MonthlyEarningsResponse",
    "RatingBucketResponse",
    "RatingSummaryResponse",
    # Common
    "ErrorResponse",
]
