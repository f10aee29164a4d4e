"""Enums for the Bookings Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


# Statuses that hold the trainer's time
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
    BookingStatus.DISPUTED,
)


class BookingAction(str, enum.Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"
    DISPUTE = "dispute"


class Sport(str, enum.Enum):
    HOCKEY = "hockey"
    BASEBALL = "baseball"
    BASKETBALL = "basketball"
    FOOTBALL = "football"
    SOCCER = "soccer"
    TENNIS = "tennis"
    GOLF = "golf"
    SWIMMING = "swimming"
    TRACK_AND_FIELD = "track_and_field"
    VOLLEYBALL = "volleyball"
    LACROSSE = "lacrosse"
    WRESTLING = "wrestling"
    BOXING = "boxing"
    MARTIAL_ARTS = "martial_arts"
    GYMNASTICS = "gymnastics"
    SKIING = "skiing"
    SNOWBOARDING = "snowboarding"
    FIGURE_SKATING = "figure_skating"
    SOFTBALL = "softball"
    RUGBY = "rugby"


class DomainEventType(str, enum.Enum):
    BOOKING_CONFIRMED = "BookingConfirmed"
    BOOKING_CANCELLED = "BookingCancelled"
    BOOKING_COMPLETED = "BookingCompleted"
    BOOKING_DISPUTED = "BookingDisputed"
    REVIEW_SUBMITTED = "ReviewSubmitted"
