"""Typed failures raised by booking operations.

Every error carries a stable machine-readable ``code`` and a human-readable
message. The app maps each family to an HTTP status in one handler.

    BookingError
    ├── BookingValidationError   bad input, rejected before the store is touched
    ├── BookingPolicyError       business-rule violation
    ├── VersionConflict          optimistic-concurrency miss, retry after re-read
    └── StoreUnavailable         timeout / connectivity, retry later
"""

from typing import Optional


class BookingError(Exception):
    code: str = "BookingError"
    http_status: int = 400
    retryable: bool = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__.strip() if cls.__doc__ else cls.code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class BookingValidationError(BookingError):
    http_status = 422


class InvalidWindow(BookingValidationError):
    """The requested time window is not bookable."""

    code = "InvalidWindow"


class InvalidParties(BookingValidationError):
    """Athlete and trainer must be different people."""

    code = "InvalidParties"


class InvalidRating(BookingValidationError):
    """Rating must be an integer between 1 and 5."""

    code = "InvalidRating"


class InvalidAction(BookingValidationError):
    """Unknown booking action."""

    code = "InvalidAction"


class InvalidAvailability(BookingValidationError):
    """Availability slots must be a weekday or a date with a start before the end."""

    code = "InvalidAvailability"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class BookingPolicyError(BookingError):
    http_status = 409


class BookingNotFound(BookingPolicyError):
    """Booking not found."""

    code = "BookingNotFound"
    http_status = 404


class TrainerNotFound(BookingPolicyError):
    """Trainer not found or not accepting bookings."""

    code = "TrainerNotFound"
    http_status = 404


class UnsupportedSport(BookingPolicyError):
    """The trainer does not offer this sport."""

    code = "UnsupportedSport"


class OutsideAvailability(BookingPolicyError):
    """The trainer is not available at this time."""

    code = "OutsideAvailability"


class CurrencyLocked(BookingPolicyError):
    """The rate currency cannot change while the trainer has open or settled bookings."""

    code = "CurrencyLocked"


class SlotConflict(BookingPolicyError):
    """The trainer already has a booking in this time window."""

    code = "SlotConflict"


class DuplicateRequest(BookingPolicyError):
    """You already have a booking with this trainer in this time window."""

    code = "DuplicateRequest"


class InvalidTransition(BookingPolicyError):
    """This action is not allowed in the booking's current state."""

    code = "InvalidTransition"


class NotAParty(BookingPolicyError):
    """You are not part of this booking."""

    code = "NotAParty"
    http_status = 403


class ActionNotPermitted(BookingPolicyError):
    """Your role in this booking does not allow this action."""

    code = "ActionNotPermitted"
    http_status = 403


class CompletionTooEarly(BookingPolicyError):
    """A session can only be completed after it has ended."""

    code = "CompletionTooEarly"


class DisputeWindowClosed(BookingPolicyError):
    """The dispute window for this booking has closed."""

    code = "DisputeWindowClosed"


class AlreadySettled(BookingPolicyError):
    """This booking has already been settled."""

    code = "AlreadySettled"


class BookingNotCompleted(BookingPolicyError):
    """Only completed bookings can be reviewed."""

    code = "BookingNotCompleted"


class DuplicateReview(BookingPolicyError):
    """You have already reviewed this booking."""

    code = "DuplicateReview"


# ---------------------------------------------------------------------------
# Concurrency / infrastructure
# ---------------------------------------------------------------------------


class VersionConflict(BookingError):
    """The booking was modified by someone else. Reload and try again."""

    code = "VersionConflict"
    http_status = 409
    retryable = True


class StoreUnavailable(BookingError):
    """The service is temporarily unavailable. Please try again."""

    code = "StoreUnavailable"
    http_status = 503
    retryable = True
