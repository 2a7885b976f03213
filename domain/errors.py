"""Domain Errors - booking failure taxonomy"""
from typing import Optional

from domain.enums import ErrorCode, ConflictStage, RejectionReason


class BookingError(Exception):
    """Base class for every failure the booking core reports"""

    code: ErrorCode = ErrorCode.UNKNOWN
    default_message = "Something went wrong, please try again later"
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(BookingError):
    code = ErrorCode.UNAUTHENTICATED
    default_message = "You must be logged in to perform this action"


class ListingNotFound(BookingError):
    code = ErrorCode.LISTING_NOT_FOUND
    default_message = "Listing not found"


class NotFound(BookingError):
    code = ErrorCode.NOT_FOUND
    default_message = "Booking not found"


class Forbidden(BookingError):
    code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to access this booking"


class InvalidDateRange(BookingError):
    code = ErrorCode.INVALID_DATE_RANGE
    default_message = "Check-out date must be after check-in date"


class GuestCountExceeded(BookingError):
    code = ErrorCode.GUEST_COUNT_EXCEEDED
    default_message = "Guest count is outside the allowed range for this listing"


class DatesUnavailable(BookingError):
    code = ErrorCode.DATES_UNAVAILABLE
    default_message = "The selected dates are not available"

    def __init__(self, message: Optional[str] = None,
                 stage: ConflictStage = ConflictStage.VALIDATION):
        super().__init__(message)
        self.stage = stage


class AlreadyCancelled(BookingError):
    code = ErrorCode.ALREADY_CANCELLED
    default_message = "Booking is already cancelled"


class StoreTimeout(BookingError):
    code = ErrorCode.TIMEOUT
    default_message = "The booking store did not respond in time, please retry"
    retryable = True


class StoreUnavailable(BookingError):
    code = ErrorCode.UNAVAILABLE
    default_message = "The booking store is unavailable, please retry"
    retryable = True


class StoreError(BookingError):
    code = ErrorCode.UNKNOWN


_ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        Unauthenticated, ListingNotFound, NotFound, Forbidden,
        InvalidDateRange, GuestCountExceeded, DatesUnavailable,
        AlreadyCancelled, StoreTimeout, StoreUnavailable, StoreError,
    )
}

_ERRORS_BY_REASON = {
    RejectionReason.INVALID_DATE_RANGE: InvalidDateRange,
    RejectionReason.GUEST_COUNT_EXCEEDED: GuestCountExceeded,
    RejectionReason.DATES_UNAVAILABLE: DatesUnavailable,
}


def error_for_code(code: str, message: Optional[str] = None) -> BookingError:
    """Rebuild an error from its wire code (unknown codes become StoreError)"""
    try:
        cls = _ERRORS_BY_CODE[ErrorCode(code)]
    except ValueError:
        cls = StoreError
    return cls(message)


def error_for_rejection(reason: RejectionReason, message: Optional[str] = None) -> BookingError:
    """Map a validator rejection to the error the caller sees"""
    return _ERRORS_BY_REASON[reason](message)
