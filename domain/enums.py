"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ListingKind(str, Enum):
    STAY = "stay"
    FOOD_EXPERIENCE = "food_experience"


class RejectionReason(str, Enum):
    INVALID_DATE_RANGE = "InvalidDateRange"
    GUEST_COUNT_EXCEEDED = "GuestCountExceeded"
    DATES_UNAVAILABLE = "DatesUnavailable"


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    LISTING_NOT_FOUND = "ListingNotFound"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_DATE_RANGE = "InvalidDateRange"
    GUEST_COUNT_EXCEEDED = "GuestCountExceeded"
    DATES_UNAVAILABLE = "DatesUnavailable"
    ALREADY_CANCELLED = "AlreadyCancelled"
    TIMEOUT = "Timeout"
    UNAVAILABLE = "Unavailable"
    UNKNOWN = "Unknown"


class ConflictStage(str, Enum):
    VALIDATION = "validation"
    WRITE = "write"
