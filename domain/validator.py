"""Booking Validator - admission rules for a requested stay.

Pure functions only: everything is passed in, nothing is read from a store.
The same rules run on the server (authoritative) and in the client booking
widget (advisory), so both sides reject a request for the same reason.

Checks run in a fixed order and the first failing check wins:

1. well-formed dates with ``check_out > check_in``  -> InvalidDateRange
2. ``1 <= guest_count <= max_guests``                 -> GuestCountExceeded
3. no confirmed reservation overlaps the range       -> DatesUnavailable
4. no blocked date falls on a night of the range     -> DatesUnavailable

Ranges are half-open: a stay ending on the 4th and a stay starting on the
4th do not overlap, and a blocked check-out day does not block the stay.
"""
import re
from datetime import date, datetime
from typing import Iterable, Optional, Union
from uuid import UUID

from pydantic import BaseModel

from domain.entities import BlockedDate, Listing, Reservation
from domain.enums import BookingStatus, RejectionReason
from domain.value_objects import DateRange

DateInput = Union[date, str]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Verdict(BaseModel):
    """Admit, or reject with the reason of the first failing check"""
    admitted: bool
    reason: Optional[RejectionReason] = None
    message: str = ""

    class Config:
        frozen = True

    @classmethod
    def admit(cls) -> "Verdict":
        return cls(admitted=True)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> "Verdict":
        return cls(admitted=False, reason=reason, message=message)


def parse_date(value: DateInput) -> Optional[date]:
    """Return a calendar date for a date or 'YYYY-MM-DD' string, else None"""
    if isinstance(value, datetime):
        # a time component means the caller already shifted the date
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def to_date_range(check_in: DateInput, check_out: DateInput) -> DateRange:
    """Build a DateRange from inputs that already passed validate_date_range"""
    return DateRange(check_in=parse_date(check_in), check_out=parse_date(check_out))


def validate_date_range(check_in: DateInput, check_out: DateInput) -> Verdict:
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None:
        return Verdict.reject(
            RejectionReason.INVALID_DATE_RANGE,
            "Dates must be calendar dates in YYYY-MM-DD format"
        )
    if end <= start:
        return Verdict.reject(
            RejectionReason.INVALID_DATE_RANGE,
            "Check-out date must be after check-in date"
        )
    return Verdict.admit()


def validate_guest_count(guest_count: int, max_guests: int) -> Verdict:
    if isinstance(guest_count, bool) or not isinstance(guest_count, int):
        return Verdict.reject(
            RejectionReason.GUEST_COUNT_EXCEEDED,
            "Guest count must be a whole number"
        )
    if guest_count < 1:
        return Verdict.reject(
            RejectionReason.GUEST_COUNT_EXCEEDED,
            "Please select at least 1 guest"
        )
    if guest_count > max_guests:
        return Verdict.reject(
            RejectionReason.GUEST_COUNT_EXCEEDED,
            f"Guest count exceeds maximum allowed ({max_guests})"
        )
    return Verdict.admit()


def find_overlap(requested: DateRange, reserved_ranges: Iterable[DateRange]) -> Optional[DateRange]:
    for reserved in reserved_ranges:
        if requested.overlaps(reserved):
            return reserved
    return None


def find_blocked_night(requested: DateRange, blocked_dates: Iterable[date]) -> Optional[date]:
    hits = sorted(day for day in blocked_dates if requested.contains_night(day))
    return hits[0] if hits else None


def validate_against(
    check_in: DateInput,
    check_out: DateInput,
    guest_count: int,
    max_guests: int,
    reserved_ranges: Iterable[DateRange],
    blocked_dates: Iterable[date]
) -> Verdict:
    """Run all checks against plain ranges and dates.

    ``reserved_ranges`` must already be limited to confirmed reservations of
    the listing; ``blocked_dates`` to that listing's blocked dates.
    """
    verdict = validate_date_range(check_in, check_out)
    if not verdict.admitted:
        return verdict

    verdict = validate_guest_count(guest_count, max_guests)
    if not verdict.admitted:
        return verdict

    requested = to_date_range(check_in, check_out)

    if find_overlap(requested, reserved_ranges) is not None:
        return Verdict.reject(
            RejectionReason.DATES_UNAVAILABLE,
            "The selected dates are not available"
        )

    blocked = find_blocked_night(requested, blocked_dates)
    if blocked is not None:
        return Verdict.reject(
            RejectionReason.DATES_UNAVAILABLE,
            f"The listing is not available on {blocked.isoformat()}"
        )

    return Verdict.admit()


def validate(
    listing_id: UUID,
    check_in: DateInput,
    check_out: DateInput,
    guest_count: int,
    listing: Listing,
    existing_reservations: Iterable[Reservation],
    blocked_dates: Iterable[BlockedDate]
) -> Verdict:
    """Decide whether a booking request for ``listing_id`` may be admitted"""
    reserved_ranges = [
        r.date_range for r in existing_reservations
        if r.listing_id == listing_id and r.status == BookingStatus.CONFIRMED
    ]
    blocked = [b.blocked_date for b in blocked_dates if b.listing_id == listing_id]
    return validate_against(
        check_in, check_out, guest_count, listing.max_guests, reserved_ranges, blocked
    )
