"""Client Booking Widget.

Keeps a snapshot of a listing's blocked dates, lets a guest pick a range
and guest count, shows nights and price, and submits the booking. Its
checks reuse ``domain.validator`` and ``domain.pricing`` so a request the
widget rejects is one the server rejects for the same reason. The checks
are advisory only: the server re-validates against live data, and the
price shown here is never sent.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import httpx
import structlog
from pydantic import BaseModel

from domain import pricing, validator
from domain.enums import RejectionReason
from domain.errors import BookingError, error_for_code, error_for_rejection
from domain.validator import DateInput, Verdict
from domain.value_objects import DateRange, PriceQuote

logger = structlog.get_logger(__name__)

_INPUT_REASONS = (RejectionReason.INVALID_DATE_RANGE, RejectionReason.GUEST_COUNT_EXCEEDED)


class AvailabilitySnapshot(BaseModel):
    reserved_ranges: List[DateRange] = []
    blocked_dates: List[date] = []


class BookingSummary(BaseModel):
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guests: int = 1
    quote: Optional[PriceQuote] = None


class BookingWidget:
    """State behind the booking card of a listing page"""

    def __init__(self,
                 http: httpx.Client,
                 listing_id: UUID,
                 price_per_night: Decimal,
                 max_guests: int,
                 token: Optional[str] = None,
                 currency: str = "USD"):
        self.http = http
        self.listing_id = listing_id
        self.price_per_night = Decimal(price_per_night)
        self.max_guests = max_guests
        self.token = token
        self.currency = currency

        self.snapshot = AvailabilitySnapshot()
        self.check_in: Optional[DateInput] = None
        self.check_out: Optional[DateInput] = None
        self.guests = 1

    # ==================== INPUT ====================
    def select_dates(self, check_in: Optional[DateInput], check_out: Optional[DateInput]) -> None:
        self.check_in = check_in
        self.check_out = check_out

    def clear_dates(self) -> None:
        self.select_dates(None, None)

    def set_guests(self, value: int) -> int:
        """Clamp to 1..max_guests, like the number input on the page"""
        self.guests = max(1, min(int(value), self.max_guests))
        return self.guests

    # ==================== DERIVED STATE ====================
    def load_availability(self) -> AvailabilitySnapshot:
        """Refresh the blocked-date snapshot from the server"""
        response = self.http.get(f"/api/listings/{self.listing_id}/blocked-dates")
        _raise_for_error(response)
        body = response.json()
        self.snapshot = AvailabilitySnapshot(
            reserved_ranges=body["reserved_ranges"],
            blocked_dates=body["blocked_dates"]
        )
        return self.snapshot

    def disabled_dates(self) -> List[date]:
        """Days a date picker should grey out as check-in days"""
        days = set(self.snapshot.blocked_dates)
        for reserved in self.snapshot.reserved_ranges:
            days.update(reserved.iter_nights())
        return sorted(days)

    def check(self) -> Verdict:
        """Advisory verdict against the last snapshot"""
        if self.check_in is None or self.check_out is None:
            return Verdict.reject(
                RejectionReason.INVALID_DATE_RANGE,
                "Please select check-in and check-out dates"
            )
        return validator.validate_against(
            self.check_in,
            self.check_out,
            self.guests,
            self.max_guests,
            self.snapshot.reserved_ranges,
            self.snapshot.blocked_dates
        )

    def summary(self) -> BookingSummary:
        """Nights and display price for the current selection"""
        summary = BookingSummary(guests=self.guests)
        if self.check_in is None or self.check_out is None:
            return summary
        if not validator.validate_date_range(self.check_in, self.check_out).admitted:
            return summary
        date_range = validator.to_date_range(self.check_in, self.check_out)
        summary.check_in = date_range.check_in
        summary.check_out = date_range.check_out
        summary.quote = pricing.quote(
            self.price_per_night, date_range.check_in, date_range.check_out, self.currency
        )
        return summary

    # ==================== SUBMIT ====================
    def submit(self) -> dict:
        """Create the booking; raises the server's BookingError on failure"""
        verdict = self.check()
        if not verdict.admitted:
            logger.info(
                "widget_rejected_locally",
                listing_id=str(self.listing_id),
                reason=verdict.reason.value,
            )
            # input errors are final; availability is re-checked by the server
            if verdict.reason in _INPUT_REASONS:
                raise error_for_rejection(verdict.reason, verdict.message)

        date_range = validator.to_date_range(self.check_in, self.check_out)
        payload = {
            "listing_id": str(self.listing_id),
            "check_in": date_range.check_in.isoformat(),
            "check_out": date_range.check_out.isoformat(),
            "guest_count": self.guests,
        }
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = self.http.post("/api/bookings", json=payload, headers=headers)
        _raise_for_error(response)

        self.clear_dates()
        self.guests = 1
        return response.json()


def _raise_for_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    code = body.get("code")
    message = body.get("detail") if isinstance(body.get("detail"), str) else None
    logger.warning(
        "widget_request_failed",
        status_code=response.status_code,
        code=code,
    )
    if code:
        raise error_for_code(code, message)
    raise BookingError(message)
