"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, List, Optional


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO.

    Dates stay strings and the guest count stays untyped, so malformed
    values reach the validator and come back as InvalidDateRange or
    GuestCountExceeded rather than as schema errors.
    """
    listing_id: UUID
    check_in: str = Field(description="YYYY-MM-DD, listing-local calendar")
    check_out: str = Field(description="YYYY-MM-DD, listing-local calendar")
    guest_count: Any = Field(description="Whole number of guests")


class QuoteRequest(BaseModel):
    """Advisory availability/price check DTO"""
    check_in: str
    check_out: str
    guest_count: Any = 1


class DateRangeResponse(BaseModel):
    check_in: date
    check_out: date


class BlockedDatesResponse(BaseModel):
    """Blocked dates response DTO"""
    listing_id: UUID
    reserved_ranges: List[DateRangeResponse]
    blocked_dates: List[date]


class ListingSnapshotResponse(BaseModel):
    listing_id: UUID
    kind: str
    title: str
    primary_image: Optional[str] = None
    location_name: Optional[str] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    reservation_id: UUID
    listing_id: UUID
    user_id: UUID
    check_in: date
    check_out: date
    nights: int
    guest_count: int
    total_price: Decimal
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime
    listing: Optional[ListingSnapshotResponse] = None


class CancelBookingResponse(BaseModel):
    success: bool
    message: str


class PriceQuoteResponse(BaseModel):
    nights: int
    price_per_night: Decimal
    total_price: Decimal
    currency: str


class QuoteResponse(BaseModel):
    """Quote response DTO; never a promise that a later create succeeds"""
    available: bool
    reason: Optional[str] = None
    message: str = ""
    quote: Optional[PriceQuoteResponse] = None


class ErrorResponse(BaseModel):
    detail: str
    code: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
