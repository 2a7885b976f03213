"""Domain Value Objects"""
from pydantic import BaseModel, Field, field_validator
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID
from typing import Iterator, Optional

from domain.enums import ListingKind


class DateRange(BaseModel):
    """Value Object for a half-open stay range [check_in, check_out)"""
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        """Back-to-back ranges (check_out == other.check_in) do not overlap"""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def contains_night(self, day: date) -> bool:
        return self.check_in <= day < self.check_out

    def iter_nights(self) -> Iterator[date]:
        day = self.check_in
        while day < self.check_out:
            yield day
            day += timedelta(days=1)

    class Config:
        frozen = True


class Money(BaseModel):
    """Value Object for monetary amounts"""
    amount: Decimal = Field(ge=0)
    currency: str = "USD"

    class Config:
        frozen = True


class ListingImage(BaseModel):
    image_path: str
    is_primary: bool = False

    class Config:
        frozen = True


class ListingSnapshot(BaseModel):
    """Display data of a listing as it is right now (not at booking time)"""
    listing_id: UUID
    kind: ListingKind
    title: str
    primary_image: Optional[str] = None
    location_name: Optional[str] = None

    class Config:
        frozen = True


class PriceQuote(BaseModel):
    """Nights and total for a date range, used for display and persistence"""
    nights: int = Field(ge=1)
    price_per_night: Money
    total: Money

    class Config:
        frozen = True
