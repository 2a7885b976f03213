"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List
from decimal import Decimal

from domain.enums import BookingStatus, ListingKind
from domain.errors import AlreadyCancelled, GuestCountExceeded
from domain.value_objects import DateRange, Money, ListingImage, ListingSnapshot


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Listing(BaseModel):
    """Listing record owned by the listing subsystem; read-only to bookings"""

    listing_id: UUID = Field(default_factory=uuid4)
    kind: ListingKind = ListingKind.STAY
    title: str
    price_per_night: Decimal = Field(gt=0)
    max_guests: int = Field(ge=1)
    host_id: UUID
    location_name: Optional[str] = None
    images: List[ListingImage] = []

    class Config:
        from_attributes = True

    @property
    def primary_image(self) -> Optional[str]:
        for image in self.images:
            if image.is_primary:
                return image.image_path
        return self.images[0].image_path if self.images else None

    def snapshot(self) -> ListingSnapshot:
        return ListingSnapshot(
            listing_id=self.listing_id,
            kind=self.kind,
            title=self.title,
            primary_image=self.primary_image,
            location_name=self.location_name
        )


class BlockedDate(BaseModel):
    """Host-declared date on which a listing cannot be booked"""
    listing_id: UUID
    blocked_date: date

    class Config:
        frozen = True


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    listing_id: UUID
    user_id: UUID

    # Value Objects
    date_range: DateRange
    guest_count: int = Field(ge=1)
    total_price: Money

    status: BookingStatus = BookingStatus.CONFIRMED

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        listing: Listing,
        user_id: UUID,
        date_range: DateRange,
        guest_count: int,
        total_price: Money
    ) -> "Reservation":
        """Create a confirmed reservation for an already admitted request"""
        if not 1 <= guest_count <= listing.max_guests:
            raise GuestCountExceeded(
                f"Guest count must be between 1 and {listing.max_guests}"
            )

        now = _utcnow()
        return Reservation(
            listing_id=listing.listing_id,
            user_id=user_id,
            date_range=date_range,
            guest_count=guest_count,
            total_price=total_price,
            status=BookingStatus.CONFIRMED,
            created_at=now,
            updated_at=now
        )

    # ==================== STATE TRANSITION METHODS ====================
    def cancel(self) -> None:
        """Cancel reservation; cancellation is terminal"""
        if not self.is_cancellable():
            raise AlreadyCancelled()

        self.status = BookingStatus.CANCELLED
        self.updated_at = _utcnow()

    # ==================== QUERY METHODS ====================
    def is_cancellable(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def is_owned_by(self, user_id: Optional[UUID]) -> bool:
        return user_id is not None and self.user_id == user_id

    def get_nights(self) -> int:
        """Get number of nights"""
        return self.date_range.nights()
