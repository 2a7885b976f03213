"""In-Memory Repository Implementations"""
import asyncio
from collections import defaultdict
from datetime import date
from typing import Optional, List, Dict, Set
from uuid import UUID

import structlog

from domain.repositories import ReservationRepository, ListingRepository, BlockedDateRepository
from domain.entities import Reservation, Listing, BlockedDate
from domain.enums import BookingStatus, ConflictStage
from domain.errors import DatesUnavailable
from domain.validator import find_blocked_night, find_overlap

logger = structlog.get_logger(__name__)


class InMemoryListingRepository(ListingRepository):
    """In-memory implementation of ListingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Listing] = {}

    async def save(self, listing: Listing) -> Listing:
        """Save listing to memory"""
        self._storage[listing.listing_id] = listing.model_copy(deep=True)
        return listing

    async def find_by_id(self, listing_id: UUID) -> Optional[Listing]:
        """Find listing by ID"""
        listing = self._storage.get(listing_id)
        return listing.model_copy(deep=True) if listing else None


class InMemoryBlockedDateRepository(BlockedDateRepository):
    """In-memory implementation of BlockedDateRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Set[date]] = defaultdict(set)

    async def block(self, listing_id: UUID, *days: date) -> None:
        """Mark days unavailable (host side, used for seeding)"""
        self._storage[listing_id].update(days)

    async def unblock(self, listing_id: UUID, *days: date) -> None:
        self._storage[listing_id].difference_update(days)

    async def find_by_listing(self, listing_id: UUID) -> List[BlockedDate]:
        """Find blocked dates of a listing"""
        return [
            BlockedDate(listing_id=listing_id, blocked_date=day)
            for day in sorted(self._storage.get(listing_id, ()))
        ]


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository.

    Writes for one listing are serialized by a per-listing lock, and the
    overlap/blocked-date check is repeated inside it, so two overlapping
    inserts can never both land.
    """

    def __init__(self, blocked_dates: Optional[BlockedDateRepository] = None):
        self._storage: Dict[UUID, Reservation] = {}
        self._blocked_dates = blocked_dates
        self._locks: Dict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _lock_for(self, listing_id: UUID) -> asyncio.Lock:
        return self._locks[listing_id]

    async def insert_if_available(self, reservation: Reservation) -> Reservation:
        """Insert reservation, rejecting write-time conflicts"""
        async with self._lock_for(reservation.listing_id):
            confirmed = [
                r.date_range for r in self._storage.values()
                if r.listing_id == reservation.listing_id and r.is_confirmed()
            ]
            clash = find_overlap(reservation.date_range, confirmed)
            if clash is not None:
                logger.warning(
                    "reservation_write_conflict",
                    listing_id=str(reservation.listing_id),
                    requested=[str(reservation.date_range.check_in), str(reservation.date_range.check_out)],
                    existing=[str(clash.check_in), str(clash.check_out)],
                )
                raise DatesUnavailable(stage=ConflictStage.WRITE)

            if self._blocked_dates is not None:
                blocked = await self._blocked_dates.find_by_listing(reservation.listing_id)
                day = find_blocked_night(reservation.date_range, [b.blocked_date for b in blocked])
                if day is not None:
                    logger.warning(
                        "reservation_write_conflict",
                        listing_id=str(reservation.listing_id),
                        blocked_date=day.isoformat(),
                    )
                    raise DatesUnavailable(stage=ConflictStage.WRITE)

            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
            return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return reservation.model_copy(deep=True) if reservation else None

    async def find_by_user_id(self, user_id: UUID) -> List[Reservation]:
        """Find reservations of a user, newest first"""
        found = [r.model_copy(deep=True) for r in self._storage.values() if r.user_id == user_id]
        return sorted(found, key=lambda r: r.created_at, reverse=True)

    async def find_by_listing_id(self, listing_id: UUID) -> List[Reservation]:
        """Find all reservations of a listing ordered by check-in"""
        found = [r.model_copy(deep=True) for r in self._storage.values() if r.listing_id == listing_id]
        return sorted(found, key=lambda r: r.date_range.check_in)

    async def find_confirmed_by_listing(self, listing_id: UUID) -> List[Reservation]:
        """Find confirmed reservations of a listing"""
        return [
            r.model_copy(deep=True) for r in self._storage.values()
            if r.listing_id == listing_id and r.is_confirmed()
        ]

    async def update_status(self, reservation: Reservation, expected: BookingStatus) -> bool:
        """Compare-and-set on status"""
        async with self._lock_for(reservation.listing_id):
            stored = self._storage.get(reservation.reservation_id)
            if stored is None:
                raise KeyError(reservation.reservation_id)
            if stored.status != expected:
                return False
            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
            return True
