"""Domain Repository Interfaces - the availability store seen by the core"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID

from domain.entities import Reservation, Listing, BlockedDate
from domain.enums import BookingStatus


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def insert_if_available(self, reservation: Reservation) -> Reservation:
        """Insert a confirmed reservation unless it conflicts at write time.

        Must raise DatesUnavailable(stage=WRITE) when a confirmed reservation
        of the same listing overlaps, or one of its nights is blocked.
        """
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List[Reservation]:
        """Find reservations of a user, newest first"""
        pass

    @abstractmethod
    async def find_by_listing_id(self, listing_id: UUID) -> List[Reservation]:
        """Find all reservations of a listing ordered by check-in"""
        pass

    @abstractmethod
    async def find_confirmed_by_listing(self, listing_id: UUID) -> List[Reservation]:
        """Find confirmed reservations of a listing"""
        pass

    @abstractmethod
    async def update_status(self, reservation: Reservation, expected: BookingStatus) -> bool:
        """Persist reservation.status only if the stored status is still `expected`"""
        pass


class ListingRepository(ABC):
    """Read access to the listing subsystem"""

    @abstractmethod
    async def find_by_id(self, listing_id: UUID) -> Optional[Listing]:
        """Find listing by ID"""
        pass


class BlockedDateRepository(ABC):
    """Read access to host-declared blocked dates"""

    @abstractmethod
    async def find_by_listing(self, listing_id: UUID) -> List[BlockedDate]:
        """Find blocked dates of a listing"""
        pass
