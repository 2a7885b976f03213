"""Application Services - booking lifecycle use cases"""
import asyncio
from uuid import UUID
from datetime import date
from typing import Awaitable, List, Optional, TypeVar

import structlog
from pydantic import BaseModel

from domain.repositories import ReservationRepository, ListingRepository, BlockedDateRepository
from domain.entities import Listing, Reservation
from domain.enums import BookingStatus, ConflictStage, RejectionReason
from domain.errors import (
    AlreadyCancelled, BookingError, DatesUnavailable, Forbidden, ListingNotFound,
    NotFound, StoreError, StoreTimeout, StoreUnavailable, Unauthenticated,
    error_for_rejection,
)
from domain.value_objects import DateRange, ListingSnapshot, Money, PriceQuote
from domain import pricing, validator
from domain.validator import DateInput, Verdict

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BlockedDates(BaseModel):
    """Everything a client needs to grey out unavailable days"""
    reserved_ranges: List[DateRange]
    blocked_dates: List[date]


class BookingView(BaseModel):
    """A reservation joined with the current state of its listing"""
    reservation: Reservation
    listing: Optional[ListingSnapshot] = None


class BookingQuote(BaseModel):
    verdict: Verdict
    quote: Optional[PriceQuote] = None


class BookingService:
    """Booking Lifecycle Manager.

    Caller identity is always an explicit argument; resolving and caching
    it is the auth collaborator's job.
    """

    def __init__(self,
                 repository: ReservationRepository,
                 listing_repo: ListingRepository,
                 blocked_date_repo: BlockedDateRepository,
                 store_timeout: float = 2.0,
                 currency: str = "USD"):
        self.repository = repository
        self.listing_repo = listing_repo
        self.blocked_date_repo = blocked_date_repo
        self.store_timeout = store_timeout
        self.currency = currency

    # ==================== STORE ACCESS ====================
    async def _store(self, operation: str, call: Awaitable[T]) -> T:
        """Run one store call with a bounded timeout and map its failures"""
        try:
            return await asyncio.wait_for(call, timeout=self.store_timeout)
        except BookingError:
            raise
        except asyncio.TimeoutError:
            logger.error("store_timeout", operation=operation, timeout=self.store_timeout)
            raise StoreTimeout()
        except (ConnectionError, OSError) as e:
            logger.error("store_unavailable", operation=operation, error=str(e))
            raise StoreUnavailable()
        except Exception:
            logger.exception("store_error", operation=operation)
            raise StoreError()

    async def _load_listing(self, listing_id: UUID) -> Listing:
        listing = await self._store("find_listing", self.listing_repo.find_by_id(listing_id))
        if listing is None:
            raise ListingNotFound()
        return listing

    async def _load_owned(self, reservation_id: UUID, caller_id: Optional[UUID]) -> Reservation:
        _require_caller(caller_id)
        reservation = await self._store("find_reservation", self.repository.find_by_id(reservation_id))
        if reservation is None:
            raise NotFound()
        # existence is checked first, so non-owners learn that the id exists
        if not reservation.is_owned_by(caller_id):
            logger.info(
                "booking_access_denied",
                reservation_id=str(reservation_id),
                caller_id=str(caller_id),
            )
            raise Forbidden()
        return reservation

    async def _snapshot(self, listing_id: UUID) -> Optional[ListingSnapshot]:
        listing = await self._store("find_listing", self.listing_repo.find_by_id(listing_id))
        return listing.snapshot() if listing else None

    # ==================== QUERIES ====================
    async def get_blocked_dates(self, listing_id: UUID) -> BlockedDates:
        """Confirmed reservation ranges and host blocks of a listing"""
        await self._load_listing(listing_id)
        reservations = await self._store(
            "find_confirmed", self.repository.find_confirmed_by_listing(listing_id)
        )
        blocked = await self._store(
            "find_blocked_dates", self.blocked_date_repo.find_by_listing(listing_id)
        )
        return BlockedDates(
            reserved_ranges=sorted((r.date_range for r in reservations), key=lambda d: d.check_in),
            blocked_dates=sorted(b.blocked_date for b in blocked)
        )

    async def get_user_bookings(self, caller_id: Optional[UUID]) -> List[BookingView]:
        """All bookings of the caller, newest first, with current listing data"""
        _require_caller(caller_id)
        reservations = await self._store("find_by_user", self.repository.find_by_user_id(caller_id))
        views = []
        for reservation in reservations:
            views.append(BookingView(
                reservation=reservation,
                listing=await self._snapshot(reservation.listing_id)
            ))
        return views

    async def get_booking_by_id(self, reservation_id: UUID, caller_id: Optional[UUID]) -> BookingView:
        reservation = await self._load_owned(reservation_id, caller_id)
        return BookingView(
            reservation=reservation,
            listing=await self._snapshot(reservation.listing_id)
        )

    async def get_listing_bookings(self, listing_id: UUID, caller_id: Optional[UUID]) -> List[Reservation]:
        """Host view of every reservation of one of their listings"""
        _require_caller(caller_id)
        listing = await self._load_listing(listing_id)
        if listing.host_id != caller_id:
            raise Forbidden("You do not have permission to view bookings for this listing")
        return await self._store("find_by_listing", self.repository.find_by_listing_id(listing_id))

    async def quote_booking(
        self,
        listing_id: UUID,
        check_in: DateInput,
        check_out: DateInput,
        guest_count: int
    ) -> BookingQuote:
        """Dry run of create_booking: verdict and price, nothing written"""
        listing = await self._load_listing(listing_id)
        verdict = validator.validate_date_range(check_in, check_out)
        if not verdict.admitted:
            return BookingQuote(verdict=verdict)

        verdict = await self._validate(listing, check_in, check_out, guest_count)
        date_range = validator.to_date_range(check_in, check_out)
        quote = None
        if verdict.reason not in (RejectionReason.INVALID_DATE_RANGE, RejectionReason.GUEST_COUNT_EXCEEDED):
            quote = pricing.quote(
                listing.price_per_night, date_range.check_in, date_range.check_out, self.currency
            )
        return BookingQuote(verdict=verdict, quote=quote)

    # ==================== COMMANDS ====================
    async def create_booking(
        self,
        caller_id: Optional[UUID],
        listing_id: UUID,
        check_in: DateInput,
        check_out: DateInput,
        guest_count: int
    ) -> Reservation:
        """Validate, price and persist a confirmed reservation"""
        _require_caller(caller_id)

        # a bad range is rejected before the store is touched
        verdict = validator.validate_date_range(check_in, check_out)
        if not verdict.admitted:
            _log_rejection(listing_id, caller_id, verdict)
            raise error_for_rejection(verdict.reason, verdict.message)

        listing = await self._load_listing(listing_id)
        verdict = await self._validate(listing, check_in, check_out, guest_count)
        if not verdict.admitted:
            _log_rejection(listing_id, caller_id, verdict)
            raise error_for_rejection(verdict.reason, verdict.message)

        date_range = validator.to_date_range(check_in, check_out)
        total = pricing.price(listing.price_per_night, date_range.check_in, date_range.check_out)
        reservation = Reservation.create(
            listing=listing,
            user_id=caller_id,
            date_range=date_range,
            guest_count=guest_count,
            total_price=Money(amount=total, currency=self.currency)
        )

        try:
            saved = await self._store("insert_reservation", self.repository.insert_if_available(reservation))
        except DatesUnavailable as e:
            logger.warning(
                "booking_rejected",
                listing_id=str(listing_id),
                caller_id=str(caller_id),
                reason=e.code.value,
                stage=e.stage.value,
            )
            raise

        logger.info(
            "booking_created",
            reservation_id=str(saved.reservation_id),
            listing_id=str(listing_id),
            caller_id=str(caller_id),
            check_in=str(date_range.check_in),
            check_out=str(date_range.check_out),
            guest_count=guest_count,
            total_price=str(total),
        )
        return saved

    async def cancel_booking(self, reservation_id: UUID, caller_id: Optional[UUID]) -> bool:
        """Flip a confirmed booking to cancelled; cancelled is terminal"""
        reservation = await self._load_owned(reservation_id, caller_id)
        reservation.cancel()

        swapped = await self._store(
            "update_status",
            self.repository.update_status(reservation, expected=BookingStatus.CONFIRMED)
        )
        if not swapped:
            # lost the race against another cancel of the same booking
            raise AlreadyCancelled()

        logger.info(
            "booking_cancelled",
            reservation_id=str(reservation_id),
            listing_id=str(reservation.listing_id),
            caller_id=str(caller_id),
        )
        return True

    # ==================== HELPERS ====================
    async def _validate(self, listing: Listing, check_in: DateInput, check_out: DateInput,
                        guest_count: int) -> Verdict:
        reservations = await self._store(
            "find_confirmed", self.repository.find_confirmed_by_listing(listing.listing_id)
        )
        blocked = await self._store(
            "find_blocked_dates", self.blocked_date_repo.find_by_listing(listing.listing_id)
        )
        return validator.validate(
            listing.listing_id, check_in, check_out, guest_count, listing, reservations, blocked
        )


def _require_caller(caller_id: Optional[UUID]) -> None:
    if caller_id is None:
        raise Unauthenticated()


def _log_rejection(listing_id: UUID, caller_id: UUID, verdict: Verdict) -> None:
    fields = dict(
        listing_id=str(listing_id),
        caller_id=str(caller_id),
        reason=verdict.reason.value,
    )
    if verdict.reason == RejectionReason.DATES_UNAVAILABLE:
        fields["stage"] = ConflictStage.VALIDATION.value
    logger.info("booking_rejected", **fields)
