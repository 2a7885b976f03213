from contextlib import asynccontextmanager
from datetime import date, timedelta
from decimal import Decimal
from typing import List
from uuid import UUID

import structlog
from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Bookings
    CreateBookingRequest, QuoteRequest, BookingResponse, BlockedDatesResponse,
    CancelBookingResponse, DateRangeResponse, ListingSnapshotResponse,
    PriceQuoteResponse, QuoteResponse, ErrorResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, fake_users_db, get_user
from infrastructure import config
from infrastructure.logging_config import configure_logging
from infrastructure.security import verify_password, create_access_token
from domain.auth import User
from domain.entities import Listing, Reservation
from domain.enums import BookingStatus, ErrorCode, ListingKind
from domain.errors import BookingError
from domain.value_objects import ListingImage, ListingSnapshot

from application.services import BookingService, BookingView
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryListingRepository, InMemoryBlockedDateRepository
)

configure_logging()
logger = structlog.get_logger(__name__)

# Initialize repositories
listing_repo = InMemoryListingRepository()
blocked_date_repo = InMemoryBlockedDateRepository()
reservation_repo = InMemoryReservationRepository(blocked_dates=blocked_date_repo)

DEMO_HOST_ID = UUID(fake_users_db["host"]["user_id"])
DEMO_STAY_ID = UUID("9b2f6a44-1c1e-4d7a-9a51-0f3c2b7d5e01")
DEMO_FOOD_ID = UUID("9b2f6a44-1c1e-4d7a-9a51-0f3c2b7d5e02")


async def seed_demo_data() -> None:
    """Two listings owned by the demo host, one with a blocked night"""
    await listing_repo.save(Listing(
        listing_id=DEMO_STAY_ID,
        kind=ListingKind.STAY,
        title="Cliffside Cabin",
        price_per_night=Decimal("120.00"),
        max_guests=4,
        host_id=DEMO_HOST_ID,
        location_name="Big Sur, CA",
        images=[ListingImage(image_path="stays/cabin/front.jpg", is_primary=True)]
    ))
    await listing_repo.save(Listing(
        listing_id=DEMO_FOOD_ID,
        kind=ListingKind.FOOD_EXPERIENCE,
        title="Farmhouse Supper Club",
        price_per_night=Decimal("45.00"),
        max_guests=10,
        host_id=DEMO_HOST_ID,
        location_name="Sonoma, CA"
    ))
    await blocked_date_repo.block(DEMO_STAY_ID, date.today() + timedelta(days=14))


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SEED_DEMO_DATA:
        await seed_demo_data()
        logger.info("demo_data_seeded", listings=2)
    yield


app = FastAPI(
    title="Stay & Food Booking API",
    description="Booking admission, pricing and lifecycle for stays and food experiences",
    version="1.0.0",
    lifespan=lifespan
)

_STATUS_BY_CODE = {
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.LISTING_NOT_FOUND: 404,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_DATE_RANGE: 400,
    ErrorCode.GUEST_COUNT_EXCEEDED: 400,
    ErrorCode.DATES_UNAVAILABLE: 409,
    ErrorCode.ALREADY_CANCELLED: 409,
    ErrorCode.TIMEOUT: 504,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.UNKNOWN: 500,
}


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = _STATUS_BY_CODE.get(exc.code, 500)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code.value)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code.value},
        headers=headers
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("request_crashed", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": BookingError.default_message, "code": ErrorCode.UNKNOWN.value}
    )


# Dependency injection
def get_booking_service() -> BookingService:
    return BookingService(
        reservation_repo,
        listing_repo,
        blocked_date_repo,
        store_timeout=config.STORE_TIMEOUT_SECONDS,
        currency=config.CURRENCY
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "Booking status values: confirmed, cancelled (terminal)"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# LISTING AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/listings/{listing_id}/blocked-dates", response_model=BlockedDatesResponse,
         responses={404: {"model": ErrorResponse}}, tags=["Availability"])
async def get_blocked_dates(
    listing_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Booked ranges and host-blocked dates of a listing"""
    blocked = await service.get_blocked_dates(listing_id)
    return BlockedDatesResponse(
        listing_id=listing_id,
        reserved_ranges=[
            DateRangeResponse(check_in=r.check_in, check_out=r.check_out)
            for r in blocked.reserved_ranges
        ],
        blocked_dates=blocked.blocked_dates
    )

@app.post("/api/listings/{listing_id}/quote", response_model=QuoteResponse,
          responses={404: {"model": ErrorResponse}}, tags=["Availability"])
async def quote_booking(
    listing_id: UUID,
    request: QuoteRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Advisory availability and price check; creates nothing"""
    result = await service.quote_booking(
        listing_id=listing_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guest_count=request.guest_count
    )
    quote = None
    if result.quote is not None:
        quote = PriceQuoteResponse(
            nights=result.quote.nights,
            price_per_night=result.quote.price_per_night.amount,
            total_price=result.quote.total.amount,
            currency=result.quote.total.currency
        )
    return QuoteResponse(
        available=result.verdict.admitted,
        reason=result.verdict.reason.value if result.verdict.reason else None,
        message=result.verdict.message,
        quote=quote
    )

@app.get("/api/listings/{listing_id}/bookings", response_model=List[BookingResponse],
         responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}, tags=["Host"])
async def get_listing_bookings(
    listing_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """All bookings of a listing, for its host"""
    reservations = await service.get_listing_bookings(listing_id, current_user.user_id)
    return [_booking_to_response(r) for r in reservations]

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201,
          responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                     409: {"model": ErrorResponse}}, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create a confirmed booking"""
    reservation = await service.create_booking(
        caller_id=current_user.user_id,
        listing_id=request.listing_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guest_count=request.guest_count
    )
    return _booking_to_response(reservation)

@app.get("/api/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_user_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Bookings of the current user, newest first"""
    views = await service.get_user_bookings(current_user.user_id)
    return [_view_to_response(v) for v in views]

@app.get("/api/bookings/{reservation_id}", response_model=BookingResponse,
         responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}, tags=["Bookings"])
async def get_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get one of the current user's bookings"""
    view = await service.get_booking_by_id(reservation_id, current_user.user_id)
    return _view_to_response(view)

@app.put("/api/bookings/{reservation_id}/cancel", response_model=CancelBookingResponse,
         responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                    409: {"model": ErrorResponse}}, tags=["Bookings"])
async def cancel_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel a booking"""
    await service.cancel_booking(reservation_id, current_user.user_id)
    return CancelBookingResponse(success=True, message="Booking cancelled successfully")

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _snapshot_to_response(snapshot: ListingSnapshot) -> ListingSnapshotResponse:
    return ListingSnapshotResponse(
        listing_id=snapshot.listing_id,
        kind=snapshot.kind.value,
        title=snapshot.title,
        primary_image=snapshot.primary_image,
        location_name=snapshot.location_name
    )

def _booking_to_response(reservation: Reservation, snapshot: ListingSnapshot = None) -> BookingResponse:
    """Convert Reservation entity to BookingResponse"""
    return BookingResponse(
        reservation_id=reservation.reservation_id,
        listing_id=reservation.listing_id,
        user_id=reservation.user_id,
        check_in=reservation.date_range.check_in,
        check_out=reservation.date_range.check_out,
        nights=reservation.get_nights(),
        guest_count=reservation.guest_count,
        total_price=reservation.total_price.amount,
        currency=reservation.total_price.currency,
        status=reservation.status.value,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        listing=_snapshot_to_response(snapshot) if snapshot else None
    )

def _view_to_response(view: BookingView) -> BookingResponse:
    return _booking_to_response(view.reservation, view.listing)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
