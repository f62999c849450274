import logging

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from uuid import UUID
from datetime import date, timedelta
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse, PriceQuoteResponse, NightlyRateResponse, AvailabilityResponse,
    # Reservations
    CreateReservationRequest, ReservationResponse, CancelReservationResponse,
    ProcessPaymentRequest, PaymentResponse, PaymentOrderResponse, ReservationStatsResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, require_admin, get_user, user_repo
from infrastructure.config import settings
from infrastructure.logging_config import configure_logging
from infrastructure.security import verify_password, create_access_token
from domain.auth import User

from application.services import ReservationService, RoomService
from infrastructure.clock import SystemClock
from infrastructure.id_generator import RandomIdGenerator
from infrastructure.payment_gateway import build_gateway
from infrastructure.repositories.in_memory_repositories import (
    InMemoryRoomRepository, InMemoryReservationRepository, InMemoryPaymentRepository
)
from infrastructure.unit_of_work import InMemoryUnitOfWork
from domain.enums import ReservationStatus, PaymentStatus, RoomCategory
from domain.exceptions import (
    ValidationError, NotFoundError, ConflictError, UnauthorizedError,
    PaymentDeclinedError, ExternalServiceError
)
from domain.policies import CancellationPolicy
from domain.pricing import PricingEngine
from domain.value_objects import PaymentVerification

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Room booking, dynamic pricing, payments and cancellations",
    version="1.0.0"
)

# Initialize repositories
room_repo = InMemoryRoomRepository()
reservation_repo = InMemoryReservationRepository()
payment_repo = InMemoryPaymentRepository()
uow = InMemoryUnitOfWork(room_repo, reservation_repo, payment_repo, user_repo)

clock = SystemClock()
id_generator = RandomIdGenerator()
gateway = build_gateway(settings)
pricing_engine = PricingEngine(settings.TAX_RATE, settings.SERVICE_FEE, settings.CURRENCY)
cancellation_policy = CancellationPolicy(settings.REFUND_CUTOFF_HOURS)

# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(uow, pricing_engine, cancellation_policy, gateway, clock, id_generator)

def get_room_service() -> RoomService:
    return RoomService(uow, clock)

# ============================================================================
# ERROR MAPPING
# ============================================================================

_ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    UnauthorizedError: 403,
    PaymentDeclinedError: 409,
    ExternalServiceError: 503,
}

def _error_handler(status_code: int):
    async def handler(request: Request, exc):
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": exc.kind})
    return handler

for _exc_class, _status_code in _ERROR_STATUS_CODES.items():
    app.add_exception_handler(_exc_class, _error_handler(_status_code))

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [f"{item.name}" for item in ReservationStatus],
        "description": "Reservation status values: PENDING, CONFIRMED, CHECKED_IN, COMPLETED, CANCELLED"
    }

@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus enum values"""
    return {
        "values": [f"{item.name}" for item in PaymentStatus],
        "description": "Payment status values: PENDING, COMPLETED, FAILED, REFUNDED"
    }

@app.get("/api/enums/room-category", tags=["Enum Reference"])
async def get_room_categories():
    """Get all RoomCategory enum values"""
    return {
        "values": [f"{item.name}" for item in RoomCategory],
        "description": "Room category values: SINGLE, DOUBLE, SUITE, PRESIDENTIAL"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = await get_user(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Add a room to the inventory"""
    room = await service.add_room(
        room_number=request.room_number,
        category=request.category,
        capacity=request.capacity,
        base_price=request.base_price,
        description=request.description,
        hotel_id=request.hotel_id
    )
    return _room_to_response(room)

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def list_rooms(
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """List active rooms"""
    rooms = await service.list_rooms()
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/search", response_model=List[RoomResponse], tags=["Rooms"])
async def search_available_rooms(
    check_in: date,
    check_out: date,
    capacity: Optional[int] = None,
    category: Optional[RoomCategory] = None,
    hotel_id: Optional[UUID] = None,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Find active rooms free for the whole stay"""
    rooms = await service.find_available_rooms(check_in, check_out, capacity, category, hotel_id)
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by ID"""
    room = await service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return _room_to_response(room)

@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Update room details; booked stays keep their locked price"""
    room = await service.update_room(
        room_id,
        room_number=request.room_number,
        category=request.category,
        capacity=request.capacity,
        base_price=request.base_price,
        description=request.description
    )
    return _room_to_response(room)

@app.delete("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def deactivate_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Soft-delete a room"""
    room = await service.deactivate_room(room_id)
    return _room_to_response(room)

@app.get("/api/rooms/{room_id}/pricing", response_model=PriceQuoteResponse, tags=["Rooms"])
async def get_room_pricing(
    room_id: UUID,
    check_in: date,
    check_out: date,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Price a stay without booking it"""
    quote = await service.quote_price(room_id, check_in, check_out)
    return PriceQuoteResponse(
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        nights=quote.nights,
        nightly_rates=[
            NightlyRateResponse(night=n.night, rate=n.rate, surcharges=n.surcharges)
            for n in quote.nightly_rates
        ],
        room_price=quote.room_price,
        taxes=quote.taxes,
        service_fee=quote.service_fee,
        total_cost=quote.total_cost,
        currency=quote.currency
    )

@app.get("/api/rooms/{room_id}/availability", response_model=AvailabilityResponse, tags=["Rooms"])
async def get_room_availability(
    room_id: UUID,
    check_in: date,
    check_out: date,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check whether a room is free for a stay"""
    available = await service.is_available(room_id, check_in, check_out)
    return AvailabilityResponse(room_id=room_id, check_in=check_in, check_out=check_out, available=available)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book a room for the current user"""
    reservation = await service.create_reservation(
        guest_id=current_user.user_id,
        room_id=request.room_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guest_count=request.guest_count,
        guest_name=request.guest_name,
        guest_email=request.guest_email,
        guest_phone=request.guest_phone,
        special_requests=request.special_requests
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations/me", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_my_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current user's reservations, newest first"""
    reservations = await service.get_reservations_by_guest(current_user.user_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/date-range", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_reservations_by_date_range(
    start_date: date,
    end_date: date,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Get reservations checking in between two dates (inclusive)"""
    reservations = await service.get_reservations_by_date_range(start_date, end_date)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/stats", response_model=ReservationStatsResponse, tags=["Reservations"])
async def get_reservation_statistics(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Get reservation counts and revenue"""
    stats = await service.get_statistics()
    return ReservationStatsResponse(
        total_reservations=stats.total_reservations,
        active_reservations=stats.active_reservations,
        total_revenue=stats.total_revenue
    )

@app.get("/api/reservations/confirmation/{confirmation_number}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_confirmation_number(
    confirmation_number: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by confirmation number"""
    reservation = await service.get_reservation_by_confirmation_number(confirmation_number)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    _ensure_can_view(reservation, current_user)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await _get_visible_reservation(service, reservation_id, current_user)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/payments", response_model=List[PaymentResponse], tags=["Payments"])
async def get_reservation_payments(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get every payment and refund recorded for a reservation"""
    await _get_visible_reservation(service, reservation_id, current_user)
    payments = await service.get_payments(reservation_id)
    return [_payment_to_response(p) for p in payments]

@app.post("/api/reservations/{reservation_id}/payment-order", response_model=PaymentOrderResponse, tags=["Payments"])
async def create_payment_order(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Open a gateway order for the pending payment"""
    await _get_visible_reservation(service, reservation_id, current_user)
    order = await service.create_payment_order(reservation_id)
    return PaymentOrderResponse(**order)

@app.post("/api/reservations/{reservation_id}/payment", response_model=PaymentResponse, tags=["Payments"])
async def process_payment(
    reservation_id: UUID,
    request: ProcessPaymentRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Confirm the reservation from a signed gateway checkout"""
    await _get_visible_reservation(service, reservation_id, current_user)
    payment = await service.process_payment(
        reservation_id=reservation_id,
        method=request.method,
        verification=PaymentVerification(
            gateway_order_id=request.gateway_order_id,
            gateway_payment_id=request.gateway_payment_id,
            signature=request.signature
        )
    )
    return _payment_to_response(payment)

@app.post("/api/reservations/{reservation_id}/cancel", response_model=CancelReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation, refunding when cancelled early enough"""
    cancelled = await service.cancel_reservation(reservation_id, current_user.user_id)
    reservation = await service.get_reservation(reservation_id)
    return CancelReservationResponse(cancelled=cancelled, reservation=_reservation_to_response(reservation))

@app.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_guest(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Check in guest"""
    reservation = await service.check_in(reservation_id)
    return _reservation_to_response(reservation)

@app.post("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_guest(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Check out guest"""
    reservation = await service.check_out(reservation_id)
    return _reservation_to_response(reservation)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _ensure_can_view(reservation, user: User) -> None:
    if not user.is_admin and not reservation.is_owned_by(user.user_id):
        raise UnauthorizedError("Not allowed to access this reservation")

async def _get_visible_reservation(service: ReservationService, reservation_id: UUID, user: User):
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    _ensure_can_view(reservation, user)
    return reservation

def _room_to_response(room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        hotel_id=room.hotel_id,
        room_number=room.room_number,
        category=room.category.value,
        capacity=room.capacity,
        base_price=room.base_price,
        description=room.description,
        is_active=room.is_active
    )

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        booking_reference=reservation.booking_reference,
        confirmation_number=reservation.confirmation_number,
        room_id=reservation.room_id,
        guest_id=reservation.guest_id,
        guest_name=reservation.guest_name,
        guest_email=reservation.guest_email,
        guest_phone=reservation.guest_phone,
        special_requests=reservation.special_requests,
        check_in=reservation.date_range.check_in,
        check_out=reservation.date_range.check_out,
        nights=reservation.get_nights(),
        guest_count=reservation.guest_count,
        total_amount=reservation.total_amount,
        currency=reservation.currency,
        status=reservation.status.value,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        cancelled_at=reservation.cancelled_at,
        actual_check_in=reservation.actual_check_in,
        actual_check_out=reservation.actual_check_out,
        version=reservation.version
    )

def _payment_to_response(payment) -> PaymentResponse:
    """Convert Payment entity to PaymentResponse"""
    return PaymentResponse(
        payment_id=payment.payment_id,
        reservation_id=payment.reservation_id,
        amount=payment.amount,
        currency=payment.currency,
        method=payment.method,
        status=payment.status.value,
        transaction_reference=payment.transaction_reference,
        gateway_order_id=payment.gateway_order_id,
        created_at=payment.created_at,
        processed_at=payment.processed_at
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
