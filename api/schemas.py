"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import RoomCategory, UserRole


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1)
    category: RoomCategory
    capacity: int = Field(ge=1)
    base_price: Decimal = Field(ge=0)
    description: Optional[str] = None
    hotel_id: Optional[UUID] = None


class UpdateRoomRequest(BaseModel):
    """Update room request DTO, omitted fields are left unchanged"""
    room_number: Optional[str] = Field(default=None, min_length=1)
    category: Optional[RoomCategory] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    base_price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    hotel_id: Optional[UUID] = None
    room_number: str
    category: str
    capacity: int
    base_price: Decimal
    description: Optional[str] = None
    is_active: bool


class NightlyRateResponse(BaseModel):
    """Nightly rate response DTO"""
    night: date
    rate: Decimal
    surcharges: List[str] = []


class PriceQuoteResponse(BaseModel):
    """Price quote response DTO"""
    room_id: UUID
    check_in: date
    check_out: date
    nights: int
    nightly_rates: List[NightlyRateResponse]
    room_price: Decimal
    taxes: Decimal
    service_fee: Decimal
    total_cost: Decimal
    currency: str


class AvailabilityResponse(BaseModel):
    """Room availability response DTO"""
    room_id: UUID
    check_in: date
    check_out: date
    available: bool


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    room_id: UUID
    check_in: date
    check_out: date
    guest_count: int = Field(ge=1)
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    special_requests: Optional[str] = None


class ProcessPaymentRequest(BaseModel):
    """Gateway checkout confirmation DTO"""
    method: str = "CARD"
    gateway_order_id: str
    gateway_payment_id: str
    signature: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    booking_reference: str
    confirmation_number: str
    room_id: UUID
    guest_id: UUID
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    special_requests: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    guest_count: int
    total_amount: Decimal
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    version: int


class CancelReservationResponse(BaseModel):
    """Cancel reservation response DTO"""
    cancelled: bool
    reservation: ReservationResponse


class PaymentResponse(BaseModel):
    """Payment response DTO"""
    payment_id: UUID
    reservation_id: UUID
    amount: Decimal
    currency: str
    method: str
    status: str
    transaction_reference: str
    gateway_order_id: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None


class PaymentOrderResponse(BaseModel):
    """Gateway order response DTO"""
    order_id: str
    amount: int
    currency: str
    status: Optional[str] = None
    payment_id: UUID
    reservation_id: UUID


class ReservationStatsResponse(BaseModel):
    """Reservation statistics response DTO"""
    total_reservations: int
    active_reservations: int
    total_revenue: Decimal


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
    phone: Optional[str] = None
    role: UserRole
    disabled: bool
