"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date
from typing import Optional
from decimal import Decimal

from domain.enums import ReservationStatus, PaymentStatus, RoomCategory, TERMINAL_STATUSES
from domain.exceptions import ValidationError, ConflictError
from domain.value_objects import DateRange

REFUND_METHOD = "REFUND"
PENDING_METHOD = "PENDING"

_ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


class Room(BaseModel):
    """Room Entity (owned by a hotel, read-only while a stay is priced)"""

    room_id: UUID = Field(default_factory=uuid4)
    hotel_id: Optional[UUID] = None
    room_number: str
    category: RoomCategory
    capacity: int = Field(ge=1)
    base_price: Decimal = Field(ge=0)
    description: Optional[str] = None
    is_active: bool = True

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def can_accommodate(self, guest_count: int) -> bool:
        return guest_count <= self.capacity

    def deactivate(self, now: datetime) -> None:
        """Soft delete: inactive rooms cannot be booked or listed"""
        self.is_active = False
        self.updated_at = now

    def update(
        self,
        now: datetime,
        room_number: Optional[str] = None,
        category: Optional[RoomCategory] = None,
        capacity: Optional[int] = None,
        base_price: Optional[Decimal] = None,
        description: Optional[str] = None
    ) -> None:
        """Apply the given changes; fields left as None are kept"""
        if room_number is not None and not room_number.strip():
            raise ValidationError("Room number cannot be empty")
        if capacity is not None and capacity < 1:
            raise ValidationError("Room capacity must be at least 1")
        if base_price is not None and base_price < 0:
            raise ValidationError("Base price cannot be negative")

        if room_number is not None:
            self.room_number = room_number
        if category is not None:
            self.category = category
        if capacity is not None:
            self.capacity = capacity
        if base_price is not None:
            self.base_price = base_price
        if description is not None:
            self.description = description
        self.updated_at = now


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    booking_reference: str
    confirmation_number: str

    # References to other aggregates
    room_id: UUID
    guest_id: UUID

    # Guest contact
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    special_requests: Optional[str] = None

    # Stay
    date_range: DateRange
    guest_count: int = Field(ge=1)
    total_amount: Decimal = Field(ge=0)
    currency: str

    status: ReservationStatus = ReservationStatus.PENDING

    # Metadata
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room: Room,
        guest_id: UUID,
        guest_name: str,
        date_range: DateRange,
        guest_count: int,
        total_amount: Decimal,
        currency: str,
        booking_reference: str,
        confirmation_number: str,
        now: datetime,
        guest_email: Optional[str] = None,
        guest_phone: Optional[str] = None,
        special_requests: Optional[str] = None
    ) -> "Reservation":
        """Create new reservation in PENDING with the price locked in"""
        Reservation.validate_stay(date_range, now.date())
        Reservation.validate_guest_count(guest_count, room)

        return Reservation(
            booking_reference=booking_reference,
            confirmation_number=confirmation_number,
            room_id=room.room_id,
            guest_id=guest_id,
            guest_name=guest_name,
            guest_email=guest_email,
            guest_phone=guest_phone,
            special_requests=special_requests,
            date_range=date_range,
            guest_count=guest_count,
            total_amount=total_amount,
            currency=currency,
            status=ReservationStatus.PENDING,
            created_at=now,
            updated_at=now
        )

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self, now: datetime) -> None:
        """Confirm reservation after a verified payment"""
        self._ensure_can(ReservationStatus.CONFIRMED, "confirm")
        self._apply(ReservationStatus.CONFIRMED, now)

    def check_in(self, now: datetime) -> None:
        """Mark guest as checked in"""
        self._ensure_can(ReservationStatus.CHECKED_IN, "check in")
        if self.date_range.check_in > now.date():
            raise ConflictError("Check-in date has not arrived")

        self._apply(ReservationStatus.CHECKED_IN, now)
        self.actual_check_in = now

    def check_out(self, now: datetime) -> None:
        """Process guest check-out"""
        self._ensure_can(ReservationStatus.COMPLETED, "check out")
        self._apply(ReservationStatus.COMPLETED, now)
        self.actual_check_out = now

    def cancel(self, now: datetime) -> None:
        """Cancel reservation. Irreversible."""
        self._ensure_can(ReservationStatus.CANCELLED, "cancel")
        self._apply(ReservationStatus.CANCELLED, now)
        self.cancelled_at = now

    # ==================== QUERY METHODS ====================
    def is_cancellable(self) -> bool:
        return ReservationStatus.CANCELLED in _ALLOWED_TRANSITIONS[self.status]

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.guest_id == user_id

    def get_nights(self) -> int:
        return self.date_range.nights()

    # ==================== VALIDATION ====================
    @staticmethod
    def validate_stay(date_range: DateRange, today: date) -> None:
        """Check-in must not be in the past"""
        if date_range.check_in < today:
            raise ValidationError("Check-in date must be today or later")

    @staticmethod
    def validate_guest_count(guest_count: int, room: Room) -> None:
        if guest_count < 1:
            raise ValidationError("At least 1 guest is required")
        if not room.can_accommodate(guest_count):
            raise ValidationError(
                f"Guest count {guest_count} exceeds room capacity {room.capacity}"
            )

    def _ensure_can(self, target: ReservationStatus, action: str) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise ConflictError(
                f"Cannot {action} reservation with status {self.status.value}"
            )

    def _apply(self, target: ReservationStatus, now: datetime) -> None:
        self.status = target
        self.updated_at = now
        self.version += 1


class Payment(BaseModel):
    """Payment Entity. Refunds are separate records with a negative amount."""

    payment_id: UUID = Field(default_factory=uuid4)
    reservation_id: UUID
    amount: Decimal
    currency: str
    method: str = PENDING_METHOD
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_reference: str
    gateway_order_id: Optional[str] = None

    created_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @staticmethod
    def pending(
        reservation_id: UUID,
        amount: Decimal,
        currency: str,
        transaction_reference: str,
        now: datetime,
        method: str = PENDING_METHOD
    ) -> "Payment":
        if amount < 0:
            raise ValidationError("Payment amount cannot be negative")
        return Payment(
            reservation_id=reservation_id,
            amount=amount,
            currency=currency,
            method=method,
            status=PaymentStatus.PENDING,
            transaction_reference=transaction_reference,
            created_at=now
        )

    @staticmethod
    def refund(
        reservation_id: UUID,
        amount: Decimal,
        currency: str,
        transaction_reference: str,
        now: datetime
    ) -> "Payment":
        """Completed refund record for the given (positive) amount"""
        return Payment(
            reservation_id=reservation_id,
            amount=-abs(amount),
            currency=currency,
            method=REFUND_METHOD,
            status=PaymentStatus.COMPLETED,
            transaction_reference=transaction_reference,
            created_at=now,
            processed_at=now
        )

    def complete(self, external_reference: str, now: datetime, method: Optional[str] = None) -> None:
        self._ensure_pending("complete")
        if method:
            self.method = method
        self.status = PaymentStatus.COMPLETED
        self.transaction_reference = external_reference
        self.processed_at = now

    def fail(self, now: datetime) -> None:
        self._ensure_pending("fail")
        self.status = PaymentStatus.FAILED
        self.processed_at = now

    def attach_order(self, order_id: str) -> None:
        self._ensure_pending("attach an order to")
        self.gateway_order_id = order_id

    @property
    def is_refund(self) -> bool:
        return self.method == REFUND_METHOD and self.amount < 0

    @property
    def is_completed_charge(self) -> bool:
        return self.status == PaymentStatus.COMPLETED and not self.is_refund

    def _ensure_pending(self, action: str) -> None:
        if self.status != PaymentStatus.PENDING:
            raise ConflictError(
                f"Cannot {action} payment with status {self.status.value}"
            )
