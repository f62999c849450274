"""Application Services - Business use cases"""
import asyncio
import logging
from uuid import UUID
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from application.unit_of_work import AbstractUnitOfWork
from domain.entities import Room, Reservation, Payment
from domain.enums import ReservationStatus, RoomCategory, ACTIVE_STATUSES
from domain.exceptions import (
    ValidationError, NotFoundError, ConflictError, UnauthorizedError, PaymentDeclinedError, ExternalServiceError
)
from domain.interfaces import Clock, IdGenerator, PaymentGateway
from domain.policies import CancellationPolicy
from domain.pricing import PricingEngine
from domain.repositories import ReservationRepository, RoomRepository, PaymentRepository
from domain.value_objects import DateRange, PriceQuote, PaymentVerification, ReservationStats

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 10


def build_date_range(check_in: date, check_out: date) -> DateRange:
    try:
        return DateRange(check_in=check_in, check_out=check_out)
    except PydanticValidationError as e:
        raise ValidationError("Check-out must be after check-in") from e


class AvailabilityChecker:
    """Read-only overlap check over the non-cancelled reservations of a room"""

    def __init__(self, reservations: ReservationRepository, rooms: RoomRepository):
        self.reservations = reservations
        self.rooms = rooms

    async def is_available(self, room_id: UUID, check_in: date, check_out: date) -> bool:
        for existing in await self.reservations.find_by_room_id(room_id):
            if existing.status == ReservationStatus.CANCELLED:
                continue
            if existing.date_range.overlaps(check_in, check_out):
                return False
        return True

    async def find_available_rooms(
        self,
        check_in: date,
        check_out: date,
        capacity: Optional[int] = None,
        category: Optional[RoomCategory] = None,
        hotel_id: Optional[UUID] = None
    ) -> List[Room]:
        """Active rooms matching the filters with no conflicting stay"""
        result = []
        for room in await self.rooms.find_active():
            if hotel_id is not None and room.hotel_id != hotel_id:
                continue
            if capacity is not None and room.capacity < capacity:
                continue
            if category is not None and room.category != category:
                continue
            if await self.is_available(room.room_id, check_in, check_out):
                result.append(room)
        return result


class PaymentLedger:
    """Payment attempts and refunds for reservations.

    Runs inside the caller's unit of work; it never opens one itself.
    """

    def __init__(self, payments: PaymentRepository, clock: Clock, id_generator: IdGenerator):
        self.payments = payments
        self.clock = clock
        self.id_generator = id_generator

    async def get(self, payment_id: UUID) -> Payment:
        payment = await self.payments.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    async def payments_for(self, reservation_id: UUID) -> List[Payment]:
        return await self.payments.find_by_reservation_id(reservation_id)

    async def pending_payment(self, reservation_id: UUID) -> Optional[Payment]:
        pending = await self.payments.find_pending_by_reservation_id(reservation_id)
        if len(pending) > 1:
            raise ConflictError("Reservation has more than one pending payment")
        return pending[0] if pending else None

    async def record_attempt(
        self,
        reservation: Reservation,
        amount: Optional[Decimal] = None,
        method: str = "PENDING"
    ) -> Payment:
        """Open the single pending payment of a reservation"""
        if await self.pending_payment(reservation.reservation_id):
            raise ConflictError("Reservation already has a pending payment")

        payment = Payment.pending(
            reservation_id=reservation.reservation_id,
            amount=reservation.total_amount if amount is None else amount,
            currency=reservation.currency,
            transaction_reference=self.id_generator.transaction_reference(),
            now=self.clock.now(),
            method=method
        )
        return await self.payments.save(payment)

    async def attach_order(self, payment_id: UUID, order_id: str) -> Payment:
        payment = await self.get(payment_id)
        payment.attach_order(order_id)
        return await self.payments.update(payment)

    async def complete(self, payment_id: UUID, external_reference: str, method: Optional[str] = None) -> Payment:
        payment = await self.get(payment_id)
        payment.complete(external_reference, self.clock.now(), method)
        logger.info("Payment %s completed (%s)", payment_id, external_reference)
        return await self.payments.update(payment)

    async def fail(self, payment_id: UUID) -> Payment:
        payment = await self.get(payment_id)
        payment.fail(self.clock.now())
        logger.info("Payment %s marked failed", payment_id)
        return await self.payments.update(payment)

    async def has_completed_charge(self, reservation_id: UUID) -> bool:
        return any(p.is_completed_charge for p in await self.payments_for(reservation_id))

    async def refund(self, reservation: Reservation) -> Payment:
        """Record a refund of the full reservation total as a new payment"""
        payments = await self.payments_for(reservation.reservation_id)
        if not any(p.is_completed_charge for p in payments):
            raise ConflictError("Only completed payments can be refunded")
        if any(p.is_refund for p in payments):
            raise ConflictError("Reservation has already been refunded")

        refund = Payment.refund(
            reservation_id=reservation.reservation_id,
            amount=reservation.total_amount,
            currency=reservation.currency,
            transaction_reference=self.id_generator.transaction_reference(),
            now=self.clock.now()
        )
        logger.info("Refund of %s %s issued for reservation %s",
                    reservation.total_amount, reservation.currency, reservation.booking_reference)
        return await self.payments.save(refund)


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self,
                 uow: AbstractUnitOfWork,
                 pricing: PricingEngine,
                 cancellation_policy: CancellationPolicy,
                 gateway: PaymentGateway,
                 clock: Clock,
                 id_generator: IdGenerator):
        self.uow = uow
        self.pricing = pricing
        self.cancellation_policy = cancellation_policy
        self.gateway = gateway
        self.clock = clock
        self.id_generator = id_generator
        self.availability = AvailabilityChecker(uow.reservations, uow.rooms)
        self.ledger = PaymentLedger(uow.payments, clock, id_generator)

    # ==================== COMMANDS ====================
    async def create_reservation(
        self,
        guest_id: UUID,
        room_id: UUID,
        check_in: date,
        check_out: date,
        guest_count: int,
        guest_name: Optional[str] = None,
        guest_email: Optional[str] = None,
        guest_phone: Optional[str] = None,
        special_requests: Optional[str] = None
    ) -> Reservation:
        """Book a room: availability, price and pending payment in one step"""
        date_range = build_date_range(check_in, check_out)
        Reservation.validate_stay(date_range, self.clock.today())
        if guest_count < 1:
            raise ValidationError("At least 1 guest is required")

        async with self.uow:
            room = await self._get_active_room(room_id)
            guest = await self.uow.users.find_by_id(guest_id)
            if not guest or guest.disabled:
                raise NotFoundError("Guest not found")

            Reservation.validate_guest_count(guest_count, room)

            if not await self.availability.is_available(room.room_id, check_in, check_out):
                raise ConflictError("Room is not available for the selected dates")

            reservation = Reservation.create(
                room=room,
                guest_id=guest.user_id,
                guest_name=guest_name or guest.full_name or guest.username,
                guest_email=guest_email or guest.email,
                guest_phone=guest_phone or guest.phone,
                special_requests=special_requests,
                date_range=date_range,
                guest_count=guest_count,
                total_amount=self.pricing.total_cost(room, check_in, check_out),
                currency=self.pricing.currency,
                booking_reference=await self._unique_reference(
                    self.id_generator.booking_reference, self.uow.reservations.find_by_booking_reference),
                confirmation_number=await self._unique_reference(
                    self.id_generator.confirmation_number, self.uow.reservations.find_by_confirmation_number),
                now=self.clock.now()
            )
            await self.uow.reservations.save(reservation)
            await self.ledger.record_attempt(reservation)

        logger.info("Reservation %s created for room %s (%s -> %s), total %s",
                    reservation.booking_reference, room.room_number, check_in, check_out,
                    reservation.total_amount)
        return reservation

    async def create_payment_order(self, reservation_id: UUID) -> dict:
        """Open a gateway order for the reservation's pending payment.

        The gateway is called without holding the unit of work; the order is
        attached only if the reservation and its pending payment are unchanged
        once the gateway answers.
        """
        reservation = await self._get_reservation(reservation_id)
        payment = await self._require_pending_payment(reservation)
        amount_minor = int((payment.amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

        order = await asyncio.to_thread(
            self.gateway.create_order,
            amount_minor,
            payment.currency,
            payment.transaction_reference,
            {"reservation_id": str(reservation_id), "payment_id": str(payment.payment_id)}
        )

        async with self.uow:
            reservation = await self._get_reservation(reservation_id)
            current = await self._require_pending_payment(reservation)
            if current.payment_id != payment.payment_id:
                raise ConflictError("Pending payment changed while the order was being created")
            await self.ledger.attach_order(payment.payment_id, order["id"])

        return {
            "order_id": order["id"],
            "amount": order.get("amount", amount_minor),
            "currency": order.get("currency", payment.currency),
            "status": order.get("status"),
            "payment_id": payment.payment_id,
            "reservation_id": reservation_id,
        }

    async def process_payment(
        self,
        reservation_id: UUID,
        method: str,
        verification: PaymentVerification
    ) -> Payment:
        """Settle the pending payment from a signed gateway confirmation.

        A confirmation that does not verify fails the payment and cancels the
        booking; that outcome is committed before PaymentDeclinedError is raised.
        The gateway is consulted before the unit of work is entered and the
        guards are checked again before the result is applied.
        """
        reservation = await self._get_reservation(reservation_id)
        payment = await self._require_pending_payment(reservation)
        self._ensure_order_matches(payment, verification)

        verified = await asyncio.to_thread(
            self.gateway.verify_payment,
            verification.gateway_order_id,
            verification.gateway_payment_id,
            verification.signature
        )

        async with self.uow:
            reservation = await self._get_reservation(reservation_id)
            current = await self._require_pending_payment(reservation)
            if current.payment_id != payment.payment_id:
                raise ConflictError("Pending payment changed while the payment was being verified")
            self._ensure_order_matches(current, verification)
            payment = current

            if verified:
                payment = await self.ledger.complete(payment.payment_id, verification.gateway_payment_id, method)
                reservation.confirm(self.clock.now())
                await self.uow.reservations.update(reservation)
                logger.info("Reservation %s confirmed", reservation.booking_reference)
                return payment

            payment = await self.ledger.fail(payment.payment_id)
            reservation.cancel(self.clock.now())
            await self.uow.reservations.update(reservation)

        logger.warning("Payment for reservation %s declined; reservation cancelled",
                       reservation.booking_reference)
        raise PaymentDeclinedError("Payment processing failed", payment=payment)

    async def cancel_reservation(self, reservation_id: UUID, acting_user_id: UUID) -> bool:
        """Cancel on behalf of the owner, refunding when inside the refund window"""
        async with self.uow:
            reservation = await self._get_reservation(reservation_id)
            if not reservation.is_owned_by(acting_user_id):
                raise UnauthorizedError("Unauthorized to cancel this reservation")

            now = self.clock.now()
            refundable = self.cancellation_policy.is_refund_eligible(reservation, now)
            reservation.cancel(now)
            await self.uow.reservations.update(reservation)

            pending = await self.ledger.pending_payment(reservation_id)
            if pending:
                await self.ledger.fail(pending.payment_id)

            if refundable and await self.ledger.has_completed_charge(reservation_id):
                await self.ledger.refund(reservation)

        logger.info("Reservation %s cancelled (refund window: %s)",
                    reservation.booking_reference, "open" if refundable else "closed")
        return True

    async def check_in(self, reservation_id: UUID) -> Reservation:
        async with self.uow:
            reservation = await self._get_reservation(reservation_id)
            reservation.check_in(self.clock.now())
            await self.uow.reservations.update(reservation)
        logger.info("Reservation %s checked in", reservation.booking_reference)
        return reservation

    async def check_out(self, reservation_id: UUID) -> Reservation:
        async with self.uow:
            reservation = await self._get_reservation(reservation_id)
            reservation.check_out(self.clock.now())
            await self.uow.reservations.update(reservation)
        logger.info("Reservation %s checked out", reservation.booking_reference)
        return reservation

    # ==================== QUERIES ====================
    async def is_available(self, room_id: UUID, check_in: date, check_out: date) -> bool:
        build_date_range(check_in, check_out)
        await self._get_active_room(room_id)
        return await self.availability.is_available(room_id, check_in, check_out)

    async def quote_price(self, room_id: UUID, check_in: date, check_out: date) -> PriceQuote:
        room = await self._get_active_room(room_id)
        return self.pricing.quote(room, check_in, check_out)

    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        return await self.uow.reservations.find_by_id(reservation_id)

    async def get_reservation_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        return await self.uow.reservations.find_by_confirmation_number(confirmation_number)

    async def get_reservation_by_booking_reference(self, booking_reference: str) -> Optional[Reservation]:
        return await self.uow.reservations.find_by_booking_reference(booking_reference)

    async def get_reservations_by_guest(self, guest_id: UUID) -> List[Reservation]:
        """Guest's reservations, newest first"""
        reservations = await self.uow.reservations.find_by_guest_id(guest_id)
        return sorted(reservations, key=lambda r: r.created_at, reverse=True)

    async def get_reservations_by_date_range(self, start_date: date, end_date: date) -> List[Reservation]:
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date")
        return await self.uow.reservations.find_by_check_in_between(start_date, end_date)

    async def get_payments(self, reservation_id: UUID) -> List[Payment]:
        return await self.ledger.payments_for(reservation_id)

    async def get_statistics(self) -> ReservationStats:
        reservations = await self.uow.reservations.find_all()
        return ReservationStats(
            total_reservations=len(reservations),
            active_reservations=sum(1 for r in reservations if r.status in ACTIVE_STATUSES),
            total_revenue=sum(
                (r.total_amount for r in reservations if r.status == ReservationStatus.COMPLETED),
                Decimal("0")
            )
        )

    # ==================== HELPERS ====================
    async def _get_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.uow.reservations.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation not found")
        return reservation

    async def _get_active_room(self, room_id: UUID) -> Room:
        room = await self.uow.rooms.find_by_id(room_id)
        if not room or not room.is_active:
            raise NotFoundError("Room not found")
        return room

    async def _require_pending_payment(self, reservation: Reservation) -> Payment:
        if reservation.status != ReservationStatus.PENDING:
            raise ConflictError("Reservation is not in pending status")
        payment = await self.ledger.pending_payment(reservation.reservation_id)
        if not payment:
            raise ConflictError("No pending payment found")
        return payment

    @staticmethod
    def _ensure_order_matches(payment: Payment, verification: PaymentVerification) -> None:
        if payment.gateway_order_id and payment.gateway_order_id != verification.gateway_order_id:
            raise ValidationError("Payment confirmation does not belong to this reservation")

    async def _unique_reference(self, generate: Callable[[], str], find: Callable) -> str:
        for _ in range(MAX_REFERENCE_ATTEMPTS):
            reference = generate()
            if not await find(reference):
                return reference
        logger.error("No unique reference after %s attempts", MAX_REFERENCE_ATTEMPTS)
        raise ExternalServiceError("Could not allocate a unique reference")


class RoomService:
    """Service for the room registry"""

    def __init__(self, uow: AbstractUnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock
        self.availability = AvailabilityChecker(uow.reservations, uow.rooms)

    async def add_room(
        self,
        room_number: str,
        category: RoomCategory,
        capacity: int,
        base_price: Decimal,
        description: Optional[str] = None,
        hotel_id: Optional[UUID] = None
    ) -> Room:
        now = self.clock.now()
        try:
            room = Room(
                hotel_id=hotel_id,
                room_number=room_number,
                category=category,
                capacity=capacity,
                base_price=base_price,
                description=description,
                created_at=now,
                updated_at=now
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid room: {e.errors()[0]['msg']}") from e

        async with self.uow:
            await self.uow.rooms.save(room)
        logger.info("Room %s added (%s, capacity %s)", room_number, category.value, capacity)
        return room

    async def get_room(self, room_id: UUID) -> Optional[Room]:
        room = await self.uow.rooms.find_by_id(room_id)
        return room if room and room.is_active else None

    async def list_rooms(self) -> List[Room]:
        return await self.uow.rooms.find_active()

    async def deactivate_room(self, room_id: UUID) -> Room:
        async with self.uow:
            room = await self.uow.rooms.find_by_id(room_id)
            if not room:
                raise NotFoundError("Room not found")
            room.deactivate(self.clock.now())
            await self.uow.rooms.update(room)
        return room

    async def update_room(
        self,
        room_id: UUID,
        room_number: Optional[str] = None,
        category: Optional[RoomCategory] = None,
        capacity: Optional[int] = None,
        base_price: Optional[Decimal] = None,
        description: Optional[str] = None
    ) -> Room:
        """Change room details. Existing reservations keep the price they were booked at."""
        async with self.uow:
            room = await self.uow.rooms.find_by_id(room_id)
            if not room or not room.is_active:
                raise NotFoundError("Room not found")
            room.update(
                self.clock.now(),
                room_number=room_number,
                category=category,
                capacity=capacity,
                base_price=base_price,
                description=description
            )
            await self.uow.rooms.update(room)
        logger.info("Room %s updated", room.room_number)
        return room

    async def find_available_rooms(
        self,
        check_in: date,
        check_out: date,
        capacity: Optional[int] = None,
        category: Optional[RoomCategory] = None,
        hotel_id: Optional[UUID] = None
    ) -> List[Room]:
        build_date_range(check_in, check_out)
        return await self.availability.find_available_rooms(check_in, check_out, capacity, category, hotel_id)
