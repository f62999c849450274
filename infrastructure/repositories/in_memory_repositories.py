"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict
from uuid import UUID
from datetime import date

from domain.auth import UserInDB
from domain.repositories import RoomRepository, ReservationRepository, PaymentRepository, UserRepository
from domain.entities import Room, Reservation, Payment
from domain.enums import PaymentStatus
from domain.exceptions import NotFoundError


class _InMemoryStore:
    """Dict-backed storage with copy-on-snapshot for unit-of-work rollback"""

    def __init__(self):
        self._storage: Dict[UUID, object] = {}

    def snapshot(self) -> Dict[UUID, object]:
        return {key: value.model_copy(deep=True) for key, value in self._storage.items()}

    def restore(self, state: Dict[UUID, object]) -> None:
        self._storage = state

    def _replace(self, key: UUID, value, label: str):
        if key not in self._storage:
            raise NotFoundError(f"{label} not found")
        self._storage[key] = value
        return value


class InMemoryRoomRepository(_InMemoryStore, RoomRepository):
    """In-memory implementation of RoomRepository"""

    async def save(self, room: Room) -> Room:
        self._storage[room.room_id] = room
        return room

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        return self._storage.get(room_id)

    async def find_active(self) -> List[Room]:
        return [r for r in self._storage.values() if r.is_active]

    async def update(self, room: Room) -> Room:
        return self._replace(room.room_id, room, "Room")


class InMemoryReservationRepository(_InMemoryStore, ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    async def save(self, reservation: Reservation) -> Reservation:
        self._storage[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        return self._storage.get(reservation_id)

    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        for reservation in self._storage.values():
            if reservation.confirmation_number == confirmation_number:
                return reservation
        return None

    async def find_by_booking_reference(self, booking_reference: str) -> Optional[Reservation]:
        for reservation in self._storage.values():
            if reservation.booking_reference == booking_reference:
                return reservation
        return None

    async def find_by_guest_id(self, guest_id: UUID) -> List[Reservation]:
        return [r for r in self._storage.values() if r.guest_id == guest_id]

    async def find_by_room_id(self, room_id: UUID) -> List[Reservation]:
        return [r for r in self._storage.values() if r.room_id == room_id]

    async def find_by_check_in_between(self, start_date: date, end_date: date) -> List[Reservation]:
        return [
            r for r in self._storage.values()
            if start_date <= r.date_range.check_in <= end_date
        ]

    async def find_all(self) -> List[Reservation]:
        return list(self._storage.values())

    async def update(self, reservation: Reservation) -> Reservation:
        return self._replace(reservation.reservation_id, reservation, "Reservation")


class InMemoryPaymentRepository(_InMemoryStore, PaymentRepository):
    """In-memory implementation of PaymentRepository"""

    async def save(self, payment: Payment) -> Payment:
        self._storage[payment.payment_id] = payment
        return payment

    async def find_by_id(self, payment_id: UUID) -> Optional[Payment]:
        return self._storage.get(payment_id)

    async def find_by_reservation_id(self, reservation_id: UUID) -> List[Payment]:
        payments = [p for p in self._storage.values() if p.reservation_id == reservation_id]
        return sorted(payments, key=lambda p: p.created_at)

    async def find_pending_by_reservation_id(self, reservation_id: UUID) -> List[Payment]:
        return [
            p for p in self._storage.values()
            if p.reservation_id == reservation_id and p.status == PaymentStatus.PENDING
        ]

    async def update(self, payment: Payment) -> Payment:
        return self._replace(payment.payment_id, payment, "Payment")


class InMemoryUserRepository(_InMemoryStore, UserRepository):
    """In-memory implementation of UserRepository"""

    async def save(self, user: UserInDB) -> UserInDB:
        self._storage[user.user_id] = user
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        return self._storage.get(user_id)

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        for user in self._storage.values():
            if user.username == username:
                return user
        return None
