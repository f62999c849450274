"""
Unit of Work Pattern

Every booking command runs inside one unit of work so that the availability
check, pricing and the reservation/payment writes are applied together or
not at all.

Usage:
    async with uow:
        reservation = await uow.reservations.find_by_id(reservation_id)
        reservation.cancel(now)
        await uow.reservations.update(reservation)
    # committed here; rolled back if the block raised
"""
from abc import ABC, abstractmethod

from domain.repositories import RoomRepository, ReservationRepository, PaymentRepository, UserRepository


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work"""

    rooms: RoomRepository
    reservations: ReservationRepository
    payments: PaymentRepository
    users: UserRepository

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    @abstractmethod
    async def commit(self):
        """Make the changes so far durable; later failures roll back to here"""
        pass

    @abstractmethod
    async def rollback(self):
        """Discard changes since the last commit"""
        pass
