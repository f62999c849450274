"""In-memory Unit of Work"""
import asyncio
import logging

from application.unit_of_work import AbstractUnitOfWork
from infrastructure.repositories.in_memory_repositories import (
    InMemoryRoomRepository, InMemoryReservationRepository,
    InMemoryPaymentRepository, InMemoryUserRepository
)

logger = logging.getLogger(__name__)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Serializes commands over the in-memory store.

    One lock covers the whole store, so the availability check and the
    reservation insert for a room can never interleave with another booking.
    Entering snapshots every repository; a failed block restores the
    snapshot taken at entry or at the last explicit commit.
    """

    def __init__(self,
                 rooms: InMemoryRoomRepository,
                 reservations: InMemoryReservationRepository,
                 payments: InMemoryPaymentRepository,
                 users: InMemoryUserRepository):
        self.rooms = rooms
        self.reservations = reservations
        self.payments = payments
        self.users = users
        self._lock = asyncio.Lock()
        self._snapshot = None

    def _stores(self):
        return (self.rooms, self.reservations, self.payments, self.users)

    def _take_snapshot(self):
        return [store.snapshot() for store in self._stores()]

    async def __aenter__(self):
        await self._lock.acquire()
        self._snapshot = self._take_snapshot()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            await super().__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._snapshot = None
            self._lock.release()

    async def commit(self):
        logger.debug("Committing unit of work")
        self._snapshot = self._take_snapshot()

    async def rollback(self):
        logger.warning("Rolling back unit of work")
        if self._snapshot is None:
            return
        for store, state in zip(self._stores(), self._snapshot):
            store.restore(state)
