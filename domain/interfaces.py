"""Collaborator interfaces the booking core depends on"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional


class Clock(ABC):
    """Source of the current date and time"""

    @abstractmethod
    def now(self) -> datetime:
        pass

    def today(self) -> date:
        return self.now().date()


class IdGenerator(ABC):
    """Issues the human-facing identifiers of reservations and payments"""

    @abstractmethod
    def booking_reference(self) -> str:
        pass

    @abstractmethod
    def confirmation_number(self) -> str:
        pass

    @abstractmethod
    def transaction_reference(self) -> str:
        pass


class PaymentGateway(ABC):
    """Third-party payment gateway.

    The core only needs two things from it: an order to pay against and a
    yes/no answer on whether a signed checkout confirmation is genuine.
    """

    @abstractmethod
    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None
    ) -> dict:
        """Create an order; returns at least {"id", "amount", "currency", "status"}"""
        pass

    @abstractmethod
    def verify_payment(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        """Verify a signed checkout confirmation"""
        pass
