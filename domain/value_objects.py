"""Domain Value Objects"""
from pydantic import BaseModel, Field, field_validator
from datetime import date
from decimal import Decimal
from typing import List, Optional


class DateRange(BaseModel):
    """Value Object for a stay: check-in inclusive, check-out exclusive"""
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        if 'check_in' in info.data and v <= info.data['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Inclusive overlap: touching boundary dates count as a conflict"""
        return self.check_in <= check_out and self.check_out >= check_in

    class Config:
        frozen = True


class NightlyRate(BaseModel):
    """Price of a single night after surcharges"""
    night: date
    rate: Decimal
    surcharges: List[str] = []

    class Config:
        frozen = True


class PriceQuote(BaseModel):
    """Value Object for a priced stay"""
    nights: int
    nightly_rates: List[NightlyRate] = []
    room_price: Decimal
    taxes: Decimal
    service_fee: Decimal
    total_cost: Decimal
    currency: str

    class Config:
        frozen = True


class PaymentVerification(BaseModel):
    """Signed confirmation returned by the payment gateway checkout"""
    gateway_order_id: str
    gateway_payment_id: str
    signature: Optional[str] = None

    class Config:
        frozen = True


class ReservationStats(BaseModel):
    """Aggregate counts and revenue"""
    total_reservations: int = Field(ge=0)
    active_reservations: int = Field(ge=0)
    total_revenue: Decimal

    class Config:
        frozen = True
