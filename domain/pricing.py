"""Dynamic room pricing.

Each night of a stay starts at the room's base price and is multiplied, in
order, by every surcharge whose condition holds for that night:

    weekend (Friday or Saturday night)   x1.30
    winter holidays (Dec 20 - Jan 5)     x1.50
    summer peak (June - August)          x1.20
    premium category (Suite and up)      x1.10

Nightly prices are summed and rounded half-up to cents. The total cost adds
a flat tax on the room price and a fixed service fee.
"""
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from domain.entities import Room
from domain.value_objects import NightlyRate, PriceQuote

WEEKEND_MULTIPLIER = Decimal("1.30")
HOLIDAY_MULTIPLIER = Decimal("1.50")
SUMMER_MULTIPLIER = Decimal("1.20")
PREMIUM_MULTIPLIER = Decimal("1.10")

DEFAULT_TAX_RATE = Decimal("0.12")
DEFAULT_SERVICE_FEE = Decimal("25")

CENTS = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def is_weekend_night(night: date) -> bool:
    # Friday=4, Saturday=5
    return night.weekday() in (4, 5)


def is_winter_holiday(night: date) -> bool:
    return (night.month == 12 and night.day >= 20) or (night.month == 1 and night.day <= 5)


def is_summer_peak(night: date) -> bool:
    return 6 <= night.month <= 8


class PricingEngine:
    """Stateless price calculator"""

    def __init__(self,
                 tax_rate: Decimal = DEFAULT_TAX_RATE,
                 service_fee: Decimal = DEFAULT_SERVICE_FEE,
                 currency: str = "INR"):
        self.tax_rate = tax_rate
        self.service_fee = service_fee
        self.currency = currency

    def nightly_rates(self, room: Room, check_in: date, check_out: date) -> List[NightlyRate]:
        """Price every night in [check_in, check_out)"""
        rates = []
        night = check_in
        while night < check_out:
            rate = room.base_price
            surcharges = []

            if is_weekend_night(night):
                rate *= WEEKEND_MULTIPLIER
                surcharges.append("WEEKEND")
            if is_winter_holiday(night):
                rate *= HOLIDAY_MULTIPLIER
                surcharges.append("HOLIDAY")
            if is_summer_peak(night):
                rate *= SUMMER_MULTIPLIER
                surcharges.append("SUMMER_PEAK")
            if room.category.is_premium:
                rate *= PREMIUM_MULTIPLIER
                surcharges.append("PREMIUM_CATEGORY")

            rates.append(NightlyRate(night=night, rate=rate, surcharges=surcharges))
            night += timedelta(days=1)
        return rates

    def price(self, room: Room, check_in: date, check_out: date) -> Decimal:
        """Room price for the stay; base price when there are no nights"""
        if (check_out - check_in).days <= 0:
            return room.base_price

        total = sum((r.rate for r in self.nightly_rates(room, check_in, check_out)), Decimal("0"))
        return round_money(total)

    def total_cost(self, room: Room, check_in: date, check_out: date) -> Decimal:
        """Room price plus tax and service fee"""
        room_price = self.price(room, check_in, check_out)
        return round_money(room_price + room_price * self.tax_rate + self.service_fee)

    def quote(self, room: Room, check_in: date, check_out: date) -> PriceQuote:
        nightly = self.nightly_rates(room, check_in, check_out)
        room_price = self.price(room, check_in, check_out)
        return PriceQuote(
            nights=max((check_out - check_in).days, 0),
            nightly_rates=nightly,
            room_price=room_price,
            taxes=round_money(room_price * self.tax_rate),
            service_fee=round_money(self.service_fee),
            total_cost=self.total_cost(room, check_in, check_out),
            currency=self.currency
        )
