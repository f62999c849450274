"""Cancellation refund policy"""
from datetime import datetime, time, timedelta

from domain.entities import Reservation

DEFAULT_CUTOFF_HOURS = 24


class CancellationPolicy:
    """Free cancellation until a fixed number of hours before check-in day.

    The cutoff is measured from midnight at the start of the check-in date.
    Exactly at the cutoff the guest is no longer refunded.
    """

    def __init__(self, cutoff_hours: int = DEFAULT_CUTOFF_HOURS):
        self.cutoff = timedelta(hours=cutoff_hours)

    def refund_deadline(self, reservation: Reservation, tzinfo=None) -> datetime:
        midnight = datetime.combine(reservation.date_range.check_in, time.min, tzinfo=tzinfo)
        return midnight - self.cutoff

    def is_refund_eligible(self, reservation: Reservation, now: datetime) -> bool:
        return now < self.refund_deadline(reservation, now.tzinfo)
