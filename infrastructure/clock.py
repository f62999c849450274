"""Clock implementations"""
from datetime import datetime, timedelta

from domain.interfaces import Clock


class SystemClock(Clock):
    """Wall clock in the hotel's local time"""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock frozen at a given instant; tests move it explicitly"""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)
