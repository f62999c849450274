"""Reference code generators"""
import itertools
import time
from uuid import uuid4

from domain.interfaces import IdGenerator


class RandomIdGenerator(IdGenerator):
    """Millisecond timestamp plus a uuid4 fragment, e.g. BK1718000000000A1B2C3"""

    def _stamp(self, length: int) -> str:
        return f"{int(time.time() * 1000)}{uuid4().hex[:length].upper()}"

    def booking_reference(self) -> str:
        return "BK" + self._stamp(6)

    def confirmation_number(self) -> str:
        return "HR" + self._stamp(6)

    def transaction_reference(self) -> str:
        return "TXN-" + uuid4().hex[:8].upper()


class SequentialIdGenerator(IdGenerator):
    """Predictable codes for tests and fixtures: BK000001, HR000001, TXN-000001"""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def _next(self, prefix: str) -> str:
        return f"{prefix}{next(self._counter):06d}"

    def booking_reference(self) -> str:
        return self._next("BK")

    def confirmation_number(self) -> str:
        return self._next("HR")

    def transaction_reference(self) -> str:
        return self._next("TXN-")
