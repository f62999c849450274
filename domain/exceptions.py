"""Domain Exceptions

Every failure surfaced by the booking core is one of these kinds, so callers
can tell a client-fixable request from a state conflict or an outage.
"""


class BookingError(Exception):
    """Base exception for booking core errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or out-of-range input (bad dates, capacity exceeded)."""

    kind = "validation_error"


class NotFoundError(BookingError):
    """Referenced room, reservation, payment or user does not exist or is inactive."""

    kind = "not_found"


class ConflictError(BookingError):
    """Operation not permitted in the current state."""

    kind = "conflict"


class UnauthorizedError(ConflictError):
    """Acting user is not allowed to touch the reservation."""

    kind = "unauthorized"


class PaymentDeclinedError(ConflictError):
    """Gateway did not verify the payment; the booking has been cancelled."""

    kind = "payment_declined"

    def __init__(self, message: str, payment=None):
        super().__init__(message)
        self.payment = payment


class ExternalServiceError(BookingError):
    """Payment gateway unreachable or misconfigured."""

    kind = "external_service_error"
