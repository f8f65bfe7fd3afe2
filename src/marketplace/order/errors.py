"""Order workflow errors.

Every business-rule violation raised by the order aggregate, the snapshot
builder or the command handlers derives from ``OrderingError`` and carries
the HTTP status code the API layer answers with.
"""


class OrderingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


# ---------------------------------------------------------------------------
# Malformed or inconsistent input
# ---------------------------------------------------------------------------
class OrderValidationError(OrderingError):
    status_code = 400


class EmptyCartError(OrderValidationError):
    pass


class InvalidDeliveryModeError(OrderValidationError):
    pass


class MultiVendorDirectDeliveryError(OrderValidationError):
    pass


class DeliveryNotOfferedError(OrderValidationError):
    pass


class SameDayNotAllowedError(OrderValidationError):
    pass


# ---------------------------------------------------------------------------
# Lookup, authorization and state-machine guards
# ---------------------------------------------------------------------------
class NotFoundError(OrderingError):
    status_code = 404


class ForbiddenError(OrderingError):
    status_code = 403


class InvalidTransitionError(OrderingError):
    status_code = 409


class AlreadyInTransitError(InvalidTransitionError):
    """The lot's depot receipt is confirmed; it can no longer be cancelled."""


class ConflictError(OrderingError):
    """Stale write or order-number collision; the caller should retry."""

    status_code = 409
