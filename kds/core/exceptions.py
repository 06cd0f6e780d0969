"""
Order Error Taxonomy

Every failure the order engine can report to a caller derives from
OrderError, which carries the HTTP status the API layer answers with
and a short message that is safe to show to clients.

    ValidationError         400  malformed creation payload
    NotFoundError           404  unknown order id
    InvalidTransitionError  400  action not legal from the current status
    StorageWriteError       500  mutation could not be persisted
    StorageReadError         -   startup load failure, recovered by the store
"""

from typing import Optional


class OrderError(Exception):
    """Base class for order engine failures."""

    status_code: int = 500
    default_message: str = "Order operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OrderError):
    status_code = 400
    default_message = "Invalid order payload"


class NotFoundError(OrderError):
    status_code = 404
    default_message = "Order not found"


class InvalidTransitionError(OrderError):
    status_code = 400
    default_message = "Invalid action or status transition"


class StorageReadError(OrderError):
    """Raised while loading the orders document; the store recovers from it."""

    default_message = "Failed to read orders"


class StorageWriteError(OrderError):
    """The in-memory collection is left unchanged when this is raised."""

    default_message = "Failed to save orders"
