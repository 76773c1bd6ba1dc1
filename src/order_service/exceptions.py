"""
Order Service Exceptions

ERROR TAXONOMY:
- OrderDecodeError: payload is not a JSON object matching the order schema
- OrderValidationError: decoded order breaks an order invariant
- PersistenceError: durable write or read failed
  - DuplicateOrderError: order_uid already stored
- OrderNotFoundError: lookup fallback found no such order
- RestoreError: startup bulk fetch failed

Only OrderNotFoundError crosses the HTTP boundary (as a 404). Everything else
is handled where it is raised: logged, and the message or row dropped.
"""

from typing import Optional


class OrderServiceError(Exception):
    """Base class for all order service errors."""

    def __init__(self, message: str, order_uid: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.order_uid = order_uid


class OrderDecodeError(OrderServiceError, ValueError):
    """Message payload could not be decoded into an Order."""


class OrderValidationError(OrderServiceError, ValueError):
    """Decoded Order violates an invariant (missing id, no items, ...)."""


class PersistenceError(OrderServiceError):
    """The durable store rejected or failed an operation."""


class DuplicateOrderError(PersistenceError):
    """An order with the same order_uid is already persisted."""


class OrderNotFoundError(OrderServiceError, LookupError):
    """No order with the requested order_uid exists."""


class RestoreError(OrderServiceError):
    """Bulk fetch of persisted orders failed during cache restore."""
