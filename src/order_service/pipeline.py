"""
Order Ingestion Pipeline

Turns one message payload into a cached, durably stored Order.

PER-MESSAGE STATE MACHINE:
┌──────────┐   ┌─────────┐   ┌───────────┐   ┌───────────┐   ┌────────┐
│ Received │──▶│ Decoded │──▶│ Validated │──▶│ Persisted │──▶│ Cached │
└──────────┘   └─────────┘   └───────────┘   └───────────┘   └────────┘
      │              │              │
      ▼              ▼              ▼
   decode error  validation     persistence error / duplicate
   (dropped)     error (dropped) (dropped, cache untouched)

PERSIST-THEN-CACHE:
The cache is written only after persist_order() returns. Anything a reader
finds in the cache is therefore already in the database. A failed persist
leaves no cache entry behind.

Dropped messages are not retried here; the consume loop commits their
offset like any other message.
"""

import json
import logging
import time
from enum import Enum
from typing import Dict, Optional

from pydantic import ValidationError

from src.order_service.cache import OrderCache
from src.order_service.exceptions import (
    DuplicateOrderError,
    OrderDecodeError,
    OrderValidationError,
    PersistenceError,
)
from src.order_service.repository import OrderRepository
from src.order_service.schemas import Order, validate_order
from src.shared.logger import CorrelationAdapter

# ==============================================================================
# DECODE
# ==============================================================================


def decode_order(payload: Optional[bytes]) -> Order:
    """
    Decode a message payload into an Order.

    Args:
        payload: Raw message value (UTF-8 JSON object)

    Returns:
        Decoded, not yet validated, Order

    Raises:
        OrderDecodeError: payload is empty, not UTF-8 JSON, not a JSON object,
            or a field has the wrong type
    """
    if not payload:
        raise OrderDecodeError("empty payload")

    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise OrderDecodeError(f"payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise OrderDecodeError(f"payload must be a JSON object, got {type(data).__name__}")

    order_uid = data.get("order_uid") if isinstance(data.get("order_uid"), str) else None

    try:
        return Order.model_validate(data)
    except ValidationError as e:
        raise OrderDecodeError(
            f"payload does not match the order schema: {e.error_count()} error(s)",
            order_uid=order_uid,
        ) from e


# ==============================================================================
# PIPELINE
# ==============================================================================


class Outcome(str, Enum):
    """Terminal state of one message."""

    CACHED = "cached"
    DECODE_FAILED = "decode_failed"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    PERSIST_FAILED = "persist_failed"


class IngestionPipeline:
    """
    Decode, validate, persist, cache.

    Attributes:
        repository: Durable store for orders
        cache: Shared order cache
        messages_processed: Orders that reached the cache
        messages_failed: Orders dropped on decode, validation or persistence
        messages_skipped: Redelivered orders already in the store
    """

    def __init__(self, repository: OrderRepository, cache: OrderCache):
        self.repository = repository
        self.cache = cache
        self.logger = logging.getLogger(__name__)

        self.messages_processed = 0
        self.messages_failed = 0
        self.messages_skipped = 0

    def process(self, payload: Optional[bytes], context: Optional[Dict] = None) -> Outcome:
        """
        Run one payload through the pipeline.

        Args:
            payload: Raw message value
            context: Transport details for log records (partition, offset)

        Returns:
            The Outcome reached. Never raises for bad input or store errors.
        """
        start_time = time.time()
        context = dict(context or {})

        try:
            order = decode_order(payload)
        except OrderDecodeError as e:
            self.messages_failed += 1
            self.logger.error(
                "Order dropped: decode failed",
                extra={"correlation_id": e.order_uid, "reason": e.message, **context},
            )
            return Outcome.DECODE_FAILED

        order_logger = CorrelationAdapter(self.logger, {"correlation_id": order.order_uid or None})

        try:
            validate_order(order)
        except OrderValidationError as e:
            self.messages_failed += 1
            order_logger.warning(
                "Order dropped: validation failed",
                extra={"reason": e.message, **context},
            )
            return Outcome.INVALID

        try:
            self.repository.persist_order(order)
        except DuplicateOrderError:
            self.messages_skipped += 1
            order_logger.warning(
                "Duplicate order detected, skipping",
                extra={"messages_skipped": self.messages_skipped, **context},
            )
            return Outcome.DUPLICATE
        except PersistenceError as e:
            self.messages_failed += 1
            order_logger.error(
                "Order dropped: persistence failed",
                exc_info=True,
                extra={"reason": e.message, **context},
            )
            return Outcome.PERSIST_FAILED

        self.cache.set(order.order_uid, order)
        self.messages_processed += 1

        order_logger.info(
            "Order processed successfully",
            extra={
                "items": len(order.items),
                "amount": order.payment.amount,
                "processing_time_ms": round((time.time() - start_time) * 1000, 2),
                "messages_processed": self.messages_processed,
                **context,
            },
        )
        return Outcome.CACHED

    def record_failure(self) -> None:
        """Count a message the caller dropped outside process()."""
        self.messages_failed += 1

    def stats(self) -> Dict[str, int]:
        """Message counters since startup."""
        return {
            "messages_processed": self.messages_processed,
            "messages_failed": self.messages_failed,
            "messages_skipped": self.messages_skipped,
        }
