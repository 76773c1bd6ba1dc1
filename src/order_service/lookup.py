"""
Cache-aside order lookup used by the read API.

1. Cache hit  -> return it, no database access
2. Cache miss -> repository.fetch_order()
3. Found      -> cache it, return it
4. Not found or store error -> OrderNotFoundError, nothing cached
"""

import logging

from src.order_service.cache import OrderCache
from src.order_service.exceptions import OrderNotFoundError, PersistenceError
from src.order_service.repository import OrderRepository
from src.order_service.schemas import Order


class OrderLookupService:
    """Serves orders by order_uid from the cache, falling back to the store."""

    def __init__(self, cache: OrderCache, repository: OrderRepository):
        self.cache = cache
        self.repository = repository
        self.logger = logging.getLogger(__name__)

    def get_order(self, order_uid: str) -> Order:
        """
        Look up an order.

        Raises:
            OrderNotFoundError: not cached and the store has no such order
                (or the store could not be read)
        """
        order, found = self.cache.get(order_uid)
        if found:
            self.logger.debug("Cache hit", extra={"correlation_id": order_uid})
            return order

        try:
            order = self.repository.fetch_order(order_uid)
        except OrderNotFoundError:
            self.logger.debug("Order not in cache or store", extra={"correlation_id": order_uid})
            raise
        except PersistenceError as e:
            self.logger.warning(
                "Store fallback failed, reporting not found",
                extra={"correlation_id": order_uid, "error": e.message},
            )
            raise OrderNotFoundError(f"Order {order_uid} not found", order_uid=order_uid) from e

        # Only durable data reaches the cache on this path
        self.cache.set(order_uid, order)
        self.logger.info("Order loaded from store into cache", extra={"correlation_id": order_uid})
        return order
