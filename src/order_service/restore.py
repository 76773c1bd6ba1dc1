"""
Startup Cache Restore

Loads every stored order into the cache once, before the consumer starts.
Failure is never fatal: a partial fetch leaves a partially warm cache, a
failed fetch leaves it empty, and OrderLookupService fills gaps on demand.
"""

import logging
import time
from typing import NamedTuple, Optional

from src.order_service.cache import OrderCache
from src.order_service.exceptions import PersistenceError, RestoreError
from src.order_service.repository import OrderRepository


class RestoreResult(NamedTuple):
    """
    Outcome of a restore.

    Attributes:
        loaded: Orders written into the cache
        skipped: Stored rows that could not be reconstructed
        error: Set when the bulk fetch itself failed
    """

    loaded: int
    skipped: int
    error: Optional[RestoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.skipped == 0


class CacheRestorer:
    """Bulk-loads the durable store into the cache."""

    def __init__(self, repository: OrderRepository, cache: OrderCache):
        self.repository = repository
        self.cache = cache
        self.logger = logging.getLogger(__name__)

    def restore(self) -> RestoreResult:
        """
        Fill the cache from the store. Never raises.

        Returns:
            RestoreResult with counts, and the error when the fetch failed
        """
        start_time = time.time()

        try:
            fetched = self.repository.fetch_all()
        except PersistenceError as e:
            error = RestoreError(f"Cache restore failed: {e.message}")
            error.__cause__ = e
            self.logger.warning(
                "Cache restore failed, starting with an empty cache",
                extra={"error": e.message},
            )
            return RestoreResult(loaded=0, skipped=0, error=error)

        for order in fetched.orders:
            self.cache.set(order.order_uid, order)

        result = RestoreResult(loaded=len(fetched.orders), skipped=fetched.skipped)
        duration_ms = round((time.time() - start_time) * 1000, 2)

        if result.skipped:
            self.logger.warning(
                "Cache partially restored",
                extra={
                    "loaded": result.loaded,
                    "skipped": result.skipped,
                    "duration_ms": duration_ms,
                },
            )
        else:
            self.logger.info(
                "Cache restored",
                extra={
                    "loaded": result.loaded,
                    "cache_size": self.cache.size(),
                    "duration_ms": duration_ms,
                },
            )

        return result
