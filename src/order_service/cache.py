"""
In-Memory Order Cache

Thread-safe mapping from order_uid to Order, used as the fast read path.

- Unbounded: entries are never evicted or expired
- One instance per process, created in main.py and passed to the
  pipeline, the lookup service and the restorer
- Every operation takes the same lock, so a set() is visible to every
  get() that starts after it returns; for the same key the last set() wins
- Readers are serialized too: concurrent get() calls queue on the lock
  rather than running in parallel

Orders are frozen models, so the cache stores and returns them without
copying; get_all() copies the container, not the records.
"""

import threading
from typing import Dict, List, Optional, Tuple

from src.order_service.schemas import Order


class OrderCache:
    """Concurrent-safe order_uid -> Order map."""

    def __init__(self) -> None:
        self._orders: Dict[str, Order] = {}
        self._lock = threading.Lock()

    def set(self, order_uid: str, order: Order) -> None:
        """Insert or overwrite the entry for order_uid."""
        with self._lock:
            self._orders[order_uid] = order

    def get(self, order_uid: str) -> Tuple[Optional[Order], bool]:
        """
        Look up an order.

        Returns:
            (order, True) when present, (None, False) otherwise
        """
        with self._lock:
            order = self._orders.get(order_uid)
        return order, order is not None

    def delete(self, order_uid: str) -> None:
        """Remove the entry for order_uid; no-op when absent."""
        with self._lock:
            self._orders.pop(order_uid, None)

    def get_all(self) -> List[Order]:
        """Snapshot of all cached orders; later cache writes do not affect it."""
        with self._lock:
            return list(self._orders.values())

    def size(self) -> int:
        """Number of cached orders."""
        with self._lock:
            return len(self._orders)

    def __len__(self) -> int:
        return self.size()
