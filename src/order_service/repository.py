"""
Order Repository

Durable store adapter over DatabaseManager. Converts between the immutable
Order record and the ORM row set, and maps SQLAlchemy failures onto the
service's error taxonomy.

OPERATIONS:
- persist_order(order): root, delivery, payment and items in one
  transaction; all rows are written or none are
- fetch_all(): every stored order, newest first; rows that cannot be
  reconstructed are skipped and counted
- fetch_order(order_uid): one stored order, or OrderNotFoundError

ERROR MAPPING:
- IntegrityError on orders.order_uid -> DuplicateOrderError
- any other SQLAlchemyError           -> PersistenceError (cause chained)
"""

import logging
from typing import List, NamedTuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from src.order_service.database import DatabaseManager
from src.order_service.exceptions import (
    DuplicateOrderError,
    OrderNotFoundError,
    PersistenceError,
)
from src.order_service.models import OrderModel
from src.order_service.schemas import Order


class FetchResult(NamedTuple):
    """Outcome of a bulk fetch."""

    orders: List[Order]
    skipped: int


def _with_children(statement):
    return statement.options(
        selectinload(OrderModel.delivery),
        selectinload(OrderModel.payment),
        selectinload(OrderModel.items),
    )


class OrderRepository:
    """Persists and reads back Order records."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.logger = logging.getLogger(__name__)

    def persist_order(self, order: Order) -> None:
        """
        Store an order atomically.

        Raises:
            DuplicateOrderError: order_uid is already stored
            PersistenceError: any other database failure
        """
        try:
            with self.db_manager.get_session() as session:
                session.add(OrderModel.from_record(order))
                # Flush inside the block so constraint errors roll back here
                session.flush()
        except IntegrityError as e:
            raise DuplicateOrderError(
                f"Order {order.order_uid} already exists", order_uid=order.order_uid
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to persist order {order.order_uid}: {type(e).__name__}",
                order_uid=order.order_uid,
            ) from e

        self.logger.debug(
            "Order persisted",
            extra={"correlation_id": order.order_uid, "items": len(order.items)},
        )

    def fetch_all(self) -> FetchResult:
        """
        Load every stored order.

        Returns:
            FetchResult with the reconstructed orders (newest date_created
            first) and the number of rows skipped

        Raises:
            PersistenceError: the query itself failed
        """
        orders: List[Order] = []
        skipped = 0

        statement = _with_children(select(OrderModel)).order_by(
            OrderModel.date_created.desc(), OrderModel.order_uid
        )

        try:
            with self.db_manager.get_session() as session:
                for row in session.scalars(statement):
                    try:
                        orders.append(row.to_record())
                    except ValueError as e:  # missing child row or invalid stored values
                        skipped += 1
                        self.logger.error(
                            "Skipping stored order that cannot be reconstructed",
                            extra={"correlation_id": row.order_uid, "error": str(e)},
                        )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to fetch orders: {type(e).__name__}") from e

        self.logger.info(
            "Fetched stored orders",
            extra={"loaded": len(orders), "skipped": skipped},
        )
        return FetchResult(orders=orders, skipped=skipped)

    def fetch_order(self, order_uid: str) -> Order:
        """
        Load one stored order.

        Raises:
            OrderNotFoundError: no stored order with this order_uid, or the
                stored rows do not form a valid order
            PersistenceError: the query failed
        """
        statement = _with_children(select(OrderModel)).where(OrderModel.order_uid == order_uid)

        try:
            with self.db_manager.get_session() as session:
                row = session.scalars(statement).first()
                if row is None:
                    order = None
                else:
                    try:
                        order = row.to_record()
                    except ValueError as e:
                        self.logger.error(
                            "Stored order cannot be reconstructed",
                            extra={"correlation_id": order_uid, "error": str(e)},
                        )
                        order = None
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to fetch order {order_uid}: {type(e).__name__}", order_uid=order_uid
            ) from e

        if order is None:
            raise OrderNotFoundError(f"Order {order_uid} not found", order_uid=order_uid)
        return order
