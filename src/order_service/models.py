"""
SQLAlchemy ORM Models for Order Storage

An order record is stored across four tables:

┌──────────────┐ 1    1 ┌──────────────┐
│    orders    │────────│  deliveries  │   order_uid (PK, FK)
│ order_uid PK │        └──────────────┘
│              │ 1    1 ┌──────────────┐
│              │────────│   payments   │   order_uid (PK, FK), transaction
│              │        └──────────────┘
│              │ 1    N ┌──────────────┐
│              │────────│    items     │   id (PK), order_uid (FK), position
└──────────────┘        └──────────────┘

All four are written in one transaction by OrderRepository.persist_order.
orders.order_uid is the natural key from the message: a second insert of
the same order_uid fails with IntegrityError. String columns are TEXT: the
record puts no length limit on its fields, so neither does the store.

OrderModel.from_record() / to_record() convert between these rows and the
immutable schemas.Order value used everywhere else.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    TIMESTAMP,
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from src.order_service.schemas import Order, validate_order


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# ==============================================================================
# ORDERS (root)
# ==============================================================================


class OrderModel(Base):
    """Root row of an order; owns its delivery, payment and items."""

    __tablename__ = "orders"

    order_uid: Mapped[str] = mapped_column(
        Text, primary_key=True, comment="Order identifier from the message"
    )
    track_number: Mapped[str] = mapped_column(Text, nullable=False)
    entry: Mapped[str] = mapped_column(Text, nullable=False, default="")
    locale: Mapped[str] = mapped_column(Text, nullable=False, default="")
    internal_signature: Mapped[str] = mapped_column(Text, nullable=False, default="")
    customer_id: Mapped[str] = mapped_column(Text, nullable=False, default="", index=True)
    delivery_service: Mapped[str] = mapped_column(Text, nullable=False, default="")
    shardkey: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sm_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_created: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), index=True, comment="Order creation time from the message"
    )
    oof_shard: Mapped[str] = mapped_column(Text, nullable=False, default="")

    processed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="Database write time",
    )

    delivery: Mapped[Optional["DeliveryModel"]] = relationship(
        back_populates="order", uselist=False, cascade="all, delete-orphan"
    )
    payment: Mapped[Optional["PaymentModel"]] = relationship(
        back_populates="order", uselist=False, cascade="all, delete-orphan"
    )
    items: Mapped[List["ItemModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ItemModel.position",
    )

    __table_args__ = ({"comment": "Order records consumed from the orders topic"},)

    @classmethod
    def from_record(cls, order: Order) -> "OrderModel":
        """Build the full row set (root, delivery, payment, items) for an order."""
        date_created = order.date_created
        if date_created is not None:
            date_created = date_created.astimezone(timezone.utc)

        return cls(
            order_uid=order.order_uid,
            track_number=order.track_number,
            entry=order.entry,
            locale=order.locale,
            internal_signature=order.internal_signature,
            customer_id=order.customer_id,
            delivery_service=order.delivery_service,
            shardkey=order.shardkey,
            sm_id=order.sm_id,
            date_created=date_created,
            oof_shard=order.oof_shard,
            delivery=DeliveryModel(**order.delivery.model_dump()),
            payment=PaymentModel(**order.payment.model_dump()),
            items=[
                ItemModel(position=position, **item.model_dump())
                for position, item in enumerate(order.items)
            ],
        )

    def to_record(self) -> Order:
        """
        Reconstruct the Order from this row set.

        Raises:
            ValueError: delivery or payment row is missing
            OrderValidationError: reconstructed order breaks an order invariant
            pydantic.ValidationError: a stored value does not fit the schema
        """
        if self.delivery is None:
            raise ValueError(f"order {self.order_uid} has no delivery row")
        if self.payment is None:
            raise ValueError(f"order {self.order_uid} has no payment row")

        order = Order.model_validate(
            {
                "order_uid": self.order_uid,
                "track_number": self.track_number,
                "entry": self.entry,
                "locale": self.locale,
                "internal_signature": self.internal_signature,
                "customer_id": self.customer_id,
                "delivery_service": self.delivery_service,
                "shardkey": self.shardkey,
                "sm_id": self.sm_id,
                "date_created": self.date_created,
                "oof_shard": self.oof_shard,
                "delivery": self.delivery.to_dict(),
                "payment": self.payment.to_dict(),
                "items": [item.to_dict() for item in self.items],
            }
        )
        validate_order(order)
        return order

    def __repr__(self) -> str:
        return (
            f"<OrderModel(order_uid={self.order_uid}, "
            f"track_number={self.track_number}, "
            f"items={len(self.items)})>"
        )


# ==============================================================================
# DELIVERIES (one-to-one)
# ==============================================================================


class DeliveryModel(Base):
    """Recipient and address for one order."""

    __tablename__ = "deliveries"

    order_uid: Mapped[str] = mapped_column(
        Text, ForeignKey("orders.order_uid", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    zip: Mapped[str] = mapped_column(Text, nullable=False, default="")
    city: Mapped[str] = mapped_column(Text, nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    region: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email: Mapped[str] = mapped_column(Text, nullable=False, default="")

    order: Mapped[OrderModel] = relationship(back_populates="delivery")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "zip": self.zip,
            "city": self.city,
            "address": self.address,
            "region": self.region,
            "email": self.email,
        }


# ==============================================================================
# PAYMENTS (one-to-one)
# ==============================================================================
# Joined to orders on order_uid. `transaction` carries the payment-side
# identifier as received (it equals order_uid for well-formed messages).


class PaymentModel(Base):
    """Payment for one order. Amounts are integer minor units."""

    __tablename__ = "payments"

    order_uid: Mapped[str] = mapped_column(
        Text, ForeignKey("orders.order_uid", ondelete="CASCADE"), primary_key=True
    )
    transaction: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    request_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="")
    provider: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payment_dt: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    bank: Mapped[str] = mapped_column(Text, nullable=False, default="")
    delivery_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    goods_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    custom_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    order: Mapped[OrderModel] = relationship(back_populates="payment")

    def to_dict(self) -> dict:
        return {
            "transaction": self.transaction,
            "request_id": self.request_id,
            "currency": self.currency,
            "provider": self.provider,
            "amount": self.amount,
            "payment_dt": self.payment_dt,
            "bank": self.bank,
            "delivery_cost": self.delivery_cost,
            "goods_total": self.goods_total,
            "custom_fee": self.custom_fee,
        }


# ==============================================================================
# ITEMS (one-to-many)
# ==============================================================================


class ItemModel(Base):
    """One order line. `position` keeps the message's item order."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_uid: Mapped[str] = mapped_column(
        Text, ForeignKey("orders.order_uid", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    chrt_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    track_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    rid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sale: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size: Mapped[str] = mapped_column(Text, nullable=False, default="")
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    nm_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    brand: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    order: Mapped[OrderModel] = relationship(back_populates="items")

    __table_args__ = (Index("idx_items_order_position", "order_uid", "position"),)

    def to_dict(self) -> dict:
        return {
            "chrt_id": self.chrt_id,
            "track_number": self.track_number,
            "price": self.price,
            "rid": self.rid,
            "name": self.name,
            "sale": self.sale,
            "size": self.size,
            "total_price": self.total_price,
            "nm_id": self.nm_id,
            "brand": self.brand,
            "status": self.status,
        }
