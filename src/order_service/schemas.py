"""
Order Record Schema

Pydantic models for the order record carried on the "orders" topic, stored
in PostgreSQL, held in the cache and returned by the read API.

ORDER RECORD STRUCTURE:
{
    "order_uid": "b563feb7b2b84b6test",      # identity, cache key, primary key
    "track_number": "WBILMTESTTRACK",
    "entry": "WBIL",
    "delivery": {"name": ..., "phone": ..., "zip": ..., "city": ...,
                 "address": ..., "region": ..., "email": ...},
    "payment": {"transaction": "b563feb7b2b84b6test", "currency": "USD",
                "amount": 1817, "delivery_cost": 1500, ...},
    "items": [{"chrt_id": 9934930, "price": 453, "name": "Mascaras", ...}],
    "locale": "en",
    "customer_id": "test",
    "date_created": "2021-11-26T06:22:19Z",
    ...
}

Monetary values are integers in minor units. Every field has a zero-value
default, so a payload with a missing or null field still decodes; whether
the result is acceptable is decided separately by validate_order().
date_created is held in UTC, so an order serializes the same whether it
came off the topic, out of the cache or back from the database.

Records are frozen and items is a tuple: once decoded, an Order cannot be
modified, so the cache, the API and the pipeline can hand the same instance
around without copying on every read.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.order_service.exceptions import OrderValidationError


class _Record(BaseModel):
    """Frozen record; a JSON null decodes to the field's zero value."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _null_is_default(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Delivery(_Record):
    """Recipient and address of an order. No cross-field rules."""

    name: str = ""
    phone: str = ""
    zip: str = ""
    city: str = ""
    address: str = ""
    region: str = ""
    email: str = ""


class Payment(_Record):
    """
    Payment for an order.

    `transaction` is the order's identifier on the payment side. The payments
    row is stored one-to-one with its order and joined on order_uid.
    """

    transaction: str = ""
    request_id: str = ""
    currency: str = ""
    provider: str = ""
    amount: int = 0
    payment_dt: int = Field(default=0, description="Payment time, unix seconds")
    bank: str = ""
    delivery_cost: int = 0
    goods_total: int = 0
    custom_fee: int = 0


class Item(_Record):
    """One line of an order."""

    chrt_id: int = 0
    track_number: str = ""
    price: int = 0
    rid: str = ""
    name: str = ""
    sale: int = Field(default=0, description="Discount percentage")
    size: str = ""
    total_price: int = 0
    nm_id: int = 0
    brand: str = ""
    status: int = 0


class Order(_Record):
    """Order record: the aggregate of order, delivery, payment and items."""

    order_uid: str = ""
    track_number: str = ""
    entry: str = ""
    delivery: Delivery = Field(default_factory=Delivery)
    payment: Payment = Field(default_factory=Payment)
    items: Tuple[Item, ...] = ()
    locale: str = ""
    internal_signature: str = ""
    customer_id: str = ""
    delivery_service: str = ""
    shardkey: str = ""
    sm_id: int = 0
    date_created: Optional[datetime] = None
    oof_shard: str = ""

    @field_validator("items", mode="before")
    @classmethod
    def _null_items_are_empty(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [{} if item is None else item for item in value]
        return value

    @field_validator("date_created")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamps without an offset are UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def __str__(self) -> str:
        return f"Order {self.order_uid} ({len(self.items)} items, track {self.track_number})"


# ==============================================================================
# VALIDATION RULES
# ==============================================================================
# Applied at the ingestion boundary, after decoding and before any write.
# Anything not listed here is stored as received.


def validate_order(order: Order) -> None:
    """
    Check the invariants an order must satisfy before it is persisted.

    Args:
        order: Decoded order

    Raises:
        OrderValidationError: On the first violated rule:
            - order_uid is empty
            - track_number is empty
            - payment.transaction is empty
            - items is empty
    """
    if not order.order_uid:
        raise OrderValidationError("order_uid is required")
    if not order.track_number:
        raise OrderValidationError("track_number is required", order_uid=order.order_uid)
    if not order.payment.transaction:
        raise OrderValidationError("payment.transaction is required", order_uid=order.order_uid)
    if len(order.items) == 0:
        raise OrderValidationError("at least one item is required", order_uid=order.order_uid)
