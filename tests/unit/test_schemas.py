"""
Unit Tests for the Order Record Schema and Validation Rules

TEST STRATEGY:
- Decoding defaults: missing and null fields become zero values
- Immutability of decoded records
- validate_order(): each of the four rules, and what it does NOT check
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.order_service.exceptions import OrderValidationError
from src.order_service.schemas import Delivery, Item, Order, Payment, validate_order

# ==============================================================================
# DECODING / DEFAULTS
# ==============================================================================


@pytest.mark.unit
def test_order_from_sample(sample_order_data):
    order = Order.model_validate(sample_order_data)

    assert order.order_uid == "o-1"
    assert order.payment.transaction == "o-1"
    assert order.payment.amount == 1817
    assert isinstance(order.delivery, Delivery)
    assert isinstance(order.payment, Payment)
    assert isinstance(order.items, tuple)
    assert isinstance(order.items[0], Item)
    assert order.items[0].name == "Mascaras"
    assert order.date_created == datetime(2021, 11, 26, 6, 22, 19, tzinfo=timezone.utc)


@pytest.mark.unit
def test_missing_fields_get_zero_values():
    order = Order.model_validate({"order_uid": "o-1"})

    assert order.track_number == ""
    assert order.sm_id == 0
    assert order.delivery == Delivery()
    assert order.payment.amount == 0
    assert order.items == ()
    assert order.date_created is None


@pytest.mark.unit
def test_unknown_fields_ignored(sample_order_data):
    sample_order_data["unexpected"] = {"nested": True}
    sample_order_data["payment"]["extra_fee"] = 10

    order = Order.model_validate(sample_order_data)

    assert not hasattr(order, "unexpected")
    assert order.payment.amount == 1817


@pytest.mark.unit
def test_naive_timestamp_is_utc(sample_order_data):
    sample_order_data["date_created"] = "2021-11-26T06:22:19"

    order = Order.model_validate(sample_order_data)

    assert order.date_created.tzinfo == timezone.utc


@pytest.mark.unit
def test_offset_timestamp_converted_to_utc(sample_order_data):
    sample_order_data["date_created"] = "2021-11-26T09:22:19+03:00"

    order = Order.model_validate(sample_order_data)

    assert order.date_created.utcoffset() == timedelta(0)
    assert order.model_dump(mode="json")["date_created"] == "2021-11-26T06:22:19Z"


@pytest.mark.unit
def test_null_fields_decode_to_defaults(sample_order_data):
    sample_order_data.update(entry=None, oof_shard=None, sm_id=None, date_created=None)
    sample_order_data["delivery"]["email"] = None
    sample_order_data["payment"]["custom_fee"] = None
    sample_order_data["items"][0]["brand"] = None

    order = Order.model_validate(sample_order_data)

    assert order.entry == ""
    assert order.oof_shard == ""
    assert order.sm_id == 0
    assert order.date_created is None
    assert order.delivery.email == ""
    assert order.payment.custom_fee == 0
    assert order.items[0].brand == ""


@pytest.mark.unit
def test_null_nested_objects_decode_to_empty(sample_order_data):
    sample_order_data.update(delivery=None, items=None)

    order = Order.model_validate(sample_order_data)

    assert order.delivery == Delivery()
    assert order.items == ()


@pytest.mark.unit
def test_wrong_type_rejected(sample_order_data):
    sample_order_data["payment"]["amount"] = "abc"

    with pytest.raises(ValidationError):
        Order.model_validate(sample_order_data)


@pytest.mark.unit
def test_order_is_frozen(sample_order):
    with pytest.raises(ValidationError):
        sample_order.order_uid = "changed"

    with pytest.raises(ValidationError):
        sample_order.payment.amount = 0


@pytest.mark.unit
def test_json_field_names(sample_order):
    data = sample_order.model_dump(mode="json")

    assert set(data) == {
        "order_uid", "track_number", "entry", "delivery", "payment", "items",
        "locale", "internal_signature", "customer_id", "delivery_service",
        "shardkey", "sm_id", "date_created", "oof_shard",
    }
    assert data["items"][0]["chrt_id"] == 9934930
    assert data["date_created"] == "2021-11-26T06:22:19Z"


@pytest.mark.unit
def test_str(sample_order):
    assert str(sample_order) == "Order o-1 (1 items, track WBILMTESTTRACK)"


# ==============================================================================
# VALIDATION RULES
# ==============================================================================


@pytest.mark.unit
def test_valid_order_passes(sample_order):
    validate_order(sample_order)


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"order_uid": ""}, "order_uid is required"),
        ({"track_number": ""}, "track_number is required"),
        ({"payment": {"transaction": ""}}, "payment.transaction is required"),
        ({"items": []}, "at least one item is required"),
    ],
)
def test_validation_rules(sample_order_data, overrides, message):
    sample_order_data.update(overrides)
    order = Order.model_validate(sample_order_data)

    with pytest.raises(OrderValidationError) as exc_info:
        validate_order(order)

    assert exc_info.value.message == message


@pytest.mark.unit
def test_first_violation_reported():
    with pytest.raises(OrderValidationError, match="order_uid is required"):
        validate_order(Order())


@pytest.mark.unit
def test_validation_error_carries_order_uid(sample_order_data):
    sample_order_data["items"] = []

    with pytest.raises(OrderValidationError) as exc_info:
        validate_order(Order.model_validate(sample_order_data))

    assert exc_info.value.order_uid == "o-1"
    assert isinstance(exc_info.value, ValueError)


@pytest.mark.unit
def test_transaction_mismatch_not_rejected(sample_order_data):
    sample_order_data["payment"]["transaction"] = "other-id"

    validate_order(Order.model_validate(sample_order_data))


@pytest.mark.unit
def test_optional_fields_not_validated(sample_order_data):
    sample_order_data["delivery"] = {"email": "not-an-email"}
    sample_order_data["locale"] = ""
    sample_order_data["items"][0]["price"] = -1

    validate_order(Order.model_validate(sample_order_data))
