"""
Sample Order Generator

Builds order records in the wire format the order service consumes.

ORDER SHAPE:
- order_uid: "test-<nanoseconds>" (unique per call, also used as
  payment.transaction and as the Kafka message key)
- delivery: Faker name, phone, address, email
- payment: integer minor units; amount = goods_total + delivery_cost
- items: 1-5 lines from a fixed catalog, sale applied to total_price

Faker and random are seeded per generator, so the same seed produces the
same customers, addresses and items (order_uid and timestamps still differ).
"""

import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from faker import Faker

# ==============================================================================
# CATALOG
# ==============================================================================
# (name, brand, price in minor units, size)

CATALOG = [
    ("Mascaras", "Vivienne Sabo", 453, "0"),
    ("Lipstick", "Maybelline", 389, "0"),
    ("Face Cream", "Nivea", 612, "50ml"),
    ("Running Shoes", "Asics", 7490, "42"),
    ("T-Shirt", "Uniqlo", 1290, "M"),
    ("Jeans", "Levi's", 5990, "32"),
    ("Backpack", "Herschel", 4500, "0"),
    ("Headphones", "Sony", 9900, "0"),
    ("Phone Case", "Spigen", 990, "0"),
    ("Water Bottle", "Stanley", 2500, "1l"),
]

DELIVERY_SERVICES = ["meest", "dhl", "ups", "cdek"]
CURRENCIES = ["USD", "EUR", "RUB"]
BANKS = ["alpha", "sber", "tinkoff", "vtb"]
ENTRY = "WBIL"


class MockDataGenerator:
    """
    Generates sample order records.

    Attributes:
        seed: Seed used for Faker and random (None = unseeded)
        fake: Seeded Faker instance
        rng: Seeded random.Random instance
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.fake = Faker()
        self.rng = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
        self._last_uid_ns = 0

    def generate_order_uid(self) -> str:
        """Unique "test-<nanoseconds>" identifier, strictly increasing per generator."""
        now_ns = max(time.time_ns(), self._last_uid_ns + 1)
        self._last_uid_ns = now_ns
        return f"test-{now_ns}"

    def generate_track_number(self) -> str:
        return f"{ENTRY}{self.fake.bothify(text='????##########').upper()}"

    def generate_delivery(self) -> Dict[str, str]:
        return {
            "name": self.fake.name(),
            "phone": self.fake.phone_number(),
            "zip": self.fake.postcode(),
            "city": self.fake.city(),
            "address": self.fake.street_address(),
            "region": self.fake.state(),
            "email": self.fake.email(),
        }

    def generate_items(self, track_number: str, min_items: int = 1, max_items: int = 5) -> List[Dict[str, Any]]:
        """Pick distinct catalog entries and price them with a random sale."""
        count = self.rng.randint(min_items, max_items)
        items = []

        for name, brand, price, size in self.rng.sample(CATALOG, count):
            sale = self.rng.choice([0, 10, 20, 30, 50])
            items.append(
                {
                    "chrt_id": self.rng.randint(1_000_000, 9_999_999),
                    "track_number": track_number,
                    "price": price,
                    "rid": self.fake.hexify(text="^" * 20) + "test",
                    "name": name,
                    "sale": sale,
                    "size": size,
                    "total_price": price * (100 - sale) // 100,
                    "nm_id": self.rng.randint(1_000_000, 9_999_999),
                    "brand": brand,
                    "status": 202,
                }
            )

        return items

    def generate_order(self) -> Dict[str, Any]:
        """
        Generate one valid order record.

        Returns:
            Wire-format order dictionary ready for json.dumps()
        """
        order_uid = self.generate_order_uid()
        track_number = self.generate_track_number()
        items = self.generate_items(track_number)

        goods_total = sum(item["total_price"] for item in items)
        delivery_cost = self.rng.choice([0, 500, 1500])
        created = datetime.now(timezone.utc).replace(microsecond=0)

        return {
            "order_uid": order_uid,
            "track_number": track_number,
            "entry": ENTRY,
            "delivery": self.generate_delivery(),
            "payment": {
                "transaction": order_uid,
                "request_id": "",
                "currency": self.rng.choice(CURRENCIES),
                "provider": "wbpay",
                "amount": goods_total + delivery_cost,
                "payment_dt": int(created.timestamp()),
                "bank": self.rng.choice(BANKS),
                "delivery_cost": delivery_cost,
                "goods_total": goods_total,
                "custom_fee": 0,
            },
            "items": items,
            "locale": self.rng.choice(["en", "ru"]),
            "internal_signature": "",
            "customer_id": self.fake.user_name(),
            "delivery_service": self.rng.choice(DELIVERY_SERVICES),
            "shardkey": str(self.rng.randint(0, 9)),
            "sm_id": self.rng.randint(1, 100),
            "date_created": created.isoformat().replace("+00:00", "Z"),
            "oof_shard": str(self.rng.randint(1, 2)),
        }

    def generate_invalid_order(self) -> Dict[str, Any]:
        """A well-formed order with no items; the order service drops it."""
        order = self.generate_order()
        order["items"] = []
        return order
