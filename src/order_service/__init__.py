"""
Order Service Package

Consumes order records from the Kafka "orders" topic, stores them in
PostgreSQL and serves them over HTTP from an in-memory cache.

┌─────────────┐     ┌────────────────────┐     ┌──────────────┐
│   Kafka     │────▶│ IngestionPipeline  │────▶│  PostgreSQL  │
│   orders    │     │ decode, validate,  │     │ orders       │
└─────────────┘     │ persist, cache     │     │ deliveries   │
                    └─────────┬──────────┘     │ payments     │
                              │ set            │ items        │
                              ▼                └──────┬───────┘
                    ┌────────────────────┐            │ fetch
   HTTP GET ───────▶│ OrderLookupService │◀───────────┘
                    │ cache-aside read   │
                    └────────────────────┘

Package components:
- schemas.py: Order record and validation rules
- cache.py: Thread-safe in-memory cache
- models.py / database.py / repository.py: PostgreSQL storage
- pipeline.py / consumer.py: Kafka ingestion
- lookup.py / restore.py: Cache-aside reads and startup warm-up
- api.py / main.py: HTTP read API and process wiring
"""

__version__ = "1.0.0"

from src.order_service.cache import OrderCache
from src.order_service.config import ServiceConfig, load_config
from src.order_service.schemas import Delivery, Item, Order, Payment, validate_order

__all__ = [
    "OrderCache",
    "ServiceConfig",
    "load_config",
    "Order",
    "Delivery",
    "Payment",
    "Item",
    "validate_order",
]
