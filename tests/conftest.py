"""
Pytest Configuration and Shared Fixtures

UNIT FIXTURES (no external services):
- service_config: ServiceConfig pointing at an in-memory SQLite database
- db_manager / repository: real SQLAlchemy stack on that database
- cache: fresh OrderCache
- sample_order_data / sample_order: the reference test order

INTEGRATION FIXTURES (testcontainers, Docker required):
- postgres_container / kafka_container: session-scoped real services
- integration_config: ServiceConfig pointing at both containers

FIXTURE SCOPES:
- session: created once for the whole run (containers)
- function: created for each test (databases, caches)
"""

import copy
import os
import uuid
from typing import Generator

import pytest
from testcontainers.kafka import KafkaContainer
from testcontainers.postgres import PostgresContainer

from src.order_service.cache import OrderCache
from src.order_service.config import ServiceConfig
from src.order_service.database import DatabaseManager
from src.order_service.models import Base
from src.order_service.repository import OrderRepository
from src.order_service.schemas import Order

# ==============================================================================
# SAMPLE DATA
# ==============================================================================

SAMPLE_ORDER = {
    "order_uid": "o-1",
    "track_number": "WBILMTESTTRACK",
    "entry": "WBIL",
    "delivery": {
        "name": "Test Testov",
        "phone": "+9720000000",
        "zip": "2639809",
        "city": "Kiryat Mozkin",
        "address": "Ploshad Mira 15",
        "region": "Kraiot",
        "email": "test@gmail.com",
    },
    "payment": {
        "transaction": "o-1",
        "request_id": "",
        "currency": "USD",
        "provider": "wbpay",
        "amount": 1817,
        "payment_dt": 1637907727,
        "bank": "alpha",
        "delivery_cost": 1500,
        "goods_total": 317,
        "custom_fee": 0,
    },
    "items": [
        {
            "chrt_id": 9934930,
            "track_number": "WBILMTESTTRACK",
            "price": 453,
            "rid": "ab4219087a764ae0btest",
            "name": "Mascaras",
            "sale": 30,
            "size": "0",
            "total_price": 317,
            "nm_id": 2389212,
            "brand": "Vivienne Sabo",
            "status": 202,
        }
    ],
    "locale": "en",
    "internal_signature": "",
    "customer_id": "test",
    "delivery_service": "meest",
    "shardkey": "9",
    "sm_id": 99,
    "date_created": "2021-11-26T06:22:19Z",
    "oof_shard": "1",
}


def make_order_data(order_uid: str = "o-1", **overrides) -> dict:
    """Copy of SAMPLE_ORDER with a different identifier and top-level overrides."""
    data = copy.deepcopy(SAMPLE_ORDER)
    data["order_uid"] = order_uid
    data["payment"]["transaction"] = order_uid
    data.update(overrides)
    return data


@pytest.fixture
def sample_order_data() -> dict:
    """Valid wire-format order "o-1" with one item."""
    return make_order_data()


@pytest.fixture
def sample_order(sample_order_data) -> Order:
    return Order.model_validate(sample_order_data)


@pytest.fixture
def order_factory():
    """Build a valid Order: order_factory("o-2", customer_id="x")."""

    def _make(order_uid: str = "o-1", **overrides) -> Order:
        return Order.model_validate(make_order_data(order_uid, **overrides))

    return _make


@pytest.fixture
def order_data_factory():
    """Build a wire-format order dict: order_data_factory("o-2", items=[])."""
    return make_order_data


@pytest.fixture
def sample_invalid_order_data() -> dict:
    """Well-formed order that fails validation (no items)."""
    return make_order_data("o-invalid", items=[])


# ==============================================================================
# UNIT FIXTURES
# ==============================================================================


@pytest.fixture
def service_config() -> ServiceConfig:
    """ServiceConfig backed by an in-memory SQLite database."""
    return ServiceConfig(
        database_url="sqlite://",
        kafka_topic_orders="test-orders",
        consumer_group_id="test-consumer-group",
        consumer_poll_timeout_seconds=0.1,
        consumer_error_backoff_seconds=0.0,
    )


@pytest.fixture
def db_manager(service_config) -> Generator[DatabaseManager, None, None]:
    manager = DatabaseManager(service_config)
    manager.create_schema()
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def repository(db_manager) -> OrderRepository:
    return OrderRepository(db_manager)


@pytest.fixture
def cache() -> OrderCache:
    return OrderCache()


# ==============================================================================
# POSTGRESQL / KAFKA CONTAINERS
# ==============================================================================


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """PostgreSQL testcontainer shared by the whole session."""
    with PostgresContainer("postgres:15") as postgres:
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="session")
def kafka_container() -> Generator[KafkaContainer, None, None]:
    """Kafka testcontainer shared by the whole session."""
    with KafkaContainer() as kafka:
        kafka.get_bootstrap_server()
        yield kafka


@pytest.fixture
def integration_config(postgres_container, kafka_container) -> ServiceConfig:
    """
    ServiceConfig pointing at the containers.

    Each test gets its own topic and consumer group so offsets never leak
    between tests.
    """
    suffix = uuid.uuid4().hex[:8]
    return ServiceConfig(
        kafka_bootstrap_servers=kafka_container.get_bootstrap_server(),
        kafka_topic_orders=f"test-orders-{suffix}",
        consumer_group_id=f"test-group-{suffix}",
        consumer_poll_timeout_seconds=0.5,
        database_url=postgres_container.get_connection_url(),
    )


@pytest.fixture
def postgres_db_manager(integration_config) -> Generator[DatabaseManager, None, None]:
    """DatabaseManager on the PostgreSQL container with empty tables."""
    manager = DatabaseManager(integration_config)
    manager.create_schema()
    try:
        yield manager
    finally:
        Base.metadata.drop_all(manager.engine)
        manager.close()


# ==============================================================================
# TEST ENVIRONMENT CONFIGURATION
# ==============================================================================


def pytest_configure(config):
    """Register markers and set test environment variables."""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "DEBUG"

    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires containers)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 5 seconds)")
    config.addinivalue_line("markers", "unit: mark test as unit test (no external dependencies)")
