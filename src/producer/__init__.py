"""
Test Producer Package

Publishes sample order records to the Kafka "orders" topic for manual and
end-to-end testing of the order service.

PACKAGE STRUCTURE:
- mock_data.py: Generate wire-format orders (Faker)
- producer.py: Kafka producer with delivery callbacks
- config.py: Producer configuration from environment variables
- main.py: CLI entry point

USAGE:
    python -m src.producer.main --count 5
"""

__version__ = "1.0.0"

from src.producer.config import ProducerConfig, load_config
from src.producer.mock_data import MockDataGenerator
from src.producer.producer import OrderProducer

__all__ = [
    "OrderProducer",
    "MockDataGenerator",
    "ProducerConfig",
    "load_config",
]
