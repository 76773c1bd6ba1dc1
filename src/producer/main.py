"""
Test Producer - Main Entry Point

Publishes sample orders to the "orders" topic so the order service has
something to ingest.

USAGE:
    # One valid order
    python -m src.producer.main

    # Ten reproducible orders, text logs
    python -m src.producer.main --count 10 --seed 42 --log-format text

    # A poison order (no items) to exercise the drop path
    python -m src.producer.main --invalid
"""

import argparse
import logging
import sys

from confluent_kafka import KafkaException

from src.producer.config import ProducerConfig, load_config
from src.producer.mock_data import MockDataGenerator
from src.producer.producer import OrderProducer
from src.shared.logger import setup_logger


def run_producer(config: ProducerConfig, invalid: bool = False) -> int:
    """
    Publish config.producer_count orders and flush.

    Returns:
        Exit code (0 = all delivered, 1 = any failure)
    """
    logger = logging.getLogger(__name__)

    generator = MockDataGenerator(seed=config.mock_seed or None)

    try:
        producer = OrderProducer(config.get_kafka_config(), config.kafka_topic_orders)
    except KafkaException:
        logger.error("Failed to initialize Kafka producer", exc_info=True)
        return 1

    errors = 0
    for _ in range(config.producer_count):
        order = generator.generate_invalid_order() if invalid else generator.generate_order()
        try:
            producer.produce_order(order)
        except (BufferError, ValueError, KafkaException):
            errors += 1
            logger.error(
                "Failed to publish order",
                exc_info=True,
                extra={"correlation_id": order.get("order_uid")},
            )
            continue

        logger.info(
            "Order sent",
            extra={
                "correlation_id": order["order_uid"],
                "items": len(order["items"]),
                "invalid": invalid,
            },
        )

    remaining = producer.flush(timeout=30.0)

    logger.info(
        "Producer finished",
        extra={
            "requested": config.producer_count,
            "delivered": producer.delivered,
            "failed": producer.failed + errors,
            "undelivered": remaining,
        },
    )

    return 0 if errors == 0 and remaining == 0 and producer.failed == 0 else 1


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments. Flags override environment variables."""
    parser = argparse.ArgumentParser(
        description="Publish sample orders to the order service topic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--bootstrap-servers", type=str, help="Kafka bootstrap servers (default: from config)"
    )
    parser.add_argument("--topic", type=str, help="Kafka topic name (default: from config)")
    parser.add_argument("--count", type=int, help="Number of orders to publish (default: 1)")
    parser.add_argument(
        "--seed", type=int, help="Random seed for reproducible data (default: unseeded)"
    )
    parser.add_argument(
        "--invalid",
        action="store_true",
        help="Publish orders with no items (rejected by the order service)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Log output format (default: from config)",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = load_config()

    if args.bootstrap_servers:
        config.kafka_bootstrap_servers = args.bootstrap_servers
    if args.topic:
        config.kafka_topic_orders = args.topic
    if args.count:
        config.producer_count = args.count
    if args.seed is not None:
        config.mock_seed = args.seed
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format

    setup_logger(
        name="src",
        service_name="order-test-producer",
        log_level=config.log_level,
        log_format=config.log_format,
    )

    print(config.display_config())
    print("=" * 70)

    return run_producer(config, invalid=args.invalid)


if __name__ == "__main__":
    sys.exit(main())
