"""
Order Service - Main Entry Point

Wires the cache, the PostgreSQL store, the Kafka consumer and the HTTP read
API into one process.

USAGE:
    python -m src.order_service.main [options]

OPTIONS:
    --log-level    Logging level (DEBUG, INFO, WARNING, ERROR)
    --log-format   Log format (json or text)
    --port         HTTP port (overrides HTTP_PORT env var)

STARTUP SEQUENCE:
1. Load configuration, set up logging
2. Connect to PostgreSQL (fatal on failure, exit 1), create tables
3. Restore the cache from the database (non-fatal)
4. Start the consume loop on its own thread
5. Serve the read API (blocks until SIGINT/SIGTERM)

GRACEFUL SHUTDOWN:
- uvicorn handles SIGINT / SIGTERM and drains in-flight requests for up to
  HTTP_SHUTDOWN_TIMEOUT_SECONDS
- The consume loop is then stopped and joined
- Database connections are closed last
"""

import argparse
import logging
import sys
import threading

import uvicorn

from src.order_service.api import create_app
from src.order_service.cache import OrderCache
from src.order_service.config import load_config
from src.order_service.consumer import OrderConsumer
from src.order_service.database import init_database
from src.order_service.lookup import OrderLookupService
from src.order_service.pipeline import IngestionPipeline
from src.order_service.repository import OrderRepository
from src.order_service.restore import CacheRestorer
from src.shared.logger import setup_logger

# ==============================================================================
# CLI ARGUMENT PARSING
# ==============================================================================


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Order Service: Kafka ingestion, PostgreSQL storage, cached read API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with default settings
  python -m src.order_service.main

  # Debug logging in plain text
  python -m src.order_service.main --log-level DEBUG --log-format text

Environment Variables:
  KAFKA_BOOTSTRAP_SERVERS    Kafka broker addresses (default: localhost:9092)
  KAFKA_TOPIC_ORDERS         Topic to consume (default: orders)
  CONSUMER_GROUP_ID          Consumer group (default: order-service-group)
  DATABASE_URL               Full database URL (overrides POSTGRES_*)
  POSTGRES_HOST              Database host (default: localhost)
  POSTGRES_DB                Database name (default: order_service)
  HTTP_PORT                  Read API port (default: 8081)
  LOG_LEVEL                  Logging level (default: INFO)
  LOG_FORMAT                 Log format: json or text (default: json)
        """,
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides LOG_LEVEL env var)",
    )

    parser.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Log output format (overrides LOG_FORMAT env var)",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="HTTP port for the read API (overrides HTTP_PORT env var)",
    )

    return parser.parse_args(argv)


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================


def main(argv=None) -> int:
    """
    Main entry point for the order service.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    args = parse_args(argv)

    try:
        config = load_config()
    except Exception as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format
    if args.port:
        config.http_port = args.port

    # Configure the whole src.* tree so module loggers share the handler
    setup_logger(
        name="src",
        service_name="order-service",
        log_level=config.log_level,
        log_format=config.log_format,
    )
    logger = logging.getLogger(__name__)

    logger.info(
        "Starting Order Service",
        extra={
            "kafka_bootstrap_servers": config.kafka_bootstrap_servers,
            "kafka_topic": config.kafka_topic_orders,
            "consumer_group": config.consumer_group_id,
            "http_port": config.http_port,
            "log_level": config.log_level,
        },
    )

    try:
        db_manager = init_database(config)
        db_manager.create_schema()
    except Exception:
        logger.error("Failed to initialize database", exc_info=True)
        return 1

    cache = OrderCache()
    repository = OrderRepository(db_manager)

    result = CacheRestorer(repository, cache).restore()
    logger.info(
        "Cache warm-up finished",
        extra={"loaded": result.loaded, "skipped": result.skipped, "ok": result.ok},
    )

    pipeline = IngestionPipeline(repository, cache)
    try:
        consumer = OrderConsumer(config, pipeline)
    except Exception:
        logger.error("Failed to create Kafka consumer", exc_info=True)
        db_manager.close()
        return 1

    consumer_thread = threading.Thread(
        target=consumer.start, name="order-consumer", daemon=True
    )
    consumer_thread.start()

    app = create_app(OrderLookupService(cache, repository), static_dir=config.static_dir)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.http_host,
            port=config.http_port,
            timeout_graceful_shutdown=config.http_shutdown_timeout_seconds,
            log_config=None,
            access_log=False,
        )
    )

    exit_code = 0
    try:
        logger.info("Read API listening", extra={"host": config.http_host, "port": config.http_port})
        server.run()
    except Exception:
        logger.error("HTTP server failed", exc_info=True)
        exit_code = 1
    finally:
        consumer.stop()
        # One poll timeout is the longest the loop can take to notice
        consumer_thread.join(timeout=config.consumer_poll_timeout_seconds + 5)
        if consumer_thread.is_alive():
            logger.warning("Consumer thread did not stop in time")
        db_manager.close()
        logger.info("Order Service stopped", extra=pipeline.stats())

    return exit_code


# ==============================================================================
# ENTRY POINT
# ==============================================================================

if __name__ == "__main__":
    sys.exit(main())
