"""
Kafka Order Consumer

Consume loop that feeds the "orders" topic into the IngestionPipeline.

CONSUMER LIFECYCLE:
┌─────────────────────────────────────────────────────────────────────────┐
│  1. Subscribe to topic → join consumer group                            │
│  2. Poll for one message (bounded wait)                                 │
│  3. None → poll again; transport error → log, back off, poll again      │
│  4. Hand the payload to the pipeline (decode → validate → persist →     │
│     cache)                                                              │
│  5. Commit the offset, whatever the outcome                             │
│  6. Repeat until stop() → close consumer, return                        │
└─────────────────────────────────────────────────────────────────────────┘

DELIVERY:
- enable.auto.commit is off; the offset is committed synchronously after the
  pipeline returns
- A crash between persist and commit redelivers the message; the store's
  primary key turns the redelivery into a logged duplicate
- Malformed messages are committed too, so they are never redelivered

start() blocks; main.py runs it on a dedicated thread and calls stop() from
the shutdown path.
"""

import logging
import threading
from typing import Optional

from confluent_kafka import Consumer, KafkaError, KafkaException, Message

from src.order_service.config import ServiceConfig
from src.order_service.pipeline import IngestionPipeline

# ==============================================================================
# KAFKA CONSUMER
# ==============================================================================


class OrderConsumer:
    """
    Kafka consumer for order records.

    Attributes:
        config: Service configuration
        pipeline: Per-message processing
        consumer: Confluent Kafka consumer instance
        logger: Structured logger
    """

    def __init__(
        self,
        config: ServiceConfig,
        pipeline: IngestionPipeline,
        consumer: Optional[Consumer] = None,
    ):
        """
        Initialize Kafka consumer and subscribe to the orders topic.

        Args:
            config: Service configuration
            pipeline: Pipeline each message is handed to
            consumer: Pre-built consumer; created from config when omitted
        """
        self.config = config
        self.pipeline = pipeline
        self.logger = logging.getLogger(__name__)
        self._stop_event = threading.Event()

        self.consumer = consumer if consumer is not None else self._create_consumer()
        self.consumer.subscribe([config.kafka_topic_orders])

        self.logger.info(
            "Order consumer initialized",
            extra={
                "topic": config.kafka_topic_orders,
                "group_id": config.consumer_group_id,
                "bootstrap_servers": config.kafka_bootstrap_servers,
            },
        )

    def _create_consumer(self) -> Consumer:
        """Create Confluent Kafka consumer from configuration."""
        kafka_config = self.config.get_kafka_config()

        self.logger.debug("Creating Kafka consumer", extra={"config": kafka_config})

        return Consumer(kafka_config)

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def start(self) -> None:
        """
        Run the consume loop until stop() is called.

        Each iteration waits up to consumer_poll_timeout_seconds for one
        message. Nothing other than stop() ends the loop: transport errors
        and per-message failures are logged and the loop carries on.
        """
        self.logger.info(
            "Starting consumer loop...",
            extra={"poll_timeout_s": self.config.consumer_poll_timeout_seconds},
        )

        try:
            while not self._stop_event.is_set():
                try:
                    msg = self.consumer.poll(timeout=self.config.consumer_poll_timeout_seconds)
                except KafkaException:
                    self.logger.error("Kafka poll failed", exc_info=True)
                    self._backoff()
                    continue

                if msg is None:
                    continue

                if msg.error():
                    self._handle_kafka_error(msg.error())
                    continue

                self._process_message(msg)
        finally:
            self._shutdown()

    def _process_message(self, msg: Message) -> None:
        """
        Hand one message to the pipeline and commit its offset.

        The pipeline handles bad input and store errors itself; anything else
        escaping it is logged here so the loop keeps running.
        """
        context = {
            "topic": msg.topic(),
            "partition": msg.partition(),
            "offset": msg.offset(),
        }

        try:
            self.pipeline.process(msg.value(), context)
        except Exception:
            self.pipeline.record_failure()
            self.logger.error(
                "Unexpected error processing message",
                exc_info=True,
                extra=context,
            )

        try:
            self.consumer.commit(message=msg, asynchronous=False)
        except KafkaException:
            self.logger.error(
                "Failed to commit offset",
                exc_info=True,
                extra=context,
            )

    def _handle_kafka_error(self, error: KafkaError) -> None:
        """
        Handle a transport-level error returned by poll().

        Partition EOF is informational. Anything else is logged and followed
        by a short pause before polling again.
        """
        if error.code() == KafkaError._PARTITION_EOF:
            self.logger.debug("Reached end of partition")
            return

        self.logger.error(
            f"Kafka error: {error.str()}",
            extra={
                "error_code": error.code(),
                "error_name": error.name(),
            },
        )
        self._backoff()

    def _backoff(self) -> None:
        # Returns early when stop() is called during the wait
        self._stop_event.wait(self.config.consumer_error_backoff_seconds)

    def stop(self) -> None:
        """
        Signal the loop to exit.

        Returns immediately; the loop finishes the current message (or wakes
        from an error backoff), closes the consumer and returns from start().
        """
        self.logger.info("Stopping consumer...")
        self._stop_event.set()

    def _shutdown(self) -> None:
        self.logger.info("Consumer shutting down", extra=self.pipeline.stats())

        try:
            self.consumer.close()
            self.logger.info("Kafka consumer closed")
        except KafkaException:
            self.logger.error("Error closing Kafka consumer", exc_info=True)

        self.logger.info("Consumer shutdown complete")
