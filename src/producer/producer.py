"""
Kafka Order Producer

Publishes order records to the topic the order service consumes.

- Key: order_uid (all deliveries of one order land on one partition)
- Value: order record as UTF-8 JSON
- Delivery reports are logged from poll() / flush()
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from confluent_kafka import KafkaError, KafkaException, Producer


class OrderProducer:
    """
    Kafka producer for order records.

    Attributes:
        topic: Kafka topic name
        producer: confluent_kafka.Producer instance
        delivered: Messages acknowledged by the broker
        failed: Messages whose delivery failed
    """

    def __init__(
        self,
        kafka_config: Dict[str, Any],
        topic: str,
        delivery_callback: Optional[Callable] = None,
        producer: Optional[Producer] = None,
    ):
        """
        Initialize Kafka producer.

        Args:
            kafka_config: confluent-kafka configuration (ProducerConfig.get_kafka_config())
            topic: Kafka topic to publish to
            delivery_callback: Optional custom callback for delivery reports
            producer: Pre-built producer; created from kafka_config when omitted

        Raises:
            KafkaException: If producer initialization fails
        """
        self.topic = topic
        self.logger = logging.getLogger(__name__)
        self.delivery_callback = delivery_callback or self._default_delivery_callback
        self.delivered = 0
        self.failed = 0

        try:
            self.producer = producer if producer is not None else Producer(kafka_config)
        except KafkaException:
            self.logger.error("Failed to initialize Kafka producer", exc_info=True)
            raise

        self.logger.info(
            "Kafka producer initialized",
            extra={
                "bootstrap_servers": kafka_config.get("bootstrap.servers"),
                "topic": topic,
            },
        )

    def _default_delivery_callback(self, err: Optional[KafkaError], msg) -> None:
        """Log the broker's delivery report for one message."""
        order_uid = msg.key().decode("utf-8") if msg is not None and msg.key() else None

        if err is not None:
            self.failed += 1
            self.logger.error(
                "Message delivery failed",
                extra={
                    "correlation_id": order_uid,
                    "error": err.str(),
                    "error_code": err.code(),
                    "topic": msg.topic() if msg is not None else self.topic,
                },
            )
            return

        self.delivered += 1
        self.logger.info(
            "Message delivered successfully",
            extra={
                "correlation_id": order_uid,
                "topic": msg.topic(),
                "partition": msg.partition(),
                "offset": msg.offset(),
                "message_size": len(msg.value() or b""),
            },
        )

    def produce_order(self, order: Dict[str, Any]) -> None:
        """
        Publish one order record.

        Args:
            order: Wire-format order dictionary; order_uid is the message key

        Raises:
            ValueError: order has no order_uid
            BufferError: Producer queue full
            KafkaException: Kafka client error
        """
        order_uid = order.get("order_uid")
        if not order_uid:
            raise ValueError("Order missing 'order_uid' field (required for message key)")

        value_bytes = json.dumps(order).encode("utf-8")

        try:
            self.producer.produce(
                topic=self.topic,
                key=order_uid.encode("utf-8"),
                value=value_bytes,
                on_delivery=self.delivery_callback,
            )
            # Serve delivery callbacks of earlier messages
            self.producer.poll(0)
        except BufferError:
            self.logger.error(
                "Producer queue full",
                exc_info=True,
                extra={"correlation_id": order_uid},
            )
            raise
        except KafkaException:
            self.logger.error(
                "Kafka error publishing order",
                exc_info=True,
                extra={"correlation_id": order_uid},
            )
            raise

        self.logger.debug(
            "Order published to Kafka",
            extra={
                "correlation_id": order_uid,
                "topic": self.topic,
                "items_count": len(order.get("items", [])),
                "message_size": len(value_bytes),
            },
        )

    def flush(self, timeout: float = 30.0) -> int:
        """
        Wait for outstanding deliveries.

        Returns:
            Number of messages still undelivered after the timeout
        """
        remaining = self.producer.flush(timeout)
        if remaining > 0:
            self.logger.warning(
                "Producer flush timeout",
                extra={"remaining_messages": remaining, "timeout": timeout},
            )
        else:
            self.logger.info("All messages delivered")
        return remaining
