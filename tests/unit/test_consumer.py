"""
Unit Tests for the OrderConsumer Loop

The confluent-kafka Consumer is replaced by a MagicMock whose poll() plays a
scripted sequence of messages, timeouts and errors, then calls stop().
"""

import json
import threading
from unittest.mock import MagicMock, patch

import pytest
from confluent_kafka import KafkaError, KafkaException

from src.order_service.consumer import OrderConsumer
from src.order_service.pipeline import IngestionPipeline, Outcome


def make_message(value, offset=0, error=None):
    msg = MagicMock()
    msg.value.return_value = value
    msg.error.return_value = error
    msg.topic.return_value = "test-orders"
    msg.partition.return_value = 0
    msg.offset.return_value = offset
    return msg


def scripted_consumer(script):
    """
    Mock Kafka consumer that returns each scripted item from poll().

    Items may be messages, None (timeout) or exceptions (raised). Once the
    script is exhausted the owning OrderConsumer is stopped.
    """
    kafka_consumer = MagicMock()
    items = list(script)
    owner = {}

    def poll(timeout):
        if not items:
            owner["consumer"].stop()
            return None
        item = items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    kafka_consumer.poll.side_effect = poll
    return kafka_consumer, owner


def run(service_config, pipeline, script):
    kafka_consumer, owner = scripted_consumer(script)
    consumer = OrderConsumer(service_config, pipeline, consumer=kafka_consumer)
    owner["consumer"] = consumer
    consumer.start()
    return consumer, kafka_consumer


@pytest.fixture
def pipeline():
    mock = MagicMock(spec=IngestionPipeline)
    mock.process.return_value = Outcome.CACHED
    mock.stats.return_value = {"messages_processed": 0, "messages_failed": 0, "messages_skipped": 0}
    return mock


# ==============================================================================
# LIFECYCLE
# ==============================================================================


@pytest.mark.unit
def test_subscribes_to_topic(service_config, pipeline):
    kafka_consumer = MagicMock()

    OrderConsumer(service_config, pipeline, consumer=kafka_consumer)

    kafka_consumer.subscribe.assert_called_once_with(["test-orders"])


@pytest.mark.unit
@patch("src.order_service.consumer.Consumer")
def test_creates_consumer_from_config(mock_consumer_cls, service_config, pipeline):
    OrderConsumer(service_config, pipeline)

    kafka_config = mock_consumer_cls.call_args.args[0]
    assert kafka_config["group.id"] == "test-consumer-group"
    assert kafka_config["enable.auto.commit"] is False


@pytest.mark.unit
def test_stop_closes_consumer(service_config, pipeline):
    consumer, kafka_consumer = run(service_config, pipeline, [])

    assert consumer.running is False
    kafka_consumer.close.assert_called_once()


@pytest.mark.unit
def test_stop_from_another_thread(service_config, pipeline):
    kafka_consumer = MagicMock()
    kafka_consumer.poll.return_value = None
    consumer = OrderConsumer(service_config, pipeline, consumer=kafka_consumer)

    thread = threading.Thread(target=consumer.start)
    thread.start()
    consumer.stop()
    thread.join(timeout=5)

    assert not thread.is_alive()
    kafka_consumer.close.assert_called_once()


# ==============================================================================
# MESSAGE HANDLING
# ==============================================================================


@pytest.mark.unit
def test_timeouts_keep_polling(service_config, pipeline):
    _, kafka_consumer = run(service_config, pipeline, [None, None, None])

    assert kafka_consumer.poll.call_count == 4
    kafka_consumer.poll.assert_called_with(timeout=service_config.consumer_poll_timeout_seconds)
    pipeline.process.assert_not_called()


@pytest.mark.unit
def test_each_message_processed_and_committed(service_config, pipeline):
    first = make_message(b"{}", offset=1)
    second = make_message(b"{}", offset=2)

    _, kafka_consumer = run(service_config, pipeline, [first, None, second])

    assert pipeline.process.call_count == 2
    pipeline.process.assert_any_call(b"{}", {"topic": "test-orders", "partition": 0, "offset": 2})
    assert kafka_consumer.commit.call_count == 2
    kafka_consumer.commit.assert_called_with(message=second, asynchronous=False)


@pytest.mark.unit
@pytest.mark.parametrize(
    "outcome",
    [Outcome.DECODE_FAILED, Outcome.INVALID, Outcome.DUPLICATE, Outcome.PERSIST_FAILED],
)
def test_dropped_messages_still_committed(service_config, pipeline, outcome):
    pipeline.process.return_value = outcome

    _, kafka_consumer = run(service_config, pipeline, [make_message(b"x")])

    kafka_consumer.commit.assert_called_once()


@pytest.mark.unit
def test_unexpected_pipeline_error_does_not_stop_loop(service_config, pipeline):
    pipeline.process.side_effect = [RuntimeError("boom"), Outcome.CACHED]

    _, kafka_consumer = run(service_config, pipeline, [make_message(b"a"), make_message(b"b")])

    assert pipeline.process.call_count == 2
    assert kafka_consumer.commit.call_count == 2
    pipeline.record_failure.assert_called_once()


@pytest.mark.unit
def test_commit_failure_does_not_stop_loop(service_config, pipeline):
    kafka_consumer, owner = scripted_consumer([make_message(b"a"), make_message(b"b")])
    kafka_consumer.commit.side_effect = KafkaException(KafkaError(KafkaError._NO_OFFSET))
    consumer = OrderConsumer(service_config, pipeline, consumer=kafka_consumer)
    owner["consumer"] = consumer

    consumer.start()

    assert pipeline.process.call_count == 2


# ==============================================================================
# TRANSPORT ERRORS
# ==============================================================================


@pytest.mark.unit
def test_partition_eof_ignored(service_config, pipeline):
    eof = make_message(None, error=KafkaError(KafkaError._PARTITION_EOF))

    with patch.object(OrderConsumer, "_backoff") as backoff:
        _, kafka_consumer = run(service_config, pipeline, [eof, make_message(b"{}")])

    backoff.assert_not_called()
    assert pipeline.process.call_count == 1
    kafka_consumer.commit.assert_called_once()


@pytest.mark.unit
def test_transport_error_backs_off_and_continues(service_config, pipeline):
    failed = make_message(None, error=KafkaError(KafkaError._TRANSPORT))

    with patch.object(OrderConsumer, "_backoff") as backoff:
        _, kafka_consumer = run(service_config, pipeline, [failed, make_message(b"{}")])

    backoff.assert_called_once()
    assert pipeline.process.call_count == 1
    kafka_consumer.commit.assert_called_once()


@pytest.mark.unit
def test_poll_exception_backs_off_and_continues(service_config, pipeline):
    error = KafkaException(KafkaError(KafkaError._ALL_BROKERS_DOWN))

    with patch.object(OrderConsumer, "_backoff") as backoff:
        consumer, _ = run(service_config, pipeline, [error, make_message(b"{}")])

    backoff.assert_called_once()
    assert pipeline.process.call_count == 1
    assert consumer.running is False


@pytest.mark.unit
def test_backoff_wakes_on_stop(service_config, pipeline):
    config = service_config.model_copy(update={"consumer_error_backoff_seconds": 30.0})
    kafka_consumer = MagicMock()
    kafka_consumer.poll.return_value = make_message(None, error=KafkaError(KafkaError._TRANSPORT))
    consumer = OrderConsumer(config, pipeline, consumer=kafka_consumer)

    thread = threading.Thread(target=consumer.start)
    thread.start()
    consumer.stop()
    thread.join(timeout=5)

    assert not thread.is_alive()


# ==============================================================================
# WITH THE REAL PIPELINE
# ==============================================================================


@pytest.mark.unit
def test_loop_feeds_real_pipeline(service_config, repository, cache, sample_order_data, sample_invalid_order_data):
    pipeline = IngestionPipeline(repository, cache)
    script = [
        make_message(json.dumps(sample_order_data).encode(), offset=0),
        make_message(b"not json", offset=1),
        make_message(json.dumps(sample_invalid_order_data).encode(), offset=2),
        make_message(json.dumps(sample_order_data).encode(), offset=3),
    ]

    _, kafka_consumer = run(service_config, pipeline, script)

    assert cache.size() == 1
    assert cache.get("o-1")[0] == repository.fetch_order("o-1")
    assert pipeline.stats() == {
        "messages_processed": 1,
        "messages_failed": 2,
        "messages_skipped": 1,
    }
    assert kafka_consumer.commit.call_count == 4
