"""
Structured Logging for the Order Service

Every process in this repository (the order service and the test producer)
logs through the standard library `logging` module. This module only decides
how records are rendered and where they go.

OUTPUT FORMATS:
- json: one JSON object per line, for log shippers
- text: human-readable line, for local development

JSON RECORD LAYOUT:
{
  "timestamp": "2025-01-10T14:30:00.123Z",
  "level": "WARNING",
  "service": "order-service",
  "logger": "src.order_service.pipeline",
  "correlation_id": "b563feb7b2b84b6test",
  "message": "Order dropped: validation failed",
  "extra": {"reason": "at least one item is required", "offset": 42}
}

correlation_id is the order_uid of the order being handled, so a single
order can be followed from the consume loop through persistence and cache.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord carries; anything else was passed via `extra=`
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "taskName", "exc_info", "exc_text", "stack_info",
        "correlation_id",
    }
)


# ==============================================================================
# FORMATTERS
# ==============================================================================


class JSONFormatter(logging.Formatter):
    """
    Render a LogRecord as a single-line JSON document.

    Fields: timestamp (UTC, millisecond precision), level, service, logger,
    message, plus correlation_id / exception / extra when present.
    """

    def __init__(self, service_name: str = "order-service", include_extra: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra_fields = {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RESERVED_ATTRS and not key.startswith("_")
            }
            if extra_fields:
                log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)

    @staticmethod
    def _format_timestamp(created: float) -> str:
        """Unix timestamp -> "2025-01-10T14:30:00.123Z"."""
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class PlainTextFormatter(logging.Formatter):
    """
    Development formatter.

    [2025-01-10 14:30:00] INFO [order-service] Order cached (order_uid=b563feb7)
    """

    def __init__(self, service_name: str = "order-service"):
        super().__init__(
            fmt=f"[%(asctime)s] %(levelname)s [{service_name}] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            line = f"{line} (order_uid={correlation_id})"
        return line


# ==============================================================================
# LOGGER SETUP
# ==============================================================================


def setup_logger(
    name: str,
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> logging.Logger:
    """
    Configure a logger with a stdout handler.

    Args:
        name: Logger name. Pass "src" (or "") to configure the whole tree so
            that module loggers created with logging.getLogger(__name__)
            inherit the handler.
        service_name: Value of the "service" field (e.g. "order-service")
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" or "text"

    Returns:
        The configured logger. Calling this twice for the same name does not
        attach a second handler.

    Example:
        >>> logger = setup_logger("src", service_name="order-service")
        >>> logger.info("Cache restored", extra={"restored": 120})
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(logger.level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logger.level)

    if log_format.lower() == "json":
        formatter: logging.Formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = PlainTextFormatter(service_name=service_name)

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# ==============================================================================
# CORRELATION ID ADAPTER
# ==============================================================================


class CorrelationAdapter(logging.LoggerAdapter):
    """
    Logger adapter that stamps every record with the adapter's correlation_id.

    Example:
        >>> order_logger = CorrelationAdapter(logger, {"correlation_id": order.order_uid})
        >>> order_logger.info("Order persisted")
    """

    def process(self, msg: str, kwargs: dict) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        if "correlation_id" in self.extra:
            extra["correlation_id"] = self.extra["correlation_id"]
        kwargs["extra"] = extra
        return msg, kwargs
