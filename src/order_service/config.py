"""
Order Service Configuration

Settings for the Kafka consumer, the PostgreSQL store, the HTTP read API and
logging. Values come from environment variables (or a local .env file) and
are validated by Pydantic; field names map to upper-case variables, e.g.
`kafka_topic_orders` <- KAFKA_TOPIC_ORDERS.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class ServiceConfig(BaseSettings):
    """Order service configuration with validation."""

    # === KAFKA CONSUMER ===
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Kafka broker addresses",
    )

    kafka_topic_orders: str = Field(
        default="orders",
        description="Topic carrying order records",
    )

    consumer_group_id: str = Field(
        default="order-service-group",
        description="Consumer group ID",
    )

    consumer_client_id: str = Field(
        default="order-service",
        description="Consumer client identifier",
    )

    consumer_auto_offset_reset: str = Field(
        default="earliest",
        description="Where a new group starts consuming: earliest or latest",
    )

    consumer_poll_timeout_seconds: float = Field(
        default=10.0,
        ge=0.1,
        le=60.0,
        description="Bounded wait for one message before polling again",
    )

    consumer_error_backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Pause after a transport-level read error",
    )

    # === DATABASE ===
    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_db: str = Field(default="order_service", description="PostgreSQL database name")
    postgres_user: str = Field(default="order_user", description="PostgreSQL username")
    postgres_password: str = Field(default="111111", description="PostgreSQL password")

    database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; overrides the postgres_* settings when set",
    )

    db_pool_size: int = Field(
        default=5,
        ge=1,
        le=20,
        description="SQLAlchemy connection pool size",
    )

    # === HTTP READ API ===
    http_host: str = Field(default="0.0.0.0", description="Bind address for the read API")
    http_port: int = Field(default=8081, ge=1, le=65535, description="Port for the read API")

    http_shutdown_timeout_seconds: int = Field(
        default=30,
        ge=0,
        description="Time allowed for in-flight requests to drain on shutdown",
    )

    static_dir: str = Field(
        default="static",
        description="Directory holding index.html for the lookup page",
    )

    # === LOGGING ===
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log output format (json or text)")

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_kafka_config(self) -> dict:
        """Get confluent-kafka consumer configuration dictionary."""
        return {
            "bootstrap.servers": self.kafka_bootstrap_servers,
            "group.id": self.consumer_group_id,
            "client.id": self.consumer_client_id,
            "auto.offset.reset": self.consumer_auto_offset_reset,
            "enable.auto.commit": False,
        }

    def get_database_url(self) -> str:
        """Get SQLAlchemy database URL."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


def load_config() -> ServiceConfig:
    """Load and validate service configuration."""
    return ServiceConfig()
