"""
Test Producer Configuration

Settings for the sample-order producer, loaded from environment variables
(or .env) and validated by Pydantic. CLI flags in main.py override them.
"""

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class ProducerConfig(BaseSettings):
    """
    Producer configuration with validation.

    Attributes:
        kafka_bootstrap_servers: Kafka broker addresses
        kafka_topic_orders: Topic the order service consumes
        producer_client_id: Producer identifier
        producer_count: Orders to publish per run
        mock_seed: Faker / random seed (0 = unseeded)
        log_level: Logging level
        log_format: Log output format (json or text)
    """

    # === KAFKA CONNECTION ===
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Kafka broker addresses (comma-separated for multiple brokers)",
    )

    kafka_topic_orders: str = Field(
        default="orders",
        description="Kafka topic for order messages",
    )

    # === PRODUCER SETTINGS ===
    producer_client_id: str = Field(
        default="order-test-producer",
        description="Producer client identifier (visible in broker logs)",
    )

    producer_count: int = Field(
        default=1,
        ge=1,
        le=100000,
        description="Number of orders to publish",
    )

    producer_acks: str = Field(
        default="all",
        description="Acknowledgment level (0, 1 or all)",
    )

    # === MOCK DATA SETTINGS ===
    mock_seed: int = Field(
        default=0,
        ge=0,
        description="Random seed for reproducible sample data (0 = unseeded)",
    )

    # === LOGGING CONFIGURATION ===
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log output format (json or text)")

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_kafka_config(self) -> dict:
        """confluent-kafka Producer configuration dictionary."""
        return {
            "bootstrap.servers": self.kafka_bootstrap_servers,
            "client.id": self.producer_client_id,
            "acks": self.producer_acks,
            "enable.idempotence": self.producer_acks == "all",
        }

    def display_config(self) -> str:
        """Human-readable configuration summary."""
        return (
            "Test Producer Configuration\n"
            f"  Kafka:     {self.kafka_bootstrap_servers}\n"
            f"  Topic:     {self.kafka_topic_orders}\n"
            f"  Client ID: {self.producer_client_id}\n"
            f"  Count:     {self.producer_count}\n"
            f"  Seed:      {self.mock_seed or 'random'}\n"
            f"  Logging:   {self.log_level} ({self.log_format})"
        )


def load_config() -> ProducerConfig:
    """Load and validate producer configuration."""
    return ProducerConfig()
