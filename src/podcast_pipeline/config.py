"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel, computed_field


class PostgresConfig(BaseModel, frozen=True):
    """PostgreSQL connection configuration."""

    host: str
    user: str
    password: str
    port: int
    database: str

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full PostgreSQL connection URL."""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class RedisConfig(BaseModel, frozen=True):
    """Redis connection configuration."""

    host: str
    port: int = 6379
    checkpoint_ttl_seconds: int = 604800  # 7 days


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration."""

    name: str
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    expected_routing_key: str
    success_routing_key: str
    dlq_name: str
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    exchange_name: str = "events"
    queue_config: QueueConfig = QueueConfig(
        name="podcast_processing_queue",
        queue_type="quorum",
        max_delivery_count=3,
        expected_routing_key="podcast.uploaded",
        success_routing_key="podcast.processing.completed",
        dlq_name="dlq_podcast_processor",
        dlq_exchange_name="dead_letter_exchange",
        dlq_routing_key="podcast.processing.failed",
    )


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    speaker_labels: bool = True
    auto_chapters: bool = True


class GeminiConfig(BaseModel, frozen=True):
    """Gemini LLM configuration."""

    api_key: str
    model_name: str = "gemini-2.5-flash-lite"


class RetryConfig(BaseModel, frozen=True):
    """Bounded exponential backoff applied to every durable step."""

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    backoff_factor: float = 2.0
    max_delay_seconds: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Returns the sleep before retrying after the given 1-based attempt."""
        delay = self.base_delay_seconds * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay_seconds)


class RealtimeConfig(BaseModel, frozen=True):
    """Progress subscription credential and stream configuration."""

    token_secret: str
    token_ttl_seconds: int = 300
    max_stream_seconds: int = 900


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    postgres: PostgresConfig
    redis: RedisConfig
    rabbitmq: RabbitMQConfig
    assemblyai: AssemblyAIConfig
    gemini: GeminiConfig
    retry: RetryConfig
    realtime: RealtimeConfig


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        postgres=PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "podcast_pipeline"),
        ),
        redis=RedisConfig(
            host=os.getenv("REDIS_HOST", "redis"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            checkpoint_ttl_seconds=int(
                os.getenv("CHECKPOINT_TTL_SECONDS", "604800")
            ),
        ),
        rabbitmq=RabbitMQConfig(
            host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
            user=os.getenv("RABBITMQ_USER", ""),
            password=os.getenv("RABBITMQ_PASSWORD", ""),
        ),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
        ),
        retry=RetryConfig(
            max_attempts=int(os.getenv("STEP_MAX_ATTEMPTS", "3")),
            base_delay_seconds=float(os.getenv("STEP_BASE_DELAY_SECONDS", "1.0")),
            backoff_factor=float(os.getenv("STEP_BACKOFF_FACTOR", "2.0")),
            max_delay_seconds=float(os.getenv("STEP_MAX_DELAY_SECONDS", "30.0")),
        ),
        realtime=RealtimeConfig(
            token_secret=os.getenv("REALTIME_TOKEN_SECRET", ""),
            token_ttl_seconds=int(os.getenv("REALTIME_TOKEN_TTL_SECONDS", "300")),
            max_stream_seconds=int(os.getenv("REALTIME_MAX_STREAM_SECONDS", "900")),
        ),
    )
