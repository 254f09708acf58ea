"""Infrastructure layer exports."""

from podcast_pipeline.infrastructure.assemblyai_transcriber import (
    AssemblyAITranscriber,
    build_transcription_config,
)
from podcast_pipeline.infrastructure.gemini_llm import GeminiLLMService
from podcast_pipeline.infrastructure.rabbitmq_broker import RabbitMQBroker
from podcast_pipeline.infrastructure.redis_checkpoint_store import RedisCheckpointStore
from podcast_pipeline.infrastructure.redis_progress import (
    RedisProgressPublisher,
    RedisProgressSubscriber,
)

__all__ = [
    "AssemblyAITranscriber",
    "GeminiLLMService",
    "RabbitMQBroker",
    "RedisCheckpointStore",
    "RedisProgressPublisher",
    "RedisProgressSubscriber",
    "build_transcription_config",
]
