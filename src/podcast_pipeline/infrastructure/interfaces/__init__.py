"""Infrastructure interface exports."""

from podcast_pipeline.infrastructure.interfaces.checkpoint_store import CheckpointStore
from podcast_pipeline.infrastructure.interfaces.event_publisher import EventPublisher
from podcast_pipeline.infrastructure.interfaces.llm_service import LLMService
from podcast_pipeline.infrastructure.interfaces.message_broker import MessageBroker
from podcast_pipeline.infrastructure.interfaces.progress import (
    ProgressPublisher,
    ProgressSubscriber,
)
from podcast_pipeline.infrastructure.interfaces.run_store import RunStore
from podcast_pipeline.infrastructure.interfaces.transcription_service import (
    TranscriptionService,
)

__all__ = [
    "CheckpointStore",
    "EventPublisher",
    "LLMService",
    "MessageBroker",
    "ProgressPublisher",
    "ProgressSubscriber",
    "RunStore",
    "TranscriptionService",
]
