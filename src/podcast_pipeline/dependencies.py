"""
Dependency construction for the worker and the API.

Client handles are built by explicit calls from the entry points, never at
import time. The FastAPI getters at the bottom read the handles that
create_app() placed on the application state.
"""

from contextlib import contextmanager

import assemblyai as aai
import pika
import redis
from fastapi import Request
from google import genai
from pika.adapters.blocking_connection import BlockingChannel
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from podcast_pipeline.config import (
    AppConfig,
    PostgresConfig,
    RabbitMQConfig,
    RedisConfig,
    load_config,
)
from podcast_pipeline.domain.generation import build_generation_tasks
from podcast_pipeline.domain.orchestrator import PipelineOrchestrator
from podcast_pipeline.domain.progress import SubscriptionTokenIssuer
from podcast_pipeline.domain.result_merger import ResultMerger
from podcast_pipeline.domain.step_executor import StepExecutor
from podcast_pipeline.handlers import RunMessageHandler
from podcast_pipeline.infrastructure import (
    AssemblyAITranscriber,
    GeminiLLMService,
    RabbitMQBroker,
    RedisCheckpointStore,
    RedisProgressPublisher,
    RedisProgressSubscriber,
    build_transcription_config,
)
from podcast_pipeline.infrastructure.interfaces import (
    EventPublisher,
    ProgressSubscriber,
    RunStore,
)
from podcast_pipeline.logging import setup_logging
from podcast_pipeline.repositories import SqlRunRepository
from podcast_pipeline.worker import Worker

logger = setup_logging()


def build_redis_client(config: RedisConfig) -> redis.Redis:
    """Connects to Redis and verifies the connection."""
    client = redis.Redis(host=config.host, port=config.port, decode_responses=True)
    if not client.ping():
        logger.error("Redis connection failed", extra={"host": config.host})
        raise ConnectionError("Redis connection failed")
    return client


def build_engine(config: PostgresConfig) -> Engine:
    """Creates the database engine and the runs table."""
    engine = create_engine(config.url)
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized", extra={"host": config.host})
    return engine


def build_session_factory(engine: Engine):
    """Returns a callable producing database session context managers."""

    @contextmanager
    def session_factory():
        with Session(engine) as session:
            yield session

    return session_factory


def build_rabbitmq_channel(config: RabbitMQConfig) -> BlockingChannel:
    """Opens a blocking RabbitMQ channel."""
    credentials = pika.PlainCredentials(config.user, config.password)
    parameters = pika.ConnectionParameters(
        host=config.host,
        credentials=credentials,
        heartbeat=0,
    )
    connection = pika.BlockingConnection(parameters)
    return connection.channel()


def build_orchestrator(
    config: AppConfig, redis_client: redis.Redis, run_store: RunStore
) -> PipelineOrchestrator:
    """Wires the orchestrator with its providers, stores and publisher."""
    executor = StepExecutor(
        RedisCheckpointStore(redis_client, config.redis.checkpoint_ttl_seconds),
        config.retry,
    )

    aai.settings.api_key = config.assemblyai.api_key
    transcriber = AssemblyAITranscriber(
        aai.Transcriber(),
        build_transcription_config(
            speaker_labels=config.assemblyai.speaker_labels,
            auto_chapters=config.assemblyai.auto_chapters,
        ),
    )

    llm = GeminiLLMService(
        genai.Client(api_key=config.gemini.api_key), config.gemini.model_name
    )

    return PipelineOrchestrator(
        executor=executor,
        runs=run_store,
        transcriber=transcriber,
        tasks=build_generation_tasks(llm),
        merger=ResultMerger(run_store),
        publisher=RedisProgressPublisher(redis_client),
    )


def get_worker(config: AppConfig | None = None) -> Worker:
    """Builds the queue worker with every dependency it needs."""
    config = config or load_config()

    redis_client = build_redis_client(config.redis)
    run_store = SqlRunRepository(build_session_factory(build_engine(config.postgres)))

    broker = RabbitMQBroker(build_rabbitmq_channel(config.rabbitmq), config.rabbitmq)
    broker.setup_queue_infrastructure()

    handler = RunMessageHandler(build_orchestrator(config, redis_client, run_store))
    return Worker(broker, handler, config.rabbitmq)


# FastAPI dependencies


def get_run_store(request: Request) -> RunStore:
    """Returns the run store of the application."""
    return request.app.state.run_store


def get_trigger_publisher(request: Request) -> EventPublisher:
    """Returns the publisher used for trigger events."""
    return request.app.state.trigger_publisher


def get_trigger_routing_key(request: Request) -> str:
    return request.app.state.trigger_routing_key


def get_token_issuer(request: Request) -> SubscriptionTokenIssuer:
    """Returns the subscription token issuer."""
    return request.app.state.token_issuer


def get_progress_subscriber(request: Request) -> ProgressSubscriber:
    """Returns the progress subscriber."""
    return request.app.state.progress_subscriber


def get_max_stream_seconds(request: Request) -> float:
    return request.app.state.max_stream_seconds
