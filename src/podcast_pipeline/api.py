"""FastAPI application for run creation, status reads and progress streaming."""

from fastapi import FastAPI

from podcast_pipeline.config import load_config
from podcast_pipeline.dependencies import (
    build_engine,
    build_rabbitmq_channel,
    build_redis_client,
    build_session_factory,
)
from podcast_pipeline.domain.progress import SubscriptionTokenIssuer
from podcast_pipeline.infrastructure import RabbitMQBroker, RedisProgressSubscriber
from podcast_pipeline.infrastructure.interfaces import (
    EventPublisher,
    ProgressSubscriber,
    RunStore,
)
from podcast_pipeline.repositories import SqlRunRepository
from podcast_pipeline.routes import runs_router


def create_app(
    run_store: RunStore,
    trigger_publisher: EventPublisher,
    token_issuer: SubscriptionTokenIssuer,
    progress_subscriber: ProgressSubscriber,
    trigger_routing_key: str = "podcast.uploaded",
    max_stream_seconds: float = 900,
) -> FastAPI:
    """Creates the API with explicitly provided dependencies."""
    app = FastAPI(title="Podcast Pipeline API")
    app.state.run_store = run_store
    app.state.trigger_publisher = trigger_publisher
    app.state.trigger_routing_key = trigger_routing_key
    app.state.token_issuer = token_issuer
    app.state.progress_subscriber = progress_subscriber
    app.state.max_stream_seconds = max_stream_seconds
    app.include_router(runs_router)
    return app


def build_app() -> FastAPI:
    """Application factory for uvicorn, wired from environment configuration."""
    config = load_config()

    redis_client = build_redis_client(config.redis)
    channel = build_rabbitmq_channel(config.rabbitmq)
    channel.exchange_declare(
        exchange=config.rabbitmq.exchange_name,
        exchange_type="topic",
        durable=True,
    )

    return create_app(
        run_store=SqlRunRepository(
            build_session_factory(build_engine(config.postgres))
        ),
        trigger_publisher=RabbitMQBroker(channel, config.rabbitmq),
        token_issuer=SubscriptionTokenIssuer(
            config.realtime.token_secret, config.realtime.token_ttl_seconds
        ),
        progress_subscriber=RedisProgressSubscriber(redis_client),
        trigger_routing_key=config.rabbitmq.queue_config.expected_routing_key,
        max_stream_seconds=config.realtime.max_stream_seconds,
    )
