"""Redis pub/sub transport for progress events."""

import time
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timezone

import redis
from pydantic import ValidationError

from podcast_pipeline.domain.models import ProgressEvent, ProgressTopic
from podcast_pipeline.exceptions import EventPublishError
from podcast_pipeline.infrastructure.interfaces import (
    ProgressPublisher,
    ProgressSubscriber,
)
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


class RedisProgressPublisher(ProgressPublisher):
    """Publishes progress events with Redis PUBLISH. Nothing is stored."""

    def __init__(
        self,
        client: redis.Redis,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._client = client
        self._clock = clock

    def publish(self, channel: str, topic: ProgressTopic, payload: dict) -> None:
        """
        Publishes an event to whoever is subscribed right now.

        Args:
            channel: Channel scoped to one run.
            topic: The progress topic.
            payload: Small human-readable payload.

        Raises:
            EventPublishError: If the Redis operation fails.
        """
        event = ProgressEvent(
            channel=channel, topic=topic, payload=payload, emitted_at=self._clock()
        )
        try:
            receivers = self._client.publish(channel, event.model_dump_json())
        except redis.RedisError as e:
            logger.exception(
                "Failed to publish progress event",
                extra={"channel": channel, "topic": topic.value},
            )
            raise EventPublishError(channel, cause=e) from e

        logger.info(
            "Progress event published",
            extra={"channel": channel, "topic": topic.value, "receivers": receivers},
        )


class RedisProgressSubscriber(ProgressSubscriber):
    """Streams progress events from a Redis pub/sub subscription."""

    def __init__(
        self,
        client: redis.Redis,
        poll_seconds: float = 1.0,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._poll_seconds = poll_seconds
        self._monotonic = monotonic

    def subscribe(
        self,
        channel: str,
        topics: Iterable[ProgressTopic],
        max_seconds: float,
    ) -> Iterator[ProgressEvent]:
        wanted = set(topics)
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(channel)
        deadline = self._monotonic() + max_seconds
        logger.info("Progress subscription opened", extra={"channel": channel})

        try:
            while self._monotonic() < deadline:
                message = pubsub.get_message(timeout=self._poll_seconds)
                if not message or message.get("type") != "message":
                    continue

                try:
                    event = ProgressEvent.model_validate_json(message["data"])
                except ValidationError:
                    logger.warning("Malformed progress event skipped", extra={"channel": channel})
                    continue

                if event.channel != channel or event.topic not in wanted:
                    continue

                yield event

                if event.topic == ProgressTopic.GENERATION_DONE:
                    return
        finally:
            pubsub.close()
            logger.info("Progress subscription closed", extra={"channel": channel})
