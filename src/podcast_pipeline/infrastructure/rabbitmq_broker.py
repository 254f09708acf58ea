"""RabbitMQ transport for pipeline trigger and completion events."""

from collections.abc import Callable
from typing import Any

import pika
from pika.channel import Channel
from pydantic_core import to_json

from podcast_pipeline.config import QueueConfig, RabbitMQConfig
from podcast_pipeline.exceptions import EventPublishError
from podcast_pipeline.infrastructure.interfaces import MessageBroker
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

MessageCallback = Callable[[bytes, int, dict[str, Any] | None], None]


class RabbitMQBroker(MessageBroker):
    """
    Publishes run events to a topic exchange and consumes the trigger queue.

    Events are persistent JSON messages. A message carrying a run id uses
    it as its message id so redeliveries can be traced back to one run.
    """

    def __init__(self, channel: Channel, config: RabbitMQConfig):
        self._channel = channel
        self._config = config

    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes a persistent JSON event to the configured exchange.

        Args:
            routing_key: Event name, e.g. podcast.uploaded.
            payload: JSON-serializable event body.

        Raises:
            EventPublishError: If the channel rejects the publish.
        """
        properties = pika.BasicProperties(
            content_type="application/json",
            delivery_mode=pika.DeliveryMode.Persistent,
            message_id=payload.get("run_id"),
        )
        try:
            self._channel.basic_publish(
                exchange=self._config.exchange_name,
                routing_key=routing_key,
                body=to_json(payload),
                properties=properties,
            )
        except Exception as e:
            logger.exception(
                "Failed to publish event",
                extra={"routing_key": routing_key, "run_id": payload.get("run_id")},
            )
            raise EventPublishError(routing_key, cause=e) from e

        logger.info(
            "Event published",
            extra={
                "exchange": self._config.exchange_name,
                "routing_key": routing_key,
                "run_id": payload.get("run_id"),
            },
        )

    def acknowledge(self, delivery_tag: int) -> None:
        self._channel.basic_ack(delivery_tag=delivery_tag)

    def reject(self, delivery_tag: int, requeue: bool = True) -> None:
        """Rejects a message. Without requeue the queue dead-letters it."""
        self._channel.basic_nack(delivery_tag=delivery_tag, requeue=requeue)

    def consume(self, callback: MessageCallback) -> None:
        """
        Blocks consuming the trigger queue, one unsettled message at a time.

        A run can take minutes, so the prefetch of one keeps other triggers
        available to other workers meanwhile.

        Args:
            callback: Called with (body, delivery_tag, headers) per message.
        """
        queue = self._config.queue_config.name

        def on_message(ch, method, properties, body):
            callback(body, method.delivery_tag, getattr(properties, "headers", None))

        self._channel.basic_qos(prefetch_count=1)
        self._channel.basic_consume(queue=queue, on_message_callback=on_message)
        logger.info("Started consuming", extra={"queue": queue})
        self._channel.start_consuming()

    def setup_queue_infrastructure(self) -> None:
        """Declares the event exchange, the trigger queue and its dead-letter queue."""
        queue_config: QueueConfig = self._config.queue_config

        self._declare_dead_letter(queue_config)
        self._channel.exchange_declare(
            exchange=self._config.exchange_name,
            exchange_type="topic",
            durable=True,
        )
        self._declare_trigger_queue(queue_config)

        logger.info(
            "Queue infrastructure ready",
            extra={"queue": queue_config.name, "exchange": self._config.exchange_name},
        )

    def _declare_dead_letter(self, queue_config: QueueConfig) -> None:
        self._channel.exchange_declare(
            exchange=queue_config.dlq_exchange_name,
            exchange_type="direct",
            durable=True,
        )
        self._channel.queue_declare(queue=queue_config.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=queue_config.dlq_name,
            exchange=queue_config.dlq_exchange_name,
            routing_key=queue_config.dlq_routing_key,
        )

    def _declare_trigger_queue(self, queue_config: QueueConfig) -> None:
        """Quorum queue whose delivery limit bounds whole-run retries."""
        self._channel.queue_declare(
            queue=queue_config.name,
            durable=True,
            arguments={
                "x-queue-type": queue_config.queue_type,
                "x-delivery-limit": queue_config.max_delivery_count,
                "x-dead-letter-exchange": queue_config.dlq_exchange_name,
                "x-dead-letter-routing-key": queue_config.dlq_routing_key,
            },
        )
        self._channel.queue_bind(
            queue=queue_config.name,
            exchange=self._config.exchange_name,
            routing_key=queue_config.expected_routing_key,
        )
