"""Worker that consumes trigger messages and drives the pipeline."""

import json
from typing import Any

from pydantic import ValidationError

from podcast_pipeline.config import RabbitMQConfig
from podcast_pipeline.domain.models import RunStatus, TriggerMessage
from podcast_pipeline.exceptions import FatalPipelineError, RunNotFoundError
from podcast_pipeline.handlers import RunMessageHandler
from podcast_pipeline.infrastructure.interfaces import MessageBroker
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


class Worker:
    """
    Consumes trigger messages and settles each one with the broker.

    A failed run is acknowledged because its failure is already recorded.
    Messages that can never succeed are dead-lettered. Anything else is
    requeued, and the queue's delivery limit bounds those whole-run retries.
    """

    def __init__(
        self,
        broker: MessageBroker,
        handler: RunMessageHandler,
        config: RabbitMQConfig,
    ):
        self._broker = broker
        self._handler = handler
        self._config = config

    def start(self) -> None:
        """Starts consuming messages from the queue."""
        logger.info("Worker initialized, starting message consumption")
        self._broker.consume(self._on_message)

    def _on_message(
        self, body: bytes, delivery_tag: int, headers: dict[str, Any] | None
    ) -> None:
        """Callback for each received message."""
        delivery_count = headers.get("x-delivery-count", 0) if headers else 0

        logger.info(
            "Message received",
            extra={
                "attempt": delivery_count + 1,
                "max_attempts": self._config.queue_config.max_delivery_count,
            },
        )

        try:
            message = TriggerMessage.model_validate(json.loads(body))
        except (ValidationError, ValueError) as e:
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery_tag, requeue=False)
            return

        try:
            outcome = self._handler.process(message)
        except FatalPipelineError as e:
            logger.warning(
                "Run failed, message acknowledged",
                extra={"run_id": message.run_id, "step": e.step},
            )
            self._broker.acknowledge(delivery_tag)
            return
        except RunNotFoundError:
            logger.exception("Run not found", extra={"run_id": message.run_id})
            self._broker.reject(delivery_tag, requeue=False)
            return
        except Exception:
            logger.exception(
                "Message processing failed",
                extra={"run_id": message.run_id},
            )
            self._broker.reject(delivery_tag, requeue=True)
            return

        self._broker.acknowledge(delivery_tag)

        if outcome.status == RunStatus.COMPLETED and not outcome.already_terminal:
            try:
                self._broker.publish(
                    routing_key=self._config.queue_config.success_routing_key,
                    payload={
                        "run_id": outcome.run_id,
                        "succeeded": [task.value for task in outcome.succeeded],
                        "failed": [task.value for task in outcome.failed],
                    },
                )
            except Exception:
                logger.exception(
                    "Completion event not published", extra={"run_id": outcome.run_id}
                )

        logger.info(
            "Message processed successfully",
            extra={"run_id": outcome.run_id, "status": outcome.status.value},
        )
