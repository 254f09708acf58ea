"""Abstract interface for message broker operations."""

from abc import abstractmethod
from collections.abc import Callable
from typing import Any

from podcast_pipeline.infrastructure.interfaces.event_publisher import EventPublisher


class MessageBroker(EventPublisher):
    """Event publisher that also consumes and settles queue messages."""

    @abstractmethod
    def acknowledge(self, delivery_tag: int) -> None:
        pass

    @abstractmethod
    def reject(self, delivery_tag: int, requeue: bool = True) -> None:
        """
        Rejects a message.

        Args:
            delivery_tag: The message delivery tag.
            requeue: Redeliver when True, dead-letter when False.
        """
        pass

    @abstractmethod
    def consume(
        self, callback: Callable[[bytes, int, dict[str, Any] | None], None]
    ) -> None:
        """
        Starts consuming messages from the configured queue.

        Args:
            callback: Function called for each message with (body, delivery_tag, headers).
        """
        pass

    @abstractmethod
    def setup_queue_infrastructure(self) -> None:
        """Declares exchanges, queues, and bindings required by the worker."""
        pass
