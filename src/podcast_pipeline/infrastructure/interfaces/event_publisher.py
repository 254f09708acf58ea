"""Abstract interface for publishing pipeline events to the exchange."""

from abc import ABC, abstractmethod


class EventPublisher(ABC):
    """Publishes trigger and completion events."""

    @abstractmethod
    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes an event with the given routing key.

        Args:
            routing_key: The routing key for message routing.
            payload: JSON-serializable event body.

        Raises:
            EventPublishError: If publishing fails.
        """
        pass
