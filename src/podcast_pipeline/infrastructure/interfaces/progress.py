"""Abstract interfaces for the progress publication channel."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from podcast_pipeline.domain.models import ProgressEvent, ProgressTopic


class ProgressPublisher(ABC):
    """Fire-and-forget publisher of phase-transition events."""

    @abstractmethod
    def publish(self, channel: str, topic: ProgressTopic, payload: dict) -> None:
        """
        Hands an event to the transport without waiting for delivery.

        Args:
            channel: Channel scoped to one run.
            topic: One of the four progress topics.
            payload: Small human-readable payload.

        Raises:
            EventPublishError: If the transport refuses the event.
        """
        pass


class ProgressSubscriber(ABC):
    """Live subscription to one channel."""

    @abstractmethod
    def subscribe(
        self,
        channel: str,
        topics: Iterable[ProgressTopic],
        max_seconds: float,
    ) -> Iterator[ProgressEvent]:
        """
        Yields events on a channel whose topic is in `topics`.

        Events emitted before the subscription started are not replayed.

        Args:
            channel: Channel scoped to one run.
            topics: Topics to deliver.
            max_seconds: Upper bound on the stream's lifetime.

        Returns:
            Iterator that ends after the final topic or the time bound.
        """
        pass
