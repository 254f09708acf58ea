"""Abstract interface for durable step checkpoints."""

from abc import ABC, abstractmethod

from podcast_pipeline.domain.models import StepCheckpoint


class CheckpointStore(ABC):
    """Abstract base class for checkpoint backends keyed by (run_id, step_id)."""

    @abstractmethod
    def get(self, run_id: str, step_id: str) -> StepCheckpoint | None:
        """
        Retrieves the recorded outcome of a step.

        Args:
            run_id: The run owning the step.
            step_id: The step identifier, unique within the run.

        Returns:
            The checkpoint or None if the step has not been recorded.

        Raises:
            CheckpointStoreError: If the store operation fails.
        """
        pass

    @abstractmethod
    def save_if_absent(
        self, run_id: str, step_id: str, checkpoint: StepCheckpoint
    ) -> StepCheckpoint:
        """
        Records a step outcome unless one is already recorded.

        Args:
            run_id: The run owning the step.
            step_id: The step identifier, unique within the run.
            checkpoint: The outcome to record.

        Returns:
            The checkpoint that is stored after the call, which is the earlier
            one when another writer got there first.

        Raises:
            CheckpointStoreError: If the store operation fails.
        """
        pass
