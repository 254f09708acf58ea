"""Abstract interface for run persistence."""

from abc import ABC, abstractmethod

from podcast_pipeline.domain.models import Run, RunPatch


class RunStore(ABC):
    """Document-store view of runs: point reads, inserts and merge-patches."""

    @abstractmethod
    def insert(self, run: Run) -> str:
        """
        Stores a new run.

        Args:
            run: The run to store.

        Returns:
            The run id.

        Raises:
            RunPersistenceError: If the write fails.
        """
        pass

    @abstractmethod
    def get(self, run_id: str) -> Run:
        """
        Reads a run.

        Args:
            run_id: The run identifier.

        Returns:
            The stored run.

        Raises:
            RunNotFoundError: If no such run exists.
            RunPersistenceError: If the read fails.
        """
        pass

    @abstractmethod
    def patch(self, run_id: str, patch: RunPatch) -> None:
        """
        Applies a field-level merge-patch atomically.

        Fields not set on the patch are left untouched. A run that is already
        completed or failed is never modified.

        Args:
            run_id: The run identifier.
            patch: The fields to write.

        Raises:
            RunNotFoundError: If no such run exists.
            RunTerminalError: If the run is already terminal.
            RunPersistenceError: If the write fails.
        """
        pass
