"""Single atomic write of the generation phase's results."""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from podcast_pipeline.domain.models import (
    PhaseStatus,
    RunPatch,
    RunStatus,
    TaskError,
    TaskFailed,
    TaskName,
    TaskResult,
    TaskSucceeded,
    TaskStatus,
)
from podcast_pipeline.infrastructure.interfaces import RunStore
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultMerger:
    """
    Folds the six settled task results into one merge-patch.

    This is the only writer of generated content. Succeeded artifacts and
    the error map for failed tasks land in the same patch as the final
    status transition, so no reader ever observes a partial result set.
    """

    def __init__(self, store: RunStore, clock: Callable[[], datetime] = _utcnow):
        self._store = store
        self._clock = clock

    def build_patch(self, results: Sequence[TaskResult]) -> RunPatch:
        """
        Builds the final patch for a run.

        Args:
            results: One settled result per generation task.

        Returns:
            RunPatch with artifacts, task errors, task statuses and the
            completed run and generation statuses.
        """
        values: dict = {}
        task_errors: dict[str, TaskError] = {}

        for result in results:
            if isinstance(result, TaskSucceeded):
                values[result.task.field] = result.artifact
                values[result.task.status_field] = TaskStatus.COMPLETED
            elif isinstance(result, TaskFailed):
                task_errors[result.task.value] = result.error
                values[result.task.status_field] = TaskStatus.FAILED

        settled = {result.task for result in results}
        for task in TaskName:
            if task not in settled:
                task_errors[task.value] = TaskError(
                    message="Task did not report a result", step=task.step_id
                )
                values[task.status_field] = TaskStatus.FAILED

        return RunPatch(
            **values,
            task_errors=task_errors,
            generation_status=PhaseStatus.COMPLETED,
            status=RunStatus.COMPLETED,
            completed_at=self._clock(),
        )

    def persist(self, run_id: str, results: Sequence[TaskResult]) -> RunPatch:
        """
        Writes the final patch in one store call.

        Args:
            run_id: The run identifier.
            results: One settled result per generation task.

        Returns:
            The patch that was written.

        Raises:
            RunNotFoundError: If the run does not exist.
            RunTerminalError: If the run is already terminal.
            RunPersistenceError: If the write fails.
        """
        patch = self.build_patch(results)
        self._store.patch(run_id, patch)

        logger.info(
            "Generation results persisted",
            extra={
                "run_id": run_id,
                "succeeded": sum(isinstance(r, TaskSucceeded) for r in results),
                "failed": len(patch.task_errors or {}),
            },
        )
        return patch
