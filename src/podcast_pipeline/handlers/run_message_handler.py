"""Handler for pipeline trigger messages."""

from podcast_pipeline.domain.models import RunOutcome, TriggerMessage
from podcast_pipeline.domain.orchestrator import PipelineOrchestrator
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


class RunMessageHandler:
    """Handles one trigger message by running the pipeline for its run."""

    def __init__(self, orchestrator: PipelineOrchestrator):
        self._orchestrator = orchestrator

    def process(self, message: TriggerMessage) -> RunOutcome:
        """
        Runs the pipeline for a trigger message.

        Args:
            message: The trigger carrying the run id and audio locator.

        Returns:
            RunOutcome of the run.

        Raises:
            RunNotFoundError: If the run does not exist.
            FatalPipelineError: If the run failed. Its failure is already recorded.
        """
        logger.info(
            "Processing trigger",
            extra={"run_id": message.run_id, "input_ref": message.input_ref},
        )

        outcome = self._orchestrator.run(message)

        logger.info(
            "Trigger processed",
            extra={
                "run_id": outcome.run_id,
                "status": outcome.status.value,
                "failed_tasks": [task.value for task in outcome.failed],
                "already_terminal": outcome.already_terminal,
            },
        )
        return outcome
