"""Two-phase pipeline orchestration: transcription, then parallel generation."""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone

import anyio
import anyio.to_thread

from podcast_pipeline.domain.generation import GenerationTask
from podcast_pipeline.domain.models import (
    PhaseStatus,
    PipelineState,
    ProgressTopic,
    Run,
    RunError,
    RunOutcome,
    RunPatch,
    RunStatus,
    TaskError,
    TaskFailed,
    TaskName,
    TaskResult,
    TaskStatus,
    TaskSucceeded,
    Transcript,
    TriggerMessage,
)
from podcast_pipeline.domain.progress import TransitionLog, channel_for
from podcast_pipeline.domain.result_merger import ResultMerger
from podcast_pipeline.domain.step_executor import StepExecutor
from podcast_pipeline.exceptions import (
    CheckpointStoreError,
    EventPublishError,
    FatalPipelineError,
    RunPersistenceError,
    RunTerminalError,
    StepFailedError,
    TranscriptionError,
)
from podcast_pipeline.infrastructure.interfaces import (
    ProgressPublisher,
    RunStore,
    TranscriptionService,
)
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineOrchestrator:
    """
    Drives one run through transcription and the six generation tasks.

    Every status write and its progress event sit inside a named durable
    step, so running the same trigger again replays recorded steps instead
    of repeating them. Transcription and persistence failures are fatal to
    the run; generation task failures are recorded per task and the run
    still completes.
    """

    def __init__(
        self,
        executor: StepExecutor,
        runs: RunStore,
        transcriber: TranscriptionService,
        tasks: Sequence[GenerationTask],
        merger: ResultMerger,
        publisher: ProgressPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._executor = executor
        self._runs = runs
        self._transcriber = transcriber
        self._tasks = list(tasks)
        self._merger = merger
        self._publisher = publisher
        self._clock = clock

    def run(self, trigger: TriggerMessage) -> RunOutcome:
        """
        Runs the pipeline for one trigger event.

        Args:
            trigger: The run id and audio locator.

        Returns:
            RunOutcome listing which tasks succeeded and failed, and the
            transitions taken.

        Raises:
            RunNotFoundError: If the run does not exist.
            FatalPipelineError: If transcription, persistence, or anything
                outside a generation task failed. The run is marked failed
                before this is raised.
            RunPersistenceError: If a fatal failure could not be recorded.
                The run stays processing and the trigger can be retried.
            CheckpointStoreError: If the checkpoint store is unavailable. Nothing
                is recorded as failed and the trigger can be retried.
        """
        run = self._runs.get(trigger.run_id)
        if run.is_terminal:
            logger.info(
                "Run already terminal, nothing to do",
                extra={"run_id": run.run_id, "status": run.status.value},
            )
            return self._outcome_from(run)

        run_id = trigger.run_id
        log = TransitionLog()
        logger.info(
            "Pipeline started",
            extra={"run_id": run_id, "input_ref": trigger.input_ref},
        )

        try:
            transcript = self._transcription_phase(run_id, trigger.input_ref, log)
            results = self._generation_phase(run_id, transcript, log)
            self._persistence_phase(run_id, results, log)
        except (FatalPipelineError, RunPersistenceError, CheckpointStoreError):
            raise
        except Exception as e:
            logger.exception("Pipeline failed unexpectedly", extra={"run_id": run_id})
            self._fail(run_id, "workflow", str(e), log)
            raise FatalPipelineError(run_id, "workflow", str(e)) from e

        outcome = RunOutcome(
            run_id=run_id,
            status=RunStatus.COMPLETED,
            succeeded=[r.task for r in results if isinstance(r, TaskSucceeded)],
            failed=[r.task for r in results if isinstance(r, TaskFailed)],
            transitions=log.entries,
        )
        logger.info(
            "Pipeline completed",
            extra={
                "run_id": run_id,
                "succeeded": len(outcome.succeeded),
                "failed": len(outcome.failed),
            },
        )
        return outcome

    # Phase 1

    def _transcription_phase(
        self, run_id: str, input_ref: str, log: TransitionLog
    ) -> Transcript:
        """Marks transcription running, transcribes, and stores the transcript."""
        started = log.advance(
            PipelineState.TRANSCRIPTION_RUNNING, ProgressTopic.TRANSCRIPTION_START
        )
        self._executor.run_step(
            run_id,
            "transcription-start",
            lambda: self._update_and_publish(
                run_id,
                RunPatch(
                    status=RunStatus.PROCESSING,
                    transcription_status=PhaseStatus.RUNNING,
                ),
                ProgressTopic.TRANSCRIPTION_START,
                {"message": "Transcribing audio", "sequence": started.sequence},
            ),
        )

        try:
            transcript = self._executor.run_step(
                run_id,
                "transcribe-audio",
                lambda: self._transcribe(input_ref),
                result_type=Transcript,
            )
        except StepFailedError as e:
            self._fail(run_id, "transcription", e.message, log)
            raise FatalPipelineError(run_id, "transcription", e.message) from e

        done = log.advance(
            PipelineState.TRANSCRIPTION_DONE, ProgressTopic.TRANSCRIPTION_DONE
        )
        self._executor.run_step(
            run_id,
            "save-transcript",
            lambda: self._update_and_publish(
                run_id,
                RunPatch(
                    transcript=transcript,
                    transcription_status=PhaseStatus.COMPLETED,
                ),
                ProgressTopic.TRANSCRIPTION_DONE,
                {
                    "message": "Transcription complete",
                    "chapters": len(transcript.chapters),
                    "sequence": done.sequence,
                },
            ),
        )
        return transcript

    def _transcribe(self, input_ref: str) -> Transcript:
        """Calls the transcription service and rejects empty output."""
        transcript = self._transcriber.transcribe(input_ref)
        if not transcript.text.strip():
            raise TranscriptionError(input_ref, ValueError("Transcript is empty"))
        return transcript

    # Phase 2

    def _generation_phase(
        self, run_id: str, transcript: Transcript, log: TransitionLog
    ) -> list[TaskResult]:
        """Starts generation, fans out to every task, and waits for all of them."""
        started = log.advance(
            PipelineState.GENERATION_RUNNING, ProgressTopic.GENERATION_START
        )
        running = {task.name.status_field: TaskStatus.RUNNING for task in self._tasks}
        self._executor.run_step(
            run_id,
            "generation-start",
            lambda: self._update_and_publish(
                run_id,
                RunPatch(generation_status=PhaseStatus.RUNNING, **running),
                ProgressTopic.GENERATION_START,
                {
                    "message": "Generating content",
                    "tasks": [task.name.value for task in self._tasks],
                    "sequence": started.sequence,
                },
            ),
        )

        results = self._fan_out(run_id, transcript)

        succeeded = sum(isinstance(r, TaskSucceeded) for r in results)
        done = log.advance(
            PipelineState.GENERATION_DONE, ProgressTopic.GENERATION_DONE
        )
        self._executor.run_step(
            run_id,
            "generation-done",
            lambda: self._update_and_publish(
                run_id,
                RunPatch(generation_status=PhaseStatus.COMPLETED),
                ProgressTopic.GENERATION_DONE,
                {
                    "message": "Content generation finished",
                    "succeeded": succeeded,
                    "failed": len(results) - succeeded,
                    "sequence": done.sequence,
                },
            ),
        )
        return results

    def _fan_out(self, run_id: str, transcript: Transcript) -> list[TaskResult]:
        """Runs every task's durable step concurrently and collects all results."""
        settled: dict[TaskName, TaskResult] = {}
        outages: list[CheckpointStoreError] = []

        async def branch(task: GenerationTask) -> None:
            try:
                settled[task.name] = await anyio.to_thread.run_sync(
                    self._run_task, run_id, task, transcript
                )
            except CheckpointStoreError as e:
                outages.append(e)

        async def join() -> None:
            async with anyio.create_task_group() as tg:
                for task in self._tasks:
                    tg.start_soon(branch, task)

        anyio.run(join)
        if outages:
            raise outages[0]
        return [settled[task.name] for task in self._tasks]

    def _run_task(
        self, run_id: str, task: GenerationTask, transcript: Transcript
    ) -> TaskResult:
        """Runs one task as a durable step. Only a checkpoint outage escapes."""
        step_id = task.name.step_id
        try:
            artifact = self._executor.run_step(
                run_id,
                step_id,
                lambda: task.generate(transcript),
                result_type=task.artifact_type,
            )
            result: TaskResult = TaskSucceeded(task=task.name, artifact=artifact)
        except CheckpointStoreError:
            raise
        except StepFailedError as e:
            result = TaskFailed(
                task=task.name, error=TaskError(message=e.message, step=step_id)
            )
        except Exception as e:
            logger.exception(
                "Generation task crashed outside its step",
                extra={"run_id": run_id, "task": task.name.value},
            )
            result = TaskFailed(
                task=task.name, error=TaskError(message=str(e), step=step_id)
            )

        self._record_task_status(run_id, result)
        return result

    def _record_task_status(self, run_id: str, result: TaskResult) -> None:
        """Writes a task's own status field as soon as its step settles."""
        status = (
            TaskStatus.COMPLETED
            if isinstance(result, TaskSucceeded)
            else TaskStatus.FAILED
        )
        try:
            self._runs.patch(run_id, RunPatch(**{result.task.status_field: status}))
        except Exception:
            # The final merge writes every task status again.
            logger.warning(
                "Task status update failed",
                extra={"run_id": run_id, "task": result.task.value},
                exc_info=True,
            )

    # Persistence

    def _persistence_phase(
        self, run_id: str, results: list[TaskResult], log: TransitionLog
    ) -> None:
        """Writes all results and the completed status in one patch."""
        log.advance(PipelineState.PERSISTED)
        try:
            self._executor.run_step(
                run_id, "save-results", lambda: self._save_results(run_id, results)
            )
        except StepFailedError as e:
            self._fail(run_id, "persistence", e.message, log)
            raise FatalPipelineError(run_id, "persistence", e.message) from e
        except CheckpointStoreError:
            # The merge patch may have committed before the checkpoint write failed.
            if self._runs.get(run_id).status != RunStatus.COMPLETED:
                raise
            logger.warning(
                "Results saved but checkpoint not recorded",
                extra={"run_id": run_id, "step_id": "save-results"},
                exc_info=True,
            )
        log.advance(PipelineState.COMPLETED)

    def _save_results(self, run_id: str, results: list[TaskResult]) -> None:
        self._merger.persist(run_id, results)

    # Helpers

    def _update_and_publish(
        self, run_id: str, patch: RunPatch, topic: ProgressTopic, payload: dict
    ) -> None:
        """Applies a status patch, then announces it on the run's channel."""
        self._runs.patch(run_id, patch)
        self._publish(run_id, topic, payload)

    def _publish(self, run_id: str, topic: ProgressTopic, payload: dict) -> None:
        """Publishes a progress hint. Failures are logged, never raised."""
        try:
            self._publisher.publish(channel_for(run_id), topic, payload)
        except EventPublishError:
            logger.warning(
                "Progress event dropped",
                extra={"run_id": run_id, "topic": topic.value},
            )

    def _fail(self, run_id: str, step: str, message: str, log: TransitionLog) -> None:
        """Moves the run to failed and records the fatal error."""
        if log.state not in (PipelineState.COMPLETED, PipelineState.FAILED):
            log.advance(PipelineState.FAILED)

        changes: dict = {
            "status": RunStatus.FAILED,
            "error": RunError(message=message, step=step, timestamp=self._clock()),
        }
        if step == "transcription":
            changes["transcription_status"] = PhaseStatus.FAILED

        logger.error(
            "Run failed",
            extra={"run_id": run_id, "step": step, "error": message},
        )
        try:
            self._runs.patch(run_id, RunPatch(**changes))
        except RunTerminalError:
            logger.warning("Run already terminal, failure not recorded", extra={"run_id": run_id})
        except Exception as e:
            logger.exception("Failed to record run failure", extra={"run_id": run_id})
            raise RunPersistenceError(run_id, "record failure", cause=e) from e

    def _outcome_from(self, run: Run) -> RunOutcome:
        """Summarizes an already terminal run without touching it."""
        return RunOutcome(
            run_id=run.run_id,
            status=run.status,
            succeeded=[t for t in TaskName if run.task_status(t) == TaskStatus.COMPLETED],
            failed=[t for t in TaskName if run.task_status(t) == TaskStatus.FAILED],
            already_terminal=True,
        )
