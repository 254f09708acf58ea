"""Durable step execution with checkpointing and bounded retries."""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic_core import to_json

from podcast_pipeline.config import RetryConfig
from podcast_pipeline.domain.models import StepCheckpoint
from podcast_pipeline.exceptions import NonRetryableError, StepFailedError
from podcast_pipeline.infrastructure.interfaces import CheckpointStore
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

T = TypeVar("T")


class StepExecutor:
    """
    Runs named units of work with at-least-once retry and exactly-once effect.

    Every step outcome is checkpointed under (run_id, step_id). Invoking a
    step whose outcome is already recorded returns the recorded value (or
    raises the recorded failure) without calling the function again, which
    makes re-running a whole workflow safe.
    """

    def __init__(
        self,
        store: CheckpointStore,
        policy: RetryConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._store = store
        self._policy = policy
        self._sleep = sleep

    def run_step(
        self,
        run_id: str,
        step_id: str,
        fn: Callable[[], T],
        result_type: Any = None,
    ) -> T:
        """
        Executes a step once per run, replaying the checkpoint afterwards.

        Args:
            run_id: The run owning the step.
            step_id: Identifier unique and stable within the run.
            fn: Zero-argument callable doing the work. Must be safe to retry.
            result_type: Type used to decode the checkpointed value. Values are
                returned as plain JSON data when omitted.

        Returns:
            The value decoded from the stored checkpoint, identical for the
            first call and every replay.

        Raises:
            StepFailedError: If every attempt failed, a non-retryable error was
                raised, or a recorded failure is replayed.
            CheckpointStoreError: If the checkpoint store is unavailable.
        """
        adapter = TypeAdapter(Any if result_type is None else result_type)

        recorded = self._store.get(run_id, step_id)
        if recorded is not None:
            logger.info(
                "Step replayed from checkpoint",
                extra={"run_id": run_id, "step_id": step_id, "status": recorded.status},
            )
            return self._unwrap(step_id, recorded, adapter, replayed=True)

        checkpoint = self._execute(run_id, step_id, fn)
        stored = self._store.save_if_absent(run_id, step_id, checkpoint)
        return self._unwrap(step_id, stored, adapter, replayed=False)

    def _execute(self, run_id: str, step_id: str, fn: Callable[[], Any]) -> StepCheckpoint:
        """Calls fn with backoff and returns the outcome to record."""
        max_attempts = max(self._policy.max_attempts, 1)
        attempt = 0

        while True:
            attempt += 1
            try:
                value = fn()
            except Exception as e:
                retryable = not isinstance(e, NonRetryableError)
                if not retryable or attempt >= max_attempts:
                    logger.warning(
                        "Step failed permanently",
                        extra={
                            "run_id": run_id,
                            "step_id": step_id,
                            "attempt": attempt,
                            "error_type": type(e).__name__,
                            "retryable": retryable,
                        },
                    )
                    return StepCheckpoint(
                        status="failed",
                        error_type=type(e).__name__,
                        message=str(e),
                        attempts=attempt,
                        recorded_at=datetime.now(timezone.utc),
                    )

                delay = self._policy.delay_for(attempt)
                logger.warning(
                    "Step attempt failed, retrying",
                    extra={
                        "run_id": run_id,
                        "step_id": step_id,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "delay_seconds": delay,
                        "error": str(e),
                    },
                )
                self._sleep(delay)
                continue

            logger.info(
                "Step completed",
                extra={"run_id": run_id, "step_id": step_id, "attempt": attempt},
            )
            return StepCheckpoint(
                status="completed",
                value=to_json(value).decode(),
                attempts=attempt,
                recorded_at=datetime.now(timezone.utc),
            )

    def _unwrap(
        self,
        step_id: str,
        checkpoint: StepCheckpoint,
        adapter: TypeAdapter,
        replayed: bool,
    ) -> Any:
        """Turns a stored checkpoint back into a value or a raised failure."""
        if checkpoint.status == "failed":
            raise StepFailedError(
                step_id,
                checkpoint.message or "",
                checkpoint.attempts,
                checkpoint.error_type or "Exception",
                replayed=replayed,
            )
        return adapter.validate_json(checkpoint.value or "null")
