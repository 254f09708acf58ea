"""Redis-backed checkpoint store for durable steps."""

import redis

from podcast_pipeline.domain.models import StepCheckpoint
from podcast_pipeline.exceptions import CheckpointStoreError
from podcast_pipeline.infrastructure.interfaces import CheckpointStore
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


class RedisCheckpointStore(CheckpointStore):
    """
    Stores step outcomes in one Redis hash per run.

    The hash field is the step id and HSETNX makes the first recorded
    outcome win. The whole hash expires after the configured TTL.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int):
        self._client = client
        self._ttl_seconds = ttl_seconds

    def get(self, run_id: str, step_id: str) -> StepCheckpoint | None:
        """
        Retrieves a recorded step outcome.

        Args:
            run_id: The run owning the step.
            step_id: The step identifier.

        Returns:
            The checkpoint or None if not recorded.

        Raises:
            CheckpointStoreError: If the Redis operation fails.
        """
        key = self._key(run_id)
        try:
            raw = self._client.hget(key, step_id)
        except redis.RedisError as e:
            logger.exception("Redis hget failed", extra={"key": key, "step_id": step_id})
            raise CheckpointStoreError(f"{key}/{step_id}", "get", cause=e) from e

        if raw is None:
            return None
        return StepCheckpoint.model_validate_json(raw)

    def save_if_absent(
        self, run_id: str, step_id: str, checkpoint: StepCheckpoint
    ) -> StepCheckpoint:
        """
        Records a step outcome unless one exists, refreshing the run's TTL.

        Args:
            run_id: The run owning the step.
            step_id: The step identifier.
            checkpoint: The outcome to record.

        Returns:
            The stored checkpoint.

        Raises:
            CheckpointStoreError: If the Redis operation fails.
        """
        key = self._key(run_id)
        try:
            created = self._client.hsetnx(key, step_id, checkpoint.model_dump_json())
            self._client.expire(key, self._ttl_seconds)
            if created:
                logger.info(
                    "Checkpoint recorded",
                    extra={"key": key, "step_id": step_id, "status": checkpoint.status},
                )
                return checkpoint
            raw = self._client.hget(key, step_id)
        except redis.RedisError as e:
            logger.exception("Redis hsetnx failed", extra={"key": key, "step_id": step_id})
            raise CheckpointStoreError(f"{key}/{step_id}", "save", cause=e) from e

        logger.info(
            "Checkpoint already recorded, keeping earlier outcome",
            extra={"key": key, "step_id": step_id},
        )
        return StepCheckpoint.model_validate_json(raw)

    def _key(self, run_id: str) -> str:
        return f"checkpoints:{run_id}"
