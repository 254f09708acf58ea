"""Repository for run persistence."""

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from podcast_pipeline.db_models import RunRecord
from podcast_pipeline.domain.models import Run, RunPatch, RunStatus
from podcast_pipeline.exceptions import (
    RunAlreadyExistsError,
    RunNotFoundError,
    RunPersistenceError,
    RunTerminalError,
)
from podcast_pipeline.infrastructure.interfaces import RunStore
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

JSON_FIELDS = frozenset(
    {
        "transcript",
        "key_moments",
        "summary",
        "social_posts",
        "titles",
        "hashtags",
        "youtube_timestamps",
        "task_errors",
        "error",
    }
)

TERMINAL_STATUSES = (RunStatus.COMPLETED.value, RunStatus.FAILED.value)


def _to_columns(values: dict[str, Any]) -> dict[str, Any]:
    """Converts domain values to column values."""
    columns = {}
    for name, value in values.items():
        if name in JSON_FIELDS:
            columns[name] = None if value is None else to_jsonable_python(value)
        elif isinstance(value, Enum):
            columns[name] = value.value
        else:
            columns[name] = value
    return columns


class SqlRunRepository(RunStore):
    """
    Stores runs as rows of the runs table.

    Every patch is a single guarded UPDATE statement, which makes it atomic
    and keeps completed or failed runs immutable.
    """

    def __init__(
        self,
        session_factory,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initializes the repository.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
            clock: Source of updated_at timestamps.
        """
        self._session_factory = session_factory
        self._clock = clock

    def insert(self, run: Run) -> str:
        """
        Inserts a new run.

        Args:
            run: The run to store.

        Returns:
            The run id.

        Raises:
            RunAlreadyExistsError: If the run id is taken.
            RunPersistenceError: If the write fails.
        """
        values = {name: getattr(run, name) for name in Run.model_fields}
        try:
            with self._session_factory() as db_session:
                db_session.add(RunRecord(**_to_columns(values)))
                db_session.commit()
        except IntegrityError as e:
            logger.warning("Run already exists", extra={"run_id": run.run_id})
            raise RunAlreadyExistsError(run.run_id) from e
        except Exception as e:
            logger.exception("Failed to insert run", extra={"run_id": run.run_id})
            raise RunPersistenceError(run.run_id, "insert", cause=e) from e

        logger.info("Run created", extra={"run_id": run.run_id})
        return run.run_id

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
        try:
            with self._session_factory() as db_session:
                record = db_session.get(RunRecord, run_id)
                if record is None:
                    raise RunNotFoundError(run_id)
                return Run.model_validate(
                    {name: getattr(record, name) for name in Run.model_fields}
                )
        except RunNotFoundError:
            raise
        except Exception as e:
            logger.exception("Failed to read run", extra={"run_id": run_id})
            raise RunPersistenceError(run_id, "read", cause=e) from e

    def patch(self, run_id: str, patch: RunPatch) -> None:
        """
        Applies a merge-patch as one UPDATE guarded against terminal runs.

        Args:
            run_id: The run identifier.
            patch: The fields to write. Unset fields are left untouched.

        Raises:
            RunNotFoundError: If no such run exists.
            RunTerminalError: If the run is already completed or failed.
            RunPersistenceError: If the write fails.
        """
        values = _to_columns(patch.changes())
        values["updated_at"] = self._clock()

        statement = (
            update(RunRecord)
            .where(col(RunRecord.run_id) == run_id)
            .where(col(RunRecord.status).not_in(TERMINAL_STATUSES))
            .values(**values)
        )

        try:
            with self._session_factory() as db_session:
                result = db_session.execute(statement)
                db_session.commit()
                if result.rowcount == 0:
                    record = db_session.get(RunRecord, run_id)
                    if record is None:
                        raise RunNotFoundError(run_id)
                    raise RunTerminalError(run_id, record.status)
        except (RunNotFoundError, RunTerminalError):
            raise
        except Exception as e:
            logger.exception(
                "Failed to patch run",
                extra={"run_id": run_id, "fields": sorted(patch.model_fields_set)},
            )
            raise RunPersistenceError(run_id, "patch", cause=e) from e

        logger.info(
            "Run patched",
            extra={"run_id": run_id, "fields": sorted(patch.model_fields_set)},
        )
