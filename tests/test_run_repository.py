from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from fakes import FIXED_NOW, INPUT_REF, OWNER_ID, RUN_ID
from podcast_pipeline.db_models import RunRecord  # noqa: F401
from podcast_pipeline.dependencies import build_session_factory
from podcast_pipeline.domain.models import (
    PhaseStatus,
    Run,
    RunError,
    RunPatch,
    RunStatus,
    Summary,
    TaskError,
    TaskStatus,
    Transcript,
)
from podcast_pipeline.exceptions import (
    RunAlreadyExistsError,
    RunNotFoundError,
    RunPersistenceError,
    RunTerminalError,
)
from podcast_pipeline.repositories import SqlRunRepository

LATER = datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository() -> SqlRunRepository:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    repository = SqlRunRepository(build_session_factory(engine), clock=lambda: LATER)
    repository.insert(
        Run(
            run_id=RUN_ID,
            input_ref=INPUT_REF,
            owner_id=OWNER_ID,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
    )
    return repository


def test_insert_and_get(repository):
    run = repository.get(RUN_ID)

    assert run.owner_id == OWNER_ID
    assert run.status == RunStatus.UPLOADED
    assert run.summary_status == TaskStatus.PENDING
    assert run.transcript is None
    assert run.task_errors == {}


def test_duplicate_insert_is_rejected(repository):
    duplicate = repository.get(RUN_ID)

    with pytest.raises(RunAlreadyExistsError):
        repository.insert(duplicate)


def test_get_missing_run(repository):
    with pytest.raises(RunNotFoundError):
        repository.get("missing")


def test_patch_only_touches_set_fields(repository):
    repository.patch(
        RUN_ID,
        RunPatch(
            status=RunStatus.PROCESSING,
            transcript=Transcript(text="hello"),
        ),
    )
    repository.patch(RUN_ID, RunPatch(transcription_status=PhaseStatus.COMPLETED))

    run = repository.get(RUN_ID)
    assert run.status == RunStatus.PROCESSING
    assert run.transcript.text == "hello"
    assert run.transcription_status == PhaseStatus.COMPLETED
    assert run.updated_at.replace(tzinfo=timezone.utc) == LATER


def test_patch_stores_nested_artifacts_and_errors(repository):
    summary = Summary(full="f", bullets=["b"], insights=["i"], tldr="t")
    repository.patch(
        RUN_ID,
        RunPatch(
            summary=summary,
            task_errors={"titles": TaskError(message="quota", step="generate-titles")},
        ),
    )

    run = repository.get(RUN_ID)
    assert run.summary == summary
    assert run.task_errors["titles"].step == "generate-titles"


def test_terminal_run_rejects_further_patches(repository):
    repository.patch(
        RUN_ID,
        RunPatch(
            status=RunStatus.FAILED,
            error=RunError(message="boom", step="transcription", timestamp=FIXED_NOW),
        ),
    )

    with pytest.raises(RunTerminalError) as exc_info:
        repository.patch(RUN_ID, RunPatch(status=RunStatus.COMPLETED))

    assert exc_info.value.status == "failed"
    run = repository.get(RUN_ID)
    assert run.status == RunStatus.FAILED
    assert run.error.step == "transcription"


def test_patch_missing_run(repository):
    with pytest.raises(RunNotFoundError):
        repository.patch("missing", RunPatch(status=RunStatus.PROCESSING))


def test_database_errors_are_wrapped():
    def broken_session_factory():
        raise ConnectionError("database unreachable")

    repository = SqlRunRepository(broken_session_factory)

    with pytest.raises(RunPersistenceError) as exc_info:
        repository.patch(RUN_ID, RunPatch(status=RunStatus.PROCESSING))

    assert exc_info.value.operation == "patch"
    assert isinstance(exc_info.value.cause, ConnectionError)
