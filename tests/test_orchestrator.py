import pytest

from fakes import (
    FIXED_NOW,
    INPUT_REF,
    RUN_ID,
    CountingTask,
    FakeTranscriber,
    FlakyCheckpointStore,
    RecordingPublisher,
    SimulatedCrash,
)
from podcast_pipeline.domain.generation import build_generation_tasks
from podcast_pipeline.domain.models import (
    PhaseStatus,
    PipelineState,
    ProgressTopic,
    RunStatus,
    TaskName,
    TaskStatus,
    Transcript,
    TriggerMessage,
)
from podcast_pipeline.domain.orchestrator import PipelineOrchestrator
from podcast_pipeline.domain.result_merger import ResultMerger
from podcast_pipeline.domain.step_executor import StepExecutor
from podcast_pipeline.exceptions import (
    CheckpointStoreError,
    FatalPipelineError,
    LLMServiceError,
    ResponseValidationError,
    RunNotFoundError,
    RunPersistenceError,
    TranscriptionError,
)

TRIGGER = TriggerMessage(run_id=RUN_ID, input_ref=INPUT_REF)


def build(executor, runs, transcriber, llm, publisher):
    tasks = [CountingTask(task) for task in build_generation_tasks(llm)]
    orchestrator = PipelineOrchestrator(
        executor=executor,
        runs=runs,
        transcriber=transcriber,
        tasks=tasks,
        merger=ResultMerger(runs, clock=lambda: FIXED_NOW),
        publisher=publisher,
        clock=lambda: FIXED_NOW,
    )
    return orchestrator, tasks


def generate_calls(tasks) -> int:
    return sum(task.calls for task in tasks)


# === Happy path ===


def test_all_tasks_succeed(executor, runs, transcriber, llm, publisher):
    orchestrator, tasks = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert set(outcome.succeeded) == set(TaskName)
    assert outcome.failed == []

    run = runs.get(RUN_ID)
    assert run.status == RunStatus.COMPLETED
    assert run.transcription_status == PhaseStatus.COMPLETED
    assert run.generation_status == PhaseStatus.COMPLETED
    assert run.completed_at == FIXED_NOW
    assert run.task_errors == {}
    for task in TaskName:
        assert run.task_status(task) == TaskStatus.COMPLETED
        assert run.artifact(task) is not None
    assert run.transcript.text.startswith("Welcome")
    assert [m.text for m in run.key_moments] == ["Checkpoints", "Retry budgets"]
    assert run.youtube_timestamps[1].timestamp == "1:02:05"
    assert transcriber.calls == 1
    assert all(task.calls == 1 for task in tasks)


def test_phases_are_published_in_causal_order(executor, runs, transcriber, llm, publisher):
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    assert publisher.topics == [
        ProgressTopic.TRANSCRIPTION_START,
        ProgressTopic.TRANSCRIPTION_DONE,
        ProgressTopic.GENERATION_START,
        ProgressTopic.GENERATION_DONE,
    ]
    sequences = [payload["sequence"] for _, _, payload in publisher.events]
    assert sequences == sorted(sequences)
    assert all(channel == f"run:{RUN_ID}" for channel, _, _ in publisher.events)
    assert [t.target for t in outcome.transitions] == [
        PipelineState.TRANSCRIPTION_RUNNING,
        PipelineState.TRANSCRIPTION_DONE,
        PipelineState.GENERATION_RUNNING,
        PipelineState.GENERATION_DONE,
        PipelineState.PERSISTED,
        PipelineState.COMPLETED,
    ]
    assert [t.sequence for t in outcome.transitions] == [1, 2, 3, 4, 5, 6]


def test_task_statuses_settle_between_generation_start_and_done(
    executor, runs, transcriber, llm, publisher
):
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    orchestrator.run(TRIGGER)

    fields = [patch.model_fields_set for _, patch in runs.patches]
    start = next(i for i, f in enumerate(fields) if "generation_status" in f)
    task_writes = [
        i
        for i, f in enumerate(fields)
        if len(f) == 1 and next(iter(f)).endswith("_status") and "generation_status" not in f
    ]
    done = next(
        i for i, f in enumerate(fields) if f == {"generation_status"} and i > start
    )

    assert len(task_writes) == 6
    assert all(start < i < done for i in task_writes)
    assert runs.patches[-1][1].status == RunStatus.COMPLETED


def test_progress_outage_does_not_affect_the_run(executor, runs, transcriber, llm):
    orchestrator, _ = build(
        executor, runs, transcriber, llm, RecordingPublisher(fail=True)
    )

    outcome = orchestrator.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert runs.get(RUN_ID).status == RunStatus.COMPLETED


# === Partial success ===


def test_three_failed_tasks_still_complete_the_run(
    executor, runs, transcriber, llm, publisher
):
    for schema in ("SummaryDraft", "TitlesDraft", "HashtagsDraft"):
        llm.set(schema, LLMServiceError("quota exceeded"))
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert set(outcome.failed) == {TaskName.SUMMARY, TaskName.TITLES, TaskName.HASHTAGS}

    run = runs.get(RUN_ID)
    assert run.status == RunStatus.COMPLETED
    assert set(run.task_errors) == {"summary", "titles", "hashtags"}
    assert run.task_errors["summary"].step == "generate-summary"
    assert "quota exceeded" in run.task_errors["summary"].message
    assert run.summary is None
    assert run.summary_status == TaskStatus.FAILED
    assert run.social_posts is not None
    assert run.social_posts_status == TaskStatus.COMPLETED
    assert llm.calls["SummaryDraft"] == 3
    assert llm.calls["SocialPostsDraft"] == 1


def test_every_task_failing_still_completes_the_run(
    executor, runs, transcriber, llm, publisher, drafts
):
    for schema in drafts:
        llm.set(schema, LLMServiceError("model unavailable"))
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert outcome.status == RunStatus.COMPLETED
    assert outcome.succeeded == []
    assert run.status == RunStatus.COMPLETED
    assert set(run.task_errors) == {task.value for task in TaskName}
    assert run.error is None
    assert publisher.topics[-1] == ProgressTopic.GENERATION_DONE
    assert publisher.events[-1][2]["failed"] == 6


def test_malformed_chapter_titles_fail_only_youtube_timestamps(
    executor, runs, transcriber, llm, publisher
):
    llm.set("ChapterTitles", ResponseValidationError("ChapterTitles", "schema mismatch"))
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert outcome.failed == [TaskName.YOUTUBE_TIMESTAMPS]
    assert list(run.task_errors) == ["youtubeTimestamps"]
    assert run.youtube_timestamps is None
    assert run.youtube_timestamps_status == TaskStatus.FAILED
    for task in TaskName:
        if task != TaskName.YOUTUBE_TIMESTAMPS:
            assert run.task_status(task) == TaskStatus.COMPLETED
    assert llm.calls["ChapterTitles"] == 3


def test_transcript_without_chapters(executor, runs, llm, publisher):
    transcriber = FakeTranscriber(Transcript(text="A short episode with no chapters."))
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert outcome.failed == [TaskName.YOUTUBE_TIMESTAMPS]
    assert "No chapters" in run.task_errors["youtubeTimestamps"].message
    assert run.key_moments == []
    assert run.key_moments_status == TaskStatus.COMPLETED
    assert llm.calls["ChapterTitles"] == 0
    assert llm.calls["KeyMomentsDraft"] == 0


# === Fatal failures ===


def test_transcription_failure_fails_run_before_generation(
    executor, runs, llm, publisher
):
    transcriber = FakeTranscriber(TranscriptionError(INPUT_REF, Exception("404")))
    orchestrator, tasks = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(FatalPipelineError) as exc_info:
        orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert exc_info.value.step == "transcription"
    assert run.status == RunStatus.FAILED
    assert run.transcription_status == PhaseStatus.FAILED
    assert run.error.step == "transcription"
    assert run.error.timestamp == FIXED_NOW
    assert transcriber.calls == 3
    assert generate_calls(tasks) == 0
    assert llm.total_calls == 0
    assert publisher.topics == [ProgressTopic.TRANSCRIPTION_START]


def test_empty_transcript_is_a_transcription_failure(executor, runs, llm, publisher):
    transcriber = FakeTranscriber(Transcript(text="   "))
    orchestrator, tasks = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(FatalPipelineError):
        orchestrator.run(TRIGGER)

    assert runs.get(RUN_ID).status == RunStatus.FAILED
    assert generate_calls(tasks) == 0


def test_unknown_run_is_rejected(executor, runs, transcriber, llm, publisher):
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(RunNotFoundError):
        orchestrator.run(TriggerMessage(run_id="missing", input_ref=INPUT_REF))

    assert transcriber.calls == 0


# === Replays and redelivery ===


def test_terminal_run_is_left_untouched(executor, runs, transcriber, llm, publisher):
    orchestrator, tasks = build(executor, runs, transcriber, llm, publisher)
    orchestrator.run(TRIGGER)
    patches_before = len(runs.patches)

    outcome = orchestrator.run(TRIGGER)

    assert outcome.already_terminal is True
    assert outcome.status == RunStatus.COMPLETED
    assert set(outcome.succeeded) == set(TaskName)
    assert len(runs.patches) == patches_before
    assert transcriber.calls == 1
    assert generate_calls(tasks) == 6


def test_crash_after_generation_resumes_without_rerunning_steps(
    executor, runs, transcriber, llm
):
    crashing = RecordingPublisher(crash_on=ProgressTopic.GENERATION_DONE)
    orchestrator, tasks = build(executor, runs, transcriber, llm, crashing)

    with pytest.raises(SimulatedCrash):
        orchestrator.run(TRIGGER)

    assert runs.get(RUN_ID).status == RunStatus.PROCESSING
    llm_calls = llm.total_calls

    healthy = RecordingPublisher()
    resumed, resumed_tasks = build(executor, runs, transcriber, llm, healthy)
    outcome = resumed.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert set(outcome.succeeded) == set(TaskName)
    assert transcriber.calls == 1
    assert llm.total_calls == llm_calls
    assert generate_calls(resumed_tasks) == 0
    assert healthy.topics == [ProgressTopic.GENERATION_DONE]
    assert runs.get(RUN_ID).status == RunStatus.COMPLETED


def test_persistence_outage_fails_run_on_redelivery(
    executor, runs, transcriber, llm, publisher
):
    runs.fail_final_writes = True
    orchestrator, tasks = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(RunPersistenceError):
        orchestrator.run(TRIGGER)

    assert runs.get(RUN_ID).status == RunStatus.PROCESSING
    llm_calls = llm.total_calls

    runs.fail_final_writes = False
    with pytest.raises(FatalPipelineError) as exc_info:
        orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert exc_info.value.step == "persistence"
    assert run.status == RunStatus.FAILED
    assert run.error.step == "persistence"
    assert llm.total_calls == llm_calls
    assert generate_calls(tasks) == 6


# === Checkpoint store outages ===


def test_checkpoint_outage_leaves_run_retryable(
    retry_policy, runs, transcriber, llm, publisher
):
    executor = StepExecutor(
        FlakyCheckpointStore(fail_get={"transcription-start"}), retry_policy, sleep=lambda _: None
    )
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(CheckpointStoreError):
        orchestrator.run(TRIGGER)

    run = runs.get(RUN_ID)
    assert run.status == RunStatus.UPLOADED
    assert run.error is None

    outcome = orchestrator.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert outcome.already_terminal is False
    assert transcriber.calls == 1


def test_checkpoint_outage_in_generation_is_not_a_task_failure(
    retry_policy, runs, transcriber, llm, publisher
):
    executor = StepExecutor(
        FlakyCheckpointStore(fail_save={"generate-summary"}), retry_policy, sleep=lambda _: None
    )
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    with pytest.raises(CheckpointStoreError):
        orchestrator.run(TRIGGER)

    assert runs.get(RUN_ID).status == RunStatus.PROCESSING
    assert runs.get(RUN_ID).task_errors == {}

    outcome = orchestrator.run(TRIGGER)

    assert set(outcome.succeeded) == set(TaskName)
    assert runs.get(RUN_ID).task_errors == {}
    assert llm.calls["SummaryDraft"] == 2
    assert llm.calls["TitlesDraft"] == 1


def test_saved_results_complete_the_run_when_checkpoint_write_fails(
    retry_policy, runs, transcriber, llm, publisher
):
    executor = StepExecutor(
        FlakyCheckpointStore(fail_save={"save-results"}), retry_policy, sleep=lambda _: None
    )
    orchestrator, _ = build(executor, runs, transcriber, llm, publisher)

    outcome = orchestrator.run(TRIGGER)

    assert outcome.status == RunStatus.COMPLETED
    assert outcome.already_terminal is False
    assert set(outcome.succeeded) == set(TaskName)
    assert runs.get(RUN_ID).status == RunStatus.COMPLETED
    assert runs.get(RUN_ID).error is None
