"""Domain models for the podcast processing pipeline."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Overall lifecycle of a run."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


class PhaseStatus(str, Enum):
    """Lifecycle marker shared by both phases and the six generation tasks."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PhaseStatus.COMPLETED, PhaseStatus.FAILED)


TaskStatus = PhaseStatus


class TaskName(str, Enum):
    """The six generation tasks, valued by their public error-map keys."""

    KEY_MOMENTS = "keyMoments"
    SUMMARY = "summary"
    SOCIAL_POSTS = "socialPosts"
    TITLES = "titles"
    HASHTAGS = "hashtags"
    YOUTUBE_TIMESTAMPS = "youtubeTimestamps"

    @property
    def field(self) -> str:
        """Run attribute holding this task's artifact."""
        return _TASK_FIELDS[self]

    @property
    def status_field(self) -> str:
        """Run attribute holding this task's status."""
        return f"{_TASK_FIELDS[self]}_status"

    @property
    def step_id(self) -> str:
        """Durable step id used for this task within a run."""
        return f"generate-{self.value}"


_TASK_FIELDS = {
    TaskName.KEY_MOMENTS: "key_moments",
    TaskName.SUMMARY: "summary",
    TaskName.SOCIAL_POSTS: "social_posts",
    TaskName.TITLES: "titles",
    TaskName.HASHTAGS: "hashtags",
    TaskName.YOUTUBE_TIMESTAMPS: "youtube_timestamps",
}


class ProgressTopic(str, Enum):
    """Fixed set of progress topics published on a run's channel."""

    TRANSCRIPTION_START = "transcriptionStart"
    TRANSCRIPTION_DONE = "transcriptionDone"
    GENERATION_START = "generationStart"
    GENERATION_DONE = "generationDone"


class PipelineState(str, Enum):
    """States of the orchestrator's state machine."""

    CREATED = "created"
    TRANSCRIPTION_RUNNING = "transcription_running"
    TRANSCRIPTION_DONE = "transcription_done"
    GENERATION_RUNNING = "generation_running"
    GENERATION_DONE = "generation_done"
    PERSISTED = "persisted"
    COMPLETED = "completed"
    FAILED = "failed"


# Transcript. All offsets are in milliseconds.


class Word(BaseModel):
    text: str
    start: int
    end: int
    confidence: float | None = None
    speaker: str | None = None


class Segment(BaseModel):
    """A sentence-level slice of the transcript with word timing."""

    start: int
    end: int
    text: str
    words: list[Word] = Field(default_factory=list)


class Utterance(BaseModel):
    """A speaker-attributed stretch of speech."""

    speaker: str
    start: int
    end: int
    text: str
    confidence: float | None = None


class Chapter(BaseModel):
    """An auto-detected topic boundary."""

    start: int
    end: int
    headline: str
    summary: str
    gist: str = ""


class Transcript(BaseModel, frozen=True):
    """Output of the transcription phase, immutable once written."""

    text: str
    segments: list[Segment] = Field(default_factory=list)
    utterances: list[Utterance] = Field(default_factory=list)
    chapters: list[Chapter] = Field(default_factory=list)
    audio_duration: int | None = None


# Generated artifacts.


class KeyMoment(BaseModel):
    """A notable moment anchored on a chapter start."""

    time: str
    timestamp: int
    text: str
    description: str
    source: Literal["model", "chapters"] = "model"


class Summary(BaseModel):
    full: str
    bullets: list[str]
    insights: list[str]
    tldr: str
    error: str | None = None


class SocialPosts(BaseModel):
    """One post per platform. The twitter post is capped at 280 characters."""

    twitter: str
    linkedin: str
    instagram: str
    tiktok: str
    youtube: str
    facebook: str
    error: str | None = None


class Titles(BaseModel):
    youtube_short: list[str]
    youtube_long: list[str]
    podcast_titles: list[str]
    seo_keywords: list[str]
    error: str | None = None


class Hashtags(BaseModel):
    youtube: list[str]
    instagram: list[str]
    tiktok: list[str]
    linkedin: list[str]
    twitter: list[str]
    error: str | None = None


class YouTubeTimestamp(BaseModel):
    """A YouTube chapter line, timestamp formatted as MM:SS or H:MM:SS."""

    timestamp: str
    description: str


Artifact = (
    list[KeyMoment] | Summary | SocialPosts | Titles | Hashtags | list[YouTubeTimestamp]
)


# Run record.


class TaskError(BaseModel):
    """Why a single generation task produced no artifact."""

    message: str
    step: str


class RunError(BaseModel):
    """Fatal error that moved a run to failed."""

    message: str
    step: str
    timestamp: datetime


class Run(BaseModel):
    """Persisted state of one pipeline execution."""

    run_id: str
    input_ref: str
    owner_id: str
    status: RunStatus = RunStatus.UPLOADED
    transcription_status: PhaseStatus = PhaseStatus.PENDING
    generation_status: PhaseStatus = PhaseStatus.PENDING
    key_moments_status: TaskStatus = TaskStatus.PENDING
    summary_status: TaskStatus = TaskStatus.PENDING
    social_posts_status: TaskStatus = TaskStatus.PENDING
    titles_status: TaskStatus = TaskStatus.PENDING
    hashtags_status: TaskStatus = TaskStatus.PENDING
    youtube_timestamps_status: TaskStatus = TaskStatus.PENDING
    transcript: Transcript | None = None
    key_moments: list[KeyMoment] | None = None
    summary: Summary | None = None
    social_posts: SocialPosts | None = None
    titles: Titles | None = None
    hashtags: Hashtags | None = None
    youtube_timestamps: list[YouTubeTimestamp] | None = None
    task_errors: dict[str, TaskError] = Field(default_factory=dict)
    error: RunError | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def task_status(self, task: TaskName) -> TaskStatus:
        return getattr(self, task.status_field)

    def artifact(self, task: TaskName):
        return getattr(self, task.field)


class RunPatch(BaseModel):
    """
    Field-level merge-patch for a run.

    Only fields that were explicitly set are written; everything else on the
    stored run is left untouched.
    """

    status: RunStatus | None = None
    transcription_status: PhaseStatus | None = None
    generation_status: PhaseStatus | None = None
    key_moments_status: TaskStatus | None = None
    summary_status: TaskStatus | None = None
    social_posts_status: TaskStatus | None = None
    titles_status: TaskStatus | None = None
    hashtags_status: TaskStatus | None = None
    youtube_timestamps_status: TaskStatus | None = None
    transcript: Transcript | None = None
    key_moments: list[KeyMoment] | None = None
    summary: Summary | None = None
    social_posts: SocialPosts | None = None
    titles: Titles | None = None
    hashtags: Hashtags | None = None
    youtube_timestamps: list[YouTubeTimestamp] | None = None
    task_errors: dict[str, TaskError] | None = None
    error: RunError | None = None
    completed_at: datetime | None = None

    def changes(self) -> dict:
        """Returns the explicitly set fields as python objects."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# Durable steps.


class StepCheckpoint(BaseModel):
    """Recorded outcome of one durable step within one run."""

    status: Literal["completed", "failed"]
    value: str | None = None
    error_type: str | None = None
    message: str | None = None
    attempts: int
    recorded_at: datetime


# Messages and events.


class TriggerMessage(BaseModel):
    """Incoming queue message that starts a run."""

    run_id: str
    input_ref: str


class ProgressEvent(BaseModel):
    """Ephemeral phase-transition hint delivered to live subscribers."""

    channel: str
    topic: ProgressTopic
    payload: dict = Field(default_factory=dict)
    emitted_at: datetime


# Fan-out results. Tagged values cross the join instead of exceptions.


class TaskSucceeded(BaseModel):
    kind: Literal["succeeded"] = "succeeded"
    task: TaskName
    artifact: Artifact


class TaskFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    task: TaskName
    error: TaskError


TaskResult = TaskSucceeded | TaskFailed


class Transition(BaseModel, frozen=True):
    """One recorded state change with its logical timestamp."""

    sequence: int
    source: PipelineState
    target: PipelineState
    topic: ProgressTopic | None = None


class RunOutcome(BaseModel):
    """What the orchestrator reports back once a run has settled."""

    run_id: str
    status: RunStatus
    succeeded: list[TaskName] = Field(default_factory=list)
    failed: list[TaskName] = Field(default_factory=list)
    transitions: list[Transition] = Field(default_factory=list)
    already_terminal: bool = False
