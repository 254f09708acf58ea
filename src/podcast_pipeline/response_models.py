"""Request and response models for the runs API."""

from datetime import datetime

from pydantic import BaseModel, Field

from podcast_pipeline.domain.models import (
    Hashtags,
    KeyMoment,
    PhaseStatus,
    ProgressTopic,
    Run,
    RunError,
    RunStatus,
    SocialPosts,
    Summary,
    TaskError,
    TaskName,
    TaskStatus,
    Titles,
    Transcript,
    YouTubeTimestamp,
)


class CreateRunRequest(BaseModel):
    """Upload notification that starts a run."""

    input_ref: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    run_id: str | None = Field(default=None, min_length=1)


class RunCreatedResponse(BaseModel):
    message: str
    run_id: str


class RunDetailResponse(BaseModel):
    """Authoritative persisted state of a run, for reconciliation."""

    run_id: str
    status: RunStatus
    transcription_status: PhaseStatus
    generation_status: PhaseStatus
    task_statuses: dict[str, TaskStatus]
    transcript: Transcript | None = None
    key_moments: list[KeyMoment] | None = None
    summary: Summary | None = None
    social_posts: SocialPosts | None = None
    titles: Titles | None = None
    hashtags: Hashtags | None = None
    youtube_timestamps: list[YouTubeTimestamp] | None = None
    task_errors: dict[str, TaskError]
    error: RunError | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_run(cls, run: Run) -> "RunDetailResponse":
        return cls(
            **run.model_dump(exclude={"input_ref", "owner_id"}),
            task_statuses={task.value: run.task_status(task) for task in TaskName},
        )


class RealtimeTokenResponse(BaseModel):
    """Short-lived credential for one run's progress channel."""

    token: str
    channel: str
    topics: list[ProgressTopic]
    expires_in: int
