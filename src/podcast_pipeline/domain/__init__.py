"""Domain layer exports."""

from podcast_pipeline.domain.models import (
    Chapter,
    Hashtags,
    KeyMoment,
    PhaseStatus,
    ProgressEvent,
    ProgressTopic,
    Run,
    RunError,
    RunOutcome,
    RunPatch,
    RunStatus,
    Segment,
    SocialPosts,
    StepCheckpoint,
    Summary,
    TaskError,
    TaskFailed,
    TaskName,
    TaskStatus,
    TaskSucceeded,
    Titles,
    Transcript,
    TriggerMessage,
    Utterance,
    Word,
    YouTubeTimestamp,
)
from podcast_pipeline.domain.progress import (
    ALL_TOPICS,
    SubscriptionGrant,
    SubscriptionTokenIssuer,
    TransitionLog,
    channel_for,
)

__all__ = [
    "ALL_TOPICS",
    "Chapter",
    "Hashtags",
    "KeyMoment",
    "PhaseStatus",
    "ProgressEvent",
    "ProgressTopic",
    "Run",
    "RunError",
    "RunOutcome",
    "RunPatch",
    "RunStatus",
    "Segment",
    "SocialPosts",
    "StepCheckpoint",
    "SubscriptionGrant",
    "SubscriptionTokenIssuer",
    "Summary",
    "TaskError",
    "TaskFailed",
    "TaskName",
    "TaskStatus",
    "TaskSucceeded",
    "Titles",
    "Transcript",
    "TransitionLog",
    "TriggerMessage",
    "Utterance",
    "Word",
    "YouTubeTimestamp",
    "channel_for",
]
