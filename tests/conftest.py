"""Shared fixtures for the pipeline tests."""

import pytest

from fakes import (
    FIXED_NOW,
    INPUT_REF,
    OWNER_ID,
    RUN_ID,
    FakeLLM,
    FakeTranscriber,
    InMemoryCheckpointStore,
    InMemoryRunStore,
    RecordingPublisher,
)
from podcast_pipeline.config import RetryConfig
from podcast_pipeline.domain.generation.hashtags import HashtagsDraft
from podcast_pipeline.domain.generation.key_moments import (
    KeyMomentsDraft,
    MomentPick,
)
from podcast_pipeline.domain.generation.social_posts import SocialPostsDraft
from podcast_pipeline.domain.generation.summary import SummaryDraft
from podcast_pipeline.domain.generation.titles import TitlesDraft
from podcast_pipeline.domain.generation.youtube_timestamps import (
    ChapterTitle,
    ChapterTitles,
)
from podcast_pipeline.domain.models import Chapter, Run, Transcript, Utterance
from podcast_pipeline.domain.step_executor import StepExecutor


# === FIXTURES: durable steps ===


@pytest.fixture
def retry_policy() -> RetryConfig:
    """Three attempts with no backoff delay."""
    return RetryConfig(max_attempts=3, base_delay_seconds=0.0)


@pytest.fixture
def checkpoints() -> InMemoryCheckpointStore:
    return InMemoryCheckpointStore()


@pytest.fixture
def sleeps() -> list[float]:
    """Records every backoff delay requested by the executor."""
    return []


@pytest.fixture
def executor(checkpoints, retry_policy, sleeps) -> StepExecutor:
    return StepExecutor(checkpoints, retry_policy, sleep=sleeps.append)


# === FIXTURES: domain data ===


@pytest.fixture
def transcript() -> Transcript:
    """A four-chapter episode, the second chapter starting past one hour."""
    return Transcript(
        text="Welcome to the show. Today we talk about durable pipelines and retries.",
        utterances=[
            Utterance(speaker="A", start=0, end=4000, text="Welcome to the show."),
        ],
        chapters=[
            Chapter(start=0, end=60_000, headline="Intro", summary="Hosts say hi."),
            Chapter(
                start=3_725_000,
                end=3_800_000,
                headline="Durable steps",
                summary="Why checkpoints matter.",
            ),
            Chapter(
                start=3_800_000,
                end=3_900_000,
                headline="Retries",
                summary="Backoff and limits.",
            ),
            Chapter(
                start=3_900_000,
                end=4_000_000,
                headline="Wrap up",
                summary="Closing thoughts.",
            ),
        ],
        audio_duration=4_000_000,
    )


@pytest.fixture
def drafts() -> dict:
    """A valid model response for every generation schema."""
    return {
        "KeyMomentsDraft": KeyMomentsDraft(
            moments=[
                MomentPick(index=2, headline="Retry budgets", description="How many tries."),
                MomentPick(index=1, headline="Checkpoints", description="Replay safely."),
            ]
        ),
        "SummaryDraft": SummaryDraft(
            full="An episode about durable pipelines.",
            bullets=["Checkpoints", "Retries"],
            insights=["Make steps idempotent"],
            tldr="Durability matters.",
        ),
        "SocialPostsDraft": SocialPostsDraft(
            twitter="New episode out now",
            linkedin="We discuss durable pipelines.",
            instagram="New ep 🎙️",
            tiktok="Pipelines!",
            youtube="Full episode on durable pipelines.",
            facebook="Listen and tell us what you think.",
        ),
        "TitlesDraft": TitlesDraft(
            youtube_short=["Durable Pipelines"],
            youtube_long=["Durable Pipelines Explained With Checkpoints"],
            podcast_titles=["Ep 42: Durable"],
            seo_keywords=["pipelines", "retries"],
        ),
        "HashtagsDraft": HashtagsDraft(
            youtube=["#podcast"],
            instagram=["podcast", "##tech"],
            tiktok=["#dev"],
            linkedin=["#engineering"],
            twitter=["#python", " "],
        ),
        "ChapterTitles": ChapterTitles(
            titles=[
                ChapterTitle(index=0, title="Welcome In"),
                ChapterTitle(index=1, title="Why Checkpoints Win"),
                ChapterTitle(index=2, title="Retry Without Fear"),
                ChapterTitle(index=3, title="Final Thoughts"),
            ]
        ),
    }


@pytest.fixture
def llm(drafts) -> FakeLLM:
    return FakeLLM(drafts)


@pytest.fixture
def transcriber(transcript) -> FakeTranscriber:
    return FakeTranscriber(transcript)


# === FIXTURES: stores and publishers ===


@pytest.fixture
def runs() -> InMemoryRunStore:
    """Run store seeded with one freshly uploaded run."""
    store = InMemoryRunStore()
    store.insert(
        Run(
            run_id=RUN_ID,
            input_ref=INPUT_REF,
            owner_id=OWNER_ID,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
    )
    return store


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()
