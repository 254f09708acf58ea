"""Per-platform hashtag generation."""

from pydantic import BaseModel

from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import Hashtags, TaskName, Transcript
from podcast_pipeline.exceptions import ResponseValidationError
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

SYSTEM_PROMPT = (
    "You are a social media growth expert who knows which hashtags help "
    "podcast content get discovered on each platform."
)

FAILED_TAG = "⚠️ Hashtag generation failed"


class HashtagsDraft(BaseModel):
    """Response schema requested from the model."""

    youtube: list[str]
    instagram: list[str]
    tiktok: list[str]
    linkedin: list[str]
    twitter: list[str]


def normalize_tag(tag: str) -> str:
    """Strips whitespace and ensures a single leading '#'."""
    cleaned = tag.strip().lstrip("#").replace(" ", "")
    return f"#{cleaned}"


class HashtagsTask(GenerationTask):
    """Generates hashtag sets tuned to each platform."""

    name = TaskName.HASHTAGS
    artifact_type = Hashtags

    def generate(self, transcript: Transcript) -> Hashtags:
        try:
            draft = self._llm.complete(
                self._build_prompt(transcript), HashtagsDraft, SYSTEM_PROMPT
            )
        except ResponseValidationError as e:
            logger.warning(
                "Hashtags response invalid, using fallback",
                extra={"task": self.name.value, "reason": e.reason},
            )
            return Hashtags(
                youtube=[FAILED_TAG],
                instagram=[FAILED_TAG],
                tiktok=[FAILED_TAG],
                linkedin=[FAILED_TAG],
                twitter=[FAILED_TAG],
                error=str(e),
            )

        tags = {
            platform: [normalize_tag(tag) for tag in values if tag.strip().lstrip("#")]
            for platform, values in draft.model_dump().items()
        }
        logger.info("Hashtags generated", extra={"task": self.name.value})
        return Hashtags(**tags)

    def _build_prompt(self, transcript: Transcript) -> str:
        """Builds the hashtags prompt."""
        return (
            "Suggest hashtags for this podcast episode.\n\n"
            f"TRANSCRIPT PREVIEW:\n{self._preview(transcript, 2000)}\n\n"
            f"{self._topic_outline(transcript)}\n\n"
            "youtube: 3-5 tags. instagram: 6-8 tags mixing broad and niche. "
            "tiktok: 5-6 trending-style tags. linkedin: 3-5 professional tags. "
            "twitter: 3-5 concise tags."
        )
