"""Platform-specific social post generation."""

from pydantic import BaseModel

from podcast_pipeline.domain.formatting import TWITTER_MAX_LENGTH, truncate_post
from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import SocialPosts, TaskName, Transcript
from podcast_pipeline.exceptions import ResponseValidationError
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

SYSTEM_PROMPT = (
    "You are a social media marketing expert who writes native, platform-aware "
    "posts that drive engagement for podcast episodes."
)

FAILED_POST = "⚠️ Social post generation failed. Check logs for details."


class SocialPostsDraft(BaseModel):
    """Response schema requested from the model."""

    twitter: str
    linkedin: str
    instagram: str
    tiktok: str
    youtube: str
    facebook: str


class SocialPostsTask(GenerationTask):
    """Generates one post per platform."""

    name = TaskName.SOCIAL_POSTS
    artifact_type = SocialPosts

    def generate(self, transcript: Transcript) -> SocialPosts:
        try:
            draft = self._llm.complete(
                self._build_prompt(transcript), SocialPostsDraft, SYSTEM_PROMPT
            )
        except ResponseValidationError as e:
            logger.warning(
                "Social posts response invalid, using fallback",
                extra={"task": self.name.value, "reason": e.reason},
            )
            return SocialPosts(
                twitter=FAILED_POST,
                linkedin=FAILED_POST,
                instagram=FAILED_POST,
                tiktok=FAILED_POST,
                youtube=FAILED_POST,
                facebook=FAILED_POST,
                error=str(e),
            )

        posts = draft.model_dump()
        if len(draft.twitter) > TWITTER_MAX_LENGTH:
            logger.info(
                "Twitter post truncated",
                extra={"task": self.name.value, "length": len(draft.twitter)},
            )
            posts["twitter"] = truncate_post(draft.twitter)

        logger.info("Social posts generated", extra={"task": self.name.value})
        return SocialPosts(**posts)

    def _build_prompt(self, transcript: Transcript) -> str:
        """Builds the social posts prompt."""
        return (
            "Write promotional posts for this podcast episode.\n\n"
            f"TRANSCRIPT:\n{self._preview(transcript)}\n\n"
            f"{self._topic_outline(transcript)}\n\n"
            f"twitter: at most {TWITTER_MAX_LENGTH} characters, punchy hook.\n"
            "linkedin: professional tone, 1-2 short paragraphs.\n"
            "instagram: casual caption with emojis.\n"
            "tiktok: short, energetic, trend-aware.\n"
            "youtube: description paragraph for the episode video.\n"
            "facebook: conversational, invites comments."
        )
