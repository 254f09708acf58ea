"""Title and SEO keyword generation."""

from pydantic import BaseModel

from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import TaskName, Titles, Transcript
from podcast_pipeline.exceptions import ResponseValidationError
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

SYSTEM_PROMPT = (
    "You are an expert in SEO and content marketing. You write titles that are "
    "clickable while staying credible and searchable."
)


class TitlesDraft(BaseModel):
    """Response schema requested from the model."""

    youtube_short: list[str]
    youtube_long: list[str]
    podcast_titles: list[str]
    seo_keywords: list[str]


class TitlesTask(GenerationTask):
    """Generates YouTube and podcast titles plus SEO keywords."""

    name = TaskName.TITLES
    artifact_type = Titles

    def generate(self, transcript: Transcript) -> Titles:
        try:
            draft = self._llm.complete(
                self._build_prompt(transcript), TitlesDraft, SYSTEM_PROMPT
            )
        except ResponseValidationError as e:
            logger.warning(
                "Titles response invalid, using fallback",
                extra={"task": self.name.value, "reason": e.reason},
            )
            return Titles(
                youtube_short=["⚠️ Title generation failed"],
                youtube_long=["⚠️ Title generation failed - check logs"],
                podcast_titles=["⚠️ Title generation failed"],
                seo_keywords=["error"],
                error=str(e),
            )

        logger.info("Titles generated", extra={"task": self.name.value})
        return Titles(**draft.model_dump())

    def _build_prompt(self, transcript: Transcript) -> str:
        """Builds the titles prompt."""
        return (
            "Create optimized titles for this podcast episode.\n\n"
            f"TRANSCRIPT PREVIEW:\n{self._preview(transcript, 2000)}\n\n"
            f"{self._topic_outline(transcript)}\n\n"
            "youtube_short: exactly 3 titles of 40-60 characters.\n"
            "youtube_long: exactly 3 titles of 70-100 characters with keywords.\n"
            "podcast_titles: exactly 3 memorable episode titles.\n"
            "seo_keywords: 5-10 search terms."
        )
