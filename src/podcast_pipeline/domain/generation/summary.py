"""Episode summary generation."""

from pydantic import BaseModel

from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import Summary, TaskName, Transcript
from podcast_pipeline.exceptions import ResponseValidationError
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

SYSTEM_PROMPT = (
    "You are an expert podcast content analyst. You write accurate, engaging "
    "summaries that capture what listeners will take away from an episode."
)


class SummaryDraft(BaseModel):
    """Response schema requested from the model."""

    full: str
    bullets: list[str]
    insights: list[str]
    tldr: str


class SummaryTask(GenerationTask):
    """Generates a long summary, key bullets, insights and a one-line TL;DR."""

    name = TaskName.SUMMARY
    artifact_type = Summary

    def generate(self, transcript: Transcript) -> Summary:
        try:
            draft = self._llm.complete(
                self._build_prompt(transcript), SummaryDraft, SYSTEM_PROMPT
            )
        except ResponseValidationError as e:
            logger.warning(
                "Summary response invalid, using fallback",
                extra={"task": self.name.value, "reason": e.reason},
            )
            return self._fallback(transcript, e)

        logger.info(
            "Summary generated",
            extra={"task": self.name.value, "bullets": len(draft.bullets)},
        )
        return Summary(**draft.model_dump())

    def _build_prompt(self, transcript: Transcript) -> str:
        """Builds the summary prompt."""
        return (
            "Summarize this podcast episode.\n\n"
            f"TRANSCRIPT:\n{self._preview(transcript)}\n\n"
            f"{self._topic_outline(transcript)}\n\n"
            "Return a 200-300 word overview (full), 5-7 key bullet points "
            "(bullets), 3-5 actionable insights (insights) and a single "
            "sentence TL;DR (tldr)."
        )

    def _fallback(self, transcript: Transcript, error: ResponseValidationError) -> Summary:
        """Builds a placeholder summary from the raw transcript."""
        return Summary(
            full=transcript.text[:500],
            bullets=["Full transcript available"],
            insights=["See transcript"],
            tldr=transcript.text[:200],
            error=str(error),
        )
