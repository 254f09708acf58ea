"""YouTube chapter timestamps with model-written titles."""

from pydantic import BaseModel

from podcast_pipeline.domain.formatting import format_timestamp
from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import (
    Chapter,
    TaskName,
    Transcript,
    YouTubeTimestamp,
)
from podcast_pipeline.exceptions import (
    IsolatedTaskError,
    MissingChaptersError,
    ResponseValidationError,
)
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

MAX_CHAPTERS = 100

SYSTEM_PROMPT = (
    "You are a YouTube content expert who creates engaging, clickable titles "
    "for video chapters while staying true to the content."
)


class ChapterTitle(BaseModel):
    index: int
    title: str


class ChapterTitles(BaseModel):
    """Response schema requested from the model."""

    titles: list[ChapterTitle]


class YouTubeTimestampsTask(GenerationTask):
    """
    Builds YouTube chapter lines from transcript chapters.

    Timing always comes from the chapters, at most 100 of them. The model
    only writes the titles; a chapter the model skipped keeps its own
    headline. Without chapters there is nothing to time, and a malformed
    model response cannot be degraded into trustworthy timestamps, so both
    cases raise.
    """

    name = TaskName.YOUTUBE_TIMESTAMPS
    artifact_type = list[YouTubeTimestamp]

    def generate(self, transcript: Transcript) -> list[YouTubeTimestamp]:
        if not transcript.chapters:
            raise MissingChaptersError(self.name.value)

        chapters = transcript.chapters[:MAX_CHAPTERS]

        try:
            response = self._llm.complete(
                self._build_prompt(chapters), ChapterTitles, SYSTEM_PROMPT
            )
        except ResponseValidationError as e:
            logger.warning(
                "Chapter titles response invalid",
                extra={"task": self.name.value, "reason": e.reason},
            )
            raise IsolatedTaskError(
                self.name.value, f"Chapter titles unusable: {e.reason}", cause=e
            ) from e

        titles = {
            item.index: item.title.strip()
            for item in response.titles
            if item.title.strip()
        }
        timestamps = [
            YouTubeTimestamp(
                timestamp=format_timestamp(chapter.start // 1000, pad_hours=False),
                description=titles.get(idx, chapter.headline),
            )
            for idx, chapter in enumerate(chapters)
        ]

        logger.info(
            "YouTube timestamps generated",
            extra={
                "task": self.name.value,
                "count": len(timestamps),
                "model_titles": sum(1 for idx in range(len(chapters)) if idx in titles),
            },
        )
        return timestamps

    def _build_prompt(self, chapters: list[Chapter]) -> str:
        """Builds the chapter-title prompt."""
        lines = [
            f"[{idx}] [{chapter.start // 1000}s] {chapter.headline} - {chapter.summary}"
            for idx, chapter in enumerate(chapters)
        ]
        return (
            f"I have {len(chapters)} chapters from a podcast. Create a punchy 3-6 "
            "word YouTube title for each one.\n\n"
            "CHAPTERS:\n" + "\n".join(lines) + "\n\n"
            "Return a titles array where each item has the chapter index and title."
        )
