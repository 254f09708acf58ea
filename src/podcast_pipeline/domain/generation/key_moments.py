"""Key moment extraction anchored on chapter boundaries."""

from pydantic import BaseModel

from podcast_pipeline.domain.formatting import format_timestamp
from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.models import Chapter, KeyMoment, TaskName, Transcript
from podcast_pipeline.exceptions import ResponseValidationError
from podcast_pipeline.logging import setup_logging

logger = setup_logging()

SYSTEM_PROMPT = (
    "You are a podcast editor. You pick the moments of an episode that are "
    "most worth sharing and describe them in a way that makes people listen."
)


class MomentPick(BaseModel):
    index: int
    headline: str
    description: str


class KeyMomentsDraft(BaseModel):
    """Response schema requested from the model."""

    moments: list[MomentPick]


class KeyMomentsTask(GenerationTask):
    """
    Picks the most shareable chapters and writes a headline for each.

    Moments always start on a chapter boundary, so a transcript without
    chapters yields no moments and no model call is made. When the model
    response is unusable every chapter becomes a moment, described by its
    own headline and summary.
    """

    name = TaskName.KEY_MOMENTS
    artifact_type = list[KeyMoment]

    def generate(self, transcript: Transcript) -> list[KeyMoment]:
        chapters = transcript.chapters
        if not chapters:
            logger.info("No chapters, skipping key moments", extra={"task": self.name.value})
            return []

        try:
            draft = self._llm.complete(
                self._build_prompt(transcript), KeyMomentsDraft, SYSTEM_PROMPT
            )
            moments = self._from_picks(chapters, draft.moments)
        except ResponseValidationError as e:
            logger.warning(
                "Key moments response invalid, using chapters",
                extra={"task": self.name.value, "reason": e.reason},
            )
            return self._from_chapters(chapters)

        logger.info(
            "Key moments generated",
            extra={"task": self.name.value, "count": len(moments)},
        )
        return moments

    def _build_prompt(self, transcript: Transcript) -> str:
        """Builds the key moments prompt listing every chapter by index."""
        lines = [
            f"[{idx}] {format_timestamp(chapter.start / 1000)} "
            f"{chapter.headline} - {chapter.summary}"
            for idx, chapter in enumerate(transcript.chapters)
        ]
        return (
            "Choose the 3-8 most interesting chapters of this podcast episode.\n\n"
            "CHAPTERS:\n" + "\n".join(lines) + "\n\n"
            "For each pick return the chapter index, a short catchy headline and "
            "a one or two sentence description."
        )

    def _from_picks(
        self, chapters: list[Chapter], picks: list[MomentPick]
    ) -> list[KeyMoment]:
        """Anchors model picks on chapter start times."""
        if not picks:
            raise ResponseValidationError("KeyMomentsDraft", "no moments returned")

        by_index: dict[int, MomentPick] = {}
        for pick in picks:
            if not 0 <= pick.index < len(chapters):
                raise ResponseValidationError(
                    "KeyMomentsDraft", f"chapter index {pick.index} out of range"
                )
            by_index.setdefault(pick.index, pick)

        moments = []
        for index in sorted(by_index):
            pick = by_index[index]
            seconds = chapters[index].start // 1000
            moments.append(
                KeyMoment(
                    time=format_timestamp(seconds),
                    timestamp=seconds,
                    text=pick.headline,
                    description=pick.description,
                )
            )
        return moments

    def _from_chapters(self, chapters: list[Chapter]) -> list[KeyMoment]:
        """One moment per chapter, using its own headline and summary."""
        return [
            KeyMoment(
                time=format_timestamp(chapter.start // 1000),
                timestamp=chapter.start // 1000,
                text=chapter.headline,
                description=chapter.summary,
                source="chapters",
            )
            for chapter in chapters
        ]
