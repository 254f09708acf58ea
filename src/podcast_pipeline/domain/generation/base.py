"""Common contract for the generation tasks."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from podcast_pipeline.domain.models import Artifact, TaskName, Transcript
from podcast_pipeline.infrastructure.interfaces import LLMService

TRANSCRIPT_PREVIEW_CHARS = 3000


class GenerationTask(ABC):
    """
    Pure function from a transcript to one artifact.

    Implementations make exactly one model call per attempt and never persist
    or publish anything, so the step executor may retry them freely.
    """

    name: ClassVar[TaskName]
    artifact_type: ClassVar[Any]

    def __init__(self, llm: LLMService):
        self._llm = llm

    @abstractmethod
    def generate(self, transcript: Transcript) -> Artifact:
        """
        Produces the task's artifact.

        Args:
            transcript: The full transcript of the run.

        Returns:
            The artifact, possibly a degraded placeholder flagged with an error.

        Raises:
            LLMServiceError: If the model call fails (retried by the executor).
            IsolatedTaskError: If the task cannot produce anything meaningful.
        """
        pass

    def _preview(self, transcript: Transcript, limit: int = TRANSCRIPT_PREVIEW_CHARS) -> str:
        """Returns the leading part of the transcript text."""
        if len(transcript.text) <= limit:
            return transcript.text
        return transcript.text[:limit] + "..."

    def _topic_outline(self, transcript: Transcript) -> str:
        """Returns a numbered list of chapter headlines, or an empty string."""
        if not transcript.chapters:
            return ""
        lines = [
            f"{idx + 1}. {chapter.headline}"
            for idx, chapter in enumerate(transcript.chapters)
        ]
        return "MAIN TOPICS COVERED:\n" + "\n".join(lines)
