"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod

from podcast_pipeline.domain.models import Transcript


class TranscriptionService(ABC):
    """Abstract base class for audio transcription backends."""

    @abstractmethod
    def transcribe(self, input_ref: str) -> Transcript:
        """
        Transcribes the audio behind a locator.

        Args:
            input_ref: Dereferenceable locator (URL) of the source audio.

        Returns:
            Transcript with segments, speaker utterances and chapters.

        Raises:
            TranscriptionError: If transcription fails or yields no text.
        """
        pass
