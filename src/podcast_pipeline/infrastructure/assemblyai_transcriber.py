"""AssemblyAI implementation of the TranscriptionService interface."""

import assemblyai as aai

from podcast_pipeline.domain.models import (
    Chapter,
    Segment,
    Transcript,
    Utterance,
    Word,
)
from podcast_pipeline.exceptions import TranscriptionError
from podcast_pipeline.infrastructure.interfaces import TranscriptionService
from podcast_pipeline.logging import setup_logging

logger = setup_logging()


def build_transcription_config(
    speaker_labels: bool = True, auto_chapters: bool = True
) -> aai.TranscriptionConfig:
    """Returns the request options used for every podcast transcription."""
    return aai.TranscriptionConfig(
        speaker_labels=speaker_labels,
        auto_chapters=auto_chapters,
        format_text=True,
    )


class AssemblyAITranscriber(TranscriptionService):
    """Handles audio transcription using AssemblyAI."""

    def __init__(self, transcriber: aai.Transcriber, config: aai.TranscriptionConfig):
        self._transcriber = transcriber
        self._config = config

    def transcribe(self, input_ref: str) -> Transcript:
        """
        Transcribes remote audio with speaker labels and auto chapters.

        AssemblyAI fetches the audio from the locator itself; nothing is
        downloaded locally.
        """
        try:
            result = self._transcriber.transcribe(input_ref, config=self._config)

            if result.status == aai.TranscriptStatus.error:
                raise TranscriptionError(input_ref, Exception(result.error))

            if not result.text:
                raise TranscriptionError(
                    input_ref, Exception("Transcription returned no text")
                )

            transcript = Transcript(
                text=result.text,
                segments=self._segments(result),
                utterances=[
                    Utterance(
                        speaker=u.speaker,
                        start=u.start,
                        end=u.end,
                        text=u.text,
                        confidence=u.confidence,
                    )
                    for u in result.utterances or []
                ],
                chapters=[
                    Chapter(
                        start=c.start,
                        end=c.end,
                        headline=c.headline,
                        summary=c.summary,
                        gist=c.gist or "",
                    )
                    for c in result.chapters or []
                ],
                audio_duration=(
                    int(result.audio_duration * 1000)
                    if result.audio_duration is not None
                    else None
                ),
            )

            logger.info(
                "Audio transcription successful",
                extra={
                    "input_ref": input_ref,
                    "segment_count": len(transcript.segments),
                    "chapter_count": len(transcript.chapters),
                },
            )
            return transcript

        except TranscriptionError:
            raise
        except Exception as e:
            logger.exception("AssemblyAI transcription failed", extra={"input_ref": input_ref})
            raise TranscriptionError(input_ref, e) from e

    def _segments(self, result: aai.Transcript) -> list[Segment]:
        """Splits the transcript into sentences with word-level timing."""
        return [
            Segment(
                start=sentence.start,
                end=sentence.end,
                text=sentence.text,
                words=[
                    Word(
                        text=w.text,
                        start=w.start,
                        end=w.end,
                        confidence=w.confidence,
                        speaker=w.speaker,
                    )
                    for w in sentence.words or []
                ],
            )
            for sentence in result.get_sentences()
        ]
