from types import SimpleNamespace

import assemblyai as aai
import pytest

from podcast_pipeline.domain.generation.summary import SummaryDraft
from podcast_pipeline.exceptions import (
    LLMServiceError,
    ResponseValidationError,
    TranscriptionError,
)
from podcast_pipeline.infrastructure import (
    AssemblyAITranscriber,
    GeminiLLMService,
    build_transcription_config,
)


class FakeModels:
    def __init__(self, text: str | None = None, error: Exception | None = None):
        self.text = text
        self.error = error
        self.requests: list[dict] = []

    def generate_content(self, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def gemini(models: FakeModels) -> GeminiLLMService:
    return GeminiLLMService(SimpleNamespace(models=models), "gemini-test")


# === Gemini ===


def test_gemini_returns_validated_model():
    models = FakeModels(
        text='{"full": "f", "bullets": ["b"], "insights": ["i"], "tldr": "t"}'
    )

    result = gemini(models).complete("prompt", SummaryDraft, "be brief")

    assert result == SummaryDraft(full="f", bullets=["b"], insights=["i"], tldr="t")
    config = models.requests[0]["config"]
    assert config["response_schema"] is SummaryDraft
    assert config["response_mime_type"] == "application/json"
    assert config["system_instruction"] == "be brief"


def test_gemini_schema_mismatch():
    with pytest.raises(ResponseValidationError) as exc_info:
        gemini(FakeModels(text='{"full": "f"}')).complete("prompt", SummaryDraft)

    assert exc_info.value.schema_name == "SummaryDraft"
    assert exc_info.value.reason == "schema mismatch"


def test_gemini_empty_response():
    with pytest.raises(ResponseValidationError) as exc_info:
        gemini(FakeModels(text="")).complete("prompt", SummaryDraft)

    assert exc_info.value.reason == "empty response"


def test_gemini_api_failure_is_retryable():
    with pytest.raises(LLMServiceError):
        gemini(FakeModels(error=RuntimeError("503"))).complete("prompt", SummaryDraft)


# === AssemblyAI ===


class FakeAssemblyAI:
    def __init__(self, result):
        self.result = result
        self.requests: list[tuple[str, object]] = []

    def transcribe(self, input_ref, config=None):
        self.requests.append((input_ref, config))
        return self.result


def assemblyai_result(**overrides):
    sentence = SimpleNamespace(
        start=0,
        end=1500,
        text="Hello there.",
        words=[
            SimpleNamespace(text="Hello", start=0, end=700, confidence=0.9, speaker="A"),
            SimpleNamespace(text="there.", start=700, end=1500, confidence=0.8, speaker="A"),
        ],
    )
    values = {
        "status": aai.TranscriptStatus.completed,
        "error": None,
        "text": "Hello there.",
        "utterances": [
            SimpleNamespace(speaker="A", start=0, end=1500, text="Hello there.", confidence=0.85)
        ],
        "chapters": [
            SimpleNamespace(start=0, end=1500, headline="Greeting", summary="Hi.", gist=None)
        ],
        "audio_duration": 1.5,
        "get_sentences": lambda: [sentence],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_transcriber_maps_assemblyai_result():
    client = FakeAssemblyAI(assemblyai_result())
    config = build_transcription_config()
    transcriber = AssemblyAITranscriber(client, config)

    transcript = transcriber.transcribe("https://cdn.example.com/a.mp3")

    assert transcript.text == "Hello there."
    assert transcript.audio_duration == 1500
    assert transcript.chapters[0].headline == "Greeting"
    assert transcript.chapters[0].gist == ""
    assert transcript.utterances[0].speaker == "A"
    assert [w.text for w in transcript.segments[0].words] == ["Hello", "there."]
    assert client.requests == [("https://cdn.example.com/a.mp3", config)]


def test_transcriber_reports_provider_error():
    client = FakeAssemblyAI(
        assemblyai_result(status=aai.TranscriptStatus.error, error="unsupported format")
    )

    with pytest.raises(TranscriptionError) as exc_info:
        AssemblyAITranscriber(client, build_transcription_config()).transcribe("ref")

    assert "unsupported format" in str(exc_info.value)


def test_transcriber_rejects_empty_text():
    client = FakeAssemblyAI(assemblyai_result(text=""))

    with pytest.raises(TranscriptionError):
        AssemblyAITranscriber(client, build_transcription_config()).transcribe("ref")


def test_transcription_config_requests_chapters_and_speakers():
    config = build_transcription_config()

    assert config.auto_chapters is True
    assert config.speaker_labels is True
