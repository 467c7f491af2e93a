from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from types import SimpleNamespace

import numpy as np
import pytest

from lingualine.core.stt.backend import TranscriptionResult, normalize_transcription_output
from lingualine.domain.errors import TranscriptionFailure
from lingualine.domain.models import Utterance
from lingualine.providers.stt.faster_whisper import FasterWhisperTranscriptionEngine


def test_normalize_plain_string():
    assert normalize_transcription_output("  hola  ") == TranscriptionResult(text="hola", is_final=True)
    assert normalize_transcription_output("   ") is None
    assert normalize_transcription_output(None) is None


def test_normalize_list_of_chunks_joins_text():
    raw = [{"text": " Hola "}, SimpleNamespace(text="que tal"), {"text": ""}]
    assert normalize_transcription_output(raw) == TranscriptionResult(
        text="Hola que tal", is_final=True
    )


def test_normalize_mapping_carries_is_final():
    raw = {"text": "Hola", "is_final": False}
    assert normalize_transcription_output(raw, is_final=True) == TranscriptionResult(
        text="Hola", is_final=False
    )


@dataclass
class FakeWhisperModel:
    texts: list[str]
    calls: list[dict] = field(default_factory=list)
    error: Exception | None = None

    def transcribe(self, audio, **kwargs):
        self.calls.append({"samples": len(audio), **kwargs})
        if self.error is not None:
            raise self.error
        segments = (SimpleNamespace(text=t) for t in self.texts)
        return segments, SimpleNamespace(language=kwargs.get("language"))


def _utterance(seconds: float = 1.0, rate: int = 16000, hint: str | None = "es") -> Utterance:
    return Utterance(
        samples=np.full(int(seconds * rate), 0.1, dtype=np.float32),
        sample_rate_hz=rate,
        language_hint=hint,
    )


async def _collect(engine, utterance):
    return [r async for r in engine.transcribe(utterance)]


def test_whisper_engine_yields_single_final_result():
    model = FakeWhisperModel(texts=[" Hola", " que tal"])
    engine = FasterWhisperTranscriptionEngine(model=model)

    results = asyncio.run(_collect(engine, _utterance()))

    assert results == [TranscriptionResult(text="Hola que tal", is_final=True)]
    call = model.calls[0]
    assert call["language"] == "es"
    assert call["repetition_penalty"] == 1.2
    assert call["no_repeat_ngram_size"] == 3
    assert call["vad_filter"] is False


def test_whisper_engine_yields_nothing_for_silence():
    engine = FasterWhisperTranscriptionEngine(model=FakeWhisperModel(texts=["  "]))
    assert asyncio.run(_collect(engine, _utterance())) == []


def test_whisper_engine_resamples_to_16k():
    model = FakeWhisperModel(texts=["hola"])
    engine = FasterWhisperTranscriptionEngine(model=model)

    asyncio.run(_collect(engine, _utterance(seconds=1.0, rate=8000)))
    assert model.calls[0]["samples"] == 16000


def test_whisper_engine_wraps_errors():
    model = FakeWhisperModel(texts=[], error=RuntimeError("CUDA out of memory"))
    engine = FasterWhisperTranscriptionEngine(model=model)

    with pytest.raises(TranscriptionFailure):
        asyncio.run(_collect(engine, _utterance()))
