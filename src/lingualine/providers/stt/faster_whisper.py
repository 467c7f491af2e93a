from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

import numpy as np

from lingualine.core.audio.format import resample_f32_linear
from lingualine.core.stt.backend import TranscriptionResult, normalize_transcription_output
from lingualine.domain.errors import TranscriptionFailure
from lingualine.domain.models import Utterance

logger = logging.getLogger(__name__)

WHISPER_SAMPLE_RATE_HZ = 16000


@dataclass(slots=True)
class FasterWhisperTranscriptionEngine:
    """Whole-utterance transcription with faster-whisper.

    Each utterance produces at most one final result; the recognized segments
    are joined into a single line. The model is loaded on first use and
    inference runs in a worker thread.
    """

    model_size: str = "small"
    device: str = "cpu"
    compute_type: str = "int8"
    beam_size: int = 1
    repetition_penalty: float = 1.2
    no_repeat_ngram_size: int = 3
    model: Any = None

    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock, repr=False)

    def _get_model(self) -> Any:
        if self.model is None:
            from faster_whisper import WhisperModel  # type: ignore

            logger.info(
                f"[STT] Loading Whisper model '{self.model_size}' "
                f"(device={self.device}, compute_type={self.compute_type})"
            )
            self.model = WhisperModel(
                self.model_size,
                device=self.device,
                compute_type=self.compute_type,
            )
        return self.model

    def _transcribe_sync(self, samples: np.ndarray, language: str | None) -> list[str]:
        model = self._get_model()
        segments, _info = model.transcribe(
            samples,
            language=language,
            beam_size=self.beam_size,
            vad_filter=False,
            condition_on_previous_text=False,
            repetition_penalty=self.repetition_penalty,
            no_repeat_ngram_size=self.no_repeat_ngram_size,
        )
        return [str(s.text or "") for s in segments]

    async def transcribe(self, utterance: Utterance) -> AsyncIterator[TranscriptionResult]:
        samples = np.asarray(utterance.samples, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return
        if utterance.sample_rate_hz != WHISPER_SAMPLE_RATE_HZ:
            samples = resample_f32_linear(
                samples, from_rate_hz=utterance.sample_rate_hz, to_rate_hz=WHISPER_SAMPLE_RATE_HZ
            )

        async with self._lock:
            try:
                texts = await asyncio.to_thread(
                    self._transcribe_sync, samples, utterance.language_hint
                )
            except Exception as exc:
                raise TranscriptionFailure(f"Whisper transcription failed: {exc}") from exc

        result = normalize_transcription_output(texts, is_final=True)
        if result is None:
            logger.debug(f"[STT] No speech in {utterance.duration_s:.2f}s utterance")
            return
        logger.info(f"[STT] Final: '{result.text}'")
        yield result

    async def close(self) -> None:
        self.model = None
