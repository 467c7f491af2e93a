from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from lingualine.core.audio.format import AudioFrame, rms_energy
from lingualine.core.clock import Clock
from lingualine.domain.models import Utterance

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AudioSegmenter:
    """Cuts the incoming frame stream into utterances on silence or max duration.

    Frames are only buffered by `feed`; cutoffs are evaluated by `tick`, which
    the owner calls on a fixed period. At most one utterance may be in flight to
    the transcription engine: a cutoff that fires while `in_flight` is set drops
    its audio instead of queueing it. The owner calls `release` once the engine
    has finished with the emitted utterance.

    Only frames at or above `silence_threshold` count toward `min_segment_s`,
    so trailing silence never lifts a blip of speech over the floor.
    """

    clock: Clock
    sample_rate_hz: int = 16000
    silence_threshold: float = 0.002
    silence_duration_s: float = 0.5
    max_segment_duration_s: float = 5.0
    min_segment_s: float = 0.2
    language_hint: str | None = None

    _frames: list[np.ndarray] = field(default_factory=list)
    _sample_count: int = 0
    _voiced_sample_count: int = 0
    _silence_started_at: float | None = None
    _segment_started_at: float = 0.0
    _in_flight: bool = False
    dropped_segments: int = 0

    def __post_init__(self) -> None:
        if self.sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0")
        if self.silence_threshold < 0:
            raise ValueError("silence_threshold must be >= 0")
        if self.silence_duration_s <= 0:
            raise ValueError("silence_duration_s must be > 0")
        if self.max_segment_duration_s <= 0:
            raise ValueError("max_segment_duration_s must be > 0")
        if self.min_segment_s < 0:
            raise ValueError("min_segment_s must be >= 0")
        self._segment_started_at = self.clock.now()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def buffered_samples(self) -> int:
        return self._sample_count

    @property
    def voiced_samples(self) -> int:
        return self._voiced_sample_count

    @property
    def min_segment_samples(self) -> int:
        return int(self.sample_rate_hz * self.min_segment_s)

    def feed(self, frame: AudioFrame) -> None:
        if frame.sample_rate_hz != self.sample_rate_hz:
            raise ValueError(
                f"frame sample rate {frame.sample_rate_hz} != segmenter rate {self.sample_rate_hz}"
            )
        samples = np.asarray(frame.samples, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return

        if not self._frames:
            self._segment_started_at = self.clock.now()

        if rms_energy(samples) < self.silence_threshold:
            if self._silence_started_at is None:
                self._silence_started_at = self.clock.now()
        else:
            self._silence_started_at = None
            self._voiced_sample_count += int(samples.size)

        self._frames.append(samples.copy())
        self._sample_count += int(samples.size)

    def tick(self) -> Utterance | None:
        if not self._frames:
            return None

        now = self.clock.now()
        silence_s = now - self._silence_started_at if self._silence_started_at is not None else 0.0
        segment_s = now - self._segment_started_at

        if silence_s < self.silence_duration_s and segment_s < self.max_segment_duration_s:
            return None

        utterance: Utterance | None = None
        if self._in_flight:
            self.dropped_segments += 1
            logger.info(
                f"[Segmenter] Transcription busy, dropping {self._sample_count} samples "
                f"(dropped={self.dropped_segments})"
            )
        elif self._voiced_sample_count > self.min_segment_samples:
            utterance = Utterance(
                samples=np.concatenate(self._frames),
                sample_rate_hz=self.sample_rate_hz,
                language_hint=self.language_hint,
                started_at=self._segment_started_at,
            )
            self._in_flight = True
            cause = "silence" if silence_s >= self.silence_duration_s else "max-duration"
            logger.debug(
                f"[Segmenter] Cut {utterance.duration_s:.2f}s utterance on {cause}"
            )
        else:
            logger.debug(
                f"[Segmenter] Discarding segment with {self._voiced_sample_count} audible samples"
            )

        self._clear(now)
        return utterance

    def release(self) -> None:
        """Mark the in-flight utterance as fully transcribed."""
        self._in_flight = False

    def reset(self) -> None:
        self._clear(self.clock.now())
        self._in_flight = False

    def _clear(self, now: float) -> None:
        self._frames.clear()
        self._sample_count = 0
        self._voiced_sample_count = 0
        self._silence_started_at = None
        self._segment_started_at = now
