from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


@dataclass(frozen=True, slots=True)
class Utterance:
    """One bounded run of mono audio handed to the transcription engine."""

    samples: np.ndarray  # float32 mono
    sample_rate_hz: int
    language_hint: str | None = None
    started_at: float | None = None  # monotonic seconds (Clock)

    @property
    def duration_s(self) -> float:
        return int(self.samples.shape[0]) / float(self.sample_rate_hz)


@dataclass(frozen=True, slots=True)
class TranscriptFragment:
    text: str
    is_final: bool
    arrival_time: float  # monotonic seconds (Clock)


class PhraseStatus(str, Enum):
    PENDING_TRANSCRIPTION = "pending-transcription"
    PENDING_TRANSLATION = "pending-translation"
    READY = "ready"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = (
    PhraseStatus.PENDING_TRANSCRIPTION,
    PhraseStatus.PENDING_TRANSLATION,
    PhraseStatus.READY,
)


@dataclass(slots=True)
class PhraseItem:
    id: int
    subtitle_text: str
    created_at: float
    translation_text: str | None = None
    display_started_at: float | None = None
    status: PhraseStatus = PhraseStatus.PENDING_TRANSCRIPTION

    def set_text(self, text: str) -> "PhraseItem":
        if self.status != PhraseStatus.PENDING_TRANSCRIPTION:
            raise ValueError(f"phrase {self.id} text is frozen (status={self.status.value})")
        self.subtitle_text = text
        return self

    def advance_to(self, status: PhraseStatus) -> "PhraseItem":
        if status.rank < self.status.rank:
            raise ValueError(
                f"phrase {self.id} cannot regress from {self.status.value} to {status.value}"
            )
        self.status = status
        return self

    def set_translation(self, text: str) -> "PhraseItem":
        if self.translation_text is not None:
            raise ValueError(f"phrase {self.id} translation is already set")
        self.translation_text = text
        self.status = PhraseStatus.READY
        return self

    @property
    def is_ready(self) -> bool:
        return self.status == PhraseStatus.READY


@dataclass(frozen=True, slots=True)
class Translation:
    item_id: int
    text: str
    created_at: float | None = None  # monotonic seconds (Clock)


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    item_id: int
    sequence: int
    text: str
    source_language: str
    target_language: str
    context: str = ""
