from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    STOPPED = "STOPPED"
    LISTENING = "LISTENING"


class PipelineEventType(str, Enum):
    SESSION_STATE_CHANGED = "SESSION_STATE_CHANGED"
    TRANSCRIPT_PARTIAL = "TRANSCRIPT_PARTIAL"
    TRANSCRIPT_FINAL = "TRANSCRIPT_FINAL"
    TRANSLATION_DONE = "TRANSLATION_DONE"
    TRANSLATION_FAILED = "TRANSLATION_FAILED"
    SUBTITLE_SHOWN = "SUBTITLE_SHOWN"
    RESET = "RESET"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class PipelineEvent:
    type: PipelineEventType
    item_id: int | None = None
    payload: object | None = None
