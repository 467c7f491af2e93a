from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import AsyncIterator, Protocol

from lingualine.domain.models import Utterance


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    text: str
    is_final: bool


class TranscriptionEngine(Protocol):
    """Speech-to-text collaborator.

    `transcribe` yields zero or more interim results followed by one final
    result per utterance (or just the final one). Yielding nothing means no
    speech was detected; engine errors raise `TranscriptionFailure`.
    """

    def transcribe(self, utterance: Utterance) -> AsyncIterator[TranscriptionResult]: ...

    async def close(self) -> None: ...


def _chunk_text(chunk: object) -> str:
    if chunk is None:
        return ""
    if isinstance(chunk, str):
        return chunk
    if isinstance(chunk, Mapping):
        return str(chunk.get("text") or "")
    return str(getattr(chunk, "text", "") or "")


def normalize_transcription_output(raw: object, *, is_final: bool = True) -> TranscriptionResult | None:
    """Collapse an engine's raw output into one `TranscriptionResult`.

    Engines return a bare string, a single object or mapping with a `text`
    field, or a list of such chunks (one per recognized segment). Chunks are
    joined with spaces. Returns None when there is no text.
    """
    if isinstance(raw, (list, tuple)):
        text = " ".join(t.strip() for t in (_chunk_text(c) for c in raw) if t.strip())
    else:
        text = _chunk_text(raw)
    text = text.strip()
    if not text:
        return None
    if isinstance(raw, Mapping) and "is_final" in raw:
        is_final = bool(raw["is_final"])
    return TranscriptionResult(text=text, is_final=is_final)
