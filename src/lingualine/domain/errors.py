from __future__ import annotations

import re


class LinguaLineError(Exception):
    """Base class for pipeline errors."""


class TranscriptionFailure(LinguaLineError):
    """The transcription engine failed (distinct from "no speech detected")."""


class TranslationFailure(LinguaLineError):
    """The translation engine failed after its own retries (transport, quota, provider)."""


class AudioCaptureFailure(LinguaLineError):
    """The audio device could not be opened or stopped delivering audio."""


# Engine artifacts such as "[Music]", "[Música]" or "(applause)".
_ANNOTATION_RE = re.compile(r"^\[.*\]$|^\(.*\)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_fragment_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def is_transcription_noise(text: str, *, min_chars: int = 2) -> bool:
    """True for fragments that are engine artifacts rather than speech."""
    clean = normalize_fragment_text(text)
    if len(clean) < min_chars:
        return True
    return bool(_ANNOTATION_RE.match(clean))
