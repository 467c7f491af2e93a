"""Spoken-language detection for translation direction.

Speakers switch languages mid-session. Before a phrase is translated its text
is run through a detector: an `auto` source becomes the detected language, and
a phrase already spoken in the target language is translated back the other
way instead of being "translated" into itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from lingualine.core.language import AUTO, base_language, get_language_info

logger = logging.getLogger(__name__)

MIN_DETECTION_CHARS = 10


class LanguageDetector(Protocol):
    def detect(self, text: str) -> str | None:
        """Language tag of `text` (e.g. "es", "zh-CN"), or None when unsure."""


@dataclass(slots=True)
class LangdetectLanguageDetector:
    min_chars: int = MIN_DETECTION_CHARS
    seed: int = 0

    _seeded: bool = False

    def detect(self, text: str) -> str | None:
        text = text.strip()
        if len(text) < self.min_chars:
            return None

        from langdetect import DetectorFactory, detect
        from langdetect.lang_detect_exception import LangDetectException

        if not self._seeded:
            # langdetect samples randomly; a fixed seed keeps results stable.
            DetectorFactory.seed = self.seed
            self._seeded = True

        try:
            code = detect(text)
        except LangDetectException as exc:
            logger.debug(f"[Detect] No language for {text!r}: {exc}")
            return None
        return normalize_detected_code(code)


def normalize_detected_code(code: str) -> str:
    """Map detector output ("zh-cn", "pt") onto the language table's tags."""
    if "-" in code:
        head, _, region = code.partition("-")
        tagged = f"{head.lower()}-{region.upper()}"
        info = get_language_info(tagged)
        if info is not None and info.code == tagged:
            return tagged
        return head.lower()
    return code.lower()


@dataclass(frozen=True, slots=True)
class ResolvedLanguages:
    source_language: str
    target_language: str
    detected_language: str | None = None


def resolve_languages(
    text: str,
    source_language: str,
    target_language: str,
    detector: LanguageDetector | None,
) -> ResolvedLanguages:
    """Pick the translation direction for one phrase.

    `auto` resolves to the detected language (and stays `auto` when detection
    is inconclusive). With a fixed source, a phrase detected as the target
    language flips the direction; any other detection result is ignored.
    """
    if detector is None:
        return ResolvedLanguages(source_language, target_language)

    detected = detector.detect(text)
    if detected is None:
        return ResolvedLanguages(source_language, target_language)

    if source_language == AUTO:
        return ResolvedLanguages(detected, target_language, detected)

    detected_base = base_language(detected)
    if detected_base != base_language(source_language) and detected_base == base_language(
        target_language
    ):
        return ResolvedLanguages(target_language, source_language, detected)

    return ResolvedLanguages(source_language, target_language, detected)
