"""Language tags used by the pipeline.

Settings carry BCP-47 style tags ("es-ES", "zh-TW", "auto"). Translation
prompts want an English language name; the transcription engine wants a bare
ISO 639-1 code (or nothing, to auto-detect).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

AUTO = "auto"


@dataclass(frozen=True, slots=True)
class LanguageInfo:
    code: str  # ISO 639-1, or "zh-CN"/"zh-TW"
    name: str  # English name used in prompts


SUPPORTED_LANGUAGES: dict[str, LanguageInfo] = {
    "ar": LanguageInfo(code="ar", name="Arabic"),
    "bg": LanguageInfo(code="bg", name="Bulgarian"),
    "cs": LanguageInfo(code="cs", name="Czech"),
    "da": LanguageInfo(code="da", name="Danish"),
    "de": LanguageInfo(code="de", name="German"),
    "el": LanguageInfo(code="el", name="Greek"),
    "en": LanguageInfo(code="en", name="English"),
    "es": LanguageInfo(code="es", name="Spanish"),
    "et": LanguageInfo(code="et", name="Estonian"),
    "fi": LanguageInfo(code="fi", name="Finnish"),
    "fr": LanguageInfo(code="fr", name="French"),
    "he": LanguageInfo(code="he", name="Hebrew"),
    "hi": LanguageInfo(code="hi", name="Hindi"),
    "hr": LanguageInfo(code="hr", name="Croatian"),
    "hu": LanguageInfo(code="hu", name="Hungarian"),
    "id": LanguageInfo(code="id", name="Indonesian"),
    "it": LanguageInfo(code="it", name="Italian"),
    "ja": LanguageInfo(code="ja", name="Japanese"),
    "ko": LanguageInfo(code="ko", name="Korean"),
    "lt": LanguageInfo(code="lt", name="Lithuanian"),
    "lv": LanguageInfo(code="lv", name="Latvian"),
    "ms": LanguageInfo(code="ms", name="Malay"),
    "nl": LanguageInfo(code="nl", name="Dutch"),
    "no": LanguageInfo(code="no", name="Norwegian"),
    "pl": LanguageInfo(code="pl", name="Polish"),
    "pt": LanguageInfo(code="pt", name="Portuguese"),
    "ro": LanguageInfo(code="ro", name="Romanian"),
    "ru": LanguageInfo(code="ru", name="Russian"),
    "sk": LanguageInfo(code="sk", name="Slovak"),
    "sl": LanguageInfo(code="sl", name="Slovenian"),
    "sr": LanguageInfo(code="sr", name="Serbian"),
    "sv": LanguageInfo(code="sv", name="Swedish"),
    "th": LanguageInfo(code="th", name="Thai"),
    "tr": LanguageInfo(code="tr", name="Turkish"),
    "uk": LanguageInfo(code="uk", name="Ukrainian"),
    "vi": LanguageInfo(code="vi", name="Vietnamese"),
    "zh-CN": LanguageInfo(code="zh-CN", name="Chinese (Simplified)"),
    "zh-TW": LanguageInfo(code="zh-TW", name="Chinese (Traditional)"),
}


def get_language_info(code: str) -> LanguageInfo | None:
    """Get language info by tag. Returns None if not supported."""
    if code in SUPPORTED_LANGUAGES:
        return SUPPORTED_LANGUAGES[code]
    normalized = code.split("-")[0].lower()
    return SUPPORTED_LANGUAGES.get(normalized)


def get_llm_language_name(code: str) -> str:
    """Human-readable name for prompts; unknown tags are passed through."""
    if code == AUTO:
        return "the detected language"
    info = get_language_info(code)
    return info.name if info else code


def get_transcription_language(code: str) -> str | None:
    """Base code for the speech engine ("es-ES" -> "es"); None means auto-detect."""
    if not code or code == AUTO:
        return None
    return code.split("-")[0].lower()


def base_language(code: str) -> str:
    return code.split("-")[0].lower()


def get_all_language_options() -> Sequence[tuple[str, str]]:
    """All supported languages as (code, name), sorted by name."""
    return tuple(
        sorted(((info.code, info.name) for info in SUPPORTED_LANGUAGES.values()), key=lambda x: x[1])
    )


def is_supported_language(code: str) -> bool:
    return code == AUTO or get_language_info(code) is not None
