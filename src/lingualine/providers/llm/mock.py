"""Offline translation engine for demos and tests.

Looks the phrase up in a small table (exact match first, then substring in
either direction). Anything else is echoed back tagged with the target side,
e.g. "[EN] Hola amigos".
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping

from lingualine.core.language import base_language
from lingualine.domain.models import Translation

logger = logging.getLogger(__name__)

DEFAULT_PHRASES: dict[str, dict[str, str]] = {
    "hola": {"en": "Hello", "es": "Hola"},
    "hola que tal": {"en": "Hello, how are you", "es": "Hola, qué tal"},
    "buenos días": {"en": "Good morning", "es": "Buenos días"},
    "buenas noches": {"en": "Good night", "es": "Buenas noches"},
    "gracias": {"en": "Thank you", "es": "Gracias"},
    "muchas gracias": {"en": "Thank you very much", "es": "Muchas gracias"},
    "adiós": {"en": "Goodbye", "es": "Adiós"},
    "hello": {"es": "Hola", "en": "Hello"},
    "how are you": {"es": "¿Cómo estás?", "en": "How are you"},
    "thank you": {"es": "Gracias", "en": "Thank you"},
    "good morning": {"es": "Buenos días", "en": "Good morning"},
}

_SPANISH_CHARS = re.compile(r"[ñáéíóúü]", re.IGNORECASE)
_SPANISH_WORDS = re.compile(
    r"\b(el|la|los|las|de|en|con|por|para|que|es|está|son|del|al)\b", re.IGNORECASE
)
_ENGLISH_WORDS = re.compile(
    r"\b(the|and|or|of|in|to|for|with|is|are|was|were|this|that)\b", re.IGNORECASE
)


def looks_spanish(text: str) -> bool:
    if _SPANISH_CHARS.search(text):
        return True
    return bool(_SPANISH_WORDS.search(text)) and not _ENGLISH_WORDS.search(text)


@dataclass(slots=True)
class MockLLMProvider:
    delay_s: float = 0.5
    phrases: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: dict(DEFAULT_PHRASES))
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def lookup(self, text: str, target_language: str) -> str | None:
        key = text.lower().strip()
        target = base_language(target_language)
        exact = self.phrases.get(key)
        if exact is not None and target in exact:
            return exact[target]
        for phrase, translations in self.phrases.items():
            if (phrase in key or key in phrase) and target in translations:
                return translations[target]
        return None

    def fallback(self, text: str, source_language: str, target_language: str) -> str:
        source = base_language(source_language)
        target = base_language(target_language)
        if source == "es" and target == "en":
            return f"[EN] {text}"
        if source == "en" and target == "es":
            return f"[ES] {text}"
        return f"[EN] {text}" if looks_spanish(text) else f"[ES] {text}"

    async def translate(
        self,
        *,
        item_id: int,
        text: str,
        system_prompt: str,
        source_language: str,
        target_language: str,
        context: str = "",
    ) -> Translation:
        if self.delay_s > 0:
            await self.sleep(self.delay_s)
        logger.debug(f"[LLM] Mock request #{item_id}: '{text}' {source_language} -> {target_language}")
        translated = self.lookup(text, target_language)
        if translated is None:
            translated = self.fallback(text, source_language, target_language)
        return Translation(item_id=item_id, text=translated)

    async def close(self) -> None:
        pass
