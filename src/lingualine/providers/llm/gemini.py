from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from lingualine.core.language import get_llm_language_name
from lingualine.domain.errors import TranslationFailure
from lingualine.domain.models import Translation

logger = logging.getLogger(__name__)


class GeminiClient(Protocol):
    async def generate(self, *, prompt: str, system_instruction: str = "") -> str: ...

    async def close(self) -> None: ...


def build_translation_prompt(
    *, text: str, source_language: str, target_language: str, context: str = ""
) -> str:
    source_name = get_llm_language_name(source_language)
    target_name = get_llm_language_name(target_language)
    prompt = (
        f"You are a professional translator. Translate the following text from "
        f"{source_name} to {target_name}.\n\n"
        f'Text to translate:\n"{text}"\n'
    )
    if context:
        prompt += (
            "\nContext for the translation (use this to resolve ambiguities and ensure "
            f'correct meaning):\n"{context}"\n'
        )
    prompt += (
        "\nReturn ONLY the translated text. Do not include any explanations, notes, "
        "or quotes around the output."
    )
    return prompt


@dataclass(slots=True)
class GeminiLLMProvider:
    api_key: str
    model: str = "gemini-2.5-flash-lite"
    client: GeminiClient | None = None
    _internal_client: GeminiClient | None = field(init=False, default=None, repr=False)

    def _get_client(self) -> GeminiClient:
        if self.client is not None:
            return self.client
        if self._internal_client is None:
            self._internal_client = GoogleGenaiGeminiClient(api_key=self.api_key, model=self.model)
        return self._internal_client

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
        prompt = build_translation_prompt(
            text=text,
            source_language=source_language,
            target_language=target_language,
            context=context,
        )
        logger.info(f"[LLM] Gemini request #{item_id}: '{text}' {source_language} -> {target_language}")
        translated = await self._get_client().generate(prompt=prompt, system_instruction=system_prompt)
        logger.info(f"[LLM] Gemini response #{item_id}: '{translated}'")
        return Translation(item_id=item_id, text=translated)

    async def close(self) -> None:
        if self._internal_client is not None:
            await self._internal_client.close()
            self._internal_client = None


@dataclass(slots=True)
class GoogleGenaiGeminiClient:
    api_key: str
    model: str
    _client: Any = field(init=False, default=None, repr=False)

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai  # type: ignore

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, *, prompt: str, system_instruction: str = "") -> str:
        from google.genai import types  # type: ignore

        config = types.GenerateContentConfig(system_instruction=system_instruction or None)
        response = await self._get_client().aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        text = getattr(response, "text", None)
        if not text:
            raise TranslationFailure("Gemini response did not contain text")
        return str(text).strip()

    async def close(self) -> None:
        self._client = None
