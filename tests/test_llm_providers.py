from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from lingualine.providers.llm.gemini import GeminiLLMProvider, build_translation_prompt
from lingualine.providers.llm.mock import MockLLMProvider, looks_spanish


@dataclass
class FakeGeminiClient:
    last_call: dict[str, str] | None = None
    closed: bool = False

    async def generate(self, *, prompt: str, system_instruction: str = "") -> str:
        self.last_call = {"prompt": prompt, "system_instruction": system_instruction}
        return "Hello, how are you"

    async def close(self) -> None:
        self.closed = True


async def _no_sleep(_delay: float) -> None:
    return None


def test_translation_prompt_names_languages_and_context():
    prompt = build_translation_prompt(
        text="Hola que tal", source_language="es-ES", target_language="en-US", context="Buenos días"
    )
    assert "from Spanish to English" in prompt
    assert '"Hola que tal"' in prompt
    assert '"Buenos días"' in prompt
    assert prompt.rstrip().endswith("or quotes around the output.")


def test_translation_prompt_without_context_has_no_context_block():
    prompt = build_translation_prompt(text="Hola", source_language="es", target_language="en")
    assert "Context" not in prompt


@pytest.mark.asyncio
async def test_gemini_provider_uses_injected_client():
    fake = FakeGeminiClient()
    provider = GeminiLLMProvider(api_key="k", client=fake)

    out = await provider.translate(
        item_id=7,
        text="Hola que tal",
        system_prompt="Be concise.",
        source_language="es-ES",
        target_language="en-US",
        context="Buenos días",
    )

    assert out.item_id == 7
    assert out.text == "Hello, how are you"
    assert fake.last_call["system_instruction"] == "Be concise."
    assert "Buenos días" in fake.last_call["prompt"]

    await provider.close()
    assert fake.closed is False  # injected clients are owned by the caller


def test_mock_provider_phrase_table_and_fallbacks():
    async def run():
        provider = MockLLMProvider(sleep=_no_sleep)

        async def tr(text: str, source: str, target: str) -> str:
            out = await provider.translate(
                item_id=1,
                text=text,
                system_prompt="",
                source_language=source,
                target_language=target,
            )
            return out.text

        assert await tr("Hola que tal", "es-ES", "en-US") == "Hello, how are you"
        assert await tr("Gracias", "es-ES", "en-US") == "Thank you"
        assert await tr("Mañana iremos", "es-ES", "en-US") == "[EN] Mañana iremos"
        assert await tr("See you later", "en-US", "es-ES") == "[ES] See you later"
        assert await tr("Mañana iremos", "fr", "de") == "[EN] Mañana iremos"
        assert await tr("See you soon", "fr", "de") == "[ES] See you soon"

    asyncio.run(run())


def test_mock_provider_simulates_latency():
    delays: list[float] = []

    async def record(delay: float) -> None:
        delays.append(delay)

    async def run():
        provider = MockLLMProvider(sleep=record)
        await provider.translate(
            item_id=1, text="x y", system_prompt="", source_language="es", target_language="en"
        )

    asyncio.run(run())
    assert delays == [0.5]


def test_looks_spanish():
    assert looks_spanish("¿Dónde está?") is True
    assert looks_spanish("el perro de la casa") is True
    assert looks_spanish("the dog is in the house") is False
