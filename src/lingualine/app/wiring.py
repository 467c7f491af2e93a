from __future__ import annotations

import asyncio
import os

from lingualine.config.settings import (
    AppSettings,
    RenderTarget,
    SecretsSettings,
    STTProviderName,
    TranslationProviderName,
)
from lingualine.core.audio.segmenter import AudioSegmenter
from lingualine.core.clock import Clock, SystemClock
from lingualine.core.display.queue import SubtitleDisplayQueue
from lingualine.core.language import get_transcription_language
from lingualine.core.llm.provider import LLMProvider, RetryingLLMProvider, SemaphoreLLMProvider
from lingualine.core.orchestrator.pipeline import SubtitlePipeline
from lingualine.core.render.osc import VrchatOscRenderSurface
from lingualine.core.render.surface import ConsoleRenderSurface, RenderSurface
from lingualine.core.storage.secrets import KeyringSecretStore, SecretStore
from lingualine.core.stt.backend import TranscriptionEngine
from lingualine.core.transcript.accumulator import TranscriptAccumulator
from lingualine.core.translation.coordinator import TranslationCoordinator
from lingualine.core.translation.detection import LangdetectLanguageDetector
from lingualine.domain.events import PipelineEvent
from lingualine.providers.llm.gemini import GeminiLLMProvider
from lingualine.providers.llm.mock import MockLLMProvider


def create_secret_store(settings: SecretsSettings) -> SecretStore:
    return KeyringSecretStore(service_name=settings.service_name)


def _get_secret(
    secrets: SecretStore,
    *,
    key: str,
    env_var: str,
) -> str | None:
    value = secrets.get(key)
    if value:
        return value
    env = os.getenv(env_var)
    if env:
        return env
    return None


def require_secret(
    secrets: SecretStore,
    *,
    key: str,
    env_var: str,
) -> str:
    value = _get_secret(secrets, key=key, env_var=env_var)
    if value:
        return value
    raise ValueError(f"Missing secret `{key}` (or env var {env_var})")


def create_translation_provider(
    name: TranslationProviderName, settings: AppSettings, *, secrets: SecretStore
) -> LLMProvider:
    """One engine wrapped with retry/backoff and the concurrency limit."""
    if name == TranslationProviderName.GEMINI:
        api_key = require_secret(secrets, key="google_api_key", env_var="GOOGLE_API_KEY")
        base: LLMProvider = GeminiLLMProvider(api_key=api_key)
    elif name == TranslationProviderName.MOCK:
        base = MockLLMProvider()
    else:
        raise ValueError(f"Unsupported translation provider: {name}")

    translation = settings.translation
    retrying = RetryingLLMProvider(
        inner=base,
        max_retries=translation.max_retries,
        timeout_s=translation.timeout_s,
        base_delay_s=translation.retry_base_delay_s,
        max_delay_s=translation.retry_max_delay_s,
    )
    return SemaphoreLLMProvider(
        inner=retrying,
        semaphore=asyncio.Semaphore(translation.concurrency_limit),
    )


def create_translation_providers(
    settings: AppSettings, *, secrets: SecretStore
) -> dict[TranslationProviderName, LLMProvider]:
    """The configured engine plus the offline mock, keyed by name."""
    selected = settings.provider.translation
    providers = {selected: create_translation_provider(selected, settings, secrets=secrets)}
    if TranslationProviderName.MOCK not in providers:
        providers[TranslationProviderName.MOCK] = create_translation_provider(
            TranslationProviderName.MOCK, settings, secrets=secrets
        )
    return providers


def create_transcription_engine(settings: AppSettings) -> TranscriptionEngine:
    if settings.provider.stt == STTProviderName.FASTER_WHISPER:
        from lingualine.providers.stt.faster_whisper import FasterWhisperTranscriptionEngine

        return FasterWhisperTranscriptionEngine(
            model_size=settings.whisper.model_size,
            device=settings.whisper.device,
            compute_type=settings.whisper.compute_type,
            beam_size=settings.whisper.beam_size,
        )

    raise ValueError(f"Unsupported STT provider: {settings.provider.stt}")


def create_render_surface(settings: AppSettings) -> RenderSurface:
    if settings.render.target == RenderTarget.OSC:
        osc = settings.render.osc
        return VrchatOscRenderSurface(
            host=osc.host,
            port=osc.port,
            chatbox_address=osc.chatbox_address,
            chatbox_send=osc.chatbox_send,
            chatbox_max_chars=osc.chatbox_max_chars,
        )
    return ConsoleRenderSurface()


def build_pipeline(
    settings: AppSettings,
    *,
    renderer: RenderSurface,
    providers: dict[TranslationProviderName, LLMProvider],
    transcriber: TranscriptionEngine | None = None,
    clock: Clock | None = None,
) -> SubtitlePipeline:
    clock = clock or SystemClock()
    events: asyncio.Queue[PipelineEvent] = asyncio.Queue()

    display = SubtitleDisplayQueue(
        renderer=renderer,
        clock=clock,
        ms_per_character=settings.display.ms_per_character,
    )
    accumulator = TranscriptAccumulator(
        queue=display,
        clock=clock,
        phrase_gap_s=settings.transcript.phrase_gap_s,
        min_fragment_chars=settings.transcript.min_fragment_chars,
    )
    coordinator = TranslationCoordinator(
        queue=display,
        providers=providers,
        provider_name=settings.provider.translation,
        clock=clock,
        source_language=settings.languages.source_language,
        target_language=settings.languages.target_language,
        system_prompt=settings.translation.system_prompt,
        context_window=settings.translation.context_window,
        detector=LangdetectLanguageDetector() if settings.translation.detect_language else None,
        ui_events=events,
    )
    segmenter = AudioSegmenter(
        clock=clock,
        sample_rate_hz=settings.audio.sample_rate_hz,
        silence_threshold=settings.segmenter.silence_threshold,
        silence_duration_s=settings.segmenter.silence_duration_s,
        max_segment_duration_s=settings.segmenter.max_segment_duration_s,
        min_segment_s=settings.segmenter.min_segment_s,
        language_hint=get_transcription_language(settings.languages.source_language),
    )
    return SubtitlePipeline(
        segmenter=segmenter,
        accumulator=accumulator,
        coordinator=coordinator,
        display=display,
        transcriber=transcriber,
        clock=clock,
        segmenter_tick_s=settings.segmenter.tick_s,
        display_tick_s=settings.display.tick_s,
        ui_events=events,
    )
