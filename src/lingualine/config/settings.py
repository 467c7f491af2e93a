from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from lingualine.core.language import is_supported_language


class TranslationProviderName(str, Enum):
    GEMINI = "gemini"
    MOCK = "mock"


class STTProviderName(str, Enum):
    FASTER_WHISPER = "faster_whisper"


class RenderTarget(str, Enum):
    CONSOLE = "console"
    OSC = "osc"


@dataclass(slots=True)
class ProviderSettings:
    translation: TranslationProviderName = TranslationProviderName.GEMINI
    stt: STTProviderName = STTProviderName.FASTER_WHISPER

    def validate(self) -> None:
        if not isinstance(self.translation, TranslationProviderName):
            raise ValueError("invalid translation provider")
        if not isinstance(self.stt, STTProviderName):
            raise ValueError("invalid stt provider")


@dataclass(slots=True)
class LanguageSettings:
    source_language: str = "es-ES"
    target_language: str = "en-US"

    def validate(self) -> None:
        if not self.source_language:
            raise ValueError("source_language must be non-empty")
        if not self.target_language:
            raise ValueError("target_language must be non-empty")
        if not is_supported_language(self.source_language):
            raise ValueError(f"unsupported source_language: {self.source_language}")
        if self.target_language == "auto" or not is_supported_language(self.target_language):
            raise ValueError(f"unsupported target_language: {self.target_language}")


@dataclass(slots=True)
class AudioSettings:
    sample_rate_hz: int = 16000
    channels: int = 1
    blocksize: int = 4096
    input_host_api: str = ""
    input_device: str = ""

    def validate(self) -> None:
        if self.sample_rate_hz not in (8000, 16000):
            raise ValueError("sample_rate_hz must be 8000 or 16000")
        if self.channels <= 0:
            raise ValueError("channels must be > 0")
        if self.blocksize <= 0:
            raise ValueError("blocksize must be > 0")
        if self.input_host_api is None:
            raise ValueError("input_host_api must be a string")
        if self.input_device is None:
            raise ValueError("input_device must be a string")


@dataclass(slots=True)
class SegmenterSettings:
    silence_threshold: float = 0.002
    silence_duration_s: float = 0.5
    max_segment_duration_s: float = 5.0
    min_segment_s: float = 0.2
    tick_s: float = 0.1

    def validate(self) -> None:
        if self.silence_threshold < 0:
            raise ValueError("silence_threshold must be >= 0")
        if self.silence_duration_s <= 0:
            raise ValueError("silence_duration_s must be > 0")
        if self.max_segment_duration_s <= 0:
            raise ValueError("max_segment_duration_s must be > 0")
        if self.min_segment_s < 0:
            raise ValueError("min_segment_s must be >= 0")
        if self.tick_s <= 0:
            raise ValueError("tick_s must be > 0")


@dataclass(slots=True)
class TranscriptSettings:
    phrase_gap_s: float = 1.0
    min_fragment_chars: int = 2

    def validate(self) -> None:
        if self.phrase_gap_s <= 0:
            raise ValueError("phrase_gap_s must be > 0")
        if self.min_fragment_chars < 1:
            raise ValueError("min_fragment_chars must be >= 1")


@dataclass(slots=True)
class TranslationSettings:
    context_window: int = 3
    timeout_s: float = 10.0
    max_retries: int = 3
    retry_base_delay_s: float = 1.0
    retry_max_delay_s: float = 30.0
    concurrency_limit: int = 2
    system_prompt: str = ""
    detect_language: bool = True

    def validate(self) -> None:
        if self.context_window < 0:
            raise ValueError("context_window must be >= 0")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_base_delay_s < 0 or self.retry_max_delay_s < 0:
            raise ValueError("retry delays must be >= 0")
        if self.concurrency_limit <= 0:
            raise ValueError("concurrency_limit must be > 0")


@dataclass(slots=True)
class DisplaySettings:
    ms_per_character: int = 50
    tick_s: float = 0.1

    def validate(self) -> None:
        if self.ms_per_character < 0:
            raise ValueError("ms_per_character must be >= 0")
        if self.tick_s <= 0:
            raise ValueError("tick_s must be > 0")


@dataclass(slots=True)
class WhisperSettings:
    model_size: str = "small"
    device: str = "cpu"
    compute_type: str = "int8"
    beam_size: int = 1

    def validate(self) -> None:
        if not self.model_size:
            raise ValueError("model_size must be non-empty")
        if not self.device:
            raise ValueError("device must be non-empty")
        if not self.compute_type:
            raise ValueError("compute_type must be non-empty")
        if self.beam_size <= 0:
            raise ValueError("beam_size must be > 0")


@dataclass(slots=True)
class OSCSettings:
    host: str = "127.0.0.1"
    port: int = 9000
    chatbox_address: str = "/chatbox/input"
    chatbox_send: bool = True
    chatbox_max_chars: int = 144

    def validate(self) -> None:
        if not self.host:
            raise ValueError("host must be non-empty")
        if not (0 < self.port <= 65535):
            raise ValueError("port must be in 1..65535")
        if not self.chatbox_address or not self.chatbox_address.startswith("/"):
            raise ValueError("chatbox_address must start with '/'")
        if self.chatbox_max_chars <= 0:
            raise ValueError("chatbox_max_chars must be > 0")


@dataclass(slots=True)
class RenderSettings:
    target: RenderTarget = RenderTarget.CONSOLE
    osc: OSCSettings = field(default_factory=OSCSettings)

    def validate(self) -> None:
        if not isinstance(self.target, RenderTarget):
            raise ValueError("invalid render target")
        self.osc.validate()


@dataclass(slots=True)
class SecretsSettings:
    service_name: str = "lingualine"

    def validate(self) -> None:
        if not self.service_name:
            raise ValueError("service_name must be non-empty")


@dataclass(slots=True)
class AppSettings:
    provider: ProviderSettings = field(default_factory=ProviderSettings)
    languages: LanguageSettings = field(default_factory=LanguageSettings)
    audio: AudioSettings = field(default_factory=AudioSettings)
    segmenter: SegmenterSettings = field(default_factory=SegmenterSettings)
    transcript: TranscriptSettings = field(default_factory=TranscriptSettings)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    whisper: WhisperSettings = field(default_factory=WhisperSettings)
    render: RenderSettings = field(default_factory=RenderSettings)
    secrets: SecretsSettings = field(default_factory=SecretsSettings)

    def validate(self) -> None:
        self.provider.validate()
        self.languages.validate()
        self.audio.validate()
        self.segmenter.validate()
        self.transcript.validate()
        self.translation.validate()
        self.display.validate()
        self.whisper.validate()
        self.render.validate()
        self.secrets.validate()


def to_dict(settings: AppSettings) -> dict[str, Any]:
    return {
        "provider": {
            "translation": settings.provider.translation.value,
            "stt": settings.provider.stt.value,
        },
        "languages": {
            "source_language": settings.languages.source_language,
            "target_language": settings.languages.target_language,
        },
        "audio": {
            "sample_rate_hz": settings.audio.sample_rate_hz,
            "channels": settings.audio.channels,
            "blocksize": settings.audio.blocksize,
            "input_host_api": settings.audio.input_host_api,
            "input_device": settings.audio.input_device,
        },
        "segmenter": {
            "silence_threshold": settings.segmenter.silence_threshold,
            "silence_duration_s": settings.segmenter.silence_duration_s,
            "max_segment_duration_s": settings.segmenter.max_segment_duration_s,
            "min_segment_s": settings.segmenter.min_segment_s,
            "tick_s": settings.segmenter.tick_s,
        },
        "transcript": {
            "phrase_gap_s": settings.transcript.phrase_gap_s,
            "min_fragment_chars": settings.transcript.min_fragment_chars,
        },
        "translation": {
            "context_window": settings.translation.context_window,
            "timeout_s": settings.translation.timeout_s,
            "max_retries": settings.translation.max_retries,
            "retry_base_delay_s": settings.translation.retry_base_delay_s,
            "retry_max_delay_s": settings.translation.retry_max_delay_s,
            "concurrency_limit": settings.translation.concurrency_limit,
            "system_prompt": settings.translation.system_prompt,
            "detect_language": settings.translation.detect_language,
        },
        "display": {
            "ms_per_character": settings.display.ms_per_character,
            "tick_s": settings.display.tick_s,
        },
        "whisper": {
            "model_size": settings.whisper.model_size,
            "device": settings.whisper.device,
            "compute_type": settings.whisper.compute_type,
            "beam_size": settings.whisper.beam_size,
        },
        "render": {
            "target": settings.render.target.value,
            "osc": {
                "host": settings.render.osc.host,
                "port": settings.render.osc.port,
                "chatbox_address": settings.render.osc.chatbox_address,
                "chatbox_send": settings.render.osc.chatbox_send,
                "chatbox_max_chars": settings.render.osc.chatbox_max_chars,
            },
        },
        "secrets": {"service_name": settings.secrets.service_name},
    }


def _parse_translation_provider(value: object) -> TranslationProviderName:
    """Parse the translation provider, falling back to GEMINI for legacy/invalid values."""
    try:
        return TranslationProviderName(value)
    except ValueError:
        return TranslationProviderName.GEMINI


def _parse_stt_provider(value: object) -> STTProviderName:
    try:
        return STTProviderName(value)
    except ValueError:
        return STTProviderName.FASTER_WHISPER


def _parse_render_target(value: object) -> RenderTarget:
    try:
        return RenderTarget(value)
    except ValueError:
        return RenderTarget.CONSOLE


def _str_or_empty(value: object) -> str:
    return str(value) if value is not None else ""


def from_dict(data: dict[str, Any]) -> AppSettings:
    provider_data = data.get("provider") or {}
    languages_data = data.get("languages") or {}
    audio_data = data.get("audio") or {}
    segmenter_data = data.get("segmenter") or {}
    transcript_data = data.get("transcript") or {}
    translation_data = data.get("translation") or {}
    display_data = data.get("display") or {}
    whisper_data = data.get("whisper") or {}
    render_data = data.get("render") or {}
    osc_data = render_data.get("osc") or {}
    secrets_data = data.get("secrets") or {}

    settings = AppSettings(
        provider=ProviderSettings(
            translation=_parse_translation_provider(
                provider_data.get("translation", TranslationProviderName.GEMINI.value)
            ),
            stt=_parse_stt_provider(provider_data.get("stt", STTProviderName.FASTER_WHISPER.value)),
        ),
        languages=LanguageSettings(
            source_language=str(languages_data.get("source_language", "es-ES")),
            target_language=str(languages_data.get("target_language", "en-US")),
        ),
        audio=AudioSettings(
            sample_rate_hz=int(audio_data.get("sample_rate_hz", 16000)),
            channels=int(audio_data.get("channels", 1)),
            blocksize=int(audio_data.get("blocksize", 4096)),
            input_host_api=_str_or_empty(audio_data.get("input_host_api")),
            input_device=_str_or_empty(audio_data.get("input_device")),
        ),
        segmenter=SegmenterSettings(
            silence_threshold=float(segmenter_data.get("silence_threshold", 0.002)),
            silence_duration_s=float(segmenter_data.get("silence_duration_s", 0.5)),
            max_segment_duration_s=float(segmenter_data.get("max_segment_duration_s", 5.0)),
            min_segment_s=float(segmenter_data.get("min_segment_s", 0.2)),
            tick_s=float(segmenter_data.get("tick_s", 0.1)),
        ),
        transcript=TranscriptSettings(
            phrase_gap_s=float(transcript_data.get("phrase_gap_s", 1.0)),
            min_fragment_chars=int(transcript_data.get("min_fragment_chars", 2)),
        ),
        translation=TranslationSettings(
            context_window=int(translation_data.get("context_window", 3)),
            timeout_s=float(translation_data.get("timeout_s", 10.0)),
            max_retries=int(translation_data.get("max_retries", 3)),
            retry_base_delay_s=float(translation_data.get("retry_base_delay_s", 1.0)),
            retry_max_delay_s=float(translation_data.get("retry_max_delay_s", 30.0)),
            concurrency_limit=int(translation_data.get("concurrency_limit", 2)),
            system_prompt=str(translation_data.get("system_prompt", "")),
            detect_language=bool(translation_data.get("detect_language", True)),
        ),
        display=DisplaySettings(
            ms_per_character=int(display_data.get("ms_per_character", 50)),
            tick_s=float(display_data.get("tick_s", 0.1)),
        ),
        whisper=WhisperSettings(
            model_size=str(whisper_data.get("model_size", "small")),
            device=str(whisper_data.get("device", "cpu")),
            compute_type=str(whisper_data.get("compute_type", "int8")),
            beam_size=int(whisper_data.get("beam_size", 1)),
        ),
        render=RenderSettings(
            target=_parse_render_target(render_data.get("target", RenderTarget.CONSOLE.value)),
            osc=OSCSettings(
                host=str(osc_data.get("host", "127.0.0.1")),
                port=int(osc_data.get("port", 9000)),
                chatbox_address=str(osc_data.get("chatbox_address", "/chatbox/input")),
                chatbox_send=bool(osc_data.get("chatbox_send", True)),
                chatbox_max_chars=int(osc_data.get("chatbox_max_chars", 144)),
            ),
        ),
        secrets=SecretsSettings(service_name=str(secrets_data.get("service_name", "lingualine"))),
    )
    settings.validate()
    return settings


def load_settings(path: Path) -> AppSettings:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("settings file must contain a JSON object")
    return from_dict(raw)


def save_settings(path: Path, settings: AppSettings) -> None:
    settings.validate()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(to_dict(settings), ensure_ascii=False, indent=2), encoding="utf-8")
