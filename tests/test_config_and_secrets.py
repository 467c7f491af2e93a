from __future__ import annotations

import json

import pytest

from lingualine.config.settings import (
    AppSettings,
    AudioSettings,
    LanguageSettings,
    OSCSettings,
    RenderSettings,
    RenderTarget,
    SegmenterSettings,
    TranslationProviderName,
    TranslationSettings,
    from_dict,
    load_settings,
    save_settings,
    to_dict,
)
from lingualine.core.storage.secrets import InMemorySecretStore, mask_secret


def test_settings_roundtrip(tmp_path):
    path = tmp_path / "settings.json"
    settings = AppSettings()
    settings.provider.translation = TranslationProviderName.MOCK
    settings.render.target = RenderTarget.OSC
    settings.translation.system_prompt = "Translate ${sourceName} to ${targetName}."
    save_settings(path, settings)

    loaded = load_settings(path)
    assert loaded == settings


def test_defaults():
    settings = AppSettings()
    assert settings.languages.source_language == "es-ES"
    assert settings.segmenter.silence_threshold == 0.002
    assert settings.segmenter.silence_duration_s == 0.5
    assert settings.segmenter.max_segment_duration_s == 5.0
    assert settings.transcript.phrase_gap_s == 1.0
    assert settings.translation.context_window == 3
    assert settings.translation.max_retries == 3
    assert settings.display.ms_per_character == 50


def test_missing_sections_fall_back_to_defaults():
    assert from_dict({}) == AppSettings()


def test_unknown_provider_falls_back_to_default():
    data = to_dict(AppSettings())
    data["provider"]["translation"] = "deepl"
    data["render"]["target"] = "hologram"

    settings = from_dict(data)
    assert settings.provider.translation == TranslationProviderName.GEMINI
    assert settings.render.target == RenderTarget.CONSOLE


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


@pytest.mark.parametrize(
    "settings",
    [
        AppSettings(audio=AudioSettings(sample_rate_hz=123)),
        AppSettings(segmenter=SegmenterSettings(silence_duration_s=0)),
        AppSettings(translation=TranslationSettings(concurrency_limit=0)),
        AppSettings(languages=LanguageSettings(target_language="auto")),
        AppSettings(languages=LanguageSettings(source_language="xx-YY")),
        AppSettings(render=RenderSettings(osc=OSCSettings(port=0))),
    ],
)
def test_settings_validation_rejects_invalid_values(settings):
    with pytest.raises(ValueError):
        settings.validate()


def test_mask_secret():
    assert mask_secret("sk-123456") == "sk-****"
    assert mask_secret("abc", unmasked_prefix=3) == "***"
    assert mask_secret("") == ""


def test_in_memory_secret_store():
    store = InMemorySecretStore({"google_api_key": "k1"})
    assert store.get("google_api_key") == "k1"
    store.set("google_api_key", "k2")
    assert store.get("google_api_key") == "k2"
    store.delete("google_api_key")
    store.delete("never_set")
    assert store.get("google_api_key") is None


def test_language_detection_toggle_round_trips():
    settings = AppSettings()
    assert settings.translation.detect_language is True

    settings.translation.detect_language = False
    assert from_dict(to_dict(settings)).translation.detect_language is False
