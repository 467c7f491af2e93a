from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import numpy as np

from lingualine.app.headless_mic import HeadlessMicRunner
from lingualine.config.settings import AppSettings, TranslationProviderName
from lingualine.core.audio.format import AudioFrame
from lingualine.domain.errors import AudioCaptureFailure


@dataclass(slots=True)
class FakeRenderer:
    pairs: list[tuple[str, str]] = field(default_factory=list)

    def display(self, subtitle_text: str, translation_text: str) -> None:
        self.pairs.append((subtitle_text, translation_text))


@dataclass(slots=True)
class FakeSource:
    frame_count: int = 3
    fail: bool = False
    closed: bool = False

    async def frames(self):
        for _ in range(self.frame_count):
            yield AudioFrame(samples=np.zeros((480, 1), dtype=np.float32), sample_rate_hz=48000)
            await asyncio.sleep(0)
        if self.fail:
            raise AudioCaptureFailure("device lost")

    async def close(self) -> None:
        self.closed = True


def _settings() -> AppSettings:
    settings = AppSettings()
    settings.provider.translation = TranslationProviderName.MOCK
    return settings


def test_mic_runner_returns_zero_when_source_ends():
    source = FakeSource()
    renderer = FakeRenderer()
    runner = HeadlessMicRunner(settings=_settings(), renderer=renderer, source=source)

    assert asyncio.run(runner.run()) == 0
    assert source.closed is True
    assert renderer.pairs[-1] == ("", "")


def test_mic_runner_exits_with_error_on_capture_failure():
    source = FakeSource(fail=True)
    runner = HeadlessMicRunner(settings=_settings(), renderer=FakeRenderer(), source=source)

    assert asyncio.run(runner.run()) == 2
    assert source.closed is True
