from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import TextIO

from lingualine.app.headless_mic import close_renderer, log_pipeline_events
from lingualine.app.wiring import (
    build_pipeline,
    create_render_surface,
    create_secret_store,
    create_translation_providers,
)
from lingualine.config.settings import AppSettings, TranslationProviderName
from lingualine.core.clock import SystemClock
from lingualine.core.llm.provider import LLMProvider
from lingualine.core.orchestrator.pipeline import SubtitlePipeline
from lingualine.core.render.surface import RenderSurface

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HeadlessStdinRunner:
    """Each input line is one final transcript fragment; no audio involved."""

    settings: AppSettings
    providers: dict[TranslationProviderName, LLMProvider] | None = None
    renderer: RenderSurface | None = None
    stream: TextIO = field(default_factory=lambda: sys.stdin)
    clock: SystemClock = SystemClock()
    drain_timeout_s: float = 60.0

    async def run(self) -> int:
        providers = self.providers
        if providers is None:
            secrets = create_secret_store(self.settings.secrets)
            providers = create_translation_providers(self.settings, secrets=secrets)
        renderer = self.renderer or create_render_surface(self.settings)

        pipeline = build_pipeline(
            self.settings, renderer=renderer, providers=providers, clock=self.clock
        )
        events_task = asyncio.create_task(log_pipeline_events(pipeline.ui_events))
        await pipeline.start()
        try:
            await self._stdin_loop(pipeline)
            await pipeline.drain(timeout_s=self.drain_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("[Session] Timed out waiting for outstanding translations")
        except KeyboardInterrupt:
            return 0
        finally:
            await pipeline.stop()
            events_task.cancel()
            await asyncio.gather(events_task, return_exceptions=True)
            close_renderer(renderer)

        return 0

    async def _stdin_loop(self, pipeline: SubtitlePipeline) -> None:
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, self.stream.readline)
            if not line:
                return
            text = line.strip()
            if not text:
                continue
            pipeline.on_fragment(text, True)
