from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from lingualine.app.wiring import (
    build_pipeline,
    create_render_surface,
    create_secret_store,
    create_transcription_engine,
    create_translation_providers,
)
from lingualine.config.settings import AppSettings
from lingualine.core.audio.source import (
    AudioSource,
    SoundDeviceAudioSource,
    resolve_sounddevice_input_device,
)
from lingualine.core.clock import SystemClock
from lingualine.core.render.surface import RenderSurface
from lingualine.domain.errors import AudioCaptureFailure
from lingualine.domain.events import PipelineEvent, PipelineEventType

logger = logging.getLogger(__name__)


async def log_pipeline_events(events: asyncio.Queue[PipelineEvent]) -> None:
    """Consume pipeline events so the queue never grows unbounded."""
    try:
        while True:
            event = await events.get()
            if event.type == PipelineEventType.ERROR:
                logger.warning(f"[Session] Error: {event.payload}")
            elif event.type == PipelineEventType.SESSION_STATE_CHANGED:
                logger.info(f"[Session] State: {event.payload}")
            else:
                logger.debug(f"[Session] {event.type.value} item={event.item_id}")
    except asyncio.CancelledError:
        raise


def close_renderer(renderer: RenderSurface) -> None:
    close = getattr(renderer, "close", None)
    if close is not None:
        close()


@dataclass(slots=True)
class HeadlessMicRunner:
    settings: AppSettings
    renderer: RenderSurface | None = None
    source: AudioSource | None = None
    clock: SystemClock = SystemClock()

    async def run(self) -> int:
        secrets = create_secret_store(self.settings.secrets)
        providers = create_translation_providers(self.settings, secrets=secrets)
        transcriber = create_transcription_engine(self.settings)
        renderer = self.renderer or create_render_surface(self.settings)

        pipeline = build_pipeline(
            self.settings,
            renderer=renderer,
            providers=providers,
            transcriber=transcriber,
            clock=self.clock,
        )

        source = self.source
        if source is None:
            device_idx = None
            try:
                device_idx = resolve_sounddevice_input_device(
                    host_api=self.settings.audio.input_host_api,
                    device=self.settings.audio.input_device,
                )
            except Exception as exc:
                logger.warning(f"[Audio] Could not resolve input device, using default: {exc}")
            try:
                source = SoundDeviceAudioSource(
                    sample_rate_hz=None,  # device default; resampled to the internal rate
                    channels=self.settings.audio.channels,
                    device=device_idx,
                    blocksize=self.settings.audio.blocksize,
                )
            except AudioCaptureFailure as exc:
                logger.error(f"[Audio] {exc}")
                close_renderer(renderer)
                return 2

        events_task = asyncio.create_task(log_pipeline_events(pipeline.ui_events))
        await pipeline.start()
        try:
            await pipeline.run_audio(source)
        except AudioCaptureFailure:
            return 2
        except KeyboardInterrupt:
            return 0
        finally:
            with contextlib.suppress(Exception):
                await source.close()
            await pipeline.stop()
            events_task.cancel()
            await asyncio.gather(events_task, return_exceptions=True)
            close_renderer(renderer)

        return 0
