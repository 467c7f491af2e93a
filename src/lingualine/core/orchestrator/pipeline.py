from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from lingualine.core.audio.format import AudioFrame, to_audio_frame
from lingualine.core.audio.segmenter import AudioSegmenter
from lingualine.core.audio.source import AudioSource
from lingualine.core.clock import Clock, SystemClock
from lingualine.core.display.queue import SubtitleDisplayQueue
from lingualine.core.language import get_transcription_language
from lingualine.core.stt.backend import TranscriptionEngine
from lingualine.core.transcript.accumulator import TranscriptAccumulator
from lingualine.core.translation.coordinator import TranslationCoordinator
from lingualine.domain.errors import AudioCaptureFailure, TranscriptionFailure
from lingualine.domain.events import PipelineEvent, PipelineEventType, SessionState
from lingualine.domain.models import PhraseItem, TranslationRequest, Utterance

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubtitlePipeline:
    """Single owner of all streaming state.

    Every mutation happens on the event loop thread: audio frames, transcript
    fragments, translation completions and the two periodic ticks. The only
    suspension points are the engine calls, which run as tasks.
    """

    segmenter: AudioSegmenter
    accumulator: TranscriptAccumulator
    coordinator: TranslationCoordinator
    display: SubtitleDisplayQueue
    transcriber: TranscriptionEngine | None = None
    clock: Clock = SystemClock()

    segmenter_tick_s: float = 0.1
    display_tick_s: float = 0.1

    ui_events: asyncio.Queue[PipelineEvent] = field(default_factory=asyncio.Queue)

    _epoch: int = 0
    _transcription_task: asyncio.Task[None] | None = None
    _loop_tasks: list[asyncio.Task[None]] = field(default_factory=list)
    _running: bool = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def source_language(self) -> str:
        return self.coordinator.source_language

    @property
    def target_language(self) -> str:
        return self.coordinator.target_language

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._loop_tasks = [
            asyncio.create_task(self._run_periodic(self.segmenter_tick_s, self.tick_segmenter)),
            asyncio.create_task(self._run_periodic(self.display_tick_s, self.tick_display)),
        ]
        self._publish(PipelineEventType.SESSION_STATE_CHANGED, payload=SessionState.LISTENING)
        logger.info(
            f"[Pipeline] Started ({self.source_language} -> {self.target_language}, "
            f"provider={self.coordinator.provider_name.value})"
        )

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False

        for task in self._loop_tasks:
            task.cancel()
        await asyncio.gather(*self._loop_tasks, return_exceptions=True)
        self._loop_tasks = []

        if self._transcription_task is not None:
            self._transcription_task.cancel()
            await asyncio.gather(self._transcription_task, return_exceptions=True)
            self._transcription_task = None

        self.reset()
        await self.coordinator.close()
        if self.transcriber is not None:
            await self.transcriber.close()

        self._publish(PipelineEventType.SESSION_STATE_CHANGED, payload=SessionState.STOPPED)
        logger.info("[Pipeline] Stopped")

    # -- inputs ---------------------------------------------------------

    def feed_audio(self, frame: AudioFrame) -> None:
        self.segmenter.feed(frame)

    def on_fragment(self, text: str, is_final: bool) -> list[PhraseItem]:
        finalized = self.accumulator.on_fragment(text, is_final)
        active_id = self.accumulator.active_item_id
        if self.accumulator.last_fragment_accepted and active_id is not None and not is_final:
            active = self.display.get(active_id)
            if active is not None:
                self._publish(PipelineEventType.TRANSCRIPT_PARTIAL, active_id, active.subtitle_text)
        for item in finalized:
            self._publish(PipelineEventType.TRANSCRIPT_FINAL, item.id, item.subtitle_text)
            self.coordinator.translate(item)
        return finalized

    def on_translation_result(self, request: TranslationRequest, translation_text: str) -> bool:
        return self.coordinator.on_translation_result(request, translation_text)

    # -- timers ---------------------------------------------------------

    def tick(self) -> None:
        self.tick_segmenter()
        self.tick_display()

    def tick_segmenter(self) -> None:
        utterance = self.segmenter.tick()
        if utterance is not None:
            self._submit_utterance(utterance)

    def tick_display(self) -> None:
        if self.display.advance():
            item = self.display.current_item
            if item is not None:
                self._publish(PipelineEventType.SUBTITLE_SHOWN, item.id, item)

    # -- control --------------------------------------------------------

    def reset(self) -> None:
        """Drop every phrase and in-flight result; the display goes blank."""
        self._epoch += 1
        if self._transcription_task is not None and not self._transcription_task.done():
            self._transcription_task.cancel()
        self.segmenter.reset()
        self.accumulator.reset()
        self.coordinator.reset()
        self.display.reset()
        self._publish(PipelineEventType.RESET)
        logger.info(f"[Pipeline] Reset (epoch={self._epoch})")

    def set_languages(self, source_language: str, target_language: str) -> None:
        if (source_language, target_language) == (self.source_language, self.target_language):
            return
        self.coordinator.set_languages(source_language, target_language)
        self.segmenter.language_hint = get_transcription_language(source_language)
        self.reset()

    def set_translation_provider(self, name: Enum) -> None:
        if name == self.coordinator.provider_name:
            return
        self.coordinator.set_provider(name)
        self.reset()

    async def drain(self, *, timeout_s: float = 30.0) -> None:
        """Wait for outstanding work, then let the display catch up to the last phrase."""

        async def _wait() -> None:
            if self._transcription_task is not None:
                await asyncio.gather(self._transcription_task, return_exceptions=True)
            await self.coordinator.drain()
            while self.display.current_index < len(self.display) - 1:
                await asyncio.sleep(self.display_tick_s)
                self.tick_display()

        await asyncio.wait_for(_wait(), timeout=timeout_s)

    async def run_audio(self, source: AudioSource) -> None:
        """Feed every frame of `source` until it ends; capture failures are fatal."""
        try:
            async for frame in source.frames():
                self.feed_audio(
                    to_audio_frame(
                        frame.samples,
                        input_sample_rate_hz=frame.sample_rate_hz,
                        target_sample_rate_hz=self.segmenter.sample_rate_hz,
                    )
                )
        except AudioCaptureFailure as exc:
            logger.error(f"[Pipeline] Audio capture failed: {exc}")
            self.segmenter.reset()
            self._publish(PipelineEventType.ERROR, payload=str(exc))
            raise

    # -- internals ------------------------------------------------------

    def _submit_utterance(self, utterance: Utterance) -> None:
        if self.transcriber is None:
            self.segmenter.release()
            return
        self._transcription_task = asyncio.create_task(self._transcribe(utterance, self._epoch))

    async def _transcribe(self, utterance: Utterance, epoch: int) -> None:
        try:
            async for result in self.transcriber.transcribe(utterance):
                if epoch != self._epoch:
                    logger.debug("[Pipeline] Discarding transcript from before reset")
                    continue
                self.on_fragment(result.text, result.is_final)
        except asyncio.CancelledError:
            raise
        except TranscriptionFailure as exc:
            logger.error(f"[Pipeline] Transcription failed: {exc}")
            self._publish(PipelineEventType.ERROR, payload=str(exc))
        finally:
            if epoch == self._epoch:
                self.segmenter.release()

    async def _run_periodic(self, period_s: float, fn) -> None:
        try:
            while True:
                await asyncio.sleep(period_s)
                fn()
        except asyncio.CancelledError:
            raise

    def _publish(
        self, event_type: PipelineEventType, item_id: int | None = None, payload: object | None = None
    ) -> None:
        self.ui_events.put_nowait(PipelineEvent(type=event_type, item_id=item_id, payload=payload))
