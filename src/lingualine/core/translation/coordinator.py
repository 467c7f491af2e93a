from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from lingualine.core.clock import Clock, SystemClock
from lingualine.core.display.queue import SubtitleDisplayQueue
from lingualine.core.language import get_llm_language_name
from lingualine.core.llm.provider import LLMProvider
from lingualine.core.translation.detection import LanguageDetector, resolve_languages
from lingualine.domain.events import PipelineEvent, PipelineEventType
from lingualine.domain.models import PhraseItem, PhraseStatus, TranslationRequest

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TranslationCoordinator:
    """Issues one translation request per finalized phrase.

    Results are written back by item id into the display queue, never through
    a captured PhraseItem, and only when the response belongs to the latest
    request recorded for that item. After `reset` every outstanding request
    is unknown and its response is dropped. Engine errors still settle the
    item (empty translation) so the display never waits on it.
    """

    queue: SubtitleDisplayQueue
    providers: Mapping[Enum, LLMProvider]
    provider_name: Enum
    clock: Clock = SystemClock()

    source_language: str = "es-ES"
    target_language: str = "en-US"
    system_prompt: str = ""
    context_window: int = 3
    detector: LanguageDetector | None = None

    ui_events: asyncio.Queue[PipelineEvent] | None = None

    _tasks: dict[int, asyncio.Task[None]] = field(default_factory=dict)
    _latest_request: dict[int, int] = field(default_factory=dict)
    _sequence: int = 0

    def __post_init__(self) -> None:
        if self.context_window < 0:
            raise ValueError("context_window must be >= 0")
        if self.provider_name not in self.providers:
            raise ValueError(f"no translation provider registered for {self.provider_name!r}")

    @property
    def provider(self) -> LLMProvider:
        return self.providers[self.provider_name]

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    def set_provider(self, name: Enum) -> None:
        if name not in self.providers:
            raise ValueError(f"no translation provider registered for {name!r}")
        self.provider_name = name

    def set_languages(self, source_language: str, target_language: str) -> None:
        if not source_language or not target_language:
            raise ValueError("languages must be non-empty")
        self.source_language = source_language
        self.target_language = target_language

    def build_context(self, item_id: int) -> str:
        preceding = self.queue.preceding(item_id, self.context_window)
        return " ".join(p.subtitle_text for p in preceding if p.subtitle_text)

    def translate(self, item: PhraseItem) -> asyncio.Task[None] | None:
        existing = self._tasks.get(item.id)
        if existing is not None:
            return existing

        current = self.queue.get(item.id)
        if current is None or current.status != PhraseStatus.PENDING_TRANSLATION:
            logger.debug(f"[Translate] Item {item.id} is not awaiting translation, skipping")
            return None

        languages = resolve_languages(
            current.subtitle_text, self.source_language, self.target_language, self.detector
        )
        if languages.source_language != self.source_language:
            logger.info(
                f"[Translate] Item {current.id} detected as {languages.detected_language}, "
                f"translating {languages.source_language} -> {languages.target_language}"
            )

        self._sequence += 1
        request = TranslationRequest(
            item_id=current.id,
            sequence=self._sequence,
            text=current.subtitle_text,
            source_language=languages.source_language,
            target_language=languages.target_language,
            context=self.build_context(current.id),
        )
        self._latest_request[current.id] = request.sequence

        task = asyncio.create_task(self._run(request, self.provider))
        self._tasks[current.id] = task
        task.add_done_callback(lambda _t, item_id=current.id: self._tasks.pop(item_id, None))
        return task

    def on_translation_result(self, request: TranslationRequest, translation_text: str) -> bool:
        """Apply a response; returns False when it is stale and was ignored."""
        if self._latest_request.get(request.item_id) != request.sequence:
            logger.info(
                f"[Translate] Dropping stale response for item {request.item_id} (seq={request.sequence})"
            )
            return False
        del self._latest_request[request.item_id]
        return self.queue.complete_translation(request.item_id, translation_text)

    def reset(self) -> None:
        # Outstanding tasks keep running; their responses no longer match.
        self._latest_request.clear()

    async def drain(self) -> None:
        """Wait for every outstanding request to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks.values()):
            task.cancel()
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()
        self._latest_request.clear()
        for provider in self.providers.values():
            await provider.close()

    async def _run(self, request: TranslationRequest, provider: LLMProvider) -> None:
        if request.context:
            logger.info(f'[Translate] Item {request.item_id} context: "{request.context}"')
        prompt = self._format_prompt(request)
        started_at = self.clock.now()
        try:
            translation = await provider.translate(
                item_id=request.item_id,
                text=request.text,
                system_prompt=prompt,
                source_language=request.source_language,
                target_language=request.target_language,
                context=request.context,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"[Translate] Item {request.item_id} failed: {exc}")
            if self.on_translation_result(request, ""):
                self._publish(PipelineEventType.TRANSLATION_FAILED, request.item_id, str(exc))
            return

        logger.debug(
            f"[Translate] Item {request.item_id} translated in {self.clock.now() - started_at:.2f}s"
        )
        if self.on_translation_result(request, translation.text):
            self._publish(PipelineEventType.TRANSLATION_DONE, request.item_id, translation)

    def _format_prompt(self, request: TranslationRequest) -> str:
        prompt = self.system_prompt
        prompt = prompt.replace("${sourceName}", get_llm_language_name(request.source_language))
        prompt = prompt.replace("${targetName}", get_llm_language_name(request.target_language))
        return prompt

    def _publish(self, event_type: PipelineEventType, item_id: int, payload: object) -> None:
        if self.ui_events is None:
            return
        self.ui_events.put_nowait(PipelineEvent(type=event_type, item_id=item_id, payload=payload))
