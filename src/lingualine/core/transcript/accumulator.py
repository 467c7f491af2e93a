from __future__ import annotations

import logging
from dataclasses import dataclass

from lingualine.core.clock import Clock
from lingualine.core.display.queue import SubtitleDisplayQueue
from lingualine.domain.errors import is_transcription_noise, normalize_fragment_text
from lingualine.domain.models import PhraseItem, PhraseStatus, TranscriptFragment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TranscriptAccumulator:
    """Groups transcript fragments into phrases.

    A fragment arriving more than `phrase_gap_s` after the previous one (or
    after the active phrase was finalized) opens a new PhraseItem; otherwise it
    replaces the active phrase's running text. `on_fragment` returns the items
    that became ready for translation so the caller can hand them on.
    """

    queue: SubtitleDisplayQueue
    clock: Clock
    phrase_gap_s: float = 1.0
    min_fragment_chars: int = 2

    _last_arrival_at: float | None = None
    _active_item_id: int | None = None
    _last_accepted: bool = False

    def __post_init__(self) -> None:
        if self.phrase_gap_s <= 0:
            raise ValueError("phrase_gap_s must be > 0")
        if self.min_fragment_chars < 1:
            raise ValueError("min_fragment_chars must be >= 1")

    @property
    def active_item_id(self) -> int | None:
        return self._active_item_id

    @property
    def last_fragment_accepted(self) -> bool:
        """Whether the most recent fragment passed the noise filter."""
        return self._last_accepted

    def on_fragment(self, text: str, is_final: bool) -> list[PhraseItem]:
        fragment = TranscriptFragment(
            text=normalize_fragment_text(text), is_final=is_final, arrival_time=self.clock.now()
        )
        return self.accept(fragment)

    def accept(self, fragment: TranscriptFragment) -> list[PhraseItem]:
        if is_transcription_noise(fragment.text, min_chars=self.min_fragment_chars):
            self._last_accepted = False
            logger.debug(f"[Accumulator] Ignoring noise fragment: {fragment.text!r}")
            return []

        self._last_accepted = True
        text = normalize_fragment_text(fragment.text)
        gap_exceeded = (
            self._last_arrival_at is None
            or fragment.arrival_time - self._last_arrival_at > self.phrase_gap_s
        )
        self._last_arrival_at = fragment.arrival_time

        finalized: list[PhraseItem] = []
        active = self._active_item()

        if active is not None and gap_exceeded:
            # Interim text that never got a final fragment; settle it so the
            # display queue can move past it.
            logger.info(f"[Accumulator] Phrase {active.id} abandoned mid-utterance, finalizing")
            finalized.append(self._finalize(active))
            active = None

        if active is None:
            active = self.queue.create_item(text)
            self._active_item_id = active.id
            logger.debug(f"[Accumulator] New phrase {active.id}: {text!r}")
        else:
            self.queue.update_text(active.id, text)

        if fragment.is_final:
            finalized.append(self._finalize(active))

        return finalized

    def reset(self) -> None:
        self._last_arrival_at = None
        self._active_item_id = None
        self._last_accepted = False

    def _active_item(self) -> PhraseItem | None:
        if self._active_item_id is None:
            return None
        item = self.queue.get(self._active_item_id)
        if item is None or item.status != PhraseStatus.PENDING_TRANSCRIPTION:
            self._active_item_id = None
            return None
        return item

    def _finalize(self, item: PhraseItem) -> PhraseItem:
        self.queue.mark_pending_translation(item.id)
        if self._active_item_id == item.id:
            self._active_item_id = None
        return item
