from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lingualine.core.clock import Clock
from lingualine.core.render.surface import RenderSurface
from lingualine.domain.models import PhraseItem, PhraseStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubtitleDisplayQueue:
    """Ordered phrase sequence with a reading-speed paced display pointer.

    Items are append-only and addressed by id; the pointer only moves forward,
    only off an item whose translation has settled and only into an item whose
    translation is ready. Each item stays on screen for longer than
    `len(subtitle_text) * ms_per_character`; if either translation is still
    outstanding the current item simply stays longer.
    """

    renderer: RenderSurface
    clock: Clock
    ms_per_character: int = 50

    _items: list[PhraseItem] = field(default_factory=list)
    _by_id: dict[int, PhraseItem] = field(default_factory=dict)
    _current_index: int = -1
    _next_id: int = 0  # never reset: ids stay unique for the process lifetime
    _last_rendered: tuple[str, str] | None = None

    def __post_init__(self) -> None:
        if self.ms_per_character < 0:
            raise ValueError("ms_per_character must be >= 0")

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[PhraseItem, ...]:
        return tuple(self._items)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_item(self) -> PhraseItem | None:
        if self._current_index < 0:
            return None
        return self._items[self._current_index]

    def get(self, item_id: int) -> PhraseItem | None:
        return self._by_id.get(item_id)

    def preceding(self, item_id: int, count: int) -> list[PhraseItem]:
        """Up to `count` items immediately before `item_id`, oldest first."""
        if count <= 0:
            return []
        earlier = [item for item in self._items if item.id < item_id]
        return earlier[-count:]

    def create_item(self, text: str) -> PhraseItem:
        text = text.strip()
        if not text:
            raise ValueError("phrase text must be non-empty")

        now = self.clock.now()
        item = PhraseItem(id=self._next_id, subtitle_text=text, created_at=now)
        self._next_id += 1
        self._items.append(item)
        self._by_id[item.id] = item

        if self._current_index < 0:
            self._current_index = len(self._items) - 1
            item.display_started_at = now
            self._render()
        return item

    def update_text(self, item_id: int, text: str) -> bool:
        item = self._by_id.get(item_id)
        if item is None or item.status != PhraseStatus.PENDING_TRANSCRIPTION:
            return False
        text = text.strip()
        if not text or text == item.subtitle_text:
            return False
        item.set_text(text)
        if item is self.current_item:
            self._render()
        return True

    def mark_pending_translation(self, item_id: int) -> bool:
        item = self._by_id.get(item_id)
        if item is None or item.status != PhraseStatus.PENDING_TRANSCRIPTION:
            return False
        item.advance_to(PhraseStatus.PENDING_TRANSLATION)
        return True

    def complete_translation(self, item_id: int, translation_text: str) -> bool:
        """Store a translation and mark the item ready.

        Returns False, changing nothing, when the item is gone (cleared by a
        reset) or already ready.
        """
        item = self._by_id.get(item_id)
        if item is None:
            logger.debug(f"[Display] Ignoring translation for unknown item {item_id}")
            return False
        if item.is_ready:
            return False
        item.set_translation(translation_text)
        if item is self.current_item:
            self._render()
        return True

    def required_display_s(self, item: PhraseItem) -> float:
        return len(item.subtitle_text) * self.ms_per_character / 1000.0

    def advance(self) -> bool:
        """Move to the next item if the current one has been read and the next is ready."""
        current = self.current_item
        if current is None or self._current_index >= len(self._items) - 1:
            return False

        now = self.clock.now()
        started_at = current.display_started_at if current.display_started_at is not None else now
        if now - started_at <= self.required_display_s(current):
            return False

        following = self._items[self._current_index + 1]
        if not (current.is_ready and following.is_ready):
            return False

        self._current_index += 1
        following.display_started_at = now
        logger.debug(
            f"[Display] Showing item {following.id} after {now - started_at:.2f}s on item {current.id}"
        )
        self._render()
        return True

    def reset(self) -> None:
        self._items.clear()
        self._by_id.clear()
        self._current_index = -1
        self._last_rendered = ("", "")
        self.renderer.display("", "")

    def _render(self) -> None:
        item = self.current_item
        if item is None:
            pair = ("", "")
        else:
            pair = (item.subtitle_text, item.translation_text or "")
        if pair == self._last_rendered:
            return
        self._last_rendered = pair
        self.renderer.display(*pair)
