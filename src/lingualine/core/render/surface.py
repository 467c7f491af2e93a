from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO


class RenderSurface(Protocol):
    def display(self, subtitle_text: str, translation_text: str) -> None: ...


@dataclass(slots=True)
class ConsoleRenderSurface:
    """Prints each subtitle pair as two lines; an empty pair prints a separator."""

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    separator: str = "-" * 40

    def display(self, subtitle_text: str, translation_text: str) -> None:
        if not subtitle_text and not translation_text:
            print(self.separator, file=self.stream, flush=True)
            return
        print(f"  {subtitle_text}", file=self.stream)
        print(f"> {translation_text}", file=self.stream, flush=True)
