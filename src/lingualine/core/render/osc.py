from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field

from pythonosc.osc_message_builder import OscMessageBuilder

logger = logging.getLogger(__name__)


def format_chatbox_text(subtitle_text: str, translation_text: str, *, max_chars: int) -> str:
    """Merge a subtitle pair into one chatbox line, truncated to `max_chars`."""
    if subtitle_text and translation_text:
        text = f"{subtitle_text} ({translation_text})"
    else:
        text = subtitle_text or translation_text
    if len(text) <= max_chars:
        return text
    if max_chars == 1:
        return text[:1]
    return text[: max_chars - 1] + "…"


@dataclass(slots=True)
class VrchatOscRenderSurface:
    """Sends the visible subtitle pair to a VRChat-style OSC chatbox."""

    host: str = "127.0.0.1"
    port: int = 9000
    chatbox_address: str = "/chatbox/input"
    chatbox_send: bool = True
    chatbox_max_chars: int = 144
    _sock: socket.socket = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host must be non-empty")
        if not (0 < self.port <= 65535):
            raise ValueError("port must be in 1..65535")
        if not self.chatbox_address or not self.chatbox_address.startswith("/"):
            raise ValueError("chatbox_address must start with '/'")
        if self.chatbox_max_chars <= 0:
            raise ValueError("chatbox_max_chars must be > 0")

        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def close(self) -> None:
        self._sock.close()

    def build_packet(self, text: str) -> bytes:
        builder = OscMessageBuilder(address=self.chatbox_address)
        builder.add_arg(text)
        builder.add_arg(self.chatbox_send)
        # An empty pair clears the chatbox instead of showing a blank bubble.
        builder.add_arg(not text)
        return builder.build().dgram

    def display(self, subtitle_text: str, translation_text: str) -> None:
        text = format_chatbox_text(
            subtitle_text, translation_text, max_chars=self.chatbox_max_chars
        )
        try:
            self._sock.sendto(self.build_packet(text), (self.host, self.port))
        except OSError as exc:
            logger.warning(f"[OSC] Send to {self.host}:{self.port} failed: {exc}")
            return
        logger.debug(f"[OSC] Sent chatbox: {text!r}")
