from __future__ import annotations

import io
import socket

from lingualine.core.render.osc import VrchatOscRenderSurface, format_chatbox_text
from lingualine.core.render.surface import ConsoleRenderSurface


def _read_osc_string(packet: bytes, offset: int) -> tuple[str, int]:
    end = packet.index(b"\0", offset)
    value = packet[offset:end].decode("utf-8")
    next_offset = end + 1
    next_offset += (-next_offset) % 4
    return value, next_offset


def test_console_surface_prints_pair_and_separator():
    out = io.StringIO()
    surface = ConsoleRenderSurface(stream=out, separator="---")

    surface.display("Hola que tal", "Hello, how are you")
    surface.display("", "")

    assert out.getvalue().splitlines() == ["  Hola que tal", "> Hello, how are you", "---"]


def test_format_chatbox_text_merges_and_truncates():
    assert format_chatbox_text("Hola", "Hello", max_chars=144) == "Hola (Hello)"
    assert format_chatbox_text("Hola", "", max_chars=144) == "Hola"
    assert format_chatbox_text("", "", max_chars=144) == ""

    long = format_chatbox_text("a" * 100, "b" * 100, max_chars=144)
    assert len(long) == 144
    assert long.endswith("…")


def test_osc_surface_sends_chatbox_packet():
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(1.0)
    _host, port = server.getsockname()

    surface = VrchatOscRenderSurface(host="127.0.0.1", port=port)
    try:
        surface.display("Hola", "Hello")
        packet, _addr = server.recvfrom(65535)
        surface.display("", "")
        clear_packet, _addr = server.recvfrom(65535)
    finally:
        surface.close()
        server.close()

    address, offset = _read_osc_string(packet, 0)
    assert address == "/chatbox/input"
    tags, offset = _read_osc_string(packet, offset)
    assert tags == ",sTF"
    text, offset = _read_osc_string(packet, offset)
    assert text == "Hola (Hello)"
    assert offset == len(packet)

    _address, offset = _read_osc_string(clear_packet, 0)
    tags, _offset = _read_osc_string(clear_packet, offset)
    assert tags == ",sTT"


def test_osc_surface_swallows_send_errors(caplog):
    surface = VrchatOscRenderSurface(host="127.0.0.1", port=9)
    surface.close()  # sending on a closed socket raises OSError

    surface.display("Hola", "Hello")

    assert any("[OSC]" in r.getMessage() for r in caplog.records)
