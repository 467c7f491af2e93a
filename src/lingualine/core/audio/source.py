from __future__ import annotations

import contextlib
import logging
import queue
from dataclasses import dataclass, field
from typing import AsyncIterator, Protocol

import janus
import numpy as np

from lingualine.core.audio.format import AudioFrame
from lingualine.domain.errors import AudioCaptureFailure

logger = logging.getLogger(__name__)


class AudioSource(Protocol):
    async def frames(self) -> AsyncIterator[AudioFrame]: ...
    async def close(self) -> None: ...


class _CaptureError:
    """Queue marker carrying a fatal PortAudio condition to the asyncio side."""

    __slots__ = ("message",)

    def __init__(self, message: str) -> None:
        self.message = message


@dataclass(slots=True)
class SoundDeviceAudioSource:
    """Microphone capture through sounddevice/PortAudio.

    Blocks arrive on the PortAudio thread and are handed to the event loop
    through a janus queue; when the consumer falls behind, blocks are dropped
    rather than stalling the audio thread. Frames are yielded at the device
    rate, possibly multi-channel; callers convert with `to_audio_frame`.
    """

    sample_rate_hz: int | None = None
    channels: int = 1
    device: int | str | None = None
    blocksize: int | None = None
    max_queue_frames: int = 64

    _queue: janus.Queue = field(init=False, repr=False)
    _stream: object = field(init=False, repr=False)
    _closed: bool = field(init=False, default=False)
    _actual_sample_rate_hz: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.sample_rate_hz is not None and self.sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0 or None")
        if self.channels <= 0:
            raise ValueError("channels must be > 0")
        if self.max_queue_frames <= 0:
            raise ValueError("max_queue_frames must be > 0")

        try:
            import sounddevice as sd  # type: ignore
        except OSError as exc:  # PortAudio library missing
            raise AudioCaptureFailure(f"PortAudio is unavailable: {exc}") from exc

        self._queue = janus.Queue(maxsize=self.max_queue_frames)

        def _callback(indata, _frames, _time, status):
            if self._closed:
                return
            if status:
                logger.warning(f"[Audio] Input status: {status}")
            try:
                self._queue.sync_q.put_nowait(np.asarray(indata, dtype=np.float32).copy())
            except queue.Full:
                return

        def _finished():
            if not self._closed:
                self.fail("input stream stopped unexpectedly (device lost?)")

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate_hz,
                channels=self.channels,
                dtype="float32",
                callback=_callback,
                finished_callback=_finished,
                device=self.device,
                blocksize=self.blocksize or 0,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            self._queue.close()
            raise AudioCaptureFailure(f"Failed to open input device {self.device!r}: {exc}") from exc

        self._stream = stream
        self._actual_sample_rate_hz = int(stream.samplerate)
        logger.info(
            f"[Audio] Capturing device={self.device!r} rate={self._actual_sample_rate_hz}Hz "
            f"channels={self.channels}"
        )

    @property
    def sample_rate(self) -> int:
        return self._actual_sample_rate_hz

    async def frames(self) -> AsyncIterator[AudioFrame]:
        while True:
            item = await self._queue.async_q.get()
            if item is None:
                return
            if isinstance(item, _CaptureError):
                raise AudioCaptureFailure(item.message)
            yield AudioFrame(samples=item, sample_rate_hz=self._actual_sample_rate_hz)

    def fail(self, message: str) -> None:
        """Abort the frame stream with a capture failure (thread-safe)."""
        with contextlib.suppress(queue.Full, RuntimeError):
            self._queue.sync_q.put_nowait(_CaptureError(message))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        stream = self._stream
        with contextlib.suppress(Exception):
            stream.stop()
        with contextlib.suppress(Exception):
            stream.close()

        with contextlib.suppress(queue.Full, RuntimeError):
            self._queue.sync_q.put_nowait(None)

        self._queue.close()
        with contextlib.suppress(Exception):
            await self._queue.wait_closed()


def resolve_sounddevice_input_device(*, host_api: str = "", device: str = "") -> int | None:
    host_api = (host_api or "").strip()
    device = (device or "").strip()
    if not host_api and not device:
        return None

    import sounddevice as sd  # type: ignore

    hostapis = sd.query_hostapis()
    devices = sd.query_devices()

    hostapi_index: int | None = None
    if host_api:
        for idx, item in enumerate(hostapis):
            if str(item.get("name", "") or "").lower() == host_api.lower():
                hostapi_index = idx
                break

    def _matches_host(info: dict) -> bool:
        return hostapi_index is None or int(info.get("hostapi", -1)) == hostapi_index

    if device.isdigit():
        idx = int(device)
        if 0 <= idx < len(devices):
            info = devices[idx]
            if int(info.get("max_input_channels", 0) or 0) > 0 and _matches_host(info):
                return idx

    if hostapi_index is not None and not device:
        default_input = hostapis[hostapi_index].get("default_input_device")
        if isinstance(default_input, int) and default_input >= 0:
            return default_input

    for idx, info in enumerate(devices):
        if int(info.get("max_input_channels", 0) or 0) <= 0 or not _matches_host(info):
            continue
        if device and str(info.get("name", "") or "").lower() != device.lower():
            continue
        return idx

    return None
