from __future__ import annotations

import numpy as np
import pytest

from lingualine.core.audio.format import AudioFrame
from lingualine.core.audio.segmenter import AudioSegmenter
from lingualine.core.clock import FakeClock
from lingualine.domain.models import Utterance

RATE = 16000
BLOCK = 2000  # 125 ms


def _loud() -> AudioFrame:
    return AudioFrame(samples=np.full(BLOCK, 0.1, dtype=np.float32), sample_rate_hz=RATE)


def _silent() -> AudioFrame:
    return AudioFrame(samples=np.zeros(BLOCK, dtype=np.float32), sample_rate_hz=RATE)


def _run(seg: AudioSegmenter, clock: FakeClock, frames: list[AudioFrame]) -> list[tuple[int, Utterance]]:
    """Feed each block, advance the clock by its duration, tick; collect cuts by block index."""
    out = []
    for i, frame in enumerate(frames):
        seg.feed(frame)
        clock.advance_ms(125)
        utterance = seg.tick()
        if utterance is not None:
            out.append((i, utterance))
    return out


def test_continuous_speech_is_cut_at_max_duration():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE)

    emitted = _run(seg, clock, [_loud()] * 48)  # 6000 ms

    assert len(emitted) == 1
    index, utterance = emitted[0]
    assert (index + 1) * 125 <= 5000
    assert utterance.duration_s == pytest.approx(5.0)
    assert seg.in_flight is True


def test_silence_cutoff_emits_utterance_with_language_hint():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE, language_hint="es")

    assert _run(seg, clock, [_loud()] * 5) == []
    emitted = _run(seg, clock, [_silent()] * 8)

    assert len(emitted) == 1
    _index, utterance = emitted[0]
    assert utterance.language_hint == "es"
    assert utterance.sample_rate_hz == RATE
    assert utterance.started_at == 0.0


def test_micro_segment_below_floor_is_discarded():
    clock = FakeClock()
    seg = AudioSegmenter(
        clock=clock,
        sample_rate_hz=RATE,
        silence_duration_s=0.1,
        min_segment_s=0.3,
    )

    # 125 ms of speech then silence: the cut fires with 250 ms buffered
    assert _run(seg, clock, [_loud(), _silent()]) == []
    assert seg.buffered_samples == 0
    assert seg.in_flight is False


def test_cutoff_while_in_flight_drops_audio():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE, max_segment_duration_s=1.0)

    assert len(_run(seg, clock, [_loud()] * 10)) == 1
    assert seg.in_flight is True

    assert _run(seg, clock, [_loud()] * 10) == []
    assert seg.dropped_segments == 1

    seg.release()
    assert len(_run(seg, clock, [_loud()] * 10)) == 1


def test_tick_without_audio_does_nothing():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE)
    clock.advance(10)
    assert seg.tick() is None


def test_reset_clears_buffer_and_in_flight():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE, max_segment_duration_s=0.5)
    _run(seg, clock, [_loud()] * 5)
    assert seg.in_flight is True
    assert seg.buffered_samples > 0

    seg.reset()
    assert seg.in_flight is False
    assert seg.buffered_samples == 0


def test_feed_rejects_mismatched_rate():
    seg = AudioSegmenter(clock=FakeClock(), sample_rate_hz=RATE)
    with pytest.raises(ValueError):
        seg.feed(AudioFrame(samples=np.zeros(480, dtype=np.float32), sample_rate_hz=48000))


def _speech_ms(ms: int) -> AudioFrame:
    return AudioFrame(samples=np.full(RATE * ms // 1000, 0.1, dtype=np.float32), sample_rate_hz=RATE)


def test_short_blip_followed_by_silence_is_discarded_with_defaults():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE)

    seg.feed(_speech_ms(100))
    clock.advance_ms(100)
    assert seg.tick() is None

    # trailing silence must not count toward the floor
    assert _run(seg, clock, [_silent()] * 8) == []
    assert seg.in_flight is False
    assert seg.voiced_samples == 0


def test_pure_silence_never_emits():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE)

    assert _run(seg, clock, [_silent()] * 40) == []
    assert seg.in_flight is False


def test_voiced_samples_count_only_loud_frames():
    clock = FakeClock()
    seg = AudioSegmenter(clock=clock, sample_rate_hz=RATE)
    seg.feed(_loud())
    seg.feed(_silent())

    assert seg.buffered_samples == 2 * BLOCK
    assert seg.voiced_samples == BLOCK
