from __future__ import annotations

import numpy as np

from lingualine.core.audio.format import (
    AudioFrame,
    mixdown_to_mono_f32,
    resample_f32_linear,
    rms_energy,
    to_audio_frame,
)


def test_mixdown_to_mono():
    stereo = np.array([[0.0, 1.0], [1.0, 0.0]], dtype=np.float32)
    mono = mixdown_to_mono_f32(stereo)
    assert mono.shape == (2,)
    assert np.allclose(mono, np.array([0.5, 0.5], dtype=np.float32))


def test_resample_length_ratio():
    src = np.linspace(-1.0, 1.0, num=480, dtype=np.float32)
    dst = resample_f32_linear(src, from_rate_hz=48000, to_rate_hz=16000)
    assert dst.shape[0] == 160


def test_to_audio_frame_resamples_only_when_needed():
    raw = np.linspace(-1.0, 1.0, num=480, dtype=np.float32)
    first = to_audio_frame(raw, input_sample_rate_hz=48000, target_sample_rate_hz=16000)
    second = to_audio_frame(first.samples, input_sample_rate_hz=16000, target_sample_rate_hz=16000)
    assert first.sample_rate_hz == 16000
    assert second.sample_rate_hz == 16000
    assert second.samples.shape == first.samples.shape


def test_audio_frame_duration():
    frame = AudioFrame(samples=np.zeros(1600, dtype=np.float32), sample_rate_hz=16000)
    assert frame.sample_count == 1600
    assert frame.duration_s == 0.1


def test_rms_energy():
    assert rms_energy(np.zeros(0, dtype=np.float32)) == 0.0
    assert rms_energy(np.zeros(100, dtype=np.float32)) == 0.0
    assert abs(rms_energy(np.full(100, 0.5, dtype=np.float32)) - 0.5) < 1e-6
    assert abs(rms_energy(np.array([1.0, -1.0], dtype=np.float32)) - 1.0) < 1e-6
