from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class AudioFrame:
    samples: np.ndarray  # float32 mono
    sample_rate_hz: int

    @property
    def sample_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_s(self) -> float:
        return self.sample_count / float(self.sample_rate_hz)


def mixdown_to_mono_f32(samples: np.ndarray) -> np.ndarray:
    if samples.ndim == 1:
        mono = samples
    elif samples.ndim == 2:
        mono = samples.mean(axis=1)
    else:
        raise ValueError("samples must be 1D (mono) or 2D (frames, channels)")

    return np.asarray(mono, dtype=np.float32)


def resample_f32_linear(samples: np.ndarray, *, from_rate_hz: int, to_rate_hz: int) -> np.ndarray:
    if from_rate_hz <= 0 or to_rate_hz <= 0:
        raise ValueError("sample rates must be > 0")
    samples = np.asarray(samples, dtype=np.float32)
    if from_rate_hz == to_rate_hz or samples.size == 0:
        return samples

    src_len = int(samples.shape[0])
    dst_len = max(int(math.floor(src_len * (to_rate_hz / from_rate_hz))), 1)

    x_old = np.arange(src_len, dtype=np.float32)
    x_new = np.linspace(0.0, src_len - 1, num=dst_len, dtype=np.float32)
    return np.interp(x_new, x_old, samples).astype(np.float32)


def to_audio_frame(
    raw_samples: np.ndarray,
    *,
    input_sample_rate_hz: int,
    target_sample_rate_hz: int,
) -> AudioFrame:
    """Mix down to mono and resample a raw device block to the internal rate."""
    mono = mixdown_to_mono_f32(np.asarray(raw_samples))
    if input_sample_rate_hz != target_sample_rate_hz:
        mono = resample_f32_linear(
            mono, from_rate_hz=input_sample_rate_hz, to_rate_hz=target_sample_rate_hz
        )
    return AudioFrame(samples=mono, sample_rate_hz=target_sample_rate_hz)


def rms_energy(samples: np.ndarray) -> float:
    """Root-mean-square of sample magnitudes; 0.0 for an empty block."""
    samples = np.asarray(samples, dtype=np.float32).reshape(-1)
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
