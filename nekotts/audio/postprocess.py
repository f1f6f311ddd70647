"""Waveform post-processing stages.

Every stage is a pure function returning a new array. PostProcessor.process
runs them in a fixed order: normalize, fade, trim silence, speed change,
resample.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np

from nekotts.logging_utils import get_logger

logger = get_logger(__name__)

NORMALIZE_TARGET_PEAK = 0.95
DEFAULT_FADE_MS = 25.0
DEFAULT_SILENCE_THRESHOLD = 0.01
DEFAULT_MIN_AUDIO_MS = 50.0
MIN_SPEED = 0.5
MAX_SPEED = 2.0


def _as_float(samples: np.ndarray) -> np.ndarray:
    return np.asarray(samples, dtype=np.float32).reshape(-1)


def normalize(samples: np.ndarray) -> np.ndarray:
    """Scale to a 0.95 peak unless silent or already exactly at full scale."""
    audio = _as_float(samples)
    if audio.size == 0:
        return audio.copy()
    peak = float(np.max(np.abs(audio)))
    if peak > 0.0 and peak != 1.0:
        return (audio * (NORMALIZE_TARGET_PEAK / peak)).astype(np.float32)
    return audio.copy()


def apply_fade(samples: np.ndarray, sample_rate: int, fade_ms: float = DEFAULT_FADE_MS) -> np.ndarray:
    """Half-sine fade in and out, at most a quarter of the signal each."""
    audio = _as_float(samples).copy()
    count = audio.size
    length = min(int(sample_rate * fade_ms / 1000.0), count // 4)
    if length <= 0:
        return audio
    ramp = np.arange(length, dtype=np.float64)
    audio[:length] *= np.sin(np.pi * ramp / (2 * length)).astype(np.float32)
    remaining = count - np.arange(count - length, count, dtype=np.float64)
    audio[count - length :] *= np.sin(np.pi * remaining / (2 * length)).astype(np.float32)
    return audio


def trim_silence(
    samples: np.ndarray,
    sample_rate: int,
    threshold: float = DEFAULT_SILENCE_THRESHOLD,
    min_ms: float = DEFAULT_MIN_AUDIO_MS,
) -> np.ndarray:
    """Drop leading/trailing samples below threshold, keeping at least min_ms."""
    audio = _as_float(samples)
    count = audio.size
    loud = np.flatnonzero(np.abs(audio) >= threshold)
    if loud.size == 0:
        return audio.copy()
    start, end = int(loud[0]), int(loud[-1])
    min_length = int(sample_rate * min_ms / 1000.0)
    if end - start + 1 < min_length:
        center = (start + end) // 2
        start = max(0, center - min_length // 2)
        end = min(count - 1, start + min_length - 1)
        start = max(0, end - min_length + 1)
    return audio[start : end + 1].copy()


def _interpolate(audio: np.ndarray, length: int) -> np.ndarray:
    if length <= 0 or audio.size == 0:
        return np.zeros(0, dtype=np.float32)
    step = audio.size / length
    positions = np.arange(length, dtype=np.float64) * step
    return np.interp(positions, np.arange(audio.size), audio).astype(np.float32)


def change_speed(samples: np.ndarray, speed: float) -> np.ndarray:
    """Linear-interpolation resampling by 1/speed; identity at speed 1.0."""
    audio = _as_float(samples)
    speed = float(np.clip(speed, MIN_SPEED, MAX_SPEED))
    if speed == 1.0:
        return audio.copy()
    return _interpolate(audio, int(round(audio.size / speed)))


def resample(samples: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    audio = _as_float(samples)
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError("Sample rates must be positive.")
    if from_rate == to_rate:
        return audio.copy()
    return _interpolate(audio, int(round(audio.size * to_rate / from_rate)))


def concatenate(parts: Iterable[np.ndarray]) -> np.ndarray:
    arrays = [_as_float(part) for part in parts]
    if not arrays:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(arrays).astype(np.float32)


def silence(duration_seconds: float, sample_rate: int) -> np.ndarray:
    return np.zeros(max(int(round(duration_seconds * sample_rate)), 0), dtype=np.float32)


def apply_gain(samples: np.ndarray, gain_db: float) -> np.ndarray:
    audio = _as_float(samples)
    factor = 10.0 ** (gain_db / 20.0)
    return np.clip(audio * factor, -1.0, 1.0).astype(np.float32)


def audio_info(samples: np.ndarray, sample_rate: int) -> Dict[str, Any]:
    audio = _as_float(samples)
    return {
        "samples": int(audio.size),
        "sample_rate": sample_rate,
        "duration_seconds": audio.size / sample_rate if sample_rate else 0.0,
        "peak": float(np.max(np.abs(audio))) if audio.size else 0.0,
        "rms": float(np.sqrt(np.mean(np.square(audio, dtype=np.float64)))) if audio.size else 0.0,
    }


class PostProcessor:
    def __init__(
        self,
        *,
        fade_ms: float = DEFAULT_FADE_MS,
        silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
        min_audio_ms: float = DEFAULT_MIN_AUDIO_MS,
    ) -> None:
        self.fade_ms = fade_ms
        self.silence_threshold = silence_threshold
        self.min_audio_ms = min_audio_ms

    def process(
        self,
        samples: np.ndarray,
        sample_rate: int,
        *,
        speed: float = 1.0,
        target_sample_rate: Optional[int] = None,
    ) -> Tuple[np.ndarray, int]:
        audio = normalize(samples)
        audio = apply_fade(audio, sample_rate, self.fade_ms)
        audio = trim_silence(audio, sample_rate, self.silence_threshold, self.min_audio_ms)
        audio = change_speed(audio, speed)
        output_rate = sample_rate
        if target_sample_rate and target_sample_rate != sample_rate:
            audio = resample(audio, sample_rate, target_sample_rate)
            output_rate = target_sample_rate
        logger.debug(
            "postprocess_done input=%s output=%s speed=%s sample_rate=%s",
            np.asarray(samples).size,
            audio.size,
            speed,
            output_rate,
        )
        return audio, output_rate
