"""Placeholder waveform used when no model session is loaded."""

from __future__ import annotations

from typing import Optional

import numpy as np

from nekotts.logging_utils import get_logger

logger = get_logger(__name__)

SECONDS_PER_CHARACTER = 0.1
MIN_DURATION_SECONDS = 1.0
MAX_DURATION_SECONDS = 10.0
BASE_F0_HZ = 150.0
MIN_F0_HZ = 80.0
MAX_F0_HZ = 300.0
FORMANTS_HZ = (800.0, 1200.0)


class SyntheticFallbackGenerator:
    """Formant-style tone shaped by a half-sine envelope.

    Output depends only on the character count, the embedding, the pitch
    factor, the sample rate and the seed.
    """

    def __init__(self, *, seed: int = 42) -> None:
        self.seed = seed

    @staticmethod
    def duration_for(character_count: int) -> float:
        return float(
            np.clip(SECONDS_PER_CHARACTER * character_count, MIN_DURATION_SECONDS, MAX_DURATION_SECONDS)
        )

    @staticmethod
    def fundamental_for(embedding: Optional[np.ndarray], pitch: float = 1.0) -> float:
        head = np.asarray(embedding if embedding is not None else [], dtype=np.float64)[:10]
        mean = float(head.mean()) if head.size else 0.0
        return float(np.clip((BASE_F0_HZ + mean * 100.0) * pitch, MIN_F0_HZ, MAX_F0_HZ))

    def generate(
        self,
        character_count: int,
        embedding: Optional[np.ndarray],
        sample_rate: int,
        *,
        pitch: float = 1.0,
    ) -> np.ndarray:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive.")
        duration = self.duration_for(character_count)
        f0 = self.fundamental_for(embedding, pitch)
        count = int(duration * sample_rate)
        t = np.arange(count, dtype=np.float64) / sample_rate

        signal = (
            0.3 * np.sin(2 * np.pi * f0 * t)
            + 0.2 * np.sin(2 * np.pi * 2 * f0 * t)
            + 0.1 * np.sin(2 * np.pi * 3 * f0 * t)
            + 0.15 * np.sin(2 * np.pi * FORMANTS_HZ[0] * t)
            + 0.1 * np.sin(2 * np.pi * FORMANTS_HZ[1] * t)
        )
        # Consonant-like bursts during the first 30% of every 100 ms.
        rng = np.random.default_rng(self.seed)
        burst_mask = np.mod(t * 10.0, 1.0) < 0.3
        signal += (rng.random(count) - 0.5) * 0.1 * burst_mask
        signal *= np.sin(np.pi * t / duration) * 0.8

        logger.debug(
            "fallback_generated characters=%s duration=%.2f f0=%.1f sample_rate=%s",
            character_count,
            duration,
            f0,
            sample_rate,
        )
        return np.clip(signal, -1.0, 1.0).astype(np.float32)

    def generate_for_text(
        self,
        text: str,
        embedding: Optional[np.ndarray],
        sample_rate: int,
        *,
        pitch: float = 1.0,
    ) -> np.ndarray:
        return self.generate(len(text), embedding, sample_rate, pitch=pitch)
