"""
Audio file output.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np
import soundfile as sf

from nekotts.logging_utils import get_logger, summarize_payload

logger = get_logger(__name__)


def save_audio(
    waveform: Union[List[float], np.ndarray],
    output_path: Union[str, Path],
    *,
    sample_rate: int = 24000,
    subtype: str = "PCM_16",
) -> Dict[str, Any]:
    """
    Write a mono waveform to a WAV file.

    Args:
        waveform: Audio samples in [-1, 1] (list or numpy array)
        output_path: File path to save; the suffix is forced to .wav
        sample_rate: Sample rate of the waveform
        subtype: soundfile subtype (default: 16-bit PCM)

    Returns:
        Dict with:
        - path: Absolute path to saved file
        - duration_seconds: Audio duration
        - sample_rate: Sample rate used
    """
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "save_audio input=%s",
            summarize_payload(
                {
                    "waveform": waveform,
                    "output_path": str(output_path),
                    "sample_rate": sample_rate,
                    "subtype": subtype,
                }
            ),
        )
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() != ".wav":
        output_path = output_path.with_suffix(".wav")

    waveform = np.clip(np.asarray(waveform, dtype=np.float32).reshape(-1), -1.0, 1.0)
    sf.write(str(output_path), waveform, sample_rate, subtype=subtype)

    result = {
        "path": str(output_path.resolve()),
        "duration_seconds": len(waveform) / sample_rate,
        "sample_rate": sample_rate,
    }
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("save_audio output=%s", summarize_payload(result))
    return result
