"""
PCM16 and canonical 44-byte WAV encoding.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct

import numpy as np

WAV_HEADER_SIZE = 44
_HEADER_FORMAT = "<4sI4s4sIHHIIHH4sI"


@dataclass(frozen=True)
class WavHeader:
    sample_rate: int
    channels: int
    bits_per_sample: int
    byte_rate: int
    block_align: int
    data_size: int
    riff_size: int

    @property
    def sample_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0


def to_pcm16(samples: np.ndarray) -> bytes:
    """Clamp to [-1, 1], scale by 32767 and round to little-endian int16."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    return np.round(clipped * 32767.0).astype("<i2").tobytes()


def from_pcm16(data: bytes) -> np.ndarray:
    return (np.frombuffer(data, dtype="<i2").astype(np.float32) / 32767.0).astype(np.float32)


def wav_header(sample_count: int, sample_rate: int, *, channels: int = 1) -> bytes:
    data_size = sample_count * 2 * channels
    return struct.pack(
        _HEADER_FORMAT,
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * 2 * channels,
        2 * channels,
        16,
        b"data",
        data_size,
    )


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Mono 16-bit PCM WAV: 44-byte header followed by little-endian samples."""
    if sample_rate <= 0:
        raise ValueError("sample_rate must be positive.")
    pcm = to_pcm16(samples)
    return wav_header(len(pcm) // 2, sample_rate) + pcm


def decode_wav_header(data: bytes) -> WavHeader:
    if len(data) < WAV_HEADER_SIZE:
        raise ValueError(f"WAV data too short ({len(data)} bytes).")
    (
        riff,
        riff_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_size,
    ) = struct.unpack(_HEADER_FORMAT, data[:WAV_HEADER_SIZE])
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data":
        raise ValueError("Not a canonical RIFF/WAVE stream.")
    if fmt_size != 16 or audio_format != 1:
        raise ValueError("Only uncompressed PCM WAV is supported.")
    return WavHeader(
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits_per_sample,
        byte_rate=byte_rate,
        block_align=block_align,
        data_size=data_size,
        riff_size=riff_size,
    )


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    header = decode_wav_header(data)
    payload = data[WAV_HEADER_SIZE : WAV_HEADER_SIZE + header.data_size]
    return from_pcm16(payload), header.sample_rate
