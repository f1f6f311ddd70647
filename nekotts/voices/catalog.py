"""Voice records and the builtin voice catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import zlib

import numpy as np

EMBEDDING_DIM = 256
FAMILY_B_STYLE_ROWS = 510


class EngineFamily(str, Enum):
    A = "A"
    B = "B"

    @classmethod
    def parse(cls, value: Any) -> "EngineFamily":
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        aliases = {"SINGLE_SHOT": "A", "KITTEN": "A", "CONTEXT_WINDOWED": "B", "KOKORO": "B"}
        text = aliases.get(text, text)
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(f"Unknown engine family '{value}'.") from exc


def validate_embedding(voice_id: str, family: EngineFamily, embedding: np.ndarray) -> None:
    """Raise ValueError when an embedding does not fit the declared family."""
    if embedding.ndim != 1:
        raise ValueError(f"Embedding for voice '{voice_id}' must be a flat float32 buffer.")
    size = int(embedding.shape[0])
    if family is EngineFamily.A and size != EMBEDDING_DIM:
        raise ValueError(
            f"Voice '{voice_id}' declares family A but has {size} floats (expected {EMBEDDING_DIM})."
        )
    if family is EngineFamily.B and (size == 0 or size % EMBEDDING_DIM != 0):
        raise ValueError(
            f"Voice '{voice_id}' declares family B but has {size} floats "
            f"(expected a positive multiple of {EMBEDDING_DIM})."
        )


def freeze_embedding(values: Any) -> np.ndarray:
    array = np.array(values, dtype=np.float32).reshape(-1)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    language: str
    engine_family: EngineFamily
    embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    gender: str = "unknown"
    quality: str = "medium"
    description: str = ""

    def __post_init__(self) -> None:
        if self.embedding is not None:
            validate_embedding(self.id, self.engine_family, self.embedding)

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "language": self.language,
            "engine_family": self.engine_family.value,
            "gender": self.gender,
            "quality": self.quality,
            "description": self.description,
            "has_embedding": self.has_embedding,
        }


BUILTIN_VOICES: List[Dict[str, str]] = [
    {"id": "expr-voice-2-f", "name": "Expressive 2 (F)", "language": "en-us", "family": "A", "gender": "female"},
    {"id": "expr-voice-2-m", "name": "Expressive 2 (M)", "language": "en-us", "family": "A", "gender": "male"},
    {"id": "expr-voice-3-f", "name": "Expressive 3 (F)", "language": "en-us", "family": "A", "gender": "female"},
    {"id": "expr-voice-3-m", "name": "Expressive 3 (M)", "language": "en-us", "family": "A", "gender": "male"},
    {"id": "expr-voice-4-f", "name": "Expressive 4 (F)", "language": "en-us", "family": "A", "gender": "female"},
    {"id": "expr-voice-4-m", "name": "Expressive 4 (M)", "language": "en-us", "family": "A", "gender": "male"},
    {"id": "expr-voice-5-f", "name": "Expressive 5 (F)", "language": "en-us", "family": "A", "gender": "female"},
    {"id": "expr-voice-5-m", "name": "Expressive 5 (M)", "language": "en-us", "family": "A", "gender": "male"},
    {"id": "af_heart", "name": "Heart", "language": "en-us", "family": "B", "gender": "female", "quality": "high"},
    {"id": "af_bella", "name": "Bella", "language": "en-us", "family": "B", "gender": "female", "quality": "high"},
    {"id": "af_sarah", "name": "Sarah", "language": "en-us", "family": "B", "gender": "female"},
    {"id": "am_adam", "name": "Adam", "language": "en-us", "family": "B", "gender": "male"},
    {"id": "am_fenrir", "name": "Fenrir", "language": "en-us", "family": "B", "gender": "male"},
    {"id": "am_michael", "name": "Michael", "language": "en-us", "family": "B", "gender": "male"},
    {"id": "bf_emma", "name": "Emma", "language": "en-gb", "family": "B", "gender": "female"},
    {"id": "bm_george", "name": "George", "language": "en-gb", "family": "B", "gender": "male"},
    {"id": "bm_lewis", "name": "Lewis", "language": "en-gb", "family": "B", "gender": "male"},
    {"id": "es_diego", "name": "Diego", "language": "es", "family": "B", "gender": "male"},
    {"id": "es_maria", "name": "Maria", "language": "es", "family": "B", "gender": "female"},
    {"id": "fr_amelie", "name": "Amelie", "language": "fr", "family": "B", "gender": "female"},
    {"id": "fr_pierre", "name": "Pierre", "language": "fr", "family": "B", "gender": "male"},
    {"id": "de_ingrid", "name": "Ingrid", "language": "de", "family": "B", "gender": "female"},
    {"id": "de_hans", "name": "Hans", "language": "de", "family": "B", "gender": "male"},
]

DEFAULT_VOICE_ID = "af_heart"

# Shifts the fallback pitch estimate so synthetic voices sound roughly gendered.
_GENDER_BIAS = {"female": 0.4, "male": -0.3}


def synthetic_embedding(voice_id: str, family: EngineFamily, gender: str = "unknown") -> np.ndarray:
    """Deterministic placeholder embedding for a voice with no installed assets."""
    rng = np.random.default_rng(zlib.crc32(voice_id.encode("utf8")))
    rows = 1 if family is EngineFamily.A else FAMILY_B_STYLE_ROWS
    values = rng.normal(0.0, 0.3, size=rows * EMBEDDING_DIM) + _GENDER_BIAS.get(gender, 0.0)
    return freeze_embedding(values)


def builtin_voices() -> List[Voice]:
    voices = []
    for entry in BUILTIN_VOICES:
        family = EngineFamily.parse(entry["family"])
        gender = entry.get("gender", "unknown")
        voices.append(
            Voice(
                id=entry["id"],
                name=entry["name"],
                language=entry["language"],
                engine_family=family,
                embedding=synthetic_embedding(entry["id"], family, gender),
                gender=gender,
                quality=entry.get("quality", "medium"),
                description="Builtin voice with a synthetic style embedding.",
            )
        )
    return voices
