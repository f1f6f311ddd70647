"""
Voice catalog and style-embedding lookup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import yaml

from nekotts.errors import EmbeddingMissing, VoiceNotFound
from nekotts.logging_utils import get_logger
from nekotts.voices.catalog import (
    DEFAULT_VOICE_ID,
    EMBEDDING_DIM,
    FAMILY_B_STYLE_ROWS,
    EngineFamily,
    Voice,
    builtin_voices,
    freeze_embedding,
)

logger = get_logger(__name__)

CATALOG_FILENAME = "voices.yaml"


def load_embedding_blob(path: Union[str, Path]) -> np.ndarray:
    """Read a raw little-endian float32 blob as a read-only flat array."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Voice embedding not found: {path}")
    data = path.read_bytes()
    if len(data) % 4 != 0:
        raise ValueError(f"Voice embedding {path} is not a float32 buffer ({len(data)} bytes).")
    return freeze_embedding(np.frombuffer(data, dtype="<f4"))


class VoiceStore:
    """Read-only voice catalog, loaded once and shared across requests."""

    def __init__(self, voices: Iterable[Voice], *, default_voice_id: Optional[str] = None) -> None:
        self._voices: Dict[str, Voice] = {}
        for voice in voices:
            if voice.id in self._voices:
                raise ValueError(f"Duplicate voice id '{voice.id}'.")
            self._voices[voice.id] = voice
        if default_voice_id and default_voice_id not in self._voices:
            raise VoiceNotFound(f"Default voice '{default_voice_id}' is not in the catalog.")
        self.default_voice_id = default_voice_id

    @classmethod
    def builtin(cls, *, default_voice_id: Optional[str] = DEFAULT_VOICE_ID) -> "VoiceStore":
        return cls(builtin_voices(), default_voice_id=default_voice_id)

    @classmethod
    def from_directory(
        cls,
        directory: Union[str, Path],
        *,
        default_voice_id: Optional[str] = None,
        strict: bool = False,
    ) -> "VoiceStore":
        """Load voices.yaml plus one float32 .bin blob per voice.

        A missing blob raises EmbeddingMissing when strict, otherwise the voice
        is registered without an embedding and reported by has_embedding().
        """
        directory = Path(directory)
        catalog_path = directory / CATALOG_FILENAME
        if not catalog_path.exists():
            raise FileNotFoundError(f"{CATALOG_FILENAME} not found at {catalog_path}")
        data = yaml.safe_load(catalog_path.read_text(encoding="utf8"))
        entries = data.get("voices", []) if isinstance(data, dict) else []
        if not isinstance(entries, list):
            raise ValueError(f"Invalid voice catalog format at {catalog_path}.")
        voices = [cls._voice_from_entry(directory, entry, strict=strict) for entry in entries]
        if default_voice_id is None and isinstance(data, dict):
            default_voice_id = data.get("default_voice")
        store = cls(voices, default_voice_id=default_voice_id)
        logger.info(
            "voice_catalog_loaded path=%s voices=%s missing_embeddings=%s",
            catalog_path,
            len(voices),
            sum(1 for voice in voices if not voice.has_embedding),
        )
        return store

    @staticmethod
    def _voice_from_entry(directory: Path, entry: Any, *, strict: bool) -> Voice:
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ValueError(f"Invalid voice entry in catalog: {entry!r}")
        voice_id = str(entry["id"])
        family = EngineFamily.parse(entry.get("engine_family", "A"))
        blob_name = entry.get("embedding") or f"{voice_id}.bin"
        embedding: Optional[np.ndarray] = None
        try:
            embedding = load_embedding_blob(directory / blob_name)
        except FileNotFoundError as exc:
            if strict:
                raise EmbeddingMissing(
                    f"No style embedding installed for voice '{voice_id}'.", detail=str(exc)
                ) from exc
            logger.warning("voice_embedding_missing voice_id=%s path=%s", voice_id, blob_name)
        return Voice(
            id=voice_id,
            name=str(entry.get("name", voice_id)),
            language=str(entry.get("language", "en-us")).lower(),
            engine_family=family,
            embedding=embedding,
            gender=str(entry.get("gender", "unknown")),
            quality=str(entry.get("quality", "medium")),
            description=str(entry.get("description", "")),
        )

    def get(self, voice_id: str) -> Optional[Voice]:
        return self._voices.get(voice_id)

    def require(self, voice_id: str) -> Voice:
        voice = self.get(voice_id)
        if voice is None:
            raise VoiceNotFound(f"Voice '{voice_id}' was not found.")
        return voice

    def has_embedding(self, voice_id: str) -> bool:
        voice = self.get(voice_id)
        return voice is not None and voice.has_embedding

    def resolve_style_vector(self, voice_id: str, token_count: int) -> np.ndarray:
        """Return the 256-float style vector for a chunk of token_count tokens.

        Family B buffers hold one row per token count; the row is selected at
        offset clamp(token_count, 0, 509) * 256 and the first row is used when
        that offset would overrun the buffer.
        """
        voice = self.require(voice_id)
        if voice.embedding is None:
            raise EmbeddingMissing(f"No style embedding installed for voice '{voice_id}'.")
        embedding = voice.embedding
        if voice.engine_family is EngineFamily.A:
            return embedding
        offset = min(max(int(token_count), 0), FAMILY_B_STYLE_ROWS - 1) * EMBEDDING_DIM
        if offset + EMBEDDING_DIM > embedding.shape[0]:
            logger.debug(
                "style_offset_overrun voice_id=%s token_count=%s buffer=%s",
                voice_id,
                token_count,
                embedding.shape[0],
            )
            offset = 0
        return embedding[offset : offset + EMBEDDING_DIM]

    def list_voices(
        self,
        language: Optional[str] = None,
        engine_family: Optional[Union[EngineFamily, str]] = None,
        gender: Optional[str] = None,
    ) -> List[Voice]:
        family = EngineFamily.parse(engine_family) if engine_family else None
        voices = []
        for voice in self._voices.values():
            if language and not _language_matches(voice.language, language):
                continue
            if family and voice.engine_family is not family:
                continue
            if gender and voice.gender.lower() != gender.lower():
                continue
            voices.append(voice)
        return voices

    def default_voice(self, language: Optional[str] = None) -> Optional[Voice]:
        """Return the configured default voice, or the first voice for the language."""
        default = self.get(self.default_voice_id) if self.default_voice_id else None
        if default and (not language or _language_matches(default.language, language)):
            return default
        candidates = self.list_voices(language=language)
        usable = [voice for voice in candidates if voice.has_embedding]
        if usable:
            return usable[0]
        return candidates[0] if candidates else None

    def __contains__(self, voice_id: object) -> bool:
        return voice_id in self._voices

    def __len__(self) -> int:
        return len(self._voices)


def _language_matches(voice_language: str, requested: str) -> bool:
    voice_language = voice_language.lower()
    requested = requested.strip().lower().replace("_", "-")
    if voice_language == requested:
        return True
    # "en" matches any English voice; "en-us" does not match "en-gb".
    return "-" not in requested and voice_language.split("-")[0] == requested
