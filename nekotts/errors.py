"""Error types shared by the synthesis pipeline and its integration layer."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VOICE_NOT_FOUND = "VoiceNotFound"
    EMBEDDING_MISSING = "EmbeddingMissing"
    MODEL_UNAVAILABLE = "ModelUnavailable"
    INFERENCE_FAILURE = "InferenceFailure"
    NO_AUDIO_PRODUCED = "NoAudioProduced"
    TEXT_TOO_LONG = "TextTooLong"
    UNSUPPORTED_LANGUAGE = "UnsupportedLanguage"
    CANCELLED = "Cancelled"
    SERVICE_BUSY = "ServiceBusy"


class SynthesisError(Exception):
    """Base class for pipeline failures; carries a kind and a user-safe reason."""

    kind: ErrorKind = ErrorKind.INFERENCE_FAILURE

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_payload(self) -> Dict[str, Any]:
        # detail stays internal: tensor shapes and engine errors are never surfaced.
        return {"error_type": self.kind.value, "reason": self.message}

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.message} ({self.detail})"
        return f"{self.kind.value}: {self.message}"


class VoiceNotFound(SynthesisError):
    kind = ErrorKind.VOICE_NOT_FOUND


class EmbeddingMissing(SynthesisError):
    kind = ErrorKind.EMBEDDING_MISSING


class ModelUnavailable(SynthesisError):
    """Raised when an engine has no loaded session; callers switch to the fallback generator."""

    kind = ErrorKind.MODEL_UNAVAILABLE


class InferenceFailure(SynthesisError):
    """Chunk-level failure: bad tensor shape, unsupported dtype or empty output."""

    kind = ErrorKind.INFERENCE_FAILURE


class NoAudioProduced(SynthesisError):
    kind = ErrorKind.NO_AUDIO_PRODUCED


class ServiceBusy(SynthesisError):
    kind = ErrorKind.SERVICE_BUSY


class SynthesisCancelled(SynthesisError):
    """Raised or returned when a request is cancelled between chunks."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Synthesis was cancelled.", *, partial: Any = None) -> None:
        super().__init__(message)
        self.partial = partial
