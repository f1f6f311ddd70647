"""
nekotts: offline text-to-speech synthesis pipeline.
"""

from nekotts.errors import SynthesisError
from nekotts.pipeline import (
    PipelineContext,
    SynthesisOrchestrator,
    SynthesisOutcome,
    SynthesisRequest,
    SynthesisResult,
    build_context,
)
from nekotts.service import SynthesisService

__version__ = "0.1.0"

__all__ = [
    "PipelineContext",
    "SynthesisError",
    "SynthesisOrchestrator",
    "SynthesisOutcome",
    "SynthesisRequest",
    "SynthesisResult",
    "SynthesisService",
    "build_context",
]
