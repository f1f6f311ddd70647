"""
nekotts public API

Dict-returning entry points over the synthesis pipeline. Every function takes
an explicit PipelineContext built once with build_context().
"""

from nekotts.api.synthesize import phonemize, synthesize, synthesize_to_file
from nekotts.api.voices import get_voice_info, list_voices
from nekotts.audio.output import save_audio
from nekotts.pipeline import build_context

__all__ = [
    # Setup
    "build_context",
    # Text
    "phonemize",
    # Synthesis
    "synthesize",
    "synthesize_to_file",
    # Output
    "save_audio",
    # Metadata
    "list_voices",
    "get_voice_info",
]
