"""
Voice catalog APIs.
"""

from typing import Any, Dict, List, Optional

from nekotts.errors import VoiceNotFound
from nekotts.pipeline import PipelineContext


def list_voices(
    context: PipelineContext,
    *,
    language: Optional[str] = None,
    engine_family: Optional[str] = None,
    gender: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    List catalog voices, optionally filtered.

    Returns:
        List of voice info dicts with id, name, language, engine_family,
        gender, quality, description and has_embedding.
    """
    voices = context.voice_store.list_voices(
        language=language, engine_family=engine_family, gender=gender
    )
    return [voice.to_dict() for voice in voices]


def get_voice_info(voice_id: str, context: PipelineContext) -> Dict[str, Any]:
    """
    Describe one voice and the engine that would render it.

    Returns:
        The voice info dict plus:
        - sample_rate: Native sample rate of the voice's engine
        - context_window: Token limit per model call
        - model_available: False when the synthetic fallback would be used
    """
    voice = context.voice_store.get(voice_id)
    if voice is None:
        raise VoiceNotFound(f"Voice '{voice_id}' was not found.")
    engine = context.engine_for(voice.engine_family)
    info = voice.to_dict()
    info.update(
        {
            "sample_rate": engine.sample_rate,
            "context_window": engine.context_window,
            "model_available": engine.is_available,
        }
    )
    return info
