"""
Text-to-speech APIs returning plain dicts.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from nekotts.audio.output import save_audio
from nekotts.logging_utils import get_logger, summarize_payload
from nekotts.pipeline import PipelineContext, SynthesisOrchestrator, SynthesisRequest
from nekotts.text.chunker import split_segments

logger = get_logger(__name__)


def phonemize(
    text: str,
    context: PipelineContext,
    *,
    language: str = "en-us",
) -> Dict[str, Any]:
    """
    Convert text to a phoneme string and vocabulary ids.

    Args:
        text: Raw input text (normalized before phonemization)
        context: Pipeline collaborators from build_context()
        language: Language code (default: "en-us")

    Returns:
        Dict with:
        - phonemes: Phoneme string, words separated by spaces
        - token_ids: Vocabulary ids for the phoneme string
        - language: Language table actually used
        - language_fallback: True when the requested language was unsupported

    Example:
        phonemize("Hello world", ctx)
        → {"phonemes": "hɛˈloʊ wˈɝld", "token_ids": [...], "language": "en-us", ...}
    """
    normalized = context.normalizer.normalize(text)
    # Break directives are pauses, not words.
    spoken = " ".join(segment for segment in split_segments(normalized.text) if isinstance(segment, str))
    result = context.phonemizer.phonemize(spoken, language)
    return {
        "phonemes": result.phonemes,
        "token_ids": context.tokenizer.tokenize(result.phonemes),
        "language": result.language,
        "language_fallback": result.language_fallback,
        "truncated": result.truncated or normalized.truncated,
    }


def synthesize(
    text: str,
    context: PipelineContext,
    *,
    voice_id: Optional[str] = None,
    speed: float = 1.0,
    pitch: float = 1.0,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the full pipeline for one request.

    Args:
        text: Input text; may contain <break time="Ns"/> pause directives
        context: Pipeline collaborators from build_context()
        voice_id: Voice to use (default: the catalog default for the language)
        speed: Speaking rate, clamped to 0.5-2.0
        pitch: Pitch factor, clamped to 0.5-2.0
        language: Phonemizer language (default: the voice's language)

    Returns:
        Dict with:
        - waveform: Audio samples (float32 numpy array)
        - sample_rate: Sample rate
        - duration_seconds: Audio duration
        plus the result metadata (voice_id, engine_family, used_fallback, ...)

    Raises:
        SynthesisError subclasses when no audio could be produced.
    """
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "synthesize input=%s",
            summarize_payload(
                {
                    "text": text,
                    "voice_id": voice_id,
                    "speed": speed,
                    "pitch": pitch,
                    "language": language,
                }
            ),
        )
    request = SynthesisRequest(
        text=text,
        voice_id=voice_id,
        speed=speed,
        pitch=pitch,
        language=language,
    )
    outcome = SynthesisOrchestrator(context).synthesize(request)
    result = outcome.raise_for_error()
    payload = {"waveform": result.samples, **result.metadata()}
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("synthesize output=%s", summarize_payload(payload))
    return payload


def synthesize_to_file(
    text: str,
    output_path: Union[str, Path],
    context: PipelineContext,
    **options: Any,
) -> Dict[str, Any]:
    """Synthesize text and write a 16-bit WAV file; returns save_audio's dict plus metadata."""
    payload = synthesize(text, context, **options)
    saved = save_audio(payload.pop("waveform"), output_path, sample_rate=payload["sample_rate"])
    payload.update(saved)
    return payload
