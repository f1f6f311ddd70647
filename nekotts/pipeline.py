"""Request-level synthesis orchestration.

One request moves through IDLE -> PREPARING -> SYNTHESIZING -> POST_PROCESSING
-> DONE, or ends in FAILED / CANCELLED. Pipeline conditions never raise out of
SynthesisOrchestrator.synthesize; they are reported on the returned outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Protocol
import uuid

import numpy as np

from nekotts.audio.postprocess import MAX_SPEED, MIN_SPEED, PostProcessor, concatenate, silence
from nekotts.audio.wav import encode_wav, to_pcm16
from nekotts.config import Settings
from nekotts.engine.fallback import SyntheticFallbackGenerator
from nekotts.engine.inference import ENGINE_CLASSES, InferenceEngine, build_engine
from nekotts.errors import (
    EmbeddingMissing,
    InferenceFailure,
    ModelUnavailable,
    NoAudioProduced,
    SynthesisCancelled,
    SynthesisError,
    VoiceNotFound,
)
from nekotts.logging_utils import clear_log_context, get_logger, set_log_context
from nekotts.phonemizer.phonemizer import Phonemizer
from nekotts.phonemizer.rules import DEFAULT_LANGUAGE
from nekotts.phonemizer.tokenizer import Tokenizer
from nekotts.phonemizer.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from nekotts.text.chunker import Chunker, Silence, TextSegment
from nekotts.text.normalizer import TextNormalizer
from nekotts.voices.catalog import DEFAULT_VOICE_ID, EngineFamily, Voice
from nekotts.voices.store import VoiceStore

logger = get_logger(__name__)

MIN_PITCH = 0.5
MAX_PITCH = 2.0


class SynthesisState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    SYNTHESIZING = "synthesizing"
    POST_PROCESSING = "post_processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def _clamp(name: str, value: float, low: float, high: float) -> float:
    clamped = min(max(float(value), low), high)
    if clamped != value:
        logger.debug("request_value_clamped field=%s value=%s clamped=%s", name, value, clamped)
    return clamped


@dataclass(frozen=True)
class SynthesisRequest:
    text: str
    voice_id: Optional[str] = None
    speed: float = 1.0
    pitch: float = 1.0
    language: Optional[str] = None
    request_id: str = field(default_factory=_new_request_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "speed", _clamp("speed", self.speed, MIN_SPEED, MAX_SPEED))
        object.__setattr__(self, "pitch", _clamp("pitch", self.pitch, MIN_PITCH, MAX_PITCH))


@dataclass(frozen=True)
class SynthesisResult:
    samples: np.ndarray = field(repr=False)
    sample_rate: int
    duration_seconds: float
    chunk_count: int
    processing_time_ms: float
    voice_id: str = ""
    engine_family: str = ""
    used_fallback: bool = False
    failed_chunks: int = 0
    language: str = ""
    language_fallback: bool = False
    text_truncated: bool = False

    def to_pcm16(self) -> bytes:
        return to_pcm16(self.samples)

    def to_wav(self) -> bytes:
        return encode_wav(self.samples, self.sample_rate)

    def metadata(self) -> Dict[str, Any]:
        return {
            "sample_rate": self.sample_rate,
            "duration_seconds": self.duration_seconds,
            "chunk_count": self.chunk_count,
            "processing_time_ms": self.processing_time_ms,
            "voice_id": self.voice_id,
            "engine_family": self.engine_family,
            "used_fallback": self.used_fallback,
            "failed_chunks": self.failed_chunks,
            "language": self.language,
            "language_fallback": self.language_fallback,
            "text_truncated": self.text_truncated,
        }


@dataclass(frozen=True)
class ProgressEvent:
    request_id: str
    state: SynthesisState
    chunk_index: int = 0
    chunk_count: int = 0
    message: str = ""


@dataclass(frozen=True)
class SynthesisOutcome:
    state: SynthesisState
    result: Optional[SynthesisResult] = None
    error: Optional[SynthesisError] = None

    @property
    def ok(self) -> bool:
        return self.state is SynthesisState.DONE and self.result is not None

    def raise_for_error(self) -> SynthesisResult:
        if self.ok:
            return self.result
        if self.error is not None:
            raise self.error
        raise NoAudioProduced("Synthesis finished without audio.")


class ProgressChannel(Protocol):
    def put(self, event: ProgressEvent) -> Any:
        ...


class CancellationToken:
    """Thread-safe cancellation flag checked between chunks."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class PipelineContext:
    vocabulary: Vocabulary
    normalizer: TextNormalizer
    phonemizer: Phonemizer
    tokenizer: Tokenizer
    chunker: Chunker
    voice_store: VoiceStore
    engines: Mapping[EngineFamily, InferenceEngine]
    fallback: SyntheticFallbackGenerator
    postprocessor: PostProcessor
    output_sample_rate: Optional[int] = None

    def engine_for(self, family: EngineFamily) -> InferenceEngine:
        engine = self.engines.get(family)
        if engine is None:
            return ENGINE_CLASSES[family](None)
        return engine


def build_context(
    settings: Optional[Settings] = None,
    *,
    voice_store: Optional[VoiceStore] = None,
    engines: Optional[Mapping[EngineFamily, InferenceEngine]] = None,
) -> PipelineContext:
    """Construct every pipeline collaborator once, from settings."""
    settings = settings or Settings.from_env()
    vocabulary = DEFAULT_VOCABULARY
    phonemizer = Phonemizer(lexicon_path=settings.lexicon_path)
    tokenizer = Tokenizer(vocabulary)
    if voice_store is None:
        if settings.voices_dir is not None:
            voice_store = VoiceStore.from_directory(
                settings.voices_dir, default_voice_id=settings.default_voice_id
            )
        elif settings.use_builtin_voices:
            voice_store = VoiceStore.builtin(
                default_voice_id=settings.default_voice_id or DEFAULT_VOICE_ID
            )
        else:
            raise FileNotFoundError(
                "No voice catalog configured. Set NEKOTTS_VOICES_DIR or enable NEKOTTS_BUILTIN_VOICES."
            )
    if engines is None:
        engines = {
            EngineFamily.A: build_engine(EngineFamily.A, settings.model_a_path, settings.device),
            EngineFamily.B: build_engine(EngineFamily.B, settings.model_b_path, settings.device),
        }
    return PipelineContext(
        vocabulary=vocabulary,
        normalizer=TextNormalizer(max_length=settings.max_text_length),
        phonemizer=phonemizer,
        tokenizer=tokenizer,
        chunker=Chunker(phonemizer, tokenizer),
        voice_store=voice_store,
        engines=dict(engines),
        fallback=SyntheticFallbackGenerator(seed=settings.fallback_seed),
        postprocessor=PostProcessor(
            fade_ms=settings.fade_ms,
            silence_threshold=settings.silence_threshold,
            min_audio_ms=settings.min_audio_ms,
        ),
        output_sample_rate=settings.output_sample_rate,
    )


@dataclass
class _RequestState:
    request: SynthesisRequest
    progress: Optional[ProgressChannel]
    state: SynthesisState = SynthesisState.IDLE
    started: float = field(default_factory=time.perf_counter)

    def move(self, state: SynthesisState, *, index: int = 0, count: int = 0, message: str = "") -> None:
        self.state = state
        if self.progress is not None:
            self.progress.put(
                ProgressEvent(
                    request_id=self.request.request_id,
                    state=state,
                    chunk_index=index,
                    chunk_count=count,
                    message=message,
                )
            )


class SynthesisOrchestrator:
    def __init__(self, context: PipelineContext) -> None:
        self.context = context

    def synthesize(
        self,
        request: SynthesisRequest,
        cancel: Optional[CancellationToken] = None,
        progress: Optional[ProgressChannel] = None,
    ) -> SynthesisOutcome:
        tracker = _RequestState(request=request, progress=progress)
        set_log_context(request_id=request.request_id, voice_id=request.voice_id or "-")
        try:
            return self._run(tracker, cancel)
        except SynthesisCancelled as exc:
            tracker.move(SynthesisState.CANCELLED, message=exc.message)
            logger.info("synthesis_cancelled request_id=%s", request.request_id)
            return SynthesisOutcome(state=SynthesisState.CANCELLED, error=exc)
        except SynthesisError as exc:
            tracker.move(SynthesisState.FAILED, message=exc.message)
            logger.warning(
                "synthesis_failed request_id=%s error_type=%s reason=%s",
                request.request_id,
                exc.kind.value,
                exc,
            )
            return SynthesisOutcome(state=SynthesisState.FAILED, error=exc)
        finally:
            clear_log_context()

    def _resolve_voice(self, request: SynthesisRequest) -> Voice:
        store = self.context.voice_store
        if request.voice_id:
            voice = store.get(request.voice_id)
            if voice is None:
                raise VoiceNotFound(f"Voice '{request.voice_id}' was not found.")
        else:
            voice = store.default_voice(request.language) or store.default_voice()
            if voice is None:
                raise VoiceNotFound(f"No voice available for language '{request.language}'.")
        if not voice.has_embedding:
            raise EmbeddingMissing(f"No style embedding installed for voice '{voice.id}'.")
        return voice

    def _run(self, tracker: _RequestState, cancel: Optional[CancellationToken]) -> SynthesisOutcome:
        context = self.context
        request = tracker.request

        tracker.move(SynthesisState.PREPARING)
        voice = self._resolve_voice(request)
        set_log_context(voice_id=voice.id)
        engine = context.engine_for(voice.engine_family)
        language = request.language or voice.language
        language_fallback = not context.phonemizer.is_supported(language)
        if language_fallback:
            language = DEFAULT_LANGUAGE
        normalized = context.normalizer.normalize(request.text)
        chunks = context.chunker.chunk(
            normalized.text,
            context_window=engine.context_window,
            reserved_padding=engine.reserved_padding,
            language=language,
        )
        text_chunks = sum(1 for chunk in chunks if isinstance(chunk, TextSegment))
        if text_chunks == 0:
            raise NoAudioProduced("Text contains nothing to speak.")

        use_model = engine.is_available
        speed_in_model = use_model and engine.applies_speed_in_model
        logger.info(
            "synthesis_prepared request_id=%s voice_id=%s family=%s chunks=%s text_chunks=%s "
            "model=%s speed_in_model=%s",
            request.request_id,
            voice.id,
            voice.engine_family.value,
            len(chunks),
            text_chunks,
            use_model,
            speed_in_model,
        )

        tracker.move(SynthesisState.SYNTHESIZING, count=len(chunks))
        pieces: List[np.ndarray] = []
        succeeded = 0
        failed = 0
        used_fallback = False
        for index, chunk in enumerate(chunks):
            if cancel is not None and cancel.is_set():
                partial = concatenate(pieces) if succeeded else None
                raise SynthesisCancelled(partial=partial)
            if isinstance(chunk, Silence):
                pieces.append(silence(chunk.duration_seconds, engine.sample_rate))
                continue
            tracker.move(SynthesisState.SYNTHESIZING, index=index, count=len(chunks))
            try:
                if use_model:
                    audio = engine.synthesize_chunk(
                        chunk.tokens,
                        voice,
                        context.voice_store,
                        speed=request.speed if speed_in_model else 1.0,
                        pitch=request.pitch,
                    )
                else:
                    audio = self._fallback_chunk(chunk, voice, engine, request)
                    used_fallback = True
            except ModelUnavailable:
                logger.warning("engine_unavailable request_id=%s index=%s mode=fallback", request.request_id, index)
                audio = self._fallback_chunk(chunk, voice, engine, request)
                used_fallback = True
            except (InferenceFailure, EmbeddingMissing) as exc:
                failed += 1
                logger.warning(
                    "chunk_failed request_id=%s index=%s tokens=%s reason=%s",
                    request.request_id,
                    index,
                    chunk.token_count,
                    exc,
                )
                continue
            pieces.append(audio)
            succeeded += 1
            logger.debug(
                "chunk_synthesized request_id=%s index=%s tokens=%s samples=%s",
                request.request_id,
                index,
                chunk.token_count,
                audio.size,
            )
        if succeeded == 0:
            raise NoAudioProduced(f"All {failed} text chunks failed to synthesize.")

        tracker.move(SynthesisState.POST_PROCESSING, count=len(chunks))
        samples, sample_rate = context.postprocessor.process(
            concatenate(pieces),
            engine.sample_rate,
            speed=1.0 if speed_in_model else request.speed,
            target_sample_rate=context.output_sample_rate,
        )
        if samples.size == 0:
            raise NoAudioProduced("Post-processing produced an empty waveform.")

        elapsed_ms = (time.perf_counter() - tracker.started) * 1000.0
        result = SynthesisResult(
            samples=samples,
            sample_rate=sample_rate,
            duration_seconds=samples.size / sample_rate,
            chunk_count=len(chunks),
            processing_time_ms=elapsed_ms,
            voice_id=voice.id,
            engine_family=voice.engine_family.value,
            used_fallback=used_fallback,
            failed_chunks=failed,
            language=language,
            language_fallback=language_fallback,
            text_truncated=normalized.truncated,
        )
        tracker.move(SynthesisState.DONE, index=len(chunks), count=len(chunks))
        logger.info(
            "synthesis_done request_id=%s duration=%.2f chunks=%s failed=%s fallback=%s elapsed_ms=%.1f",
            request.request_id,
            result.duration_seconds,
            result.chunk_count,
            failed,
            used_fallback,
            elapsed_ms,
        )
        return SynthesisOutcome(state=SynthesisState.DONE, result=result)

    def _fallback_chunk(
        self,
        chunk: TextSegment,
        voice: Voice,
        engine: InferenceEngine,
        request: SynthesisRequest,
    ) -> np.ndarray:
        return self.context.fallback.generate(
            chunk.token_count,
            voice.embedding,
            engine.sample_rate,
            pitch=request.pitch,
        )
