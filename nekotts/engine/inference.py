"""
Engine adapters binding token chunks and style vectors to an ONNX session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
import threading
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from nekotts.engine.model import OnnxModel, get_model
from nekotts.errors import InferenceFailure, ModelUnavailable
from nekotts.logging_utils import get_logger, summarize_payload
from nekotts.voices.catalog import EMBEDDING_DIM, EngineFamily, Voice
from nekotts.voices.store import VoiceStore

logger = get_logger(__name__)

WAVEFORM_OUTPUT = "waveform"
_TOKEN_INPUT_NAMES = ("input_ids", "tokens")


class InferenceEngine(ABC):
    """One model family: tensor layout, context window and native sample rate.

    Session calls are serialized with a per-engine lock, so at most one
    inference call is in flight per loaded session. Engines of different
    families hold different locks and may run concurrently.
    """

    family: EngineFamily
    sample_rate: int
    context_window: int = 512
    reserved_padding: int = 0

    def __init__(self, model: Optional[OnnxModel] = None) -> None:
        self.model = model
        self._lock = threading.Lock()

    @property
    def is_available(self) -> bool:
        return self.model is not None

    @property
    def max_chunk_tokens(self) -> int:
        return self.context_window - self.reserved_padding

    @property
    @abstractmethod
    def applies_speed_in_model(self) -> bool:
        ...

    @abstractmethod
    def build_inputs(
        self,
        tokens: Sequence[int],
        style: np.ndarray,
        *,
        speed: float,
        pitch: float,
    ) -> Dict[str, np.ndarray]:
        ...

    def synthesize_chunk(
        self,
        tokens: Sequence[int],
        voice: Voice,
        store: VoiceStore,
        *,
        speed: float = 1.0,
        pitch: float = 1.0,
    ) -> np.ndarray:
        """Run one chunk through the session and return a flat float32 waveform."""
        if self.model is None:
            raise ModelUnavailable(f"No model session loaded for engine family {self.family.value}.")
        if not tokens:
            raise InferenceFailure("Chunk has no tokens.")
        if len(tokens) > self.max_chunk_tokens:
            raise InferenceFailure(
                "Chunk exceeds the model context window.",
                detail=f"tokens={len(tokens)} max={self.max_chunk_tokens}",
            )
        style = store.resolve_style_vector(voice.id, len(tokens))
        inputs = self.build_inputs(tokens, style, speed=speed, pitch=pitch)
        inputs = self._rename_token_input(inputs)
        logger.debug("engine_inputs family=%s payload=%s", self.family.value, summarize_payload(inputs))
        with self._lock:
            try:
                outputs = self.model.run(inputs)
            except Exception as exc:
                raise InferenceFailure("Model inference failed.", detail=str(exc)) from exc
        return self._extract_waveform(outputs)

    def _rename_token_input(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        if self.model is None or self.model.accepts("input_ids"):
            return inputs
        for name in _TOKEN_INPUT_NAMES[1:]:
            if self.model.accepts(name):
                inputs = dict(inputs)
                inputs[name] = inputs.pop("input_ids")
                break
        return inputs

    @staticmethod
    def _extract_waveform(outputs: Dict[str, Any]) -> np.ndarray:
        if not outputs:
            raise InferenceFailure("Model returned no outputs.")
        waveform = outputs.get(WAVEFORM_OUTPUT)
        if waveform is None:
            waveform = next(iter(outputs.values()))
        if not isinstance(waveform, np.ndarray):
            raise InferenceFailure("Model output is not a tensor.", detail=type(waveform).__name__)
        if waveform.dtype != np.float32:
            raise InferenceFailure("Unsupported waveform dtype.", detail=str(waveform.dtype))
        if waveform.ndim == 2 and waveform.shape[0] == 1:
            waveform = waveform[0]
        if waveform.ndim != 1:
            raise InferenceFailure("Unexpected waveform shape.", detail=str(waveform.shape))
        if waveform.size == 0:
            raise InferenceFailure("Model produced an empty waveform.")
        if not np.all(np.isfinite(waveform)):
            raise InferenceFailure("Model produced non-finite samples.")
        return np.array(waveform, dtype=np.float32)


class SingleShotEngine(InferenceEngine):
    """
    Family A: unpadded ids [1, N], style [1, 256], speed [1].
    Speed (and pitch, when the export declares it) is applied in-model.
    """

    family = EngineFamily.A
    sample_rate = 22050
    context_window = 256
    reserved_padding = 0

    @property
    def applies_speed_in_model(self) -> bool:
        return True

    def build_inputs(self, tokens, style, *, speed, pitch):
        return {
            "input_ids": np.asarray([list(tokens)], dtype=np.int64),
            "style": np.asarray(style, dtype=np.float32).reshape(1, EMBEDDING_DIM),
            "speed": np.asarray([speed], dtype=np.float32),
            "pitch": np.asarray([pitch], dtype=np.float32),
        }


class ContextWindowEngine(InferenceEngine):
    """
    Family B: ids padded with start/end pad ids [1, M+2], style broadcast to
    [context_window - 2, 1, 256], speed fixed at 1.0. Speed is applied in
    post-processing.
    """

    family = EngineFamily.B
    sample_rate = 24000
    context_window = 512
    reserved_padding = 2
    pad_id = 0

    @property
    def applies_speed_in_model(self) -> bool:
        return False

    def build_inputs(self, tokens, style, *, speed, pitch):
        padded = [self.pad_id, *tokens, self.pad_id]
        style_rows = self.context_window - self.reserved_padding
        vector = np.asarray(style, dtype=np.float32).reshape(1, 1, EMBEDDING_DIM)
        return {
            "input_ids": np.asarray([padded], dtype=np.int64),
            "style": np.ascontiguousarray(np.broadcast_to(vector, (style_rows, 1, EMBEDDING_DIM))),
            "speed": np.asarray([1.0], dtype=np.float32),
        }


ENGINE_CLASSES = {
    EngineFamily.A: SingleShotEngine,
    EngineFamily.B: ContextWindowEngine,
}


def build_engine(
    family: Union[EngineFamily, str],
    model_path: Optional[Union[str, Path]] = None,
    device: str = "cpu",
    *,
    session: Any = None,
) -> InferenceEngine:
    """Create an engine; without a usable model it runs in fallback mode."""
    family = EngineFamily.parse(family)
    engine_class = ENGINE_CLASSES[family]
    if session is not None:
        return engine_class(OnnxModel(model_path, device, session=session))
    if model_path is None:
        logger.info("engine_model_unconfigured family=%s mode=fallback", family.value)
        return engine_class(None)
    model_path = Path(model_path)
    if not model_path.exists():
        logger.warning("engine_model_missing family=%s path=%s mode=fallback", family.value, model_path)
        return engine_class(None)
    try:
        model = get_model(model_path, device)
    except Exception:
        logger.warning(
            "engine_model_load_failed family=%s path=%s mode=fallback",
            family.value,
            model_path,
            exc_info=True,
        )
        return engine_class(None)
    logger.info(
        "engine_model_loaded family=%s path=%s inputs=%s outputs=%s",
        family.value,
        model_path,
        model.input_names,
        model.output_names,
    )
    return engine_class(model)
