import onnxruntime as ort
import numpy as np
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union


class OnnxModel:
    """
    ONNX acoustic model producing a waveform from phoneme ids.
    Inputs: input_ids, style, speed (pitch on some family A exports)
    Outputs: waveform
    """
    def __init__(self, model_path: Optional[Path] = None, device: str = "cpu", *, session: Any = None):
        self.model_path = Path(model_path) if model_path is not None else None
        self.device = device
        self.session = session if session is not None else self._load_session()
        self.input_names = [node.name for node in self.session.get_inputs()]
        self.output_names = [node.name for node in self.session.get_outputs()]

    @property
    def name(self) -> str:
        return self.model_path.name if self.model_path is not None else "<session>"

    def _load_session(self) -> ort.InferenceSession:
        if self.model_path is None:
            raise ValueError("Either model_path or session must be given.")
        if not self.model_path.exists():
            raise FileNotFoundError(f"Model not found at {self.model_path}")

        available = ort.get_available_providers()
        providers = ["CPUExecutionProvider"]
        if self.device == "cuda":
            if "CUDAExecutionProvider" in available:
                providers.insert(0, "CUDAExecutionProvider")
            else:
                logging.warning(
                    "cuda_provider_unavailable model=%s available=%s",
                    self.model_path.name,
                    available,
                )
        elif self.device == "coreml":
            if "CoreMLExecutionProvider" in available:
                providers.insert(0, "CoreMLExecutionProvider")
            else:
                logging.warning(
                    "coreml_provider_unavailable model=%s available=%s",
                    self.model_path.name,
                    available,
                )

        opts = ort.SessionOptions()
        intra_threads = os.getenv("ORT_INTRA_OP_NUM_THREADS")
        inter_threads = os.getenv("ORT_INTER_OP_NUM_THREADS")
        if intra_threads:
            opts.intra_op_num_threads = int(intra_threads)
        if inter_threads:
            opts.inter_op_num_threads = int(inter_threads)
        logging.info(
            "ort_session_config model=%s providers=%s intra_threads=%s inter_threads=%s",
            self.model_path.name,
            providers,
            opts.intra_op_num_threads,
            opts.inter_op_num_threads,
        )
        return ort.InferenceSession(str(self.model_path), providers=providers, sess_options=opts)

    def accepts(self, input_name: str) -> bool:
        return input_name in self.input_names

    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, Any]:
        # Drop inputs the exported graph does not declare (e.g. optional pitch).
        filtered_inputs = {k: v for k, v in inputs.items() if k in self.input_names}
        outputs = self.session.run(self.output_names, filtered_inputs)
        return dict(zip(self.output_names, outputs))


# Cache for loaded models
_model_cache: Dict[str, OnnxModel] = {}
_model_cache_lock = threading.Lock()


def get_model(model_path: Union[str, Path], device: str = "cpu") -> OnnxModel:
    """Get or create a cached model instance."""
    resolved = Path(model_path).resolve()
    cache_key = f"{resolved}:{device}"
    with _model_cache_lock:
        if cache_key not in _model_cache:
            _model_cache[cache_key] = OnnxModel(resolved, device)
        return _model_cache[cache_key]


def clear_model_cache() -> None:
    with _model_cache_lock:
        _model_cache.clear()
