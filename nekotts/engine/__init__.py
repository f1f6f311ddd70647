from .fallback import SyntheticFallbackGenerator
from .inference import ContextWindowEngine, InferenceEngine, SingleShotEngine, build_engine
from .model import OnnxModel, clear_model_cache, get_model

__all__ = [
    "ContextWindowEngine",
    "InferenceEngine",
    "OnnxModel",
    "SingleShotEngine",
    "SyntheticFallbackGenerator",
    "build_engine",
    "clear_model_cache",
    "get_model",
]
