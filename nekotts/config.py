"""Runtime settings loader from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

PROJECT_ROOT = Path(__file__).resolve().parents[1]

SUPPORTED_DEVICES = ("cpu", "cuda", "coreml")


def _env_int(name: str, default: int) -> int:
    """Read an int env var with a default."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    """Read a float env var with a default."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in {"1", "true", "yes"}


def _env_path(name: str, default: Path | None) -> Path | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return Path(value).expanduser()


def _app_env() -> str:
    """Return the application environment name."""
    return os.getenv("APP_ENV") or os.getenv("ENV") or "dev"


@dataclass(frozen=True)
class Settings:
    """Configuration values parsed from the environment."""
    assets_dir: Path
    voices_dir: Path | None
    model_a_path: Path | None
    model_b_path: Path | None
    lexicon_path: Path | None
    device: str
    default_voice_id: str | None
    max_text_length: int
    fade_ms: float
    silence_threshold: float
    min_audio_ms: float
    output_sample_rate: int | None
    workers: int
    max_pending: int
    request_timeout_seconds: float
    stream_chunk_bytes: int
    fallback_seed: int
    use_builtin_voices: bool
    app_env: str

    @classmethod
    def from_env(cls) -> "Settings":
        """Construct settings from environment variables."""
        assets_dir = _env_path("NEKOTTS_ASSETS_DIR", PROJECT_ROOT / "assets")
        voices_dir = _env_path("NEKOTTS_VOICES_DIR", None)
        if voices_dir is None and (assets_dir / "voices" / "voices.yaml").exists():
            voices_dir = assets_dir / "voices"
        device = os.getenv("NEKOTTS_DEVICE", "cpu").strip().lower()
        if device not in SUPPORTED_DEVICES:
            raise ValueError(
                f"NEKOTTS_DEVICE must be one of {', '.join(SUPPORTED_DEVICES)} (got '{device}')."
            )
        output_sample_rate = _env_int("NEKOTTS_OUTPUT_SAMPLE_RATE", 0) or None
        workers = _env_int("NEKOTTS_WORKERS", 2)
        max_pending = _env_int("NEKOTTS_MAX_PENDING", 4)
        if workers < 1:
            raise ValueError("NEKOTTS_WORKERS must be at least 1.")
        if max_pending < 1:
            raise ValueError("NEKOTTS_MAX_PENDING must be at least 1.")
        return cls(
            assets_dir=assets_dir,
            voices_dir=voices_dir,
            model_a_path=_env_path("NEKOTTS_MODEL_A_PATH", None),
            model_b_path=_env_path("NEKOTTS_MODEL_B_PATH", None),
            lexicon_path=_env_path("NEKOTTS_LEXICON_PATH", None),
            device=device,
            default_voice_id=os.getenv("NEKOTTS_DEFAULT_VOICE") or None,
            max_text_length=_env_int("NEKOTTS_MAX_TEXT_LENGTH", 10_000),
            fade_ms=_env_float("NEKOTTS_FADE_MS", 25.0),
            silence_threshold=_env_float("NEKOTTS_SILENCE_THRESHOLD", 0.01),
            min_audio_ms=_env_float("NEKOTTS_MIN_AUDIO_MS", 50.0),
            output_sample_rate=output_sample_rate,
            workers=workers,
            max_pending=max_pending,
            request_timeout_seconds=_env_float("NEKOTTS_REQUEST_TIMEOUT_SECONDS", 30.0),
            stream_chunk_bytes=_env_int("NEKOTTS_STREAM_CHUNK_BYTES", 8192),
            fallback_seed=_env_int("NEKOTTS_FALLBACK_SEED", 42),
            use_builtin_voices=_env_bool("NEKOTTS_BUILTIN_VOICES", True),
            app_env=_app_env(),
        )
