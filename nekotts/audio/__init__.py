from .output import save_audio
from .postprocess import (
    PostProcessor,
    apply_fade,
    apply_gain,
    audio_info,
    change_speed,
    concatenate,
    normalize,
    resample,
    silence,
    trim_silence,
)
from .wav import decode_wav, decode_wav_header, encode_wav, to_pcm16

__all__ = [
    "PostProcessor",
    "apply_fade",
    "apply_gain",
    "audio_info",
    "change_speed",
    "concatenate",
    "decode_wav",
    "decode_wav_header",
    "encode_wav",
    "normalize",
    "resample",
    "save_audio",
    "silence",
    "to_pcm16",
    "trim_silence",
]
