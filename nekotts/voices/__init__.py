from .catalog import EMBEDDING_DIM, EngineFamily, Voice
from .store import VoiceStore, load_embedding_blob

__all__ = [
    "EMBEDDING_DIM",
    "EngineFamily",
    "Voice",
    "VoiceStore",
    "load_embedding_blob",
]
