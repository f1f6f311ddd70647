from .chunker import Chunker, Silence, TextChunk, TextSegment
from .normalizer import NormalizedText, TextNormalizer, normalize_text

__all__ = [
    "Chunker",
    "NormalizedText",
    "Silence",
    "TextChunk",
    "TextNormalizer",
    "TextSegment",
    "normalize_text",
]
