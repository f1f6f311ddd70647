"""Split normalized text into model-sized token chunks and pauses."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import List, Optional, Sequence, Tuple, Union

from nekotts.logging_utils import get_logger
from nekotts.phonemizer.phonemizer import Phonemizer
from nekotts.phonemizer.tokenizer import Tokenizer
from nekotts.text.normalizer import BREAK_TAG_PATTERN

logger = get_logger(__name__)

DEFAULT_SENTENCE_PAUSE_SECONDS = 0.2
DEFAULT_BREAK_SECONDS = 0.5
MAX_BREAK_SECONDS = 5.0

_SENTENCE_END_PATTERN = re.compile(r"[.!?]+(?=\s|$)")
_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(ms|s)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class TextSegment:
    tokens: Tuple[int, ...]
    text: str = ""
    kind: str = field(default="text", init=False)

    @property
    def token_count(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class Silence:
    duration_seconds: float
    kind: str = field(default="silence", init=False)


TextChunk = Union[TextSegment, Silence]


def parse_break_duration(value: str) -> float:
    """Parse a break time value ("0.5s", "250ms", "2") into clamped seconds."""
    match = _DURATION_PATTERN.match(value or "")
    if not match:
        logger.debug("break_duration_unparsed value=%s default=%s", value, DEFAULT_BREAK_SECONDS)
        return DEFAULT_BREAK_SECONDS
    seconds = float(match.group(1))
    if (match.group(2) or "s").lower() == "ms":
        seconds /= 1000.0
    return min(max(seconds, 0.0), MAX_BREAK_SECONDS)


def split_segments(text: str) -> List[Union[str, float]]:
    """Return sentences (str) and explicit pauses (float seconds) in order."""
    segments: List[Union[str, float]] = []

    def _add_sentences(piece: str) -> None:
        for sentence in _SENTENCE_END_PATTERN.split(piece):
            sentence = sentence.strip()
            if sentence:
                segments.append(sentence)

    cursor = 0
    for match in BREAK_TAG_PATTERN.finditer(text):
        _add_sentences(text[cursor : match.start()])
        segments.append(parse_break_duration(match.group("value")))
        cursor = match.end()
    _add_sentences(text[cursor:])
    return segments


class Chunker:
    def __init__(
        self,
        phonemizer: Phonemizer,
        tokenizer: Tokenizer,
        *,
        sentence_pause_seconds: float = DEFAULT_SENTENCE_PAUSE_SECONDS,
    ) -> None:
        self.phonemizer = phonemizer
        self.tokenizer = tokenizer
        self.sentence_pause_seconds = sentence_pause_seconds

    def chunk(
        self,
        text: str,
        *,
        context_window: int,
        reserved_padding: int = 0,
        language: Optional[str] = None,
    ) -> List[TextChunk]:
        """Split text into Text chunks of at most context_window - reserved_padding tokens.

        A short Silence separates consecutive Text chunks that have no explicit
        pause between them. Explicit pauses become Silence chunks of their own.
        """
        window = context_window - reserved_padding
        if window <= 0:
            raise ValueError("context_window must exceed reserved_padding.")
        chunks: List[TextChunk] = []
        for segment in split_segments(text):
            if isinstance(segment, float):
                chunks.append(Silence(duration_seconds=segment))
                continue
            tokens = self._tokenize(segment, language)
            if not tokens:
                logger.debug("segment_dropped reason=no_tokens text=%s", segment[:40])
                continue
            for start in range(0, len(tokens), window):
                if chunks and isinstance(chunks[-1], TextSegment):
                    chunks.append(Silence(duration_seconds=self.sentence_pause_seconds))
                chunks.append(TextSegment(tokens=tuple(tokens[start : start + window]), text=segment))
        logger.debug(
            "chunk_plan text_chunks=%s silences=%s window=%s",
            sum(1 for c in chunks if isinstance(c, TextSegment)),
            sum(1 for c in chunks if isinstance(c, Silence)),
            window,
        )
        return chunks

    def _tokenize(self, segment: str, language: Optional[str]) -> Sequence[int]:
        result = self.phonemizer.phonemize(segment, language, truncate=False)
        if not result.phonemes.strip():
            return []
        return self.tokenizer.tokenize(result.phonemes)
