"""Text cleanup applied before phonemization."""

from __future__ import annotations

from dataclasses import dataclass
import re
import unicodedata
from typing import List

from nekotts.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TEXT_LENGTH = 10_000

BREAK_TAG_PATTERN = re.compile(
    r"<break\s+time\s*=\s*[\"']?\s*(?P<value>[^\"'/>\s]*)\s*[\"']?\s*/?>",
    re.IGNORECASE,
)

ABBREVIATIONS = {
    "Mr": "Mister",
    "Mrs": "Misses",
    "Dr": "Doctor",
    "Prof": "Professor",
    "St": "Saint",
    "Ave": "Avenue",
    "Rd": "Road",
    "Blvd": "Boulevard",
}

SYMBOL_WORDS = {
    "&": "and",
    "@": "at",
    "%": "percent",
    "$": "dollars",
    "€": "euros",
    "£": "pounds",
}

_PUNCTUATION_REPLACEMENTS = {
    "‘": "'",
    "’": "'",
    "‚": "'",
    "‛": "'",
    "“": '"',
    "”": '"',
    "„": '"',
    "‟": '"',
    "…": "...",
}

_ONES = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")

_ABBREVIATION_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(ABBREVIATIONS, key=len, reverse=True)) + r")\."
)
# Integers that are not part of a decimal or grouped number.
_INTEGER_PATTERN = re.compile(r"(?<![\d.,])(\d+)(?![\d]|[.,]\d)")
_CURRENCY_AMOUNT_PATTERN = re.compile(r"([$€£])\s*(\d+(?:[.,]\d+)?)")
_SENTENCE_END = (".", "!", "?")


@dataclass(frozen=True)
class NormalizedText:
    text: str
    truncated: bool
    original_length: int


def number_to_words(value: int) -> str:
    """Spell out an integer in the range 0-99."""
    if not 0 <= value < 100:
        raise ValueError(f"number_to_words supports 0-99 (got {value}).")
    if value < 20:
        return _ONES[value]
    tens, ones = divmod(value, 10)
    if ones == 0:
        return _TENS[tens]
    return f"{_TENS[tens]} {_ONES[ones]}"


def strip_non_printable(text: str) -> str:
    """Drop control, format and unassigned code points; keep newlines and tabs."""
    return "".join(
        char for char in text
        if char in "\n\t" or not unicodedata.category(char).startswith("C")
    )


class TextNormalizer:
    """Pure text cleanup; never raises."""

    def __init__(self, *, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive.")
        self.max_length = max_length

    def normalize(self, text: str) -> NormalizedText:
        original_length = len(text or "")
        try:
            cleaned = self._normalize(text or "")
        except Exception:
            logger.warning("normalize_failed length=%s", original_length, exc_info=True)
            cleaned = " ".join(strip_non_printable(str(text or "")).split())
        truncated = False
        if len(cleaned) > self.max_length:
            logger.warning(
                "text_truncated length=%s max_length=%s", len(cleaned), self.max_length
            )
            cleaned = self._truncate(cleaned)
            truncated = True
        return NormalizedText(text=cleaned, truncated=truncated, original_length=original_length)

    def _truncate(self, text: str) -> str:
        limit = self.max_length
        # Never keep half of a break tag.
        for match in BREAK_TAG_PATTERN.finditer(text):
            if match.start() < limit < match.end():
                limit = match.start()
                break
        return text[:limit].rstrip()

    def __call__(self, text: str) -> str:
        return self.normalize(text).text

    def _normalize(self, text: str) -> str:
        text = strip_non_printable(text)
        text = unicodedata.normalize("NFD", text)
        text = self._join_lines(text)
        parts: List[str] = []
        cursor = 0
        for match in BREAK_TAG_PATTERN.finditer(text):
            parts.append(self._normalize_segment(text[cursor : match.start()]))
            parts.append(match.group(0))
            cursor = match.end()
        parts.append(self._normalize_segment(text[cursor:]))
        return " ".join(part for part in parts if part)

    @staticmethod
    def _join_lines(text: str) -> str:
        lines = [line.strip() for line in text.splitlines()]
        lines = [line for line in lines if line]
        if len(lines) <= 1:
            return lines[0] if lines else ""
        joined = []
        for line in lines[:-1]:
            joined.append(line if line.endswith(_SENTENCE_END) else f"{line}.")
        joined.append(lines[-1])
        return " ".join(joined)

    def _normalize_segment(self, segment: str) -> str:
        for source, target in _PUNCTUATION_REPLACEMENTS.items():
            segment = segment.replace(source, target)
        segment = _ABBREVIATION_PATTERN.sub(lambda m: ABBREVIATIONS[m.group(1)], segment)
        segment = _CURRENCY_AMOUNT_PATTERN.sub(r"\2 \1", segment)
        segment = _INTEGER_PATTERN.sub(self._expand_integer, segment)
        for symbol, word in SYMBOL_WORDS.items():
            segment = segment.replace(symbol, f" {word} ")
        return " ".join(segment.split())

    @staticmethod
    def _expand_integer(match: re.Match) -> str:
        digits = match.group(1)
        value = int(digits)
        if value < 100:
            return number_to_words(value)
        return digits


def normalize_text(text: str, *, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    """Convenience wrapper returning only the cleaned string."""
    return TextNormalizer(max_length=max_length).normalize(text).text
