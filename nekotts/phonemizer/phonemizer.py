from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import unicodedata
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from nekotts.logging_utils import get_logger
from nekotts.phonemizer.rules import DEFAULT_LANGUAGE, LANGUAGE_RULES, lexicon_for
from nekotts.phonemizer.vocabulary import VOWEL_CHARACTERS

logger = get_logger(__name__)

STRESS_MARK = "ˈ"
DEFAULT_MAX_LENGTH = 400
_TRAILING_PUNCTUATION = ".,;:!?¡¿\"'()[]{}«»-—…"


@dataclass(frozen=True)
class PhonemeResult:
    phonemes: str
    language: str
    language_fallback: bool
    truncated: bool
    word_count: int


class Phonemizer:
    """Rule-based grapheme-to-phoneme conversion with a whole-word lexicon.

    Words are looked up in the lexicon first (case-insensitive, trailing
    punctuation removed). Otherwise the word is scanned left to right with the
    language's rule table, trying 3-, 2- then 1-character windows. Alphabetic
    characters with no rule pass through unchanged; anything else is dropped.
    """

    def __init__(
        self,
        *,
        language: str = DEFAULT_LANGUAGE,
        max_length: int = DEFAULT_MAX_LENGTH,
        add_stress: bool = True,
        lexicon_path: Optional[Path] = None,
    ) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive.")
        self.language, _ = self._resolve_language(language)
        self.max_length = max_length
        self.add_stress = add_stress
        self.lexicon_path = Path(lexicon_path) if lexicon_path else None
        custom = self._load_lexicon(self.lexicon_path) if self.lexicon_path else {}
        self._lexicons: Dict[str, Dict[str, str]] = {}
        for code in LANGUAGE_RULES:
            lexicon = lexicon_for(code)
            lexicon.update(custom)
            self._lexicons[code] = lexicon

    @staticmethod
    def supported_languages() -> Tuple[str, ...]:
        return tuple(LANGUAGE_RULES)

    @staticmethod
    def is_supported(language: Optional[str]) -> bool:
        return bool(language) and language.strip().lower().replace("_", "-") in LANGUAGE_RULES

    def phonemize(
        self,
        text: str,
        language: Optional[str] = None,
        *,
        truncate: bool = True,
    ) -> PhonemeResult:
        code, fallback = self._resolve_language(language or self.language)
        rules = LANGUAGE_RULES[code]
        lexicon = self._lexicons[code]
        words: List[str] = []
        for raw in text.split():
            phonemes = self._phonemize_word(raw, rules, lexicon)
            if phonemes:
                words.append(phonemes)
        output = " ".join(words)
        truncated = False
        if truncate and len(output) > self.max_length:
            logger.info(
                "phonemes_truncated language=%s length=%s max_length=%s",
                code,
                len(output),
                self.max_length,
            )
            output = output[: self.max_length].rstrip()
            truncated = True
        return PhonemeResult(
            phonemes=output,
            language=code,
            language_fallback=fallback,
            truncated=truncated,
            word_count=len(words),
        )

    def _phonemize_word(
        self,
        raw: str,
        rules: Mapping[str, str],
        lexicon: Mapping[str, str],
    ) -> str:
        word = unicodedata.normalize("NFC", raw).lower()
        key = word.rstrip(_TRAILING_PUNCTUATION)
        if key in lexicon:
            return lexicon[key]
        pieces: List[str] = []
        index = 0
        while index < len(word):
            for size in (3, 2, 1):
                window = word[index : index + size]
                if len(window) == size and window in rules:
                    if rules[window]:
                        pieces.append(rules[window])
                    index += size
                    break
            else:
                char = word[index]
                if char.isalpha():
                    pieces.append(char)
                index += 1
        phonemes = "".join(pieces)
        if self.add_stress and len(pieces) > 2:
            phonemes = self._add_stress(phonemes)
        return phonemes

    @staticmethod
    def _add_stress(phonemes: str) -> str:
        for index, char in enumerate(phonemes):
            if char in VOWEL_CHARACTERS:
                return phonemes[:index] + STRESS_MARK + phonemes[index:]
        return phonemes

    @staticmethod
    def _resolve_language(language: Optional[str]) -> Tuple[str, bool]:
        code = (language or "").strip().lower().replace("_", "-")
        if code in LANGUAGE_RULES:
            return code, False
        logger.warning(
            "unsupported_language language=%s fallback=%s", language, DEFAULT_LANGUAGE
        )
        return DEFAULT_LANGUAGE, True

    @staticmethod
    def _load_lexicon(path: Path) -> Dict[str, str]:
        if not path.exists():
            raise FileNotFoundError(
                f"Pronunciation dictionary not found at {path}. "
                "Expected a YAML mapping of word: phonemes."
            )
        data = yaml.safe_load(path.read_text(encoding="utf8"))
        if not isinstance(data, dict):
            raise ValueError(f"Invalid pronunciation dictionary format at {path}.")
        return {
            unicodedata.normalize("NFC", str(word)).lower(): str(phonemes)
            for word, phonemes in data.items()
            if word and phonemes
        }
