"""Static phoneme symbol table shared by the tokenizer and both engine families."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

PAD_SYMBOL = "$"
UNKNOWN_SYMBOL = "�"

_PUNCTUATION = ';:,.!?¡¿—…"«»“” '
_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_LETTERS_IPA = (
    "ɑɐɒæɓʙβɔɕçɗɖðʤəɘɚɛɜɝɞɟʄɡɠɢʛɦɧħɥʜɨɪʝɭɬɫɮʟɱɯɰŋɳɲɴøɵɸθœɶʘɹɺɾɻʀʁɽʂʃʈʧʉʊʋⱱʌɣɤʍχʎʏʑʐʒʔʡʕʢ"
    "ǀǁǂǃˈˌːˑʼʴʰʱʲʷˠˤ˞↓↑→↗↘'̩ᵻ"
)
# Diphthongs, affricates and nasal vowels: matched as one symbol by the tokenizer.
_COMPOUND_SYMBOLS = (
    "aɪ", "aʊ", "eɪ", "oʊ", "ɔɪ", "ɪə", "eə", "ʊə",
    "tʃ", "dʒ",
    "ɑ̃", "æ̃", "ɛ̃", "ɔ̃", "œ̃",
    "ʝ̊", "ʁ̝",
)

VOWEL_CHARACTERS = frozenset("ɑɐɒæəɘɚɛɜɝɞɨɪʊʌɔoeiuaøœɶyɵ")


def _ordered_unique(symbols: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for symbol in symbols:
        if symbol in seen:
            continue
        seen.add(symbol)
        ordered.append(symbol)
    return ordered


@dataclass(frozen=True)
class Vocabulary:
    """Immutable symbol->id mapping with a pad id (0) and a trailing unknown id."""

    symbols: Tuple[str, ...]
    _ids: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.symbols or self.symbols[0] != PAD_SYMBOL:
            raise ValueError("Vocabulary must start with the pad symbol.")
        if UNKNOWN_SYMBOL not in self.symbols:
            raise ValueError("Vocabulary must contain the unknown symbol.")
        for symbol in self.symbols:
            if not 1 <= len(symbol) <= 3:
                raise ValueError(f"Vocabulary symbol {symbol!r} must be 1-3 code points.")
        ids: Dict[str, int] = {}
        for index, symbol in enumerate(self.symbols):
            ids.setdefault(symbol, index)
        object.__setattr__(self, "_ids", ids)

    @classmethod
    def from_symbols(cls, symbols: Sequence[str]) -> "Vocabulary":
        ordered = _ordered_unique([PAD_SYMBOL, *symbols])
        if UNKNOWN_SYMBOL not in ordered:
            ordered.append(UNKNOWN_SYMBOL)
        return cls(tuple(ordered))

    @property
    def pad_id(self) -> int:
        return 0

    @property
    def unknown_id(self) -> int:
        return self._ids[UNKNOWN_SYMBOL]

    @property
    def max_symbol_length(self) -> int:
        return max(len(symbol) for symbol in self.symbols)

    def id_for(self, symbol: str) -> Optional[int]:
        return self._ids.get(symbol)

    def symbol_for(self, token_id: int) -> Optional[str]:
        if 0 <= token_id < len(self.symbols):
            return self.symbols[token_id]
        return None

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._ids

    def __len__(self) -> int:
        return len(self.symbols)


DEFAULT_VOCABULARY = Vocabulary.from_symbols(
    [*_PUNCTUATION, *_LETTERS, *_LETTERS_IPA, *_COMPOUND_SYMBOLS, UNKNOWN_SYMBOL]
)
