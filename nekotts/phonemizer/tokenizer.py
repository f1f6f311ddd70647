"""Map phoneme strings to vocabulary ids."""

from __future__ import annotations

from typing import Iterable, List, Optional

from nekotts.logging_utils import get_logger
from nekotts.phonemizer.vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = get_logger(__name__)


class Tokenizer:
    def __init__(self, vocabulary: Optional[Vocabulary] = None) -> None:
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self._window = min(3, self.vocabulary.max_symbol_length)

    def tokenize(self, phonemes: str, *, pad: bool = False) -> List[int]:
        """Greedy longest-match scan; unknown characters map to the unknown id."""
        vocabulary = self.vocabulary
        ids: List[int] = []
        unknown = 0
        index = 0
        while index < len(phonemes):
            for size in range(self._window, 0, -1):
                window = phonemes[index : index + size]
                if len(window) != size:
                    continue
                token_id = vocabulary.id_for(window)
                if token_id is not None:
                    ids.append(token_id)
                    index += size
                    break
            else:
                ids.append(vocabulary.unknown_id)
                unknown += 1
                index += 1
        if unknown:
            logger.debug("tokenize_unknown_symbols count=%s input_length=%s", unknown, len(phonemes))
        if pad:
            ids = [vocabulary.pad_id, *ids, vocabulary.pad_id]
        return ids

    def detokenize(self, ids: Iterable[int]) -> str:
        symbols = []
        for token_id in ids:
            symbol = self.vocabulary.symbol_for(int(token_id))
            if symbol is not None:
                symbols.append(symbol)
        return "".join(symbols)
