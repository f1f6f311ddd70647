from .phonemizer import PhonemeResult, Phonemizer
from .tokenizer import Tokenizer
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

__all__ = [
    "DEFAULT_VOCABULARY",
    "PhonemeResult",
    "Phonemizer",
    "Tokenizer",
    "Vocabulary",
]
