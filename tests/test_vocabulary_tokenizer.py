import random
import string

import pytest

from nekotts.phonemizer import DEFAULT_VOCABULARY, Phonemizer, Tokenizer, Vocabulary
from nekotts.phonemizer.vocabulary import PAD_SYMBOL, UNKNOWN_SYMBOL


def test_pad_is_zero_and_unknown_is_last():
    assert DEFAULT_VOCABULARY.symbols[0] == PAD_SYMBOL
    assert DEFAULT_VOCABULARY.id_for(PAD_SYMBOL) == 0
    assert DEFAULT_VOCABULARY.unknown_id == len(DEFAULT_VOCABULARY) - 1
    assert DEFAULT_VOCABULARY.symbol_for(DEFAULT_VOCABULARY.unknown_id) == UNKNOWN_SYMBOL


def test_symbols_are_one_to_three_code_points():
    assert all(1 <= len(symbol) <= 3 for symbol in DEFAULT_VOCABULARY.symbols)
    assert DEFAULT_VOCABULARY.max_symbol_length <= 3


def test_vocabulary_covers_punctuation_letters_and_ipa():
    for symbol in (".", ",", "?", " ", "a", "Z", "ə", "ˈ", "ː", "aɪ", "tʃ", "dʒ"):
        assert symbol in DEFAULT_VOCABULARY


def test_duplicates_keep_first_id():
    vocabulary = Vocabulary.from_symbols(["a", "b", "a"])
    assert vocabulary.symbols == ("$", "a", "b", UNKNOWN_SYMBOL)
    assert vocabulary.id_for("a") == 1
    assert vocabulary.unknown_id == 3


def test_vocabulary_requires_pad_first():
    with pytest.raises(ValueError):
        Vocabulary(("a", "$", UNKNOWN_SYMBOL))


def test_tokenizer_prefers_longest_match():
    tokenizer = Tokenizer()
    assert tokenizer.tokenize("aɪ") == [DEFAULT_VOCABULARY.id_for("aɪ")]
    assert tokenizer.tokenize("tʃ") == [DEFAULT_VOCABULARY.id_for("tʃ")]


def test_unknown_characters_map_to_unknown_id():
    tokenizer = Tokenizer()
    ids = tokenizer.tokenize("aЖb")
    assert ids == [
        DEFAULT_VOCABULARY.id_for("a"),
        DEFAULT_VOCABULARY.unknown_id,
        DEFAULT_VOCABULARY.id_for("b"),
    ]


def test_pad_wraps_with_pad_id():
    tokenizer = Tokenizer()
    ids = tokenizer.tokenize("hɛˈloʊ", pad=True)
    assert ids[0] == 0 and ids[-1] == 0
    assert ids[1:-1] == tokenizer.tokenize("hɛˈloʊ")


def test_output_never_exceeds_input_plus_two():
    tokenizer = Tokenizer()
    rng = random.Random(7)
    alphabet = "abcxyzəɪʊˈːЖ漢 .,"
    for _ in range(200):
        text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
        assert len(tokenizer.tokenize(text, pad=True)) <= len(text) + 2
        assert len(tokenizer.tokenize(text)) <= len(text)


def test_detokenize_restores_phonemes():
    tokenizer = Tokenizer()
    assert tokenizer.detokenize(tokenizer.tokenize("wˈɝld")) == "wˈɝld"


def test_ascii_text_with_a_letter_yields_tokens():
    phonemizer = Phonemizer()
    tokenizer = Tokenizer()
    samples = list(string.ascii_letters) + ["x1!", "Hello, world", "42 q", "   z   "]
    rng = random.Random(11)
    for _ in range(100):
        text = "".join(rng.choice(string.printable) for _ in range(rng.randint(1, 30)))
        if any(char.isalpha() for char in text):
            samples.append(text)
    for text in samples:
        ids = tokenizer.tokenize(phonemizer.phonemize(text).phonemes)
        assert ids, text
