import unicodedata

import pytest

from nekotts.text.normalizer import TextNormalizer, normalize_text, number_to_words


def test_abbreviations_are_expanded():
    assert normalize_text("Mr. Smith met Dr. Jones on Baker St.") == (
        "Mister Smith met Doctor Jones on Baker Saint"
    )
    assert normalize_text("Mrs. Brown") == "Misses Brown"


def test_small_integers_become_words():
    assert normalize_text("I have 3 cats and 42 dogs") == "I have three cats and forty two dogs"
    assert normalize_text("20 years") == "twenty years"


def test_large_and_decimal_numbers_are_left_alone():
    assert normalize_text("pi is 3.14") == "pi is 3.14"
    assert normalize_text("room 101") == "room 101"


def test_symbols_become_words():
    assert normalize_text("Tom & Jerry @ home") == "Tom and Jerry at home"
    assert normalize_text("50% off") == "fifty percent off"
    assert normalize_text("costs $5") == "costs five dollars"
    assert normalize_text("£20") == "twenty pounds"


def test_curly_quotes_and_ellipsis_become_ascii():
    assert normalize_text("“Hi” it’s fine…") == "\"Hi\" it's fine..."


def test_whitespace_is_collapsed():
    assert normalize_text("  lots   of\t space  ") == "lots of space"


def test_newlines_become_sentence_breaks():
    assert normalize_text("First line\nSecond line") == "First line. Second line"
    assert normalize_text("Question?\n\nAnswer") == "Question? Answer"


def test_control_characters_only_gives_empty_string():
    assert normalize_text("\x00\x01\x02\x1b\x7f") == ""
    assert normalize_text("") == ""


def test_break_tags_pass_through():
    text = 'Hello 5. <break time="0.5s"/> Bye'
    assert normalize_text(text) == 'Hello five. <break time="0.5s"/> Bye'


def test_output_is_nfd_decomposed():
    result = normalize_text(unicodedata.normalize("NFC", "caf\u00e9"))
    assert result == "cafe\u0301"


def test_truncation_is_flagged():
    normalizer = TextNormalizer(max_length=20)
    result = normalizer.normalize("word " * 50)
    assert result.truncated is True
    assert len(result.text) <= 20
    assert result.original_length == 250


def test_short_text_is_not_flagged():
    result = TextNormalizer().normalize("Hello world.")
    assert result.text == "Hello world."
    assert result.truncated is False


def test_unexpected_errors_degrade_to_stripping(monkeypatch):
    normalizer = TextNormalizer()

    def boom(_text):
        raise RuntimeError("boom")

    monkeypatch.setattr(normalizer, "_normalize", boom)
    assert normalizer.normalize("ok\x00 text").text == "ok text"


def test_number_to_words_bounds():
    assert number_to_words(0) == "zero"
    assert number_to_words(19) == "nineteen"
    assert number_to_words(99) == "ninety nine"
    with pytest.raises(ValueError):
        number_to_words(100)


def test_truncation_never_splits_a_break_tag():
    text = 'Hi there <break time="1s"/> bye'
    cut = text.index("time")
    result = TextNormalizer(max_length=cut).normalize(text)
    assert result.truncated is True
    assert result.text == "Hi there"
    assert "<" not in result.text
