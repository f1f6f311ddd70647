import pytest

from nekotts.phonemizer import Phonemizer, Tokenizer
from nekotts.text.chunker import Chunker, Silence, TextSegment, parse_break_duration, split_segments
from nekotts.text.normalizer import normalize_text


@pytest.fixture
def chunker():
    return Chunker(Phonemizer(), Tokenizer())


def _kinds(chunks):
    return [chunk.kind for chunk in chunks]


def test_short_sentence_is_one_text_chunk(chunker):
    chunks = chunker.chunk(normalize_text("Hello world."), context_window=512, reserved_padding=2)
    assert _kinds(chunks) == ["text"]
    assert chunks[0].token_count == 11


def test_break_between_sentences(chunker):
    text = normalize_text('Hello there. <break time="0.5s"/> General Kenobi.')
    chunks = chunker.chunk(text, context_window=512, reserved_padding=2)
    assert _kinds(chunks) == ["text", "silence", "text"]
    assert chunks[1].duration_seconds == pytest.approx(0.5)


def test_sentence_pause_inserted_between_text_chunks(chunker):
    chunks = chunker.chunk("One. Two! Three?", context_window=512)
    assert _kinds(chunks) == ["text", "silence", "text", "silence", "text"]
    assert all(c.duration_seconds == pytest.approx(0.2) for c in chunks if isinstance(c, Silence))


def test_windows_never_exceed_context(chunker):
    text = " ".join(["supercalifragilistic"] * 80)
    chunks = chunker.chunk(text, context_window=64, reserved_padding=2)
    text_chunks = [c for c in chunks if isinstance(c, TextSegment)]
    assert len(text_chunks) > 1
    assert all(c.token_count <= 62 for c in text_chunks)
    # Consecutive windows of one sentence are still separated by a short pause.
    assert _kinds(chunks)[:3] == ["text", "silence", "text"]


def test_windows_preserve_token_order(chunker):
    text = " ".join(["banana"] * 40)
    whole = chunker.chunk(text, context_window=10_000)
    split = chunker.chunk(text, context_window=32, reserved_padding=2)
    joined = [t for c in split if isinstance(c, TextSegment) for t in c.tokens]
    assert joined == list(whole[0].tokens)


def test_empty_and_tokenless_segments_are_dropped(chunker):
    chunks = chunker.chunk("... 123 !!! Hello.", context_window=512)
    assert _kinds(chunks) == ["text"]
    assert chunker.chunk("", context_window=512) == []


def test_leading_and_consecutive_breaks(chunker):
    text = '<break time="1s"/>Hi.<break time="250ms"/><break time="9s"/>Bye.'
    chunks = chunker.chunk(text, context_window=512)
    assert _kinds(chunks) == ["silence", "text", "silence", "silence", "text"]
    assert [c.duration_seconds for c in chunks if isinstance(c, Silence)] == [
        pytest.approx(1.0),
        pytest.approx(0.25),
        pytest.approx(5.0),
    ]


def test_context_window_must_exceed_padding(chunker):
    with pytest.raises(ValueError):
        chunker.chunk("Hello.", context_window=2, reserved_padding=2)


@pytest.mark.parametrize(
    "value, expected",
    [("0.5s", 0.5), ("500ms", 0.5), ("2", 2.0), ("7s", 5.0), ("soon", 0.5), ("", 0.5)],
)
def test_parse_break_duration(value, expected):
    assert parse_break_duration(value) == pytest.approx(expected)


def test_split_segments_keeps_order():
    assert split_segments('A b. <break time="1s"/> C d? E') == ["A b", 1.0, "C d", "E"]
