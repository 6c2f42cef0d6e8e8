"""Tests for the document chunker."""

import pytest

from ragchat.docs.chunker import (
    TiktokenTokenizer,
    WhitespaceTokenizer,
    chunk_text,
    get_tokenizer,
    merge_chunks,
)


class CharEncoding:
    """Fake tiktoken encoding: one token per character."""

    def encode(self, text: str, disallowed_special: tuple[str, ...] = ()) -> list[int]:
        return [ord(c) for c in text]

    def decode_with_offsets(self, tokens: list[int]) -> tuple[str, list[int]]:
        return "".join(chr(t) for t in tokens), list(range(len(tokens)))


def test_windows_with_overlap() -> None:
    """Ten tokens, windows of four with one shared token -> three chunks."""
    text = "a b c d e f g h i j"

    chunks = list(chunk_text(text, max_tokens=4, overlap_tokens=1))

    assert [c.order for c in chunks] == [0, 1, 2]
    assert [c.text for c in chunks] == ["a b c d ", "d e f g ", "g h i j"]
    assert [c.token_count for c in chunks] == [4, 4, 4]
    assert chunks[0].start == 0
    assert chunks[-1].end == len(text)


def test_final_remainder_is_its_own_chunk() -> None:
    """A short tail after the last full window becomes the final chunk."""
    chunks = list(chunk_text("one two three four five", max_tokens=2))

    assert [c.text for c in chunks] == ["one two ", "three four ", "five"]
    assert chunks[-1].token_count == 1


def test_short_text_yields_single_chunk() -> None:
    """Text within the token limit is one chunk equal to the text."""
    text = "just a few words"

    chunks = list(chunk_text(text, max_tokens=10, overlap_tokens=3))

    assert len(chunks) == 1
    assert chunks[0].text == text
    assert chunks[0].token_count == 4


@pytest.mark.parametrize("text", ["", "   \n\t  "])
def test_empty_or_tokenless_text_yields_nothing(text: str) -> None:
    """No tokens means no chunks."""
    assert list(chunk_text(text, max_tokens=5)) == []


def test_leading_and_trailing_whitespace_kept() -> None:
    """Leading whitespace joins the first chunk and trailing whitespace the last."""
    text = "  hello world  "

    chunks = list(chunk_text(text, max_tokens=1))

    assert [c.text for c in chunks] == ["  hello ", "world  "]


@pytest.mark.parametrize(
    ("max_tokens", "overlap_tokens"),
    [(3, 0), (3, 2), (5, 1), (1, 0), (50, 10)],
)
def test_merge_rebuilds_source_exactly(max_tokens: int, overlap_tokens: int) -> None:
    """Joining non-overlapping tails reproduces the source text."""
    text = "Line one of the manual.\n\n  Indented line two,   with  gaps.\nLast line "

    chunks = chunk_text(text, max_tokens=max_tokens, overlap_tokens=overlap_tokens)

    assert merge_chunks(chunks) == text


def test_chunks_are_restartable() -> None:
    """Iterating twice yields the same chunks."""
    chunks = chunk_text("alpha beta gamma delta epsilon", max_tokens=2, overlap_tokens=1)

    first = list(chunks)
    second = list(chunks)

    assert first == second
    assert len(first) == 4


def test_chunk_offsets_slice_source() -> None:
    """Every chunk's text is the source slice between its offsets."""
    text = "the quick brown fox jumps over the lazy dog"

    for chunk in chunk_text(text, max_tokens=3, overlap_tokens=1):
        assert text[chunk.start : chunk.end] == chunk.text


@pytest.mark.parametrize(
    ("max_tokens", "overlap_tokens"),
    [(0, 0), (-1, 0), (4, 4), (4, 5), (4, -1)],
)
def test_invalid_window_parameters(max_tokens: int, overlap_tokens: int) -> None:
    """Out-of-range window parameters raise ValueError."""
    with pytest.raises(ValueError):
        chunk_text("some text", max_tokens=max_tokens, overlap_tokens=overlap_tokens)


def test_tiktoken_tokenizer_uses_encoding_offsets() -> None:
    """TiktokenTokenizer windows follow the encoding's token offsets."""
    tokenizer = TiktokenTokenizer(encoding=CharEncoding())

    chunks = list(chunk_text("abcdef", max_tokens=4, overlap_tokens=1, tokenizer=tokenizer))

    assert [c.text for c in chunks] == ["abcd", "def"]


def test_whitespace_tokenizer_offsets() -> None:
    """Offsets point at the start of each word."""
    assert WhitespaceTokenizer().token_offsets(" ab  cd e") == [1, 5, 8]


def test_get_tokenizer_by_name() -> None:
    """Settings names map to tokenizer types."""
    assert isinstance(get_tokenizer("whitespace"), WhitespaceTokenizer)
    assert isinstance(get_tokenizer("tiktoken"), TiktokenTokenizer)
    with pytest.raises(ValueError):
        get_tokenizer("sentencepiece")
