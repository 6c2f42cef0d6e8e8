"""Document chunker - token-bounded overlapping windows.

Chunks are slices of the source string, located through per-token character
offsets, so joining every chunk's non-overlapping tail rebuilds the source
text exactly (see merge_chunks).
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import tiktoken

_WORD_PATTERN = re.compile(r"\S+")


class Tokenizer(Protocol):
    """Splits text into tokens and reports their character offsets."""

    def token_offsets(self, text: str) -> list[int]:
        """Return the start offset of every token, in order."""
        ...


class WhitespaceTokenizer:
    """Treats each run of non-whitespace characters as one token."""

    def token_offsets(self, text: str) -> list[int]:
        return [match.start() for match in _WORD_PATTERN.finditer(text)]


class TiktokenTokenizer:
    """BPE tokenizer backed by tiktoken (cl100k_base by default)."""

    def __init__(self, encoding_name: str = "cl100k_base", encoding: Any | None = None) -> None:
        self._encoding_name = encoding_name
        self._encoding = encoding

    @property
    def encoding(self) -> Any:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self._encoding_name)
        return self._encoding

    def token_offsets(self, text: str) -> list[int]:
        tokens = self.encoding.encode(text, disallowed_special=())
        if not tokens:
            return []
        _decoded, offsets = self.encoding.decode_with_offsets(tokens)
        return list(offsets)


@lru_cache
def get_tokenizer(name: str) -> Tokenizer:
    """Get a shared tokenizer instance by settings name."""
    if name == "tiktoken":
        return TiktokenTokenizer()
    if name == "whitespace":
        return WhitespaceTokenizer()
    raise ValueError(f"Unknown tokenizer: {name}")


@dataclass(frozen=True)
class TextChunk:
    """One window of the source text.

    start/end are character offsets into the source; token_count counts the
    tokens inside the window, including the ones shared with the previous chunk.
    """

    order: int
    text: str
    token_count: int
    start: int
    end: int


class TextChunks:
    """Lazy, restartable sequence of chunks over one text."""

    def __init__(
        self,
        text: str,
        *,
        max_tokens: int,
        overlap_tokens: int,
        tokenizer: Tokenizer,
    ) -> None:
        self._text = text
        self._max_tokens = max_tokens
        self._overlap_tokens = overlap_tokens
        self._tokenizer = tokenizer

    def __iter__(self) -> Iterator[TextChunk]:
        text = self._text
        if not text:
            return

        offsets = self._tokenizer.token_offsets(text)
        total = len(offsets)
        if total == 0:
            return

        # Window boundaries: first token absorbs leading text, the last one trailing text
        boundaries = [0, *offsets[1:], len(text)]

        order = 0
        start_token = 0
        while True:
            end_token = min(start_token + self._max_tokens, total)
            start = boundaries[start_token]
            end = boundaries[end_token]
            yield TextChunk(
                order=order,
                text=text[start:end],
                token_count=end_token - start_token,
                start=start,
                end=end,
            )
            if end_token == total:
                return
            order += 1
            start_token = end_token - self._overlap_tokens


def chunk_text(
    text: str,
    *,
    max_tokens: int,
    overlap_tokens: int = 0,
    tokenizer: Tokenizer | None = None,
) -> TextChunks:
    """Chunk text into ordered, token-bounded, overlapping windows.

    Args:
        text: Source text
        max_tokens: Maximum tokens per chunk (> 0)
        overlap_tokens: Tokens shared by adjacent chunks (0 <= overlap < max)
        tokenizer: Token splitter (defaults to whitespace tokens)

    Returns:
        Restartable iterable of TextChunk with order 0, 1, 2, ...

    Raises:
        ValueError: If the window parameters are out of range
    """
    if max_tokens <= 0:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    if not 0 <= overlap_tokens < max_tokens:
        raise ValueError(
            f"overlap_tokens must be in [0, {max_tokens}), got {overlap_tokens}"
        )

    return TextChunks(
        text,
        max_tokens=max_tokens,
        overlap_tokens=overlap_tokens,
        tokenizer=tokenizer or WhitespaceTokenizer(),
    )


def merge_chunks(chunks: Iterable[TextChunk]) -> str:
    """Rebuild source text from ordered chunks, dropping the overlapping heads."""
    parts: list[str] = []
    covered = 0
    for chunk in chunks:
        skip = max(0, covered - chunk.start)
        parts.append(chunk.text[skip:])
        covered = max(covered, chunk.end)
    return "".join(parts)
