"""Split page text into retrieval-sized chunks."""

from __future__ import annotations

import re
from typing import Iterator

from page_archive.utils.text import collapse_whitespace

_SENTENCE_RE = re.compile(r"[^.!?\n]+[.!?]*", re.MULTILINE)


def chunk_text(text: str, max_tokens: int = 160, min_tokens: int = 24) -> list[str]:
    """Pack lines of ``text`` into chunks of at most ``max_tokens`` words.

    Lines longer than the budget are broken at sentence ends, and sentences
    still over budget are cut on word boundaries. A chunk below
    ``min_tokens`` keeps absorbing the next piece even if that overshoots
    the budget. Empty input yields an empty list.
    """
    normalized = collapse_whitespace(text)
    if not normalized:
        return []

    chunks: list[str] = []
    current: list[str] = []
    current_tokens = 0
    for piece in _iter_pieces(normalized, max_tokens):
        piece_tokens = _count_tokens(piece)
        if current and current_tokens + piece_tokens > max_tokens and current_tokens >= min_tokens:
            chunks.append("\n".join(current))
            current = []
            current_tokens = 0
        current.append(piece)
        current_tokens += piece_tokens
    if current:
        chunks.append("\n".join(current))
    return chunks


def _iter_pieces(text: str, max_tokens: int) -> Iterator[str]:
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        if _count_tokens(line) <= max_tokens:
            yield line
            continue
        for match in _SENTENCE_RE.finditer(line):
            sentence = match.group().strip()
            if not sentence:
                continue
            if _count_tokens(sentence) <= max_tokens:
                yield sentence
            else:
                yield from _split_words(sentence, max_tokens)


def _split_words(text: str, max_tokens: int) -> Iterator[str]:
    words = text.split()
    for start in range(0, len(words), max_tokens):
        yield " ".join(words[start : start + max_tokens])


def _count_tokens(text: str) -> int:
    return max(1, len(text.split()))


__all__ = ["chunk_text"]
