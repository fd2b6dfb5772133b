"""Text processing helpers."""

from __future__ import annotations

import re

from markdown_it import MarkdownIt

_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_NEWLINES_RE = re.compile(r"\n+")

_MD = MarkdownIt()


def collapse_whitespace(text: str) -> str:
    """Collapse runs of spaces/tabs and runs of newlines, keeping line breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _INLINE_SPACE_RE.sub(" ", text)
    return _NEWLINES_RE.sub("\n", text).strip()


def markdown_to_text(markdown: str) -> str:
    """Flatten markdown into newline separated plain text blocks."""
    parts: list[str] = []
    for token in _MD.parse(markdown):
        if token.type == "inline":
            pieces = []
            for child in token.children or []:
                if child.type in {"text", "code_inline"}:
                    pieces.append(child.content)
                elif child.type in {"softbreak", "hardbreak"}:
                    pieces.append(" ")
            content = "".join(pieces).strip()
        elif token.type in {"code_block", "fence"}:
            content = token.content.strip()
        else:
            continue
        if content:
            parts.append(content)
    return "\n".join(parts) if parts else markdown.strip()
