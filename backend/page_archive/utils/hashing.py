"""Hashing utilities."""

from __future__ import annotations

import hashlib


def sha256_bytes(data: bytes) -> str:
    """Return hex digest for bytes input."""
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    """Return hex digest of the UTF-8 encoding of ``text``.

    Raises ``ValueError`` for strings that cannot be encoded (lone surrogates)
    and ``TypeError`` for non-string input.
    """
    if not isinstance(text, str):
        raise TypeError(f"expected str, got {type(text).__name__}")
    return sha256_bytes(text.encode("utf-8"))
