"""Text helpers: overlapping window chunking and light markup cleanup."""

from __future__ import annotations

import re
from typing import Iterator

_WHITESPACE_RE = re.compile(r"\s+")
_HTML_HINT_RE = re.compile(r"<\s*html|<\s*body|<\s*p|<\s*div", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


def chunk_text(text: str, *, window_size: int = 900, overlap: int = 150) -> Iterator[str]:
    """Split text into overlapping character windows.

    Windows start at offset 0 and advance by ``window_size - overlap`` until the
    start reaches the end of the text, so consecutive windows share exactly
    ``overlap`` characters.
    """
    if overlap >= window_size:
        raise ValueError("overlap must be smaller than window_size")
    if not text:
        return

    step = window_size - overlap
    for start in range(0, len(text), step):
        yield text[start : start + window_size]


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def looks_like_html(text: str) -> bool:
    return bool(_HTML_HINT_RE.search(text))


def strip_markup(text: str) -> str:
    """Replace markup tags with spaces when the text looks like HTML."""
    if not looks_like_html(text):
        return text
    return _TAG_RE.sub(" ", text)


def truncate(text: str, limit: int) -> str:
    return text[:limit]
