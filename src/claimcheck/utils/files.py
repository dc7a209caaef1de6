"""Utility helpers for working with document payloads."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

DocumentFormat = Literal["pdf", "docx", "text"]

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def suffix_of(label: str) -> str:
    """Return the lowercase suffix of a filename or URL path."""
    path = urlparse(label).path if "://" in label else label
    return Path(path).suffix.lower()


def resolve_format(label: str | None, content_type: str | None = None) -> DocumentFormat:
    """Resolve a document format from its declared name, then its content type."""
    suffix = suffix_of(label or "")
    if suffix == ".pdf":
        return "pdf"
    if suffix == ".docx":
        return "docx"

    content_type = (content_type or "").lower()
    if PDF_CONTENT_TYPE in content_type:
        return "pdf"
    if DOCX_CONTENT_TYPE in content_type:
        return "docx"
    return "text"


def decode_base64(payload: str) -> bytes:
    """Decode a base64 payload, rejecting malformed input."""
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc


def encode_file(path: Path) -> str:
    """Read a local file and return its base64 encoding."""
    return base64.b64encode(path.read_bytes()).decode("ascii")


def is_url(value: str) -> bool:
    return urlparse(value).scheme in ("http", "https")
