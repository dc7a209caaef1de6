"""Document fetching and text extraction.

PDF text comes from PyMuPDF (fitz), DOCX text from python-docx. Anything else is
decoded as UTF-8, with a quick tag strip when it looks like HTML.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterator, List, Sequence, Union

import fitz  # PyMuPDF
import httpx
from docx import Document as DocxDocument

from claimcheck.errors import ExtractionError, InputValidationError
from claimcheck.models import Document, InlineDocument
from claimcheck.utils.files import DocumentFormat, decode_base64, resolve_format
from claimcheck.utils.text import strip_markup

LOGGER = logging.getLogger(__name__)

DocumentReference = Union[str, InlineDocument]

DEFAULT_INLINE_LABEL = "uploaded"


def parse_reference(item: Any) -> DocumentReference:
    """Turn one raw request item into a document reference."""
    if isinstance(item, InlineDocument):
        return item
    if isinstance(item, str):
        if not item.strip():
            raise InputValidationError("Document references must not be empty strings.")
        return item.strip()
    if isinstance(item, dict):
        content = item.get("contentBase64", item.get("content"))
        if not isinstance(content, str) or not content:
            raise InputValidationError("Inline documents need a non-empty 'contentBase64' field.")
        filename = item.get("filename") or ""
        if not isinstance(filename, str):
            raise InputValidationError("Inline document 'filename' must be a string.")
        return InlineDocument(filename=filename, content_base64=content)
    raise InputValidationError(
        f"Unsupported document reference of type {type(item).__name__}."
    )


def iter_pdf_text(data: bytes) -> Iterator[str]:
    """Yield text content from PDF bytes page by page."""
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise ExtractionError(f"Failed to open PDF: {exc}") from exc

    try:
        for index in range(len(doc)):
            page = doc[index]
            text = page.get_text() or ""
            if text.strip():
                # Pages are separated by a newline
                yield text.rstrip() + "\n"
    finally:
        doc.close()


def extract_docx_text(data: bytes) -> str:
    try:
        document = DocxDocument(io.BytesIO(data))
    except Exception as exc:
        raise ExtractionError(f"Failed to open DOCX: {exc}") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def decode_bytes(data: bytes, fmt: DocumentFormat) -> str:
    """Convert raw document bytes into plain text according to ``fmt``."""
    if fmt == "pdf":
        return "".join(iter_pdf_text(data))
    if fmt == "docx":
        return extract_docx_text(data)
    return strip_markup(data.decode("utf-8", errors="replace"))


def _inline_label(reference: InlineDocument, fmt: DocumentFormat) -> str:
    if reference.filename:
        return reference.filename
    if fmt == "text":
        return DEFAULT_INLINE_LABEL
    return f"{DEFAULT_INLINE_LABEL}.{fmt}"


class TextExtractor:
    """Resolve document references into plain-text documents.

    Extraction never raises: failures come back as a ``Document`` with empty
    text and ``extraction_error`` set.
    """

    def __init__(
        self,
        *,
        fetch_timeout: float = 30.0,
        max_workers: int = 4,
        client: httpx.Client | None = None,
    ) -> None:
        self.fetch_timeout = fetch_timeout
        self.max_workers = max_workers
        self._client = client

    def extract(self, reference: DocumentReference) -> Document:
        source = self._label_for(reference)
        try:
            if isinstance(reference, InlineDocument):
                return self._extract_inline(reference)
            return self._extract_url(reference)
        except Exception as exc:
            LOGGER.warning("Failed to extract %s: %s", source, exc)
            return Document(source=source, raw_text="", extraction_error=str(exc))

    def extract_all(self, references: Sequence[DocumentReference]) -> List[Document]:
        """Extract documents concurrently, preserving input order."""
        if not references:
            return []
        workers = min(self.max_workers, len(references))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.extract, references))

    def _label_for(self, reference: DocumentReference) -> str:
        if isinstance(reference, InlineDocument):
            return _inline_label(reference, resolve_format(reference.filename))
        return reference

    def _extract_inline(self, reference: InlineDocument) -> Document:
        fmt = resolve_format(reference.filename)
        try:
            data = decode_base64(reference.content_base64)
        except ValueError as exc:
            raise ExtractionError(str(exc)) from exc
        text = decode_bytes(data, fmt)
        return Document(source=_inline_label(reference, fmt), raw_text=text)

    def _extract_url(self, url: str) -> Document:
        response = self._fetch(url)
        fmt = resolve_format(url, response.headers.get("content-type"))
        LOGGER.debug("Fetched %s (%d bytes, format=%s)", url, len(response.content), fmt)
        text = decode_bytes(response.content, fmt)
        return Document(source=url, raw_text=text)

    def _fetch(self, url: str) -> httpx.Response:
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.fetch_timeout)
            else:
                with httpx.Client(follow_redirects=True, timeout=self.fetch_timeout) as client:
                    response = client.get(url)
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Fetch failed: {exc}") from exc
        if not response.is_success:
            raise ExtractionError(f"Fetch failed {response.status_code}")
        return response
