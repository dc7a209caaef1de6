"""In-memory chunk indexing for a single request."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from claimcheck.embedding.encoder import EmbeddingProvider, embed_in_batches
from claimcheck.errors import NoContentError
from claimcheck.models import Chunk, Document
from claimcheck.utils.text import chunk_text, collapse_whitespace

LOGGER = logging.getLogger(__name__)


def build_chunks(
    documents: Sequence[Document], *, window_size: int = 900, overlap: int = 150
) -> List[Chunk]:
    """Split every document into normalised, position-tagged chunks."""
    chunks: List[Chunk] = []
    for doc_index, document in enumerate(documents):
        if not document.raw_text:
            continue
        windows = chunk_text(document.raw_text + "\n", window_size=window_size, overlap=overlap)
        # chunk_index stays the window number, so blank windows leave gaps
        for position, window in enumerate(windows):
            text = collapse_whitespace(window)
            if not text:
                continue
            chunks.append(
                Chunk(
                    text=text,
                    source=document.source,
                    document_index=doc_index,
                    chunk_index=position,
                )
            )
    return chunks


@dataclass(slots=True)
class IndexStats:
    documents: int = 0
    failed: int = 0
    chunks: int = 0
    failed_sources: list[str] = field(default_factory=list)


class Indexer:
    """Chunks extracted documents and attaches embeddings to every chunk."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        *,
        window_size: int = 900,
        overlap: int = 150,
        batch_size: int = 10,
    ) -> None:
        self.embedder = embedder
        self.window_size = window_size
        self.overlap = overlap
        self.batch_size = batch_size

    def index(self, documents: Sequence[Document]) -> tuple[List[Chunk], IndexStats]:
        stats = IndexStats(documents=len(documents))
        for document in documents:
            if document.extraction_error:
                stats.failed += 1
                stats.failed_sources.append(document.source)

        chunks = build_chunks(documents, window_size=self.window_size, overlap=self.overlap)
        if not chunks:
            LOGGER.warning("No text extracted from %d document(s)", len(documents))
            raise NoContentError()

        LOGGER.info("Embedding %d chunks in batches of %d", len(chunks), self.batch_size)
        embeddings = embed_in_batches(
            self.embedder, [chunk.text for chunk in chunks], batch_size=self.batch_size
        )
        for chunk, vector in zip(chunks, embeddings):
            chunk.attach_embedding(np.asarray(vector, dtype="float32"))

        stats.chunks = len(chunks)
        return chunks, stats
