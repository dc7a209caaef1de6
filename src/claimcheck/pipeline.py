"""Request-level orchestration: extract, chunk, embed, rank, decide."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import numpy as np

from claimcheck.config import AppConfig
from claimcheck.decision.synthesizer import DecisionSynthesizer
from claimcheck.embedding.encoder import EmbeddingProvider, create_embedder
from claimcheck.errors import DimensionMismatchError, InputValidationError
from claimcheck.generation.llm import OpenAIChatClient, TextGenerator
from claimcheck.index.indexer import Indexer
from claimcheck.index.search import Ranker
from claimcheck.ingestion.extractor import DocumentReference, TextExtractor, parse_reference

LOGGER = logging.getLogger(__name__)


def normalize_documents(documents: Any) -> List[DocumentReference]:
    """Accept a single reference or a list of them."""
    if documents is None or documents == "" or documents == []:
        raise InputValidationError("Missing 'documents' (URL or array) in request body.")
    items = documents if isinstance(documents, list) else [documents]
    return [parse_reference(item) for item in items]


def validate_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise InputValidationError("Missing 'query' in request body.")
    return query.strip()


class ClaimPipeline:
    """Answers one claim query against one set of documents per call.

    Nothing is cached between calls; every run builds its own chunk set.
    """

    def __init__(
        self,
        config: AppConfig,
        embedder: EmbeddingProvider,
        generator: TextGenerator,
        *,
        extractor: TextExtractor | None = None,
    ) -> None:
        self.config = config
        self.embedder = embedder
        self.extractor = extractor or TextExtractor(
            fetch_timeout=config.fetch_timeout, max_workers=config.extract_workers
        )
        self.indexer = Indexer(
            embedder,
            window_size=config.window_size,
            overlap=config.overlap,
            batch_size=config.embed_batch_size,
        )
        self.ranker = Ranker(top_k=config.top_k)
        self.synthesizer = DecisionSynthesizer(generator, config)

    @classmethod
    def from_config(cls, config: AppConfig) -> "ClaimPipeline":
        """Wire the default OpenAI-backed providers."""
        generator = OpenAIChatClient(config.chat_model, api_key=config.openai_api_key)
        return cls(config, create_embedder(config), generator)

    def run(self, query: Any, documents: Any) -> Dict[str, Any]:
        """Produce the response envelope for one request."""
        query_text = validate_query(query)
        references = normalize_documents(documents)

        extracted = self.extractor.extract_all(references)
        chunks, stats = self.indexer.index(extracted)
        LOGGER.info(
            "Indexed %d chunks from %d document(s), %d failed",
            stats.chunks,
            stats.documents,
            stats.failed,
        )
        if stats.failed_sources:
            LOGGER.warning("Skipped documents: %s", ", ".join(stats.failed_sources))

        query_vector = np.asarray(self.embedder.embed_query(query_text), dtype="float32")
        chunk_dimension = chunks[0].embedding.shape[-1]
        if query_vector.shape[-1] != chunk_dimension:
            raise DimensionMismatchError(
                f"Query embedding has dimension {query_vector.shape[-1]}, "
                f"chunk embeddings have {chunk_dimension}"
            )

        top = self.ranker.rank(query_vector, chunks)
        LOGGER.info(
            "Top %d similarities: %s",
            len(top),
            ", ".join(f"{item.similarity:.3f}" for item in top),
        )

        result = self.synthesizer.synthesize(query_text, top)
        LOGGER.info("Decision: %s", result.decision.value)

        return {
            "meta": {
                "chunks_indexed": len(chunks),
                "top_k": len(top),
                "model": self.config.model_label,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            "input": {"query": query, "documents": documents},
            "results": result.to_dict(),
        }
