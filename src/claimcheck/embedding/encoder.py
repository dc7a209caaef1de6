"""Embedding providers and the batched embedding loop."""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Sequence, runtime_checkable

import numpy as np

from claimcheck.config import AppConfig
from claimcheck.errors import DimensionMismatchError, ProviderError

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Capability: map a batch of strings to equal-length float vectors."""

    def embed(self, texts: Sequence[str]) -> np.ndarray: ...

    def embed_query(self, text: str) -> np.ndarray: ...


def _as_matrix(vectors: object, expected: int) -> np.ndarray:
    try:
        matrix = np.asarray(vectors, dtype="float32")
    except ValueError as exc:
        raise ProviderError(f"Embedding provider returned ragged vectors: {exc}") from exc
    if matrix.ndim != 2 or matrix.shape[0] != expected:
        returned = matrix.shape[0] if matrix.ndim else 0
        raise ProviderError(
            f"Embedding provider returned {returned} vectors for {expected} inputs"
        )
    return matrix


class OpenAIEmbeddingModel:
    """Embeddings served by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model_name: str,
        *,
        api_key: str | None = None,
        timeout: float = 60.0,
        client: object | None = None,
    ) -> None:
        self.model_name = model_name
        self.timeout = timeout
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key, max_retries=0)
        self._client = client

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts, in input order."""
        inputs = list(texts)
        if not inputs:
            return np.zeros((0, 0), dtype="float32")
        try:
            response = self._client.embeddings.create(
                model=self.model_name,
                input=inputs,
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.error("Embedding request failed: %s", exc)
            raise ProviderError(f"Embedding request failed: {exc}") from exc

        data = sorted(response.data, key=lambda item: item.index)
        return _as_matrix([item.embedding for item in data], len(inputs))

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


class SentenceTransformerEmbeddingModel:
    """Thin wrapper around `SentenceTransformer` for local embeddings."""

    def __init__(
        self,
        model_name: str,
        *,
        batch_size: int = 16,
        normalize: bool = True,
        device: str | None = None,
    ) -> None:
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        self.batch_size = batch_size
        self.normalize = normalize
        self._model = SentenceTransformer(model_name, device=device)
        self.dimension = int(self._model.get_sentence_embedding_dimension())
        logger.info("Loaded %s (dimension %d)", model_name, self.dimension)

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        sentences = list(texts)
        if not sentences:
            return np.zeros((0, self.dimension), dtype="float32")
        try:
            embeddings = self._model.encode(
                sentences,
                batch_size=self.batch_size,
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=self.normalize,
            )
        except Exception as exc:
            raise ProviderError(f"Local embedding failed: {exc}") from exc
        return _as_matrix(embeddings, len(sentences))

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


def create_embedder(config: AppConfig) -> EmbeddingProvider:
    """Instantiate the embedding backend named by ``config.embedding_backend``."""
    if config.embedding_backend == "sentence-transformers":
        return SentenceTransformerEmbeddingModel(
            config.embedding_model, batch_size=config.embed_batch_size
        )
    return OpenAIEmbeddingModel(
        config.embedding_model,
        api_key=config.openai_api_key,
        timeout=config.llm_timeout,
    )


def embed_in_batches(
    provider: EmbeddingProvider, texts: Sequence[str], *, batch_size: int = 10
) -> np.ndarray:
    """Embed ``texts`` in sequential batches and return one row per text.

    Each batch result is placed at its start offset, so the output rows line
    up with ``texts`` regardless of how batches are issued.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if not texts:
        return np.zeros((0, 0), dtype="float32")

    results: List[tuple[int, np.ndarray]] = []
    dimension: int | None = None
    for start in range(0, len(texts), batch_size):
        batch = list(texts[start : start + batch_size])
        vectors = _as_matrix(provider.embed(batch), len(batch))
        if dimension is None:
            dimension = vectors.shape[1]
        elif vectors.shape[1] != dimension:
            raise DimensionMismatchError(
                f"Embedding batch at offset {start} has dimension {vectors.shape[1]}, "
                f"expected {dimension}"
            )
        logger.debug("Embedded batch %d-%d", start, start + len(batch) - 1)
        results.append((start, vectors))

    matrix = np.empty((len(texts), dimension or 0), dtype="float32")
    for start, vectors in results:
        matrix[start : start + vectors.shape[0]] = vectors
    return matrix
