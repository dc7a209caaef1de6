"""Shared deterministic stand-ins for the embedding and generative providers."""

from __future__ import annotations

import re
import zlib
from typing import List, Sequence

import numpy as np
import pytest

from claimcheck.config import AppConfig
from claimcheck.models import Chunk, ScoredChunk

_TOKEN_RE = re.compile(r"[a-z]+")


class HashingEmbedder:
    """Bag-of-words embedder: every token bumps one hashed dimension."""

    def __init__(self, dimension: int = 64) -> None:
        self.dimension = dimension
        self.calls: List[List[str]] = []

    def _vector(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimension, dtype="float32")
        for token in _TOKEN_RE.findall(text.lower()):
            vector[zlib.crc32(token.encode("utf-8")) % self.dimension] += 1.0
        return vector

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        batch = list(texts)
        self.calls.append(batch)
        return np.vstack([self._vector(text) for text in batch])

    def embed_query(self, text: str) -> np.ndarray:
        return self._vector(text)


class ScriptedGenerator:
    """Returns a canned completion and records the messages it was sent."""

    def __init__(self, reply: str = "") -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def complete(self, messages, *, temperature=0.0, max_tokens=600, timeout=60.0) -> str:
        self.calls.append(
            {
                "messages": list(messages),
                "temperature": temperature,
                "max_tokens": max_tokens,
                "timeout": timeout,
            }
        )
        return self.reply


def make_scored(text: str, similarity: float, *, source: str = "policy.pdf", doc: int = 0, index: int = 0) -> ScoredChunk:
    chunk = Chunk(text=text, source=source, document_index=doc, chunk_index=index)
    return ScoredChunk(chunk=chunk, similarity=similarity)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(openai_api_key="test-key")


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()
