"""Core claimcheck data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    MAYBE = "maybe"
    MANUAL_REVIEW = "manual_review"


@dataclass(slots=True)
class InlineDocument:
    """Document uploaded inline as base64 bytes."""

    filename: str
    content_base64: str


@dataclass(slots=True)
class Document:
    """Extracted text of one input document."""

    source: str
    raw_text: str
    extraction_error: Optional[str] = None


@dataclass(slots=True)
class Chunk:
    """Normalised window of document text, the unit of retrieval."""

    text: str
    source: str
    document_index: int
    chunk_index: int
    embedding: Optional[np.ndarray] = None

    def attach_embedding(self, vector: np.ndarray) -> None:
        if self.embedding is not None:
            raise ValueError(
                f"Chunk {self.document_index}:{self.chunk_index} already has an embedding"
            )
        self.embedding = vector


@dataclass(slots=True, frozen=True)
class ScoredChunk:
    chunk: Chunk
    similarity: float

    @property
    def text(self) -> str:
        return self.chunk.text

    @property
    def source(self) -> str:
        return self.chunk.source

    @property
    def document_index(self) -> int:
        return self.chunk.document_index

    @property
    def chunk_index(self) -> int:
        return self.chunk.chunk_index


@dataclass(slots=True)
class JustificationEntry:
    """Clause cited in support of a decision, with its retrieval provenance."""

    clause: str
    source: str
    chunk_index: int
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause": self.clause,
            "source": self.source,
            "chunk_index": self.chunk_index,
            "similarity": self.similarity,
        }


@dataclass(slots=True)
class DecisionResult:
    decision: Decision
    amount: Optional[float]
    justification: List[JustificationEntry] = field(default_factory=list)
    explanation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision": self.decision.value,
            "amount": self.amount,
            "justification": [entry.to_dict() for entry in self.justification],
            "explanation": self.explanation,
        }
