"""Prompt templates for claim decisions."""

from __future__ import annotations

from typing import Sequence

from claimcheck.models import ScoredChunk

SYSTEM_PROMPT = (
    "You are a helpful insurance policy analyst. Extract the rules/clause logic and decide "
    "whether the sample query should be approved, rejected, or require manual review. "
    "Return JSON exactly with keys: decision (one of \"approved\", \"rejected\", \"maybe\", "
    "\"manual_review\"), amount (number or null), justification (array of {clause, source, "
    "chunk_index, similarity}), explanation (human readable). Use values only; do not add "
    "extra commentary."
)

USER_TEMPLATE = """Query: {query}

Relevant clauses (from documents):
{context}

Task:
1) Parse the query into structured fields (age, sex, procedure, location, policy_duration_months).
2) Evaluate each clause and determine the decision and amount (if any). If uncertain, choose "maybe" or "manual_review".
3) Return the JSON object. Be explicit about which clauses you used (map to Clause 1..{count})."""


def build_context(top: Sequence[ScoredChunk]) -> str:
    """Render the numbered clause list used as grounding material."""
    blocks = [
        f"-- Clause {position} (source: {item.source}, chunk_index:{item.chunk_index}, "
        f"score:{item.similarity:.3f}) --\n{item.text}\n"
        for position, item in enumerate(top, start=1)
    ]
    return "\n".join(blocks)


def build_messages(query: str, top: Sequence[ScoredChunk]) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": USER_TEMPLATE.format(query=query, context=build_context(top), count=len(top)),
        },
    ]
