"""Turn retrieved clauses plus model output into a well-formed decision.

The model's reply is untrusted. It is parsed, then repaired against the
retrieval results, and replaced by a keyword heuristic when nothing usable
can be parsed. Transport failures of the model call are not handled here.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Iterable, List, Optional, Sequence

from claimcheck.config import APPROVE_KEYWORDS, REJECT_KEYWORDS, AppConfig
from claimcheck.decision.prompts import build_messages
from claimcheck.generation.llm import TextGenerator
from claimcheck.models import Decision, DecisionResult, JustificationEntry, ScoredChunk
from claimcheck.utils.text import truncate

LOGGER = logging.getLogger(__name__)

FALLBACK_NOTE = "Model did not return parsable JSON; fallback heuristic used."

_DECISION_ALIASES = {
    "approved": Decision.APPROVED,
    "approve": Decision.APPROVED,
    "accepted": Decision.APPROVED,
    "rejected": Decision.REJECTED,
    "reject": Decision.REJECTED,
    "denied": Decision.REJECTED,
    "declined": Decision.REJECTED,
    "maybe": Decision.MAYBE,
    "manual_review": Decision.MANUAL_REVIEW,
    "review": Decision.MANUAL_REVIEW,
}
_AMOUNT_RE = re.compile(r"-?\d[\d,]*(?:\.\d+)?")


def _balanced_end(raw: str, start: int) -> int:
    """Index just past the ``}`` closing the brace at ``start``, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(raw)):
        char = raw[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return position + 1
    return -1


def extract_json_object(raw: str) -> Optional[dict]:
    """Parse the first balanced ``{...}`` block in ``raw`` that is a JSON object.

    Braces inside JSON strings are ignored while balancing. Brace groups that
    are not valid JSON, such as ``{Clause 1}`` in prose, are skipped. Returns
    None when no balanced block parses to an object.
    """
    if not raw:
        return None
    start = raw.find("{")
    while start >= 0:
        end = _balanced_end(raw, start)
        if end > 0:
            try:
                value = json.loads(raw[start:end])
            except json.JSONDecodeError:
                value = None
            if isinstance(value, dict):
                return value
        start = raw.find("{", start + 1)
    return None


def keyword_decision(
    text: str,
    *,
    reject_keywords: Iterable[str] = REJECT_KEYWORDS,
    approve_keywords: Iterable[str] = APPROVE_KEYWORDS,
) -> Decision:
    """Decide from keyword signals alone; mixed or absent signals give ``maybe``."""
    haystack = text.lower()
    found_reject = any(keyword in haystack for keyword in reject_keywords)
    found_approve = any(keyword in haystack for keyword in approve_keywords)
    if found_reject and not found_approve:
        return Decision.REJECTED
    if found_approve and not found_reject:
        return Decision.APPROVED
    return Decision.MAYBE


def normalize_decision(value: Any) -> Decision:
    if isinstance(value, Decision):
        return value
    if isinstance(value, str):
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        if key in _DECISION_ALIASES:
            return _DECISION_ALIASES[key]
    return Decision.MANUAL_REVIEW


def normalize_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        # First numeric token; currency prefixes like "Rs." carry dots of their own
        match = _AMOUNT_RE.search(value)
        if match is None:
            return None
        amount = float(match.group().replace(",", ""))
        return amount if math.isfinite(amount) else None
    return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


class DecisionSynthesizer:
    """Builds the grounding context, calls the model and validates its answer."""

    def __init__(self, generator: TextGenerator, config: AppConfig | None = None) -> None:
        self.generator = generator
        self.config = config or AppConfig()

    def synthesize(self, query: str, top: Sequence[ScoredChunk]) -> DecisionResult:
        if not top:
            raise ValueError("At least one retrieved chunk is required")

        raw = self.generator.complete(
            build_messages(query, top),
            temperature=self.config.temperature,
            max_tokens=self.config.max_output_tokens,
            timeout=self.config.llm_timeout,
        )
        parsed = extract_json_object(raw)
        if parsed is None:
            LOGGER.warning("Unparsable model output, falling back to keyword heuristic")
            return self.fallback(top, raw)
        return self.repair(parsed, top)

    def fallback(self, top: Sequence[ScoredChunk], raw: str = "") -> DecisionResult:
        joined = " ".join(item.text.lower() for item in top)
        decision = keyword_decision(
            joined,
            reject_keywords=self.config.reject_keywords,
            approve_keywords=self.config.approve_keywords,
        )
        explanation = FALLBACK_NOTE
        if raw and raw.strip():
            explanation = f"{FALLBACK_NOTE} Model output: {raw.strip()}"
        return DecisionResult(
            decision=decision,
            amount=None,
            justification=self.synthesized_justification(top),
            explanation=explanation,
        )

    def repair(self, parsed: dict, top: Sequence[ScoredChunk]) -> DecisionResult:
        entries = parsed.get("justification")
        if isinstance(entries, list) and entries:
            justification = [
                self._repair_entry(entry, position, top) for position, entry in enumerate(entries)
            ]
        else:
            if entries is not None:
                LOGGER.info("Replacing malformed justification from model output")
            justification = self.synthesized_justification(top)

        explanation = parsed.get("explanation")
        if explanation is None:
            explanation = parsed.get("explain_prompt")
        if explanation is None:
            explanation = ""
        elif not isinstance(explanation, str):
            explanation = json.dumps(explanation, ensure_ascii=False)

        return DecisionResult(
            decision=normalize_decision(parsed.get("decision")),
            amount=normalize_amount(parsed.get("amount")),
            justification=justification,
            explanation=explanation,
        )

    def synthesized_justification(self, top: Sequence[ScoredChunk]) -> List[JustificationEntry]:
        return [
            JustificationEntry(
                clause=truncate(item.text, self.config.clause_excerpt_chars),
                source=item.source,
                chunk_index=item.chunk_index,
                similarity=item.similarity,
            )
            for item in top
        ]

    def _pair(self, clause: str, position: int, top: Sequence[ScoredChunk]) -> ScoredChunk:
        if position < len(top):
            return top[position]
        if clause:
            needle = clause.strip().lower()
            for item in top:
                if needle and needle in item.text.lower():
                    return item
        return top[0]

    def _repair_entry(self, entry: Any, position: int, top: Sequence[ScoredChunk]) -> JustificationEntry:
        if isinstance(entry, str):
            entry = {"clause": entry}
        elif not isinstance(entry, dict):
            entry = {}

        clause = entry.get("clause")
        clause = clause if isinstance(clause, str) and clause else ""
        match = self._pair(clause, position, top)

        source = entry.get("source")
        source = source if isinstance(source, str) and source else match.source
        chunk_index = _as_int(entry.get("chunk_index"))
        chunk_index = match.chunk_index if chunk_index is None else chunk_index
        similarity = _as_float(entry.get("similarity"))
        similarity = match.similarity if similarity is None else similarity

        # Provenance must name a retrieved chunk
        if not any(item.source == source and item.chunk_index == chunk_index for item in top):
            LOGGER.info("Replacing unknown provenance %s#%s from model output", source, chunk_index)
            source, chunk_index, similarity = match.source, match.chunk_index, match.similarity

        return JustificationEntry(
            clause=clause or truncate(match.text, self.config.clause_excerpt_chars),
            source=source,
            chunk_index=chunk_index,
            similarity=similarity,
        )
