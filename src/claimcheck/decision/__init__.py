"""Decision synthesis from retrieved policy clauses."""

from claimcheck.decision.synthesizer import DecisionSynthesizer, extract_json_object, keyword_decision

__all__ = ["DecisionSynthesizer", "extract_json_object", "keyword_decision"]
