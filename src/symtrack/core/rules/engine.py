"""Suggestion engine — scores symptom batches against the rule catalog."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from symtrack.core.rules.catalog import RuleCatalog
from symtrack.core.rules.models import (
    AnalysisOutcome,
    InvalidSymptomRecordError,
    MatchResult,
    Rule,
    Suggestion,
    SymptomRecord,
)
from symtrack.core.rules.scoring import (
    MAX_SCORE,
    SYMPTOM_MATCH_WEIGHT,
    associated_symptom_score,
    duration_score,
    severity_score,
    symptom_match_percentage,
    temperature_score,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

EMPTY_BATCH_REASONING = "No symptoms provided for analysis"
NO_MATCH_REASONING = (
    "No specific patterns detected. Consider monitoring symptoms and consulting "
    "healthcare provider if concerned."
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (1.5 -> 2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


class SuggestionEngine:
    """Deterministic, rule-based symptom scorer.

    Construct once at startup and hand it to whatever serves requests. Each
    :meth:`analyze` call reads one snapshot of the catalog, so a concurrent
    reload never produces a mix of old and new rules.

    Usage::

        engine = SuggestionEngine(catalog)
        outcome = engine.analyze([
            {"name": "headache", "severity": 8,
             "duration": {"value": 12, "unit": "hours"}},
        ])
    """

    def __init__(self, catalog: RuleCatalog) -> None:
        self.catalog = catalog

    def analyze(
        self, records: Sequence[SymptomRecord | Mapping[str, Any]]
    ) -> AnalysisOutcome:
        """Rank the catalog's rules against a batch of symptom records.

        Raises:
            InvalidSymptomRecordError: If a record lacks name, severity or
                duration, or one of its fields is malformed.
        """
        if not records:
            return AnalysisOutcome(suggestions=[], confidence=0, reasoning=EMPTY_BATCH_REASONING)

        batch = [_as_record(r) for r in records]
        rules = self.catalog.get_all()

        matches: list[MatchResult] = []
        for rule in rules:
            score = min(max(self.evaluate_rule(rule, batch), 0.0), MAX_SCORE)
            if score > 0:
                confidence = min(rule.suggestions.confidence * (score / 100), 100)
                matches.append(MatchResult(rule=rule, score=score, confidence=confidence))

        # list.sort is stable, so equal keys keep catalog order.
        matches.sort(key=lambda m: m.rank_key, reverse=True)
        top = matches[:MAX_SUGGESTIONS]

        logger.debug(
            "Analyzed %d records against %d rules: %d matched",
            len(batch), len(rules), len(matches),
        )

        return AnalysisOutcome(
            suggestions=[_to_suggestion(m) for m in top],
            confidence=round_half_up(matches[0].confidence) if matches else 0,
            reasoning=self.generate_reasoning(batch, matches),
        )

    def evaluate_rule(self, rule: Rule, records: Sequence[SymptomRecord]) -> float:
        """Score (0-100) how strongly ``records`` satisfy ``rule``.

        The symptom keyword list is a gate: when none of its keywords match
        any record, the rule scores 0 whatever the other predicates say.
        The gate contributes its match percentage times
        ``SYMPTOM_MATCH_WEIGHT``, so any gate pass saturates the final clamp.
        """
        conditions = rule.conditions
        score = 0.0

        if conditions.symptoms:
            percentage = symptom_match_percentage(conditions.symptoms, records)
            if percentage == 0:
                return 0.0
            score += percentage * SYMPTOM_MATCH_WEIGHT

        if conditions.severity is not None:
            score += severity_score(conditions.severity, records)

        if conditions.duration is not None:
            score += duration_score(conditions.duration, records)

        if conditions.temperature is not None:
            score += temperature_score(conditions.temperature, records)

        if conditions.associated_symptoms:
            score += associated_symptom_score(conditions.associated_symptoms, records)

        return min(score, MAX_SCORE)

    @staticmethod
    def generate_reasoning(
        records: Sequence[SymptomRecord], matches: Sequence[MatchResult]
    ) -> str:
        """Describe the actual input batch alongside the top rule's advice."""
        if not matches:
            return NO_MATCH_REASONING

        names = ", ".join(record.name for record in records)
        max_severity = max(record.severity for record in records)
        return (
            f"Based on your symptoms ({names}) with severity up to "
            f"{_format_number(max_severity)}/10, {matches[0].rule.suggestions.reasoning}"
        )


def _as_record(record: SymptomRecord | Mapping[str, Any]) -> SymptomRecord:
    if isinstance(record, SymptomRecord):
        return record
    if not isinstance(record, Mapping):
        raise InvalidSymptomRecordError("Each symptom record must be an object")
    return SymptomRecord.from_dict(record)


def _to_suggestion(match: MatchResult) -> Suggestion:
    payload = match.rule.suggestions
    return Suggestion(
        urgency=payload.urgency,
        action=payload.action,
        reasoning=payload.reasoning,
        confidence=round_half_up(match.confidence),
        next_steps=list(payload.next_steps),
        rule_name=match.rule.name,
        rule_id=match.rule.id,
    )


def _format_number(value: float) -> str:
    return f"{value:g}"
