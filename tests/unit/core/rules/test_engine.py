"""Unit tests for SuggestionEngine — scoring, ranking and reasoning."""

from __future__ import annotations

import pytest

from symtrack.core.rules.catalog import RuleCatalog
from symtrack.core.rules.engine import (
    EMPTY_BATCH_REASONING,
    MAX_SUGGESTIONS,
    NO_MATCH_REASONING,
    SuggestionEngine,
    round_half_up,
)
from symtrack.core.rules.models import (
    DurationCondition,
    InvalidSymptomRecordError,
    Rule,
    RuleConditions,
    RuleSuggestion,
    SeverityCondition,
    SymptomRecord,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _symptom(name: str, severity: int = 5, value: float = 2, unit: str = "hours", **extra) -> dict:
    return {"name": name, "severity": severity, "duration": {"value": value, "unit": unit}, **extra}


def _rule(
    rule_id: str,
    *,
    urgency: str = "moderate",
    confidence: float = 50,
    symptoms: tuple[str, ...] | None = None,
    severity: SeverityCondition | None = None,
    duration: DurationCondition | None = None,
) -> Rule:
    return Rule(
        id=rule_id,
        name=f"Rule {rule_id}",
        conditions=RuleConditions(symptoms=symptoms, severity=severity, duration=duration),
        suggestions=RuleSuggestion(
            urgency=urgency,
            action=f"Action for {rule_id}",
            reasoning=f"Reasoning for {rule_id}.",
            confidence=confidence,
            next_steps=("Step one",),
        ),
    )


CHEST_PAIN_BATCH = [
    _symptom(
        "chest pain", 9, 30, "minutes",
        associatedSymptoms=[{"name": "shortness of breath"}, {"name": "sweating"}],
    )
]


# ---------------------------------------------------------------------------
# Empty and invalid input
# ---------------------------------------------------------------------------

class TestEmptyBatch:
    def test_empty_batch_returns_zero_outcome(self, engine: SuggestionEngine):
        outcome = engine.analyze([])
        assert outcome.to_dict() == {
            "suggestions": [],
            "confidence": 0,
            "reasoning": EMPTY_BATCH_REASONING,
        }

    def test_empty_batch_evaluates_no_rules(self, engine: SuggestionEngine, monkeypatch):
        calls = []
        monkeypatch.setattr(engine, "evaluate_rule", lambda rule, records: calls.append(rule))
        engine.analyze([])
        assert calls == []


class TestInvalidRecords:
    @pytest.mark.parametrize("missing", ["name", "severity", "duration"])
    def test_missing_mandatory_field_raises(self, engine: SuggestionEngine, missing: str):
        record = _symptom("headache")
        del record[missing]
        with pytest.raises(InvalidSymptomRecordError, match=missing):
            engine.analyze([record])

    @pytest.mark.parametrize("overrides", [
        {"severity": "9"},
        {"severity": True},
        {"duration": {"value": "30", "unit": "minutes"}},
        {"temperature": "101"},
        {"associated_symptoms": ["sweating"]},
        {"associated_symptoms": "sweating"},
    ])
    def test_malformed_field_raises(self, engine: SuggestionEngine, overrides: dict):
        with pytest.raises(InvalidSymptomRecordError):
            engine.analyze([{**_symptom("chest pain", 9), **overrides}])

    def test_non_mapping_record_raises(self, engine: SuggestionEngine):
        with pytest.raises(InvalidSymptomRecordError):
            engine.analyze(["chest pain"])

    def test_duration_without_value_raises(self, engine: SuggestionEngine):
        with pytest.raises(InvalidSymptomRecordError):
            engine.analyze([{"name": "headache", "severity": 5, "duration": {"unit": "hours"}}])

    def test_missing_optional_fields_do_not_raise(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("fever", 6)])
        assert outcome.suggestions[0].rule_id == "urgent_high_fever"


# ---------------------------------------------------------------------------
# Default catalog scenarios
# ---------------------------------------------------------------------------

class TestDefaultCatalog:
    def test_chest_pain_is_emergency(self, engine: SuggestionEngine):
        outcome = engine.analyze(CHEST_PAIN_BATCH)
        top = outcome.suggestions[0]
        assert top.urgency == "emergency"
        assert "911" in top.action
        assert top.confidence > 80
        assert outcome.confidence > 80

    def test_high_fever_is_urgent(self, engine: SuggestionEngine):
        outcome = engine.analyze([
            _symptom("fever", 6, 1, "days", temperature=104,
                     associated_symptoms=[{"name": "headache"}, {"name": "rash"}])
        ])
        assert outcome.suggestions[0].urgency == "urgent"
        assert outcome.confidence > 70

    def test_persistent_headache_is_moderate(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("severe headache", 8, 12, "hours")])
        assert outcome.suggestions[0].rule_id == "moderate_persistent_headache"
        assert outcome.confidence > 50

    def test_mild_cold(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("runny nose", 3, 1, "days", temperature=99.1)])
        assert outcome.suggestions[0].urgency == "mild"
        assert outcome.confidence > 40

    def test_low_severity_fatigue_includes_routine(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("fatigue", 2, 1, "days")])
        assert "routine" in [s.urgency for s in outcome.suggestions]

    def test_mixed_batch_ranks_emergency_first(self, engine: SuggestionEngine):
        low = [_symptom("fatigue", 2, 1, "days")]
        outcome = engine.analyze(low + CHEST_PAIN_BATCH)
        assert outcome.suggestions[0].urgency == "emergency"

    def test_unmatched_batch_gives_no_match_reasoning(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("itchy elbow", 6, 3, "weeks")])
        assert outcome.suggestions == []
        assert outcome.confidence == 0
        assert outcome.reasoning == NO_MATCH_REASONING


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

class TestInvariants:
    @pytest.mark.parametrize("batch", [
        CHEST_PAIN_BATCH,
        [_symptom("fatigue", 1, 10, "minutes")],
        [_symptom("headache", 10, 3, "months"), _symptom("fever", 9, 2, "days", temperature=105)],
        [_symptom("runny nose", 2, 1, "days"), _symptom("sneezing", 2, 1, "days"),
         _symptom("shortness of breath", 9, 5, "minutes")],
    ])
    def test_confidence_bounds_and_suggestion_cap(self, engine: SuggestionEngine, batch):
        outcome = engine.analyze(batch)
        assert 0 <= outcome.confidence <= 100
        assert len(outcome.suggestions) <= MAX_SUGGESTIONS
        for suggestion in outcome.suggestions:
            assert 0 <= suggestion.confidence <= 100

    def test_gated_rule_never_emitted_without_keyword_overlap(self):
        gated = _rule("gated", confidence=100, symptoms=("migraine",),
                      severity=SeverityCondition(min=1, max=10, avg=5))
        open_rule = _rule("open", confidence=10, severity=SeverityCondition(max=10))
        engine = SuggestionEngine(RuleCatalog([gated, open_rule]))

        outcome = engine.analyze([_symptom("back pain", 5)])
        assert [s.rule_id for s in outcome.suggestions] == ["open"]

    def test_top_three_only(self):
        rules = [_rule(f"r{i}", confidence=50 + i, severity=SeverityCondition(max=10)) for i in range(5)]
        engine = SuggestionEngine(RuleCatalog(rules))

        outcome = engine.analyze([_symptom("anything", 4)])
        assert [s.rule_id for s in outcome.suggestions] == ["r4", "r3", "r2"]

    def test_ties_keep_catalog_order(self):
        rules = [_rule(name, severity=SeverityCondition(max=10)) for name in ("first", "second", "third")]
        engine = SuggestionEngine(RuleCatalog(rules))

        outcome = engine.analyze([_symptom("anything", 4)])
        assert [s.rule_id for s in outcome.suggestions] == ["first", "second", "third"]

    def test_suggestion_copies_payload_and_names_rule(self, engine: SuggestionEngine):
        suggestion = engine.analyze(CHEST_PAIN_BATCH).suggestions[0]
        rule = engine.catalog.get("emergency_chest_pain")
        assert suggestion.rule_name == rule.name
        assert suggestion.reasoning == rule.suggestions.reasoning
        assert suggestion.next_steps == list(rule.suggestions.next_steps)

    def test_analysis_sees_one_catalog_snapshot(self, monkeypatch):
        catalog = RuleCatalog([_rule("a", severity=SeverityCondition(max=10)),
                               _rule("b", severity=SeverityCondition(max=10))])
        engine = SuggestionEngine(catalog)
        seen: list[str] = []
        original = engine.evaluate_rule

        def evaluate_and_extend(rule, records):
            seen.append(rule.id)
            if rule.id == "a":
                catalog.add(_rule("late", confidence=100, severity=SeverityCondition(max=10)))
            return original(rule, records)

        monkeypatch.setattr(engine, "evaluate_rule", evaluate_and_extend)
        outcome = engine.analyze([_symptom("anything", 4)])

        assert seen == ["a", "b"]
        assert "late" not in [s.rule_id for s in outcome.suggestions]
        assert len(catalog) == 3


# ---------------------------------------------------------------------------
# evaluate_rule
# ---------------------------------------------------------------------------

class TestEvaluateRule:
    def test_gate_veto_ignores_other_predicates(self, engine: SuggestionEngine):
        rule = _rule("x", symptoms=("cough",), severity=SeverityCondition(min=1))
        record = SymptomRecord.from_dict(_symptom("nausea", 9))
        assert engine.evaluate_rule(rule, [record]) == 0

    def test_gate_pass_saturates(self, engine: SuggestionEngine):
        rule = _rule("x", symptoms=("cough", "wheeze", "phlegm"))
        record = SymptomRecord.from_dict(_symptom("dry cough", 2))
        assert engine.evaluate_rule(rule, [record]) == 100

    def test_empty_keyword_list_is_no_gate(self, engine: SuggestionEngine):
        rule = _rule("x", symptoms=(), severity=SeverityCondition(max=5))
        record = SymptomRecord.from_dict(_symptom("nausea", 3))
        assert engine.evaluate_rule(rule, [record]) == 25

    def test_predicates_add_up(self, engine: SuggestionEngine):
        rule = _rule(
            "x",
            severity=SeverityCondition(min=3, avg=5),
            duration=DurationCondition(unit="hours", min=1, max=4),
        )
        record = SymptomRecord.from_dict(_symptom("nausea", 5, 2, "hours"))
        assert engine.evaluate_rule(rule, [record]) == 25 + 15 + 30

    @pytest.mark.parametrize("value, unit", [
        (90, "minutes"),
        (1.5, "hours"),
        (0.0625, "days"),
        (1.5 / 168, "weeks"),
    ])
    def test_equivalent_durations_score_equally(self, value: float, unit: str):
        rule = _rule("x", duration=DurationCondition(unit="hours", min=1, max=2))
        engine = SuggestionEngine(RuleCatalog([rule]))

        outcome = engine.analyze([_symptom("nausea", 5, value, unit)])
        assert outcome.confidence == 15

    def test_unknown_unit_uses_raw_value(self):
        rule = _rule("x", duration=DurationCondition(unit="hours", min=1, max=2))
        engine = SuggestionEngine(RuleCatalog([rule]))

        inside = engine.analyze([_symptom("nausea", 5, 1.5, "fortnights")])
        outside = engine.analyze([_symptom("nausea", 5, 3, "fortnights")])
        assert inside.confidence == 15
        assert outside.confidence == 8


# ---------------------------------------------------------------------------
# Reasoning and rounding
# ---------------------------------------------------------------------------

class TestReasoning:
    def test_reasoning_names_batch_and_max_severity(self, engine: SuggestionEngine):
        outcome = engine.analyze([_symptom("cough", 3), _symptom("chest pain", 9)])
        rule = engine.catalog.get("emergency_chest_pain")
        assert outcome.reasoning == (
            f"Based on your symptoms (cough, chest pain) with severity up to 9/10, "
            f"{rule.suggestions.reasoning}"
        )


class TestRounding:
    @pytest.mark.parametrize("value, expected", [(0.4, 0), (0.5, 1), (1.5, 2), (2.5, 3), (99.49, 99)])
    def test_round_half_up(self, value: float, expected: int):
        assert round_half_up(value) == expected
