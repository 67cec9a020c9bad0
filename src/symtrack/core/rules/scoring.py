"""Predicate scoring — one function per rule condition group.

Each function returns the points a batch of symptom records earns against
one predicate group. The engine sums them; see ``engine.evaluate_rule``.
"""

from __future__ import annotations

from collections.abc import Sequence

from symtrack.core.rules.models import (
    DurationCondition,
    SeverityCondition,
    SymptomRecord,
    TemperatureCondition,
)

# Scoring weights
SYMPTOM_MATCH_WEIGHT = 30
SEVERITY_BOUND_POINTS = 25
SEVERITY_AVG_POINTS = 15
SEVERITY_AVG_TOLERANCE = 1
DURATION_BOUND_POINTS = 15
DURATION_CAP = 30
TEMPERATURE_BOUND_POINTS = 20
ASSOCIATED_MATCH_POINTS = 10
ASSOCIATED_CAP = 20
MAX_SCORE = 100

HOURS_PER_UNIT: dict[str, float] = {
    "minutes": 1 / 60,
    "hours": 1,
    "days": 24,
    "weeks": 24 * 7,
    "months": 24 * 30,
}


def convert_to_hours(value: float, unit: str) -> float:
    """Convert a duration to hours.

    Unknown units return ``value`` unchanged (identity conversion), so a
    bad unit degrades the comparison instead of failing the analysis.
    """
    factor = HOURS_PER_UNIT.get(unit)
    if factor is None:
        return value
    return value * factor


def names_match(a: str, b: str) -> bool:
    """Case-insensitive substring containment in either direction."""
    a_lower = a.lower()
    b_lower = b.lower()
    return a_lower in b_lower or b_lower in a_lower


def symptom_match_percentage(
    keywords: Sequence[str], records: Sequence[SymptomRecord]
) -> float:
    """Percentage (0-100) of keywords matching at least one record name."""
    if not keywords:
        return 0.0
    matches = sum(
        1 for keyword in keywords
        if any(names_match(record.name, keyword) for record in records)
    )
    return matches / len(keywords) * 100


def severity_score(condition: SeverityCondition, records: Sequence[SymptomRecord]) -> float:
    severities = [record.severity for record in records]
    if not severities:
        return 0.0
    max_severity = max(severities)
    avg_severity = sum(severities) / len(severities)

    score = 0.0
    if condition.min is not None and max_severity >= condition.min:
        score += SEVERITY_BOUND_POINTS
    if condition.max is not None and max_severity <= condition.max:
        score += SEVERITY_BOUND_POINTS
    if condition.avg is not None and abs(avg_severity - condition.avg) <= SEVERITY_AVG_TOLERANCE:
        score += SEVERITY_AVG_POINTS
    return score


def duration_score(condition: DurationCondition, records: Sequence[SymptomRecord]) -> float:
    """Per-record bound checks in hours, summed and capped across the batch."""
    min_hours = (
        convert_to_hours(condition.min, condition.unit) if condition.min is not None else None
    )
    max_hours = (
        convert_to_hours(condition.max, condition.unit) if condition.max is not None else None
    )

    score = 0.0
    for record in records:
        hours = convert_to_hours(record.duration.value, record.duration.unit)
        if min_hours is not None and hours >= min_hours:
            score += DURATION_BOUND_POINTS
        if max_hours is not None and hours <= max_hours:
            score += DURATION_BOUND_POINTS
    return min(score, DURATION_CAP)


def temperature_score(
    condition: TemperatureCondition, records: Sequence[SymptomRecord]
) -> float:
    temperatures = [r.temperature for r in records if r.temperature is not None]
    if not temperatures:
        return 0.0
    max_temp = max(temperatures)

    score = 0.0
    if condition.min is not None and max_temp >= condition.min:
        score += TEMPERATURE_BOUND_POINTS
    if condition.max is not None and max_temp <= condition.max:
        score += TEMPERATURE_BOUND_POINTS
    return score


def associated_symptom_score(
    keywords: Sequence[str], records: Sequence[SymptomRecord]
) -> float:
    """Every matching associated-symptom entry counts, repeats included."""
    matches = 0
    for record in records:
        for associated in record.associated_symptoms:
            if any(names_match(associated.name, keyword) for keyword in keywords):
                matches += 1
    return min(matches * ASSOCIATED_MATCH_POINTS, ASSOCIATED_CAP)
