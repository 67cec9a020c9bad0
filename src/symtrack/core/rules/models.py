"""Data models for symptom rules, symptom records and analysis results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

Urgency = Literal["emergency", "urgent", "moderate", "mild", "routine"]

# Ordered by required response speed, fastest first.
URGENCY_LEVELS: tuple[str, ...] = ("emergency", "urgent", "moderate", "mild", "routine")

DURATION_UNITS: tuple[str, ...] = ("minutes", "hours", "days", "weeks", "months")


class InvalidSymptomRecordError(ValueError):
    """Raised when a symptom record is missing or has a malformed field."""


# ---------------------------------------------------------------------------
# Rule definitions (immutable after load)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SeverityCondition:
    min: float | None = None
    max: float | None = None
    avg: float | None = None


@dataclass(frozen=True)
class DurationCondition:
    unit: str = "hours"
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class TemperatureCondition:
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class RuleConditions:
    """Predicate groups of a rule. ``None`` means the group is absent."""

    symptoms: tuple[str, ...] | None = None
    severity: SeverityCondition | None = None
    duration: DurationCondition | None = None
    temperature: TemperatureCondition | None = None
    associated_symptoms: tuple[str, ...] | None = None


@dataclass(frozen=True)
class RuleSuggestion:
    """Payload emitted when a rule matches."""

    urgency: Urgency
    action: str
    reasoning: str
    confidence: float
    next_steps: tuple[str, ...] = ()


@dataclass(frozen=True)
class Rule:
    """A declarative predicate-plus-payload catalog entry."""

    id: str
    name: str
    conditions: RuleConditions
    suggestions: RuleSuggestion

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk rule file shape."""
        conditions: dict[str, Any] = {}
        c = self.conditions
        if c.symptoms is not None:
            conditions["symptoms"] = list(c.symptoms)
        if c.severity is not None:
            conditions["severity"] = _drop_none(
                {"min": c.severity.min, "max": c.severity.max, "avg": c.severity.avg}
            )
        if c.duration is not None:
            conditions["duration"] = _drop_none(
                {"unit": c.duration.unit, "min": c.duration.min, "max": c.duration.max}
            )
        if c.temperature is not None:
            conditions["temperature"] = _drop_none(
                {"min": c.temperature.min, "max": c.temperature.max}
            )
        if c.associated_symptoms is not None:
            conditions["associated_symptoms"] = list(c.associated_symptoms)

        s = self.suggestions
        return {
            "id": self.id,
            "name": self.name,
            "conditions": conditions,
            "suggestions": {
                "urgency": s.urgency,
                "action": s.action,
                "reasoning": s.reasoning,
                "confidence": s.confidence,
                "next_steps": list(s.next_steps),
            },
        }


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Symptom records (engine input)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Duration:
    value: float
    unit: str


@dataclass(frozen=True)
class AssociatedSymptom:
    name: str
    severity: int | None = None


@dataclass(frozen=True)
class SymptomRecord:
    """One logged symptom as seen by the suggestion engine."""

    name: str
    severity: int
    duration: Duration
    temperature: float | None = None
    associated_symptoms: tuple[AssociatedSymptom, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SymptomRecord:
        """Build a record from a mapping (snake_case or camelCase keys).

        Raises:
            InvalidSymptomRecordError: If ``name``, ``severity`` or
                ``duration`` is absent, a numeric field is not a number, or
                an associated symptom is not a mapping.
        """
        missing = [key for key in ("name", "severity", "duration") if data.get(key) is None]
        if missing:
            raise InvalidSymptomRecordError(
                f"Symptom record is missing required field(s): {', '.join(missing)}"
            )

        raw_duration = data["duration"]
        if isinstance(raw_duration, Duration):
            duration = raw_duration
        elif isinstance(raw_duration, Mapping) and raw_duration.get("value") is not None:
            duration = Duration(
                value=_require_number(raw_duration["value"], "duration value"),
                unit=str(raw_duration.get("unit", "")),
            )
        else:
            raise InvalidSymptomRecordError(
                "Symptom record duration must carry a 'value' and a 'unit'"
            )

        raw_associated = data.get("associated_symptoms", data.get("associatedSymptoms")) or []
        if isinstance(raw_associated, (str, Mapping)):
            raise InvalidSymptomRecordError("Associated symptoms must be a list")
        associated = []
        for entry in raw_associated:
            if isinstance(entry, AssociatedSymptom):
                associated.append(entry)
            elif isinstance(entry, Mapping):
                associated.append(
                    AssociatedSymptom(name=str(entry.get("name", "")), severity=entry.get("severity"))
                )
            else:
                raise InvalidSymptomRecordError(
                    "Associated symptoms must be objects with a 'name'"
                )

        temperature = data.get("temperature")

        return cls(
            name=str(data["name"]),
            severity=_require_number(data["severity"], "severity"),
            duration=duration,
            temperature=None if temperature is None else _require_number(temperature, "temperature"),
            associated_symptoms=tuple(associated),
        )


def _require_number(value: Any, field_name: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSymptomRecordError(f"Symptom {field_name} must be a number")
    return value


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchResult:
    """A rule that scored above zero for one analysis call."""

    rule: Rule
    score: float
    confidence: float

    @property
    def rank_key(self) -> float:
        return self.score * self.confidence


@dataclass
class Suggestion:
    """A rule's suggestion payload annotated for one analysis."""

    urgency: str
    action: str
    reasoning: str
    confidence: int
    next_steps: list[str]
    rule_name: str
    rule_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "urgency": self.urgency,
            "action": self.action,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "next_steps": list(self.next_steps),
            "rule_name": self.rule_name,
            "rule_id": self.rule_id,
        }


@dataclass
class AnalysisOutcome:
    """Ranked suggestions plus aggregate confidence and reasoning."""

    suggestions: list[Suggestion] = field(default_factory=list)
    confidence: int = 0
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }
