"""Rule loader — reads rule definitions from a YAML (or JSON) file."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from symtrack.core.rules.models import (
    DurationCondition,
    Rule,
    RuleConditions,
    RuleSuggestion,
    SeverityCondition,
    TemperatureCondition,
)

logger = logging.getLogger(__name__)


class RuleLoadError(Exception):
    """Raised when a rule file cannot be read or parsed."""


def load_rules_file(path: str | Path) -> list[Rule]:
    """Parse a rule file into Rule instances, preserving file order.

    The file holds either a list of rules or a mapping with a ``rules`` list.
    JSON files work too, since JSON is a subset of YAML.

    Raises:
        RuleLoadError: If the file is missing, unparsable, or an entry lacks
            a required field.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise RuleLoadError(f"Cannot read rule file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuleLoadError(f"Cannot parse rule file {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("rules")
    if not isinstance(data, list):
        raise RuleLoadError(f"Rule file {path} must contain a list of rules")

    rules = []
    for index, entry in enumerate(data):
        try:
            rules.append(parse_rule(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise RuleLoadError(f"{path}: rule #{index} is malformed: {exc!r}") from exc
    logger.debug("Parsed %d rules from %s", len(rules), path)
    return rules


def parse_rule(data: dict[str, Any]) -> Rule:
    """Build a Rule from one loosely-typed mapping.

    Accepts both ``associated_symptoms``/``next_steps`` and the camelCase
    spellings used by older rule files.
    """
    data = _mapping(data, "rule")
    conditions_data = _mapping(data.get("conditions") or {}, "conditions")
    suggestions_data = _mapping(data["suggestions"], "suggestions")

    return Rule(
        id=str(data["id"]),
        name=str(data["name"]),
        conditions=RuleConditions(
            symptoms=_keywords(conditions_data.get("symptoms")),
            severity=_severity(conditions_data.get("severity")),
            duration=_duration(conditions_data.get("duration")),
            temperature=_temperature(conditions_data.get("temperature")),
            associated_symptoms=_keywords(
                conditions_data.get(
                    "associated_symptoms", conditions_data.get("associatedSymptoms")
                )
            ),
        ),
        suggestions=RuleSuggestion(
            urgency=suggestions_data["urgency"],
            action=suggestions_data["action"],
            reasoning=str(suggestions_data.get("reasoning", "")).strip(),
            confidence=float(suggestions_data["confidence"]),
            next_steps=tuple(
                suggestions_data.get("next_steps", suggestions_data.get("nextSteps", []))
            ),
        ),
    )


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _keywords(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, (str, Mapping)):
        raise TypeError(f"keywords must be a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def _number(value: Any) -> float | None:
    return None if value is None else float(value)


def _severity(value: dict[str, Any] | None) -> SeverityCondition | None:
    if value is None:
        return None
    value = _mapping(value, "severity")
    return SeverityCondition(
        min=_number(value.get("min")),
        max=_number(value.get("max")),
        avg=_number(value.get("avg")),
    )


def _duration(value: dict[str, Any] | None) -> DurationCondition | None:
    if value is None:
        return None
    value = _mapping(value, "duration")
    return DurationCondition(
        unit=str(value.get("unit", "hours")),
        min=_number(value.get("min")),
        max=_number(value.get("max")),
    )


def _temperature(value: dict[str, Any] | None) -> TemperatureCondition | None:
    if value is None:
        return None
    value = _mapping(value, "temperature")
    return TemperatureCondition(
        min=_number(value.get("min")),
        max=_number(value.get("max")),
    )
