"""Rule file validator — reports configuration mistakes in a rule file.

Loading only checks structure; this goes further so authors can catch bad
urgency tiers, unknown units or duplicate IDs before deploying a file.
Run as ``symtrack-validate-rules path/to/rules.yaml``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from symtrack.core.rules.loader import RuleLoadError, load_rules_file
from symtrack.core.rules.models import DURATION_UNITS, URGENCY_LEVELS, Rule

logger = logging.getLogger(__name__)


def validate_rule(rule: Rule) -> list[str]:
    """Return the problems found in a single rule."""
    errors: list[str] = []
    label = rule.id or "<no id>"

    if not rule.id:
        errors.append("Rule is missing an 'id'")
    if not rule.name:
        errors.append(f"{label}: Missing or empty 'name'")

    s = rule.suggestions
    if s.urgency not in URGENCY_LEVELS:
        errors.append(
            f"{label}: Unknown urgency '{s.urgency}' (expected one of {', '.join(URGENCY_LEVELS)})"
        )
    if not 0 <= s.confidence <= 100:
        errors.append(f"{label}: Confidence {s.confidence} is outside 0-100")
    if not s.action:
        errors.append(f"{label}: Missing or empty 'action'")
    if not s.next_steps:
        errors.append(f"{label}: No next steps defined")

    c = rule.conditions
    if c.symptoms is not None and not c.symptoms:
        errors.append(f"{label}: Empty symptom keyword list acts as no gate")
    if c.duration is not None:
        if c.duration.unit not in DURATION_UNITS:
            errors.append(f"{label}: Unknown duration unit '{c.duration.unit}'")
        if c.duration.min is None and c.duration.max is None:
            errors.append(f"{label}: Duration condition has neither min nor max")
    if c.severity is not None and all(
        v is None for v in (c.severity.min, c.severity.max, c.severity.avg)
    ):
        errors.append(f"{label}: Severity condition has no min, max or avg")
    if all(
        group is None
        for group in (c.symptoms, c.severity, c.duration, c.temperature, c.associated_symptoms)
    ):
        errors.append(f"{label}: Rule has no conditions and can never match")

    return errors


def validate_rules_file(path: str | Path) -> tuple[list[Rule], list[str]]:
    """Validate every rule in a file.

    Returns: (rules, errors)
    """
    path = Path(path)
    try:
        rules = load_rules_file(path)
    except RuleLoadError as exc:
        return [], [str(exc)]

    if not rules:
        return [], [f"{path}: No rules defined"]

    errors: list[str] = []
    seen_ids: set[str] = set()
    for rule in rules:
        errors.extend(f"{path}: {err}" for err in validate_rule(rule))
        if rule.id in seen_ids:
            errors.append(f"{path}: Duplicate rule id '{rule.id}'")
        seen_ids.add(rule.id)

    return rules, errors


def validate_rules(path: str | Path) -> tuple[int, int]:
    """Validate a rule file and log each problem. Returns (rule_count, error_count)."""
    rules, errors = validate_rules_file(path)
    for err in errors:
        logger.error("%s", err)
    return len(rules), len(errors)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate a symtrack rule file.")
    parser.add_argument("path", help="Path to a YAML or JSON rule file")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    count, error_count = validate_rules(args.path)
    logger.info("Validated %d rules: %d problem(s)", count, error_count)
    return 1 if error_count else 0


if __name__ == "__main__":
    sys.exit(main())
