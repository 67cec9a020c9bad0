"""Questionnaire loader — reads the question flow and its rules from YAML."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from symtrack.core.questionnaire.models import (
    FINAL,
    QUESTION_TYPES,
    Assessment,
    Question,
    Questionnaire,
    QuestionnaireRule,
)
from symtrack.core.rules.models import URGENCY_LEVELS

logger = logging.getLogger(__name__)


class QuestionnaireLoadError(Exception):
    """Raised when a questionnaire file cannot be read or is inconsistent."""


def load_questionnaire_file(path: str | Path) -> Questionnaire:
    """Parse and cross-check a questionnaire definition.

    Raises:
        QuestionnaireLoadError: If the file is unreadable, unparsable, or
            routes to, or conditions on, a question that does not exist.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise QuestionnaireLoadError(f"Cannot read questionnaire {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise QuestionnaireLoadError(f"Cannot parse questionnaire {path}: {exc}") from exc

    try:
        questionnaire = parse_questionnaire(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise QuestionnaireLoadError(f"{path}: malformed questionnaire: {exc!r}") from exc

    logger.debug(
        "Parsed questionnaire from %s: %d questions, %d rules",
        path, len(questionnaire.questions), len(questionnaire.rules),
    )
    return questionnaire


def parse_questionnaire(data: Any) -> Questionnaire:
    """Build a Questionnaire from a loosely-typed mapping and check its references."""
    data = _mapping(data, "questionnaire")

    questions: dict[str, Question] = {}
    for entry in data["questions"]:
        question = _question(_mapping(entry, "question"))
        if question.id in questions:
            raise ValueError(f"duplicate question id {question.id!r}")
        questions[question.id] = question

    start = str(data.get("start") or next(iter(questions), ""))
    if start not in questions:
        raise ValueError(f"start question {start!r} is not defined")

    for question in questions.values():
        for target in question.next.values():
            if target != FINAL and target not in questions:
                raise ValueError(f"question {question.id!r} routes to unknown {target!r}")

    rules = tuple(_rule(_mapping(entry, "rule")) for entry in data.get("rules") or [])
    for rule in rules:
        unknown = [qid for qid in rule.conditions if qid not in questions]
        if unknown:
            raise ValueError(f"rule {rule.id!r} conditions on unknown question(s) {unknown}")

    return Questionnaire(
        start=start,
        questions=questions,
        rules=rules,
        fallback=_assessment(_mapping(data["fallback"], "fallback")),
    )


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _strings(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


def _question(data: Mapping[str, Any]) -> Question:
    question_type = str(data.get("type", "single_choice"))
    if question_type not in QUESTION_TYPES:
        raise ValueError(f"question {data.get('id')!r} has unknown type {question_type!r}")
    options = _strings(data.get("options") or [])
    if not options:
        raise ValueError(f"question {data.get('id')!r} has no options")
    return Question(
        id=str(data["id"]),
        text=str(data["text"]).strip(),
        type=question_type,
        options=options,
        next={str(k): str(v) for k, v in _mapping(data.get("next") or {}, "next").items()},
    )


def _assessment(data: Mapping[str, Any]) -> Assessment:
    urgency = str(data["urgency"])
    if urgency not in URGENCY_LEVELS:
        raise ValueError(f"unknown urgency {urgency!r}")
    return Assessment(
        urgency=urgency,
        title=str(data["title"]),
        description=str(data.get("description", "")).strip(),
        reasoning=str(data.get("reasoning", "")).strip(),
        action=str(data["action"]).strip(),
    )


def _rule(data: Mapping[str, Any]) -> QuestionnaireRule:
    conditions = _mapping(data["conditions"], "conditions")
    if not conditions:
        raise ValueError(f"rule {data.get('id')!r} has no conditions")
    return QuestionnaireRule(
        id=str(data["id"]),
        conditions={str(qid): _strings(expected) for qid, expected in conditions.items()},
        result=_assessment(_mapping(data["result"], "result")),
    )
