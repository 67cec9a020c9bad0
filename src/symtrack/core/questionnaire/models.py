"""Data models for the guided symptom questionnaire."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Routing target that ends the questionnaire.
FINAL = "final"

QUESTION_TYPES: tuple[str, ...] = ("single_choice", "multiple_choice")


class QuestionnaireError(Exception):
    """Raised for an unknown session or question, or an unacceptable answer."""


@dataclass(frozen=True)
class Question:
    """One question and where each answer leads."""

    id: str
    text: str
    type: str = "single_choice"
    options: tuple[str, ...] = ()
    # answer -> next question id; "default" catches everything else.
    next: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "type": self.type,
            "options": list(self.options),
        }


@dataclass(frozen=True)
class Assessment:
    """The advice shown when a questionnaire rule matches."""

    urgency: str
    title: str
    description: str
    reasoning: str
    action: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "urgency": self.urgency,
            "title": self.title,
            "description": self.description,
            "reasoning": self.reasoning,
            "action": self.action,
        }


@dataclass(frozen=True)
class QuestionnaireRule:
    """Answer conditions (question id -> accepted answers) and their assessment."""

    id: str
    conditions: dict[str, tuple[str, ...]]
    result: Assessment


@dataclass(frozen=True)
class Questionnaire:
    start: str
    questions: dict[str, Question]
    rules: tuple[QuestionnaireRule, ...]
    fallback: Assessment


@dataclass
class QuestionnaireSession:
    """In-memory state of one guided assessment."""

    id: str
    current_question_id: str
    started_at: datetime
    answers: dict[str, str | list[str]] = field(default_factory=dict)
    is_complete: bool = False
    results: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "current_question_id": self.current_question_id,
            "is_complete": self.is_complete,
            "started_at": self.started_at.isoformat(timespec="microseconds"),
            "answers_count": len(self.answers),
        }
