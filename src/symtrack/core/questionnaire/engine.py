"""Questionnaire engine — drives guided assessments and keeps their sessions."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from symtrack.core.questionnaire.models import (
    FINAL,
    Question,
    Questionnaire,
    QuestionnaireError,
    QuestionnaireRule,
    QuestionnaireSession,
)
from symtrack.core.rules.models import URGENCY_LEVELS

logger = logging.getLogger(__name__)

MAX_ASSESSMENTS = 3
DEFAULT_SESSION_MAX_AGE_MINUTES = 60

_TIER = {level: index for index, level in enumerate(URGENCY_LEVELS)}

Answer = str | list[str]


class QuestionnaireEngine:
    """Guided questionnaire over an in-memory session table.

    Each answer is routed to the next question through the question's
    ``next`` table (exact answer first, then ``default``). When the flow
    reaches ``final`` the collected answers are matched against the
    questionnaire rules, ranked by urgency tier.

    Sessions live only in memory; :meth:`cleanup` drops stale ones.
    """

    def __init__(self, questionnaire: Questionnaire) -> None:
        self._questionnaire = questionnaire
        self._sessions: dict[str, QuestionnaireSession] = {}
        self._lock = threading.Lock()

    @property
    def questionnaire(self) -> Questionnaire:
        return self._questionnaire

    # -- Sessions -----------------------------------------------------------

    def start_session(self) -> tuple[QuestionnaireSession, Question]:
        """Open a session positioned on the first question."""
        session = QuestionnaireSession(
            id=f"session_{uuid.uuid4().hex}",
            current_question_id=self._questionnaire.start,
            started_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.debug("Started questionnaire session %s", session.id)
        return session, self._questionnaire.questions[session.current_question_id]

    def get_session(self, session_id: str) -> QuestionnaireSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Forget a session. Returns False if it did not exist."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def answer(self, session_id: str, question_id: str, answer: Answer) -> dict[str, Any]:
        """Record an answer and advance the session.

        Returns:
            ``{"is_complete": False, "next_question": Question}`` while the
            flow continues, or ``{"is_complete": True, "assessments": [...]}``
            once it ends.

        Raises:
            QuestionnaireError: Unknown session or question, a finished
                session, or an answer outside the question's options.
        """
        session = self.get_session(session_id)
        if session is None:
            raise QuestionnaireError("Session not found or expired")
        if session.is_complete:
            raise QuestionnaireError("Session is already complete")
        question = self._questionnaire.questions.get(question_id)
        if question is None:
            raise QuestionnaireError(f"Question not found: {question_id}")

        answer = _check_answer(question, answer)
        session.answers[question_id] = answer

        next_id = next_question_id(question, answer)
        if next_id == FINAL:
            session.is_complete = True
            session.results = self.evaluate(session.answers)
            logger.info(
                "Questionnaire session %s complete: %d answers, %d assessments",
                session.id, len(session.answers), len(session.results),
            )
            return {"is_complete": True, "assessments": session.results}

        session.current_question_id = next_id
        return {"is_complete": False, "next_question": self._questionnaire.questions[next_id]}

    # -- Rule evaluation ----------------------------------------------------

    def evaluate(self, answers: dict[str, Answer]) -> list[dict[str, Any]]:
        """Match answers against the rules; most urgent first, top three.

        Falls back to the questionnaire's general advice when nothing matches.
        """
        matched = [
            {**rule.result.to_dict(), "rule_id": rule.id}
            for rule in self._questionnaire.rules
            if rule_matches(rule, answers)
        ]
        matched.sort(key=lambda result: _TIER.get(result["urgency"], len(_TIER)))
        if not matched:
            return [self._questionnaire.fallback.to_dict()]
        return matched[:MAX_ASSESSMENTS]

    # -- Housekeeping -------------------------------------------------------

    def stats(self) -> dict[str, int]:
        sessions = list(self._sessions.values())
        completed = sum(1 for s in sessions if s.is_complete)
        return {
            "active_sessions": len(sessions),
            "completed_sessions": completed,
            "in_progress_sessions": len(sessions) - completed,
        }

    def cleanup(self, max_age_minutes: int = DEFAULT_SESSION_MAX_AGE_MINUTES) -> int:
        """Drop sessions started more than ``max_age_minutes`` ago."""
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=max_age_minutes)
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.started_at < cutoff]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info("Removed %d questionnaire sessions older than %d minutes",
                        len(stale), max_age_minutes)
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)


def next_question_id(question: Question, answer: Answer) -> str:
    """Route an answer: exact match first, then ``default``, else the end."""
    for value in [answer] if isinstance(answer, str) else answer:
        if value in question.next:
            return question.next[value]
    return question.next.get("default", FINAL)


def rule_matches(rule: QuestionnaireRule, answers: dict[str, Answer]) -> bool:
    """True when every answered condition accepts its answer.

    Unanswered questions are skipped, but at least one condition must have
    been answered.
    """
    answered = 0
    for question_id, accepted in rule.conditions.items():
        given = answers.get(question_id)
        if not given:
            continue
        answered += 1
        values = [given] if isinstance(given, str) else given
        if not any(value in accepted for value in values):
            return False
    return answered > 0


def _check_answer(question: Question, answer: Answer) -> Answer:
    if question.type == "multiple_choice":
        values = [answer] if isinstance(answer, str) else list(answer)
        if not values:
            raise QuestionnaireError(f"Question {question.id} needs at least one option")
    elif isinstance(answer, str):
        values = [answer]
    else:
        raise QuestionnaireError(f"Question {question.id} takes a single option")

    invalid = [v for v in values if v not in question.options]
    if invalid:
        raise QuestionnaireError(
            f"Invalid option(s) {', '.join(map(str, invalid))} for question {question.id}; "
            f"choose from: {', '.join(question.options)}"
        )
    return values if question.type == "multiple_choice" else answer
