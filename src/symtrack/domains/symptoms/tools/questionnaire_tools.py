"""MCP tools for the guided symptom questionnaire.

A session walks through multiple-choice questions; when the flow ends the
answers are matched against the questionnaire rules and up to three
urgency-ranked assessments come back. Sessions are held in memory only.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from symtrack.core.audit.logger import AuditLogger
    from symtrack.core.questionnaire.engine import QuestionnaireEngine

from symtrack.core.questionnaire.models import QuestionnaireError
from symtrack.domains.symptoms.domain_logic.analysis import DISCLAIMER

logger = logging.getLogger(__name__)


def register_questionnaire_tools(
    mcp: FastMCP,
    questionnaire: QuestionnaireEngine,
    session_max_age_minutes: int = 60,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register the questionnaire tools on the MCP server."""

    @mcp.tool
    async def start_questionnaire(ctx: Context) -> str:
        """Start a guided symptom questionnaire and get its first question.

        Answer each question with ``answer_question`` using the returned
        ``session_id`` and the question's ``id``.
        """
        questionnaire.cleanup(session_max_age_minutes)
        session, question = questionnaire.start_session()
        return json.dumps({
            "status": "ok",
            "session_id": session.id,
            "question": question.to_dict(),
        }, indent=2)

    @mcp.tool
    async def answer_question(
        ctx: Context,
        session_id: str,
        question_id: str,
        answer: str | list[str],
    ) -> str:
        """Answer the current questionnaire question.

        Returns the next question, or the assessments once the questionnaire
        is complete.

        Args:
            session_id: The session from ``start_questionnaire``.
            question_id: The question being answered.
            answer: One option, or a list of options for multiple-choice questions.
        """
        start_time = time.monotonic()
        try:
            result = questionnaire.answer(session_id, question_id, answer)
        except QuestionnaireError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        if not result["is_complete"]:
            return json.dumps({
                "status": "ok",
                "is_complete": False,
                "next_question": result["next_question"].to_dict(),
            }, indent=2)

        if audit_logger is not None:
            session = questionnaire.get_session(session_id)
            audit_logger.log_tool_call(
                "answer_question",
                session.answers if session is not None else {},
                duration_ms=(time.monotonic() - start_time) * 1000,
                metadata={
                    "answers": len(session.answers) if session is not None else 0,
                    "assessments": len(result["assessments"]),
                },
            )
        return json.dumps({
            "status": "ok",
            "is_complete": True,
            "assessments": result["assessments"],
            "disclaimer": DISCLAIMER,
        }, indent=2)

    @mcp.tool
    async def questionnaire_session(
        ctx: Context,
        session_id: str,
    ) -> str:
        """Show the progress of a questionnaire session.

        Args:
            session_id: The session from ``start_questionnaire``.
        """
        session = questionnaire.get_session(session_id)
        if session is None:
            return json.dumps({
                "status": "not_found",
                "session_id": session_id,
                "message": "Session not found or expired",
            })
        payload = {"status": "ok", **session.to_dict()}
        if session.is_complete:
            payload["assessments"] = session.results
        return json.dumps(payload, indent=2)

    @mcp.tool
    async def end_questionnaire(
        ctx: Context,
        session_id: str,
    ) -> str:
        """End a questionnaire session and discard its answers.

        Args:
            session_id: The session to end.
        """
        if not questionnaire.end_session(session_id):
            return json.dumps({
                "status": "not_found",
                "session_id": session_id,
                "message": "Session not found or expired",
            })
        return json.dumps({"status": "ended", "session_id": session_id})

    @mcp.tool
    async def questionnaire_stats(ctx: Context) -> str:
        """Count open and completed questionnaire sessions."""
        return json.dumps({"status": "ok", **questionnaire.stats()})

    @mcp.tool
    async def cleanup_questionnaire_sessions(
        ctx: Context,
        max_age_minutes: int = 60,
    ) -> str:
        """Discard questionnaire sessions started more than a number of minutes ago.

        Args:
            max_age_minutes: Age limit in minutes (default: 60).
        """
        if max_age_minutes < 0:
            return json.dumps({
                "status": "error",
                "message": "max_age_minutes must not be negative.",
            })
        removed = questionnaire.cleanup(max_age_minutes)
        return json.dumps({
            "status": "ok",
            "sessions_removed": removed,
            "max_age_minutes": max_age_minutes,
        })
