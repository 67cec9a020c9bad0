"""Tests for the guided questionnaire MCP tools."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from symtrack.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    blocks = getattr(result, "content", result)
    return json.loads(blocks[0].text)


def _conversation(server, steps: list[tuple[str, dict]]) -> list[dict]:
    """Run tool calls in one client session; ``{session}`` is filled from the first reply."""
    async def _go():
        replies = []
        async with Client(server) as client:
            for name, args in steps:
                if replies and "session_id" in replies[0]:
                    args = {k: (replies[0]["session_id"] if v == "{session}" else v)
                            for k, v in args.items()}
                replies.append(_payload(await client.call_tool(name, args)))
        return replies
    return _run(_go())


EMERGENCY_ANSWERS = [
    ("answer_question", {"session_id": "{session}", "question_id": "fever_check", "answer": "none"}),
    ("answer_question", {"session_id": "{session}", "question_id": "pain_check", "answer": ["chest_pain"]}),
    ("answer_question", {"session_id": "{session}", "question_id": "breathing_check", "answer": "yes"}),
    ("answer_question", {"session_id": "{session}", "question_id": "severity_check", "answer": "severe"}),
]


@pytest.fixture
def server():
    return create_app()


class TestQuestionnaireFlow:
    def test_start_returns_first_question(self, server):
        [reply] = _conversation(server, [("start_questionnaire", {})])
        assert reply["status"] == "ok"
        assert reply["session_id"].startswith("session_")
        assert reply["question"]["id"] == "fever_check"
        assert "none" in reply["question"]["options"]

    def test_full_flow_ends_with_ranked_assessments(self, server):
        replies = _conversation(server, [("start_questionnaire", {})] + EMERGENCY_ANSWERS)
        assert replies[1]["next_question"]["id"] == "pain_check"
        assert replies[2]["next_question"]["id"] == "breathing_check"

        final = replies[-1]
        assert final["is_complete"] is True
        assert final["assessments"][0]["urgency"] == "emergency"
        assert "911" in final["assessments"][0]["action"]
        assert len(final["assessments"]) <= 3
        assert final["disclaimer"]

    def test_session_progress_and_end(self, server):
        replies = _conversation(server, [
            ("start_questionnaire", {}),
            EMERGENCY_ANSWERS[0],
            ("questionnaire_session", {"session_id": "{session}"}),
            ("end_questionnaire", {"session_id": "{session}"}),
            ("questionnaire_session", {"session_id": "{session}"}),
        ])
        progress = replies[2]
        assert progress["current_question_id"] == "pain_check"
        assert progress["answers_count"] == 1
        assert progress["is_complete"] is False
        assert replies[3]["status"] == "ended"
        assert replies[4]["status"] == "not_found"

    def test_stats_and_cleanup(self, server):
        replies = _conversation(server, [("start_questionnaire", {})] + EMERGENCY_ANSWERS + [
            ("start_questionnaire", {}),
            ("questionnaire_stats", {}),
            ("cleanup_questionnaire_sessions", {"max_age_minutes": 0}),
            ("questionnaire_stats", {}),
        ])
        assert replies[-3] == {
            "status": "ok",
            "active_sessions": 2,
            "completed_sessions": 1,
            "in_progress_sessions": 1,
        }
        assert replies[-2]["sessions_removed"] == 2
        assert replies[-1]["active_sessions"] == 0


class TestQuestionnaireErrors:
    def test_unknown_session(self, server):
        [reply] = _conversation(server, [
            ("answer_question", {"session_id": "session_missing", "question_id": "fever_check",
                                 "answer": "none"}),
        ])
        assert reply["status"] == "error"
        assert "not found" in reply["message"]

    def test_invalid_option(self, server):
        replies = _conversation(server, [
            ("start_questionnaire", {}),
            ("answer_question", {"session_id": "{session}", "question_id": "fever_check",
                                 "answer": "scorching"}),
        ])
        assert replies[1]["status"] == "error"
        assert "choose from" in replies[1]["message"]

    def test_negative_cleanup_age(self, server):
        [reply] = _conversation(server, [("cleanup_questionnaire_sessions", {"max_age_minutes": -5})])
        assert reply["status"] == "error"


def test_completed_assessment_is_audited(symptom_repository, audit_logger):
    server = create_app(repository_override=symptom_repository)
    _conversation(server, [("start_questionnaire", {})] + EMERGENCY_ANSWERS)

    events = audit_logger.get_events(tool_name="answer_question")
    assert len(events) == 1
    assert "chest_pain" not in json.dumps(events[0])
