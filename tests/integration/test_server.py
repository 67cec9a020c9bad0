"""Integration tests for the symtrack MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from cryptography.fernet import Fernet
from fastmcp import Client

from symtrack.core.server import main as server_main
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


# Registered whether or not the symptom journal is enabled
ALWAYS_REGISTERED = [
    "health_check",
    "analyze_symptom_batch",
    "rules_info",
    "reload_rules",
    "start_questionnaire",
    "answer_question",
    "questionnaire_session",
    "end_questionnaire",
    "questionnaire_stats",
    "cleanup_questionnaire_sessions",
]

JOURNAL_TOOLS = [
    "log_symptom",
    "list_symptoms",
    "get_symptom",
    "update_symptom",
    "delete_symptom",
    "purge_old_symptoms",
    "delete_all_symptoms",
    "symptom_stats",
    "common_symptoms",
    "analyze_symptoms",
    "suggest_for_symptom",
    "health_recommendations",
    "audit_summary",
]


def _tool_names(server) -> list[str]:
    async def _list():
        async with Client(server) as client:
            return [t.name for t in await client.list_tools()]
    return _run(_list())


def test_without_key_only_stateless_tools():
    names = _tool_names(create_app())
    for expected in ALWAYS_REGISTERED:
        assert expected in names, f"Missing tool: {expected}"
    for journal_tool in JOURNAL_TOOLS:
        assert journal_tool not in names


def test_repository_enables_journal_tools(symptom_repository):
    names = _tool_names(create_app(repository_override=symptom_repository))
    for expected in ALWAYS_REGISTERED + JOURNAL_TOOLS:
        assert expected in names, f"Missing tool: {expected}"


def test_broken_questionnaire_file_disables_questionnaire(monkeypatch, tmp_path):
    broken = tmp_path / "questionnaire.yaml"
    broken.write_text("start: nowhere\nquestions: []\n", encoding="utf-8")
    monkeypatch.setenv("QUESTIONNAIRE_PATH", str(broken))

    names = _tool_names(create_app())
    assert "start_questionnaire" not in names
    assert "analyze_symptom_batch" in names


def test_health_check_reports_storage(symptom_repository):
    async def _check():
        async with Client(create_app(repository_override=symptom_repository)) as client:
            return _payload(await client.call_tool("health_check", {}))
    status = _run(_check())
    assert status["status"] == "ok"
    assert status["storage_enabled"] is True
    assert status["questionnaire_enabled"] is True
    assert status["symptoms_stored"] == 0
    assert status["rules_loaded"] >= 6


def test_rule_catalog_resource():
    async def _read():
        async with Client(create_app()) as client:
            resources = await client.list_resources()
            contents = await client.read_resource("rules://symptoms/catalog")
            return [str(r.uri) for r in resources], contents
    uris, contents = _run(_read())
    assert "rules://symptoms/catalog" in uris
    catalog = json.loads(contents[0].text)
    assert catalog["rule_count"] == len(catalog["rules"])
    assert catalog["rules"][0]["id"] == "emergency_chest_pain"


def test_encryption_key_enables_persistent_journal(monkeypatch, tmp_path):
    monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
    monkeypatch.setenv("DB_PATH", str(tmp_path / "symptoms.db"))

    async def _flow():
        async with Client(create_app()) as client:
            await client.call_tool("log_symptom", {
                "name": "chest pain", "severity": 9,
                "duration_value": 20, "duration_unit": "minutes",
            })
            return _payload(await client.call_tool("analyze_symptoms", {}))

    result = _run(_flow())
    assert result["suggestions"][0]["urgency"] == "emergency"
    assert (tmp_path / "symptoms.db").exists()


def test_invalid_key_runs_without_journal(monkeypatch):
    monkeypatch.setenv("ENCRYPTION_KEY", "not-a-valid-key")
    names = _tool_names(create_app())
    assert "log_symptom" not in names
    assert "analyze_symptom_batch" in names


def test_custom_rules_path(monkeypatch, tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "- id: custom\n  name: Custom\n  conditions: {symptoms: [hiccups]}\n"
        "  suggestions: {urgency: routine, action: Drink water, reasoning: r, confidence: 40}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("RULES_PATH", str(path))

    async def _analyze():
        async with Client(create_app()) as client:
            return _payload(await client.call_tool("analyze_symptom_batch", {"symptoms": [
                {"name": "hiccups", "severity": 2, "duration": {"value": 5, "unit": "minutes"}},
            ]}))

    result = _run(_analyze())
    assert [s["rule_id"] for s in result["suggestions"]] == ["custom"]
    assert result["confidence"] == 40


@pytest.mark.parametrize("host, expected", [
    ("127.0.0.1", True),
    ("localhost", True),
    ("::1", True),
    ("0.0.0.0", False),
    ("example.com", False),
])
def test_loopback_detection(host, expected):
    assert server_main._is_loopback_host(host) is expected


def test_run_refuses_public_bind(monkeypatch):
    monkeypatch.setenv("SYMTRACK_HOST", "0.0.0.0")
    with pytest.raises(RuntimeError, match="non-loopback"):
        server_main.run()
