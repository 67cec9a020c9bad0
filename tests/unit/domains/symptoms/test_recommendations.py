"""Unit tests for pattern-based health recommendations."""

from __future__ import annotations

from symtrack.core.storage.models import StoredSymptom
from symtrack.domains.symptoms.domain_logic.recommendations import (
    generate_health_recommendations,
)


def _symptom(name: str, severity: int) -> StoredSymptom:
    return StoredSymptom(id="", name=name, severity=severity, duration_value=1, duration_unit="days")


def _titles(symptoms) -> list[str]:
    return [card["title"] for card in generate_health_recommendations(symptoms)]


def test_no_history_gives_general_habits():
    cards = generate_health_recommendations([])
    assert len(cards) == 1
    assert cards[0]["title"] == "Maintain Good Health Habits"
    assert cards[0]["priority"] == "low"


def test_high_severity_card_comes_first():
    cards = generate_health_recommendations([_symptom("Back pain", 8)])
    assert cards[0]["type"] == "urgent"
    assert cards[0]["priority"] == "high"
    assert "Pain Management Strategies" in [c["title"] for c in cards]


def test_respiratory_keywords_are_case_insensitive():
    assert "Respiratory Health Support" in _titles([_symptom("Dry Cough", 3)])


def test_stress_card_needs_high_average():
    assert "Stress Management" not in _titles([_symptom("Fatigue", 4)])
    assert "Stress Management" in _titles([_symptom("Fatigue", 6), _symptom("Insomnia", 6)])


def test_unmatched_history_gives_monitoring_card():
    assert _titles([_symptom("Itchy elbow", 2)]) == ["Continue Monitoring Your Health"]


def test_cards_carry_actions():
    for card in generate_health_recommendations([_symptom("Headache", 9)]):
        assert set(card) == {"type", "priority", "title", "description", "actions"}
        assert card["actions"]
