"""Pattern-based general health recommendations from symptom history.

Unlike the rule engine, these are broad lifestyle cards keyed on simple
patterns across a period of history (severity, respiratory, pain, stress).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from symtrack.core.storage.models import StoredSymptom

HIGH_SEVERITY_THRESHOLD = 7
STRESS_AVG_SEVERITY = 5

RECOMMENDATIONS_DISCLAIMER = (
    "These recommendations are general health advice and do not replace "
    "professional medical consultation."
)

RESPIRATORY_KEYWORDS = ("cough", "shortness of breath", "chest pain", "sore throat")
PAIN_KEYWORDS = ("headache", "back pain", "joint pain", "muscle pain")
STRESS_KEYWORDS = ("headache", "fatigue", "insomnia", "muscle tension")


def _card(
    type_: str, priority: str, title: str, description: str, actions: list[str]
) -> dict[str, Any]:
    return {
        "type": type_,
        "priority": priority,
        "title": title,
        "description": description,
        "actions": actions,
    }


def _mentions(names: Sequence[str], keywords: Sequence[str]) -> bool:
    return any(keyword in name for name in names for keyword in keywords)


def generate_health_recommendations(symptoms: Sequence[StoredSymptom]) -> list[dict[str, Any]]:
    """Build recommendation cards for a period of symptom history."""
    if not symptoms:
        return [_card(
            "general", "low",
            "Maintain Good Health Habits",
            "Continue practicing healthy lifestyle habits to prevent illness.",
            [
                "Get 7-9 hours of sleep nightly",
                "Stay hydrated (8 glasses of water daily)",
                "Exercise regularly (30 minutes, 5 days/week)",
                "Eat a balanced diet with fruits and vegetables",
                "Practice stress management techniques",
            ],
        )]

    names = [s.name.lower() for s in symptoms]
    avg_severity = sum(s.severity for s in symptoms) / len(symptoms)
    recommendations: list[dict[str, Any]] = []

    if any(s.severity >= HIGH_SEVERITY_THRESHOLD for s in symptoms):
        recommendations.append(_card(
            "urgent", "high",
            "Monitor High-Severity Symptoms",
            "You have logged high-severity symptoms. Consider medical consultation.",
            [
                "Schedule appointment with healthcare provider",
                "Keep detailed symptom diary",
                "Monitor for worsening symptoms",
                "Have emergency contact information readily available",
            ],
        ))

    if _mentions(names, RESPIRATORY_KEYWORDS):
        recommendations.append(_card(
            "health", "medium",
            "Respiratory Health Support",
            "Support your respiratory system with these practices.",
            [
                "Stay hydrated to thin mucus",
                "Use humidifier or breathe steam",
                "Avoid irritants like smoke",
                "Consider warm salt water gargles for sore throat",
                "Rest and avoid strenuous activity",
            ],
        ))

    if _mentions(names, PAIN_KEYWORDS):
        recommendations.append(_card(
            "wellness", "medium",
            "Pain Management Strategies",
            "Natural approaches to help manage pain and discomfort.",
            [
                "Apply heat or cold therapy as appropriate",
                "Practice gentle stretching or yoga",
                "Consider massage or physical therapy",
                "Maintain good posture",
                "Ensure adequate sleep for healing",
            ],
        ))

    if _mentions(names, STRESS_KEYWORDS) and avg_severity > STRESS_AVG_SEVERITY:
        recommendations.append(_card(
            "mental_health", "medium",
            "Stress Management",
            "Your symptoms may be stress-related. Consider these stress reduction techniques.",
            [
                "Practice deep breathing exercises",
                "Try meditation or mindfulness",
                "Maintain regular exercise routine",
                "Ensure work-life balance",
                "Consider talking to a counselor if stress persists",
            ],
        ))

    if not recommendations:
        recommendations.append(_card(
            "general", "low",
            "Continue Monitoring Your Health",
            "Keep tracking your symptoms and maintain healthy habits.",
            [
                "Continue logging symptoms accurately",
                "Maintain regular sleep schedule",
                "Stay hydrated and eat nutritious foods",
                "Exercise as tolerated",
                "Contact healthcare provider if symptoms worsen",
            ],
        ))

    return recommendations
