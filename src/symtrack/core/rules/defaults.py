"""Built-in rule catalog, used whenever the rule file cannot be loaded.

Covers every urgency tier so analysis always has a full range of
responses even without external configuration.
"""

from __future__ import annotations

from symtrack.core.rules.models import (
    DurationCondition,
    Rule,
    RuleConditions,
    RuleSuggestion,
    SeverityCondition,
    TemperatureCondition,
)


def default_rules() -> list[Rule]:
    """Return the built-in rules in catalog order."""
    return [
        Rule(
            id="emergency_chest_pain",
            name="Emergency: Severe Chest Pain",
            conditions=RuleConditions(
                symptoms=("chest pain", "chest pressure", "heart pain"),
                severity=SeverityCondition(min=8),
                associated_symptoms=("shortness of breath", "nausea", "sweating", "dizziness"),
            ),
            suggestions=RuleSuggestion(
                urgency="emergency",
                action="Call 911 immediately",
                reasoning=(
                    "Severe chest pain with associated symptoms may indicate a heart "
                    "attack or other serious cardiac emergency."
                ),
                confidence=95,
                next_steps=(
                    "Call emergency services immediately",
                    "Chew aspirin if not allergic",
                    "Stay calm and sit upright",
                    "Do not drive yourself to hospital",
                ),
            ),
        ),
        Rule(
            id="emergency_breathing",
            name="Emergency: Severe Breathing Difficulty",
            conditions=RuleConditions(
                symptoms=("shortness of breath", "difficulty breathing", "can't breathe"),
                severity=SeverityCondition(min=8),
                duration=DurationCondition(unit="minutes", max=30),
            ),
            suggestions=RuleSuggestion(
                urgency="emergency",
                action="Seek immediate emergency care",
                reasoning=(
                    "Severe breathing difficulty can be life-threatening and requires "
                    "immediate medical attention."
                ),
                confidence=90,
                next_steps=(
                    "Call 911 or go to ER immediately",
                    "Sit upright and try to stay calm",
                    "Use rescue inhaler if prescribed",
                    "Remove any tight clothing",
                ),
            ),
        ),
        Rule(
            id="urgent_high_fever",
            name="Urgent: High Fever with Symptoms",
            conditions=RuleConditions(
                symptoms=("fever", "high temperature"),
                temperature=TemperatureCondition(min=103),
                associated_symptoms=("headache", "neck stiffness", "confusion", "rash"),
            ),
            suggestions=RuleSuggestion(
                urgency="urgent",
                action="Seek medical care within 2-4 hours",
                reasoning=(
                    "High fever with neurological symptoms may indicate serious infection "
                    "requiring prompt treatment."
                ),
                confidence=85,
                next_steps=(
                    "Go to urgent care or ER",
                    "Take temperature-reducing medication",
                    "Stay hydrated",
                    "Monitor for worsening symptoms",
                ),
            ),
        ),
        Rule(
            id="moderate_persistent_headache",
            name="Moderate: Persistent Severe Headache",
            conditions=RuleConditions(
                symptoms=("headache", "head pain"),
                severity=SeverityCondition(min=7),
                duration=DurationCondition(unit="hours", min=6),
            ),
            suggestions=RuleSuggestion(
                urgency="moderate",
                action="Schedule appointment with healthcare provider within 24-48 hours",
                reasoning=(
                    "Persistent severe headaches may indicate an underlying condition "
                    "that needs evaluation."
                ),
                confidence=75,
                next_steps=(
                    "Contact your primary care doctor",
                    "Keep a headache diary",
                    "Try over-the-counter pain relief",
                    "Rest in a dark, quiet room",
                ),
            ),
        ),
        Rule(
            id="mild_cold_symptoms",
            name="Mild: Common Cold Symptoms",
            conditions=RuleConditions(
                symptoms=("runny nose", "congestion", "sneezing", "sore throat"),
                severity=SeverityCondition(max=4),
                temperature=TemperatureCondition(max=100.4),
            ),
            suggestions=RuleSuggestion(
                urgency="mild",
                action="Self-care and monitor symptoms",
                reasoning=(
                    "These appear to be mild cold symptoms that typically resolve with "
                    "rest and home care."
                ),
                confidence=80,
                next_steps=(
                    "Get plenty of rest",
                    "Stay hydrated",
                    "Use over-the-counter remedies as needed",
                    "Monitor for worsening symptoms",
                    "Contact doctor if symptoms persist > 10 days",
                ),
            ),
        ),
        Rule(
            id="routine_mild_symptoms",
            name="Routine: Mild General Symptoms",
            conditions=RuleConditions(
                severity=SeverityCondition(max=3),
                duration=DurationCondition(unit="days", max=2),
            ),
            suggestions=RuleSuggestion(
                urgency="routine",
                action="Monitor and practice self-care",
                reasoning=(
                    "Mild symptoms of short duration often resolve on their own with "
                    "basic self-care."
                ),
                confidence=70,
                next_steps=(
                    "Continue monitoring symptoms",
                    "Maintain good hydration",
                    "Get adequate rest",
                    "Consider over-the-counter remedies if appropriate",
                    "Contact healthcare provider if symptoms worsen or persist",
                ),
            ),
        ),
    ]
