"""Data models for the symptom journal."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from symtrack.core.rules.models import AssociatedSymptom, Duration, SymptomRecord

SYMPTOM_STATUSES = ("active", "improving", "resolved", "worsening")

SEVERITY_DESCRIPTIONS = {
    1: "Very Mild",
    2: "Mild",
    3: "Mild-Moderate",
    4: "Moderate",
    5: "Moderate",
    6: "Moderate-Severe",
    7: "Severe",
    8: "Very Severe",
    9: "Extremely Severe",
    10: "Unbearable",
}


@dataclass
class StoredSymptom:
    """A logged symptom as persisted in the journal.

    Name, severity, duration, temperature and status are stored in plain
    columns; everything under "encrypted details" is stored encrypted.
    """

    id: str
    name: str
    severity: int
    duration_value: float
    duration_unit: str
    temperature: float | None = None
    status: str = "active"
    follow_up_date: str | None = None

    # Encrypted details
    description: str = ""
    location: str = ""
    triggers: list[str] = field(default_factory=list)
    associated_symptoms: list[dict[str, Any]] = field(default_factory=list)
    blood_pressure: dict[str, Any] | None = None
    medications: list[dict[str, Any]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    notes: str = ""

    created_at: str = ""  # ISO 8601
    updated_at: str = ""

    @property
    def severity_description(self) -> str:
        return SEVERITY_DESCRIPTIONS.get(self.severity, "Unknown")

    def to_record(self) -> SymptomRecord:
        """Project onto the fields the suggestion engine reads."""
        return SymptomRecord(
            name=self.name,
            severity=self.severity,
            duration=Duration(value=self.duration_value, unit=self.duration_unit),
            temperature=self.temperature,
            associated_symptoms=tuple(
                AssociatedSymptom(name=a.get("name", ""), severity=a.get("severity"))
                for a in self.associated_symptoms
            ),
        )

    def summary(self) -> dict[str, Any]:
        """Identifying fields echoed alongside an analysis."""
        return {
            "id": self.id,
            "name": self.name,
            "severity": self.severity,
            "duration": {"value": self.duration_value, "unit": self.duration_unit},
            "created_at": self.created_at,
        }

    def to_dict(self) -> dict[str, Any]:
        data = self.summary()
        data.update({
            "severity_description": self.severity_description,
            "temperature": self.temperature,
            "status": self.status,
            "follow_up_date": self.follow_up_date,
            "description": self.description,
            "location": self.location,
            "triggers": self.triggers,
            "associated_symptoms": self.associated_symptoms,
            "blood_pressure": self.blood_pressure,
            "medications": self.medications,
            "tags": self.tags,
            "notes": self.notes,
            "updated_at": self.updated_at,
        })
        return data
