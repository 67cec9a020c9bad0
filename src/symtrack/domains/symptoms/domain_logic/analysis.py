"""Wrap engine outcomes with the metadata returned to MCP clients."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from symtrack.core.rules.models import AnalysisOutcome
from symtrack.core.storage.models import StoredSymptom

DISCLAIMER = (
    "This analysis is for informational purposes only and does not replace "
    "professional medical advice. Please consult with a healthcare provider for "
    "proper medical evaluation."
)

NO_SYMPTOMS_REASONING = (
    "No recent symptoms available for analysis. Please log your symptoms first."
)


def build_analysis_response(
    outcome: AnalysisOutcome,
    analyzed: Sequence[StoredSymptom | dict[str, Any]] = (),
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Attach analysis date, disclaimer and the analyzed symptoms' identifying fields."""
    now = now or datetime.now(timezone.utc)
    payload = outcome.to_dict()
    payload["analyzed_symptoms"] = [
        s.summary() if isinstance(s, StoredSymptom) else s for s in analyzed
    ]
    payload["analysis_date"] = now.isoformat()
    payload["disclaimer"] = DISCLAIMER
    return payload
