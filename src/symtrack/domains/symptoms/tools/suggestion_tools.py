"""MCP tools for rule-based symptom suggestions.

``analyze_symptom_batch``, ``rules_info`` and ``reload_rules`` work without
storage. The journal-backed tools (``analyze_symptoms``,
``suggest_for_symptom``, ``health_recommendations``) are registered only when
the symptom journal is enabled.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from symtrack.core.audit.logger import AuditLogger
    from symtrack.core.config.settings import Settings
    from symtrack.core.rules.engine import SuggestionEngine
    from symtrack.core.storage.repository import SymptomRepository

from symtrack.core.rules.models import AnalysisOutcome, InvalidSymptomRecordError
from symtrack.domains.symptoms.domain_logic.analysis import (
    NO_SYMPTOMS_REASONING,
    build_analysis_response,
)
from symtrack.domains.symptoms.domain_logic.recommendations import (
    RECOMMENDATIONS_DISCLAIMER,
    generate_health_recommendations,
)

logger = logging.getLogger(__name__)


def register_analysis_tools(
    mcp: FastMCP,
    engine: SuggestionEngine,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register the storage-independent analysis and catalog tools."""

    @mcp.tool
    async def analyze_symptom_batch(
        ctx: Context,
        symptoms: list[dict[str, Any]],
    ) -> str:
        """Get rule-based suggestions for symptoms supplied directly.

        Nothing is stored. Each symptom needs ``name``, ``severity`` (1-10)
        and ``duration`` ({"value": number, "unit": "minutes|hours|days|weeks|months"});
        ``temperature`` (°F) and ``associated_symptoms`` ([{"name", "severity"}])
        are optional.

        Args:
            symptoms: The symptom records to analyze together.
        """
        start_time = time.monotonic()
        try:
            outcome = engine.analyze(symptoms)
        except InvalidSymptomRecordError as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    "analyze_symptom_batch",
                    symptoms,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    status="failure",
                    error_type=type(exc).__name__,
                )
            return json.dumps({"status": "error", "message": str(exc)})

        elapsed_ms = (time.monotonic() - start_time) * 1000
        if audit_logger is not None:
            audit_logger.log_tool_call(
                "analyze_symptom_batch",
                symptoms,
                duration_ms=elapsed_ms,
                metadata={"records": len(symptoms), "matches": len(outcome.suggestions)},
            )

        analyzed = [
            {"name": s.get("name"), "severity": s.get("severity"), "duration": s.get("duration")}
            for s in symptoms
        ]
        return json.dumps(
            {"status": "ok", **build_analysis_response(outcome, analyzed)}, indent=2
        )

    @mcp.tool
    async def rules_info(ctx: Context) -> str:
        """Describe the active suggestion rules: counts per urgency tier and each rule."""
        catalog = engine.catalog
        rules = catalog.get_all()
        return json.dumps({
            "status": "ok",
            "total_rules": len(rules),
            "using_builtin_rules": catalog.using_defaults,
            "rule_categories": [
                {"urgency": urgency, "count": count}
                for urgency, count in catalog.counts_by_urgency().items()
            ],
            "rules": [
                {
                    "id": rule.id,
                    "name": rule.name,
                    "urgency": rule.suggestions.urgency,
                    "confidence": rule.suggestions.confidence,
                }
                for rule in rules
            ],
        }, indent=2)

    @mcp.tool
    async def reload_rules(ctx: Context) -> str:
        """Re-read the rule file. Falls back to the built-in rules if it is unusable."""
        count = engine.catalog.reload()
        logger.info("Rule catalog reloaded: %d rules", count)
        return json.dumps({
            "status": "reloaded",
            "total_rules": count,
            "using_builtin_rules": engine.catalog.using_defaults,
            "source": str(engine.catalog.source) if engine.catalog.source else None,
        })


def register_suggestion_tools(
    mcp: FastMCP,
    engine: SuggestionEngine,
    repository: SymptomRepository,
    settings: Settings,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register journal-backed suggestion tools on the MCP server."""

    @mcp.tool
    async def analyze_symptoms(
        ctx: Context,
        symptom_ids: list[str] | None = None,
        include_all: bool = False,
    ) -> str:
        """Get rule-based suggestions for logged symptoms.

        Which symptoms are analyzed:
        - ``symptom_ids`` given: exactly those.
        - ``include_all``: every active or worsening symptom from the last 7 days.
        - neither: the 5 most recent symptoms from the last 24 hours.

        Args:
            symptom_ids: Optional explicit list of symptom IDs.
            include_all: Analyze all active/worsening symptoms from the past week.
        """
        start_time = time.monotonic()
        selected = repository.select_for_analysis(
            symptom_ids,
            include_all=include_all,
            recent_window_hours=settings.recent_window_hours,
            recent_limit=settings.recent_limit,
            active_window_days=settings.active_window_days,
        )

        if not selected:
            return json.dumps({
                "status": "ok",
                "message": "No symptoms found for analysis",
                **AnalysisOutcome(reasoning=NO_SYMPTOMS_REASONING).to_dict(),
            })

        outcome = engine.analyze([s.to_record() for s in selected])
        elapsed_ms = (time.monotonic() - start_time) * 1000

        if audit_logger is not None:
            audit_logger.log_tool_call(
                "analyze_symptoms",
                {"symptom_ids": symptom_ids, "include_all": include_all},
                duration_ms=elapsed_ms,
                metadata={"records": len(selected), "matches": len(outcome.suggestions)},
            )

        return json.dumps(
            {"status": "ok", **build_analysis_response(outcome, selected)}, indent=2
        )

    @mcp.tool
    async def suggest_for_symptom(
        ctx: Context,
        symptom_id: str,
    ) -> str:
        """Get rule-based suggestions for a single logged symptom.

        Args:
            symptom_id: The UUID of the symptom.
        """
        symptom = repository.get_symptom(symptom_id)
        if symptom is None:
            return json.dumps({
                "status": "not_found",
                "symptom_id": symptom_id,
                "message": "Symptom not found",
            })

        start_time = time.monotonic()
        outcome = engine.analyze([symptom.to_record()])
        if audit_logger is not None:
            audit_logger.log_tool_call(
                "suggest_for_symptom",
                {"symptom_id": symptom_id},
                symptom_id=symptom_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )

        payload = build_analysis_response(outcome, [symptom])
        payload["symptom"] = payload.pop("analyzed_symptoms")[0]
        return json.dumps({"status": "ok", **payload}, indent=2)

    @mcp.tool
    async def health_recommendations(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """General health recommendations based on recent symptom patterns.

        Args:
            days: How many days of history to consider (default: 30).
        """
        if days < 1:
            return json.dumps({"status": "error", "message": "days must be at least 1."})

        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat(
            timespec="microseconds"
        )
        recent = repository.list_symptoms(since=since, limit=repository.count_symptoms() or 1)
        return json.dumps({
            "status": "ok",
            "recommendations": generate_health_recommendations(recent),
            "timeframe_days": days,
            "based_on": f"{len(recent)} symptoms in the last {days} days",
            "disclaimer": RECOMMENDATIONS_DISCLAIMER,
        }, indent=2)
