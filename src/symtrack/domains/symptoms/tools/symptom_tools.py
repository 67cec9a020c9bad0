"""MCP tools for the symptom journal.

Logging, browsing, editing and deleting symptoms, plus history statistics.
Free-text details are persisted encrypted; every deletion is audit-logged.
"""

from __future__ import annotations

import json
import logging
import math
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from symtrack.core.audit.logger import AuditLogger
    from symtrack.core.storage.repository import SymptomRepository

from symtrack.core.storage.models import StoredSymptom
from symtrack.core.storage.repository import RepositoryError

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def register_symptom_tools(
    mcp: FastMCP,
    repository: SymptomRepository,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register symptom journal tools on the MCP server."""

    @mcp.tool
    async def log_symptom(
        ctx: Context,
        name: str,
        severity: int,
        duration_value: float,
        duration_unit: str = "hours",
        temperature: float | None = None,
        status: str = "active",
        description: str = "",
        location: str = "",
        triggers: list[str] | None = None,
        associated_symptoms: list[dict[str, Any]] | None = None,
        blood_pressure: dict[str, Any] | None = None,
        medications: list[dict[str, Any]] | None = None,
        tags: list[str] | None = None,
        notes: str = "",
        follow_up_date: str | None = None,
    ) -> str:
        """Record a symptom in your journal.

        Args:
            name: Symptom name (e.g., 'Headache', 'Fever').
            severity: Severity from 1 (very mild) to 10 (unbearable).
            duration_value: How long the symptom has lasted.
            duration_unit: One of minutes, hours, days, weeks, months.
            temperature: Body temperature in °F, if measured.
            status: One of active, improving, resolved, worsening.
            description: Free-text description (max 500 characters).
            location: Where on the body.
            triggers: Suspected triggers.
            associated_symptoms: Other symptoms felt alongside, as [{"name", "severity"}].
            blood_pressure: Reading as {"systolic", "diastolic"}.
            medications: Medications taken, as [{"name", "dosage", "time"}].
            tags: Free-form labels.
            notes: Extra notes (max 1000 characters).
            follow_up_date: Planned follow-up date (ISO 8601).
        """
        symptom = StoredSymptom(
            id="",
            name=name,
            severity=severity,
            duration_value=duration_value,
            duration_unit=duration_unit,
            temperature=temperature,
            status=status,
            follow_up_date=follow_up_date,
            description=description,
            location=location,
            triggers=triggers or [],
            associated_symptoms=associated_symptoms or [],
            blood_pressure=blood_pressure,
            medications=medications or [],
            tags=tags or [],
            notes=notes,
        )
        try:
            sid = repository.create_symptom(symptom)
        except RepositoryError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        return json.dumps({
            "status": "saved",
            "symptom_id": sid,
            "name": symptom.name.strip(),
            "severity": severity,
            "severity_description": symptom.severity_description,
        })

    @mcp.tool
    async def list_symptoms(
        ctx: Context,
        page: int = 1,
        limit: int = 10,
        status: str = "",
        min_severity: int | None = None,
        name: str = "",
    ) -> str:
        """List logged symptoms, newest first.

        Args:
            page: Page number, starting at 1.
            limit: Symptoms per page (max 100).
            status: Only symptoms with this status.
            min_severity: Only symptoms at or above this severity.
            name: Only symptoms whose name contains this text.
        """
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            return json.dumps({
                "status": "error",
                "message": f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}.",
            })

        filters = {"status": status or None, "min_severity": min_severity, "name": name or None}
        total = repository.count_symptoms(**filters)
        symptoms = repository.list_symptoms(**filters, limit=limit, offset=(page - 1) * limit)
        return json.dumps({
            "status": "ok",
            "symptoms": [s.to_dict() for s in symptoms],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }, indent=2)

    @mcp.tool
    async def get_symptom(
        ctx: Context,
        symptom_id: str,
    ) -> str:
        """Show every recorded detail of one symptom.

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
        return json.dumps({"status": "ok", "symptom": symptom.to_dict()}, indent=2)

    @mcp.tool
    async def update_symptom(
        ctx: Context,
        symptom_id: str,
        name: str | None = None,
        severity: int | None = None,
        duration_value: float | None = None,
        duration_unit: str | None = None,
        temperature: float | None = None,
        status: str | None = None,
        description: str | None = None,
        location: str | None = None,
        triggers: list[str] | None = None,
        associated_symptoms: list[dict[str, Any]] | None = None,
        medications: list[dict[str, Any]] | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
        follow_up_date: str | None = None,
    ) -> str:
        """Change fields of a logged symptom. Omitted fields are left as they are.

        Args:
            symptom_id: The UUID of the symptom.
            name: New symptom name.
            severity: New severity (1-10).
            duration_value: New duration value.
            duration_unit: New duration unit.
            temperature: New temperature in °F.
            status: New status (active, improving, resolved, worsening).
            description: New description.
            location: New body location.
            triggers: Replacement trigger list.
            associated_symptoms: Replacement associated symptom list.
            medications: Replacement medication list.
            tags: Replacement tag list.
            notes: New notes.
            follow_up_date: New follow-up date (ISO 8601).
        """
        supplied = {
            "name": name,
            "severity": severity,
            "duration_value": duration_value,
            "duration_unit": duration_unit,
            "temperature": temperature,
            "status": status,
            "description": description,
            "location": location,
            "triggers": triggers,
            "associated_symptoms": associated_symptoms,
            "medications": medications,
            "tags": tags,
            "notes": notes,
            "follow_up_date": follow_up_date,
        }
        changes = {key: value for key, value in supplied.items() if value is not None}
        if not changes:
            return json.dumps({"status": "error", "message": "No changes provided"})

        try:
            updated = repository.update_symptom(symptom_id, changes)
        except RepositoryError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        if updated is None:
            return json.dumps({
                "status": "not_found",
                "symptom_id": symptom_id,
                "message": "Symptom not found",
            })
        return json.dumps({
            "status": "updated",
            "symptom_id": symptom_id,
            "updated_fields": sorted(changes),
            "symptom": updated.to_dict(),
        }, indent=2)

    @mcp.tool
    async def delete_symptom(
        ctx: Context,
        symptom_id: str,
    ) -> str:
        """Permanently delete one logged symptom.

        Args:
            symptom_id: The UUID of the symptom to delete.
        """
        start_time = time.monotonic()
        deleted = repository.delete_symptom(symptom_id)
        elapsed_ms = (time.monotonic() - start_time) * 1000

        if not deleted:
            return json.dumps({
                "status": "not_found",
                "symptom_id": symptom_id,
                "message": "Symptom not found",
            })

        if audit_logger is not None:
            audit_logger.log_data_delete(
                tool_name="delete_symptom",
                symptom_id=symptom_id,
                count=1,
            )
        return json.dumps({
            "status": "deleted",
            "symptom_id": symptom_id,
            "duration_ms": round(elapsed_ms, 1),
        })

    @mcp.tool
    async def purge_old_symptoms(
        ctx: Context,
        older_than_days: int = 365,
    ) -> str:
        """Delete every symptom logged more than a number of days ago.

        Args:
            older_than_days: Delete symptoms older than this many days (default: 365).
        """
        if older_than_days < 1:
            return json.dumps({
                "status": "error",
                "message": "older_than_days must be at least 1.",
            })

        count = repository.purge_before_days(older_than_days)
        if audit_logger is not None and count > 0:
            audit_logger.log_data_delete(
                tool_name="purge_old_symptoms",
                count=count,
                metadata={"older_than_days": older_than_days},
            )
        return json.dumps({
            "status": "purged",
            "symptoms_deleted": count,
            "older_than_days": older_than_days,
        })

    @mcp.tool
    async def delete_all_symptoms(
        ctx: Context,
        confirm: str = "",
    ) -> str:
        """Permanently delete the whole symptom journal. Cannot be undone.

        Args:
            confirm: Must be exactly 'DELETE_ALL' to proceed.
        """
        if confirm != "DELETE_ALL":
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "To delete all symptoms, call this tool with "
                    "confirm='DELETE_ALL'. This action cannot be undone."
                ),
            })

        count = repository.delete_all_data()
        if audit_logger is not None:
            audit_logger.log_data_delete(
                tool_name="delete_all_symptoms",
                count=count,
                metadata={"confirmed": True},
            )
        return json.dumps({
            "status": "all_deleted",
            "symptoms_deleted": count,
            "message": "All symptom data has been permanently deleted.",
        })

    @mcp.tool
    async def symptom_stats(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """Journal statistics: totals, most frequent symptoms and daily severity trend.

        Args:
            days: Window for the frequency and trend figures (default: 30).
        """
        if days < 1:
            return json.dumps({"status": "error", "message": "days must be at least 1."})
        return json.dumps({"status": "ok", **repository.get_stats(days=days)}, indent=2)

    @mcp.tool
    async def common_symptoms(ctx: Context) -> str:
        """Your most logged symptom names, followed by common suggestions."""
        return json.dumps(
            {"status": "ok", "symptoms": repository.common_symptoms()}, indent=2
        )
