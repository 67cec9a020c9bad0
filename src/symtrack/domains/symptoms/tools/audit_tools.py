"""MCP tools for viewing the audit trail.

The audit log holds no symptom data: it records which tools ran, when,
and how many records a deletion removed, with inputs reduced to a hash.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from symtrack.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    audit_logger: AuditLogger,
) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(
        ctx: Context,
        days: int = 30,
    ) -> str:
        """View recent tool usage and deletion events.

        Args:
            days: Number of days to look back (default: 30).
        """
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat(
            timespec="microseconds"
        )

        total_events = audit_logger.count_events(since=since)
        recent_events = audit_logger.get_events(since=since, limit=20)
        by_action = Counter(event.get("action") for event in recent_events)

        display_events = [
            {
                "timestamp": event.get("timestamp"),
                "action": event.get("action"),
                "tool_name": event.get("tool_name"),
                "status": event.get("status"),
                "duration_ms": event.get("duration_ms"),
                "records_deleted": event["metadata"].get("records_deleted"),
            }
            for event in recent_events
        ]

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": total_events,
            "recent_by_action": dict(by_action),
            "recent_events": display_events,
            "note": (
                "This audit trail contains no symptom data. "
                "It tracks tool usage and deletions only."
            ),
        }, indent=2)
