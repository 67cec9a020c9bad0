"""MCP Resources for suggestion rule discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from symtrack.core.rules.catalog import RuleCatalog


def register_rule_resources(mcp: FastMCP, catalog: RuleCatalog) -> None:
    """Register the rule catalog resource on the MCP server."""

    @mcp.resource("rules://symptoms/catalog")
    def symptom_rule_catalog_resource() -> str:
        """The full set of active suggestion rules, with their conditions."""
        rules = catalog.get_all()
        return json.dumps(
            {
                "source": str(catalog.source) if catalog.source else None,
                "using_builtin_rules": catalog.using_defaults,
                "rule_count": len(rules),
                "rules": [rule.to_dict() for rule in rules],
            },
            indent=2,
        )
