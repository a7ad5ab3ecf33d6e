"""MCP Resources for metric and cycle-phase discovery."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from endotrack.domains.symptoms.domain_logic.entry_models import CyclePhase
from endotrack.domains.symptoms.domain_logic.metrics import (
    CATEGORIES,
    SCORE_MAX,
    SCORE_MIN,
    MetricCatalog,
)


def register_metric_resources(mcp: FastMCP, catalog: MetricCatalog) -> None:
    """Register the metric catalog resource on the MCP server."""

    @mcp.resource("endotrack://metrics")
    def metric_catalog_resource() -> str:
        """Every trackable metric, its label and category, plus cycle-phase tags."""
        return json.dumps(
            {
                "score_range": [SCORE_MIN, SCORE_MAX],
                "metric_count": len(catalog),
                "categories": {
                    category: [m.key for m in catalog.by_category(category)]
                    for category in CATEGORIES
                },
                "metrics": catalog.as_dicts(),
                "cycle_phases": [
                    {"tag": p.value, "label": p.label} for p in CyclePhase
                ],
            },
            indent=2,
        )
