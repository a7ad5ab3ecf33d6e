"""MCP tools for the 30-day summary and all-time overview."""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from endotrack.domains.symptoms.domain_logic.entry_models import parse_log_date
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog
from endotrack.domains.symptoms.domain_logic.summary import (
    WINDOW_DAYS,
    compute_overview,
    compute_summary,
)

if TYPE_CHECKING:
    from endotrack.core.storage.repository import SymptomLogRepository

logger = logging.getLogger(__name__)


def register_summary_tools(
    mcp: FastMCP,
    repository: SymptomLogRepository,
    catalog: MetricCatalog,
    *,
    top_limit: int = 5,
) -> None:
    """Register summary tools on the MCP server."""

    @mcp.tool
    async def symptom_summary(ctx: Context, today: str = "") -> str:
        """Summarize the last 30 days: entry count, logging streak, average
        severity, top symptoms with trend versus the previous 30 days,
        and a seven-day overview.

        Args:
            today: Date to summarize up to (ISO 8601). Defaults to today.
        """
        try:
            day = parse_log_date(today) if today else date.today()
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        # Two 30-day windows; the streak may reach further back
        entries = repository.list_entries(until=day)
        report = compute_summary(entries, day, catalog, top_limit=top_limit)

        if not entries:
            status = "no_entries"
        elif report.entry_count_30d == 0:
            status = "no_recent_entries"
        else:
            status = "ok"

        return json.dumps({
            "status": status,
            "today": day.isoformat(),
            "window_start": (day - timedelta(days=WINDOW_DAYS - 1)).isoformat(),
            **report.as_dict(),
        }, indent=2)

    @mcp.tool
    async def health_overview(ctx: Context) -> str:
        """All-time totals: entry count, first and last log dates, and the
        metrics with the highest average score."""
        overview = compute_overview(repository.list_entries(), catalog, limit=top_limit)
        return json.dumps({"status": "ok", **overview}, indent=2)
