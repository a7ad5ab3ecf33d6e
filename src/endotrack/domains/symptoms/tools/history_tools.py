"""MCP tools for browsing aggregated symptom history.

``symptom_history`` answers one-off questions about a window.
``history_view`` keeps a browsing session (reference date, granularity,
hidden series) across calls, like the history screen does.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from endotrack.domains.symptoms.domain_logic.aggregation import aggregate, entries_in_window
from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry, parse_log_date
from endotrack.domains.symptoms.domain_logic.history_view import HistoryView
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog
from endotrack.domains.symptoms.domain_logic.time_windows import (
    DateWindow,
    Granularity,
    navigate,
    resolve_window,
    window_label,
)

if TYPE_CHECKING:
    from endotrack.core.storage.repository import SymptomLogRepository

logger = logging.getLogger(__name__)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def register_history_tools(
    mcp: FastMCP,
    repository: SymptomLogRepository,
    catalog: MetricCatalog,
) -> None:
    """Register history browsing tools on the MCP server."""

    async def load_window(window: DateWindow) -> list[LogEntry]:
        return await asyncio.to_thread(
            repository.list_entries, since=window.start, until=window.end
        )

    # Reference date is resolved on the first load, not at registration
    view = HistoryView(load_window, catalog)

    @mcp.tool
    async def symptom_history(
        ctx: Context,
        granularity: str = "week",
        reference_date: str = "",
    ) -> str:
        """Chart-ready history for the day, week, month or year around a date.

        Day/week/month return one bucket per logged day; year returns one
        bucket per month with scores averaged to one decimal.

        Args:
            granularity: 'day', 'week', 'month' or 'year' (or D/W/M/Y).
            reference_date: Any date inside the window (ISO 8601). Defaults to today.
        """
        try:
            gran = Granularity.parse(granularity)
            reference = parse_log_date(reference_date) if reference_date else date.today()
        except ValueError as exc:
            return _error(str(exc))

        window = resolve_window(reference, gran)
        entries = await load_window(window)
        buckets = aggregate(entries, gran, reference, catalog)

        return json.dumps({
            "status": "ok" if buckets else "empty",
            "granularity": gran.name.lower(),
            "label": window_label(reference, gran),
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "previous_reference": navigate(reference, gran, -1).isoformat(),
            "next_reference": navigate(reference, gran, 1).isoformat(),
            "buckets": [b.as_row() for b in buckets],
            "entry_count": len(entries_in_window(entries, window)),
        }, indent=2)

    @mcp.tool
    async def history_view(
        ctx: Context,
        action: str = "show",
        granularity: str = "",
        reference_date: str = "",
        direction: int = 0,
        series: str = "",
    ) -> str:
        """Stateful history browser.

        Args:
            action: 'show' (reload current window), 'set' (change granularity
                and/or reference date), 'navigate' (step by direction),
                or 'toggle_series' (hide/show one metric in chart rows).
            granularity: New granularity for 'set'.
            reference_date: New reference date for 'set' (ISO 8601).
            direction: -1 for previous window, 1 for next ('navigate').
            series: Metric key for 'toggle_series'.
        """
        try:
            if action == "show":
                await view.reload()
            elif action == "set":
                if granularity:
                    view.granularity = Granularity.parse(granularity)
                if reference_date:
                    view.reference = parse_log_date(reference_date)
                await view.reload()
            elif action == "navigate":
                await view.step(direction)
            elif action == "toggle_series":
                view.toggle_series(series)
            else:
                return _error(
                    f"Unknown action {action!r}. Valid: show, set, navigate, toggle_series"
                )
        except ValueError as exc:
            return _error(str(exc))

        return json.dumps({"status": "ok", **view.snapshot()}, indent=2)
