"""MCP tools for exporting symptom logs as CSV or PDF files."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from endotrack.domains.symptoms.domain_logic.aggregation import entries_in_window
from endotrack.domains.symptoms.domain_logic.entry_models import parse_log_date
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog
from endotrack.domains.symptoms.domain_logic.time_windows import (
    Granularity,
    resolve_window,
    window_label,
)
from endotrack.domains.symptoms.export.csv_export import CSV_FILENAME, export_csv
from endotrack.domains.symptoms.export.pdf_export import (
    PDF_FILENAME,
    layout_pdf,
    render_pdf,
)

if TYPE_CHECKING:
    from endotrack.core.storage.repository import SymptomLogRepository

logger = logging.getLogger(__name__)


def register_export_tools(
    mcp: FastMCP,
    repository: SymptomLogRepository,
    catalog: MetricCatalog,
    export_dir: str,
) -> None:
    """Register export tools on the MCP server."""

    def _target(filename: str) -> Path:
        directory = Path(export_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        return directory / filename

    @mcp.tool
    async def export_symptom_csv(ctx: Context, write_file: bool = True) -> str:
        """Export every symptom log as CSV (Date, one column per metric,
        Cycle Phase, Notes).

        Args:
            write_file: Write to the export directory and return the path.
                When false, the CSV text is returned inline.
        """
        entries = repository.list_entries()
        if not entries:
            return json.dumps({
                "status": "empty",
                "message": "No symptom log data to export.",
            })

        text = export_csv(entries, catalog)
        if not write_file:
            return json.dumps({"status": "ok", "rows": len(entries), "csv": text})

        path = _target(CSV_FILENAME)
        path.write_text(text, encoding="utf-8")
        logger.info("Exported %d symptom logs to %s", len(entries), path)
        return json.dumps({"status": "saved", "rows": len(entries), "path": str(path)})

    @mcp.tool
    async def export_symptom_pdf(
        ctx: Context,
        granularity: str = "month",
        reference_date: str = "",
    ) -> str:
        """Export a printable PDF summary for one day, week, month or year.

        Args:
            granularity: 'day', 'week', 'month' or 'year'.
            reference_date: Any date inside the window (ISO 8601). Defaults to today.
        """
        try:
            gran = Granularity.parse(granularity)
            reference = parse_log_date(reference_date) if reference_date else date.today()
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        window = resolve_window(reference, gran)
        entries = entries_in_window(
            repository.list_entries(since=window.start, until=window.end), window
        )
        layout = layout_pdf(entries, catalog, window_label(reference, gran))

        path = _target(PDF_FILENAME)
        path.write_bytes(render_pdf(layout))
        logger.info("Exported PDF summary (%d entries) to %s", len(entries), path)
        return json.dumps({
            "status": "saved",
            "path": str(path),
            "entries": len(entries),
            "pages": len(layout.pages),
            "label": window_label(reference, gran),
        })
