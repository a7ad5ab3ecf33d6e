"""MCP tools for recording and editing daily symptom logs.

One entry per calendar day. Scores are 0-10 per metric; unlisted metrics
default to 0. Entries are persisted to the encrypted symptom data bank.
"""

from __future__ import annotations

import json
import logging
from datetime import date

from fastmcp import Context, FastMCP

from endotrack.core.storage.repository import RepositoryError, SymptomLogRepository
from endotrack.domains.symptoms.domain_logic.entry_models import (
    LogEntry,
    build_cycle_phase,
    normalize_scores,
    parse_log_date,
    validate_scores,
)
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog

logger = logging.getLogger(__name__)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def _unknown_metrics(scores: dict | None, catalog: MetricCatalog) -> list[str]:
    return sorted(k for k in (scores or {}) if k not in catalog)


def register_symptom_log_tools(
    mcp: FastMCP,
    repository: SymptomLogRepository,
    catalog: MetricCatalog,
) -> None:
    """Register symptom log CRUD tools on the MCP server."""

    @mcp.tool
    async def log_symptoms(
        ctx: Context,
        scores: dict[str, float] | None = None,
        log_date: str = "",
        cycle_phases: list[str] | None = None,
        cycle_phase_other: str = "",
        notes: str = "",
    ) -> str:
        """Record today's (or a given day's) symptom and lifestyle scores.

        Args:
            scores: Metric name to 0-10 score (e.g., {"headache": 4, "sleep": 7}).
                Omitted metrics are recorded as 0. Anything other than a whole
                number 0-10 is rejected.
            log_date: Date of the entry (ISO 8601, e.g., '2026-01-15'). Defaults to today.
            cycle_phases: Any of 'menstrual', 'follicular', 'ovulation', 'luteal', 'on_pill'.
            cycle_phase_other: Free-text cycle note when no tag fits.
            notes: Optional free-text notes.
        """
        try:
            day = parse_log_date(log_date) if log_date else date.today()
            phase = build_cycle_phase(cycle_phases, cycle_phase_other)
            saved = repository.create_entry(LogEntry(
                id="",
                log_date=day,
                scores=normalize_scores(validate_scores(scores, catalog), catalog),
                cycle_phase=phase,
                notes=notes or None,
            ))
        except (RepositoryError, ValueError) as exc:
            logger.warning("log_symptoms rejected: %s", exc)
            return _error(str(exc))

        return json.dumps({
            "status": "saved",
            "entry_id": saved.id,
            "log_date": saved.date_key,
            "ignored_metrics": _unknown_metrics(scores, catalog),
        })

    @mcp.tool
    async def update_symptom_log(
        ctx: Context,
        entry_id: str,
        scores: dict[str, float] | None = None,
        log_date: str = "",
        cycle_phases: list[str] | None = None,
        cycle_phase_other: str | None = None,
        notes: str | None = None,
    ) -> str:
        """Edit an existing entry. Only the fields you pass are changed.

        Args:
            entry_id: ID returned by log_symptoms or list_symptom_logs.
            scores: Metric scores to overwrite; other metrics keep their value.
            log_date: Move the entry to another date (ISO 8601).
            cycle_phases: Replace the cycle-phase tags.
            cycle_phase_other: Replace the free-text cycle note ('' clears it).
            notes: Replace the notes ('' clears them).
        """
        existing = repository.get_entry(entry_id)
        if existing is None:
            return json.dumps({
                "status": "not_found",
                "entry_id": entry_id,
                "message": "No symptom log found with that ID.",
            })

        try:
            merged_scores = dict(existing.scores)
            merged_scores.update(validate_scores(scores, catalog))
            phase = existing.cycle_phase
            if cycle_phases is not None or cycle_phase_other is not None:
                phase = build_cycle_phase(
                    cycle_phases if cycle_phases is not None
                    else [p.value for p in phase.ordered_phases()],
                    cycle_phase_other if cycle_phase_other is not None else phase.other,
                )
            updated = repository.update_entry(LogEntry(
                id=existing.id,
                log_date=parse_log_date(log_date) if log_date else existing.log_date,
                scores=normalize_scores(merged_scores, catalog),
                cycle_phase=phase,
                notes=existing.notes if notes is None else (notes or None),
            ))
        except (RepositoryError, ValueError) as exc:
            logger.warning("update_symptom_log rejected: %s", exc)
            return _error(str(exc))

        return json.dumps({
            "status": "updated",
            "entry": updated.as_dict(),
            "ignored_metrics": _unknown_metrics(scores, catalog),
        })

    @mcp.tool
    async def delete_symptom_log(ctx: Context, entry_id: str) -> str:
        """Permanently delete one symptom log entry.

        Args:
            entry_id: The ID of the entry to delete.
        """
        if repository.delete_entry(entry_id):
            return json.dumps({"status": "deleted", "entry_id": entry_id})
        return json.dumps({
            "status": "not_found",
            "entry_id": entry_id,
            "message": "No symptom log found with that ID.",
        })

    @mcp.tool
    async def get_symptom_log(ctx: Context, log_date: str = "") -> str:
        """Show the entry for one date.

        Args:
            log_date: ISO 8601 date. Defaults to today.
        """
        try:
            day = parse_log_date(log_date) if log_date else date.today()
        except ValueError as exc:
            return _error(str(exc))

        entry = repository.get_entry_by_date(day)
        if entry is None:
            return json.dumps({"status": "not_found", "log_date": day.isoformat()})
        return json.dumps({"status": "ok", "entry": entry.as_dict()})

    @mcp.tool
    async def list_symptom_logs(
        ctx: Context,
        since: str = "",
        until: str = "",
        limit: int = 50,
    ) -> str:
        """List logged entries, newest first.

        Args:
            since: Inclusive lower date bound (ISO 8601).
            until: Inclusive upper date bound (ISO 8601).
            limit: Maximum number of entries to return.
        """
        try:
            entries = repository.list_entries(
                since=parse_log_date(since) if since else None,
                until=parse_log_date(until) if until else None,
                limit=limit,
                newest_first=True,
            )
        except ValueError as exc:
            return _error(str(exc))

        return json.dumps({
            "status": "ok",
            "count": len(entries),
            "entries": [e.as_dict() for e in entries],
        }, indent=2)

    @mcp.tool
    async def delete_all_symptom_data(ctx: Context, confirm: str = "") -> str:
        """Permanently delete ALL of your symptom logs.

        Args:
            confirm: Must be exactly 'DELETE_ALL' to proceed. Safety gate.
        """
        if confirm != "DELETE_ALL":
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "To delete all symptom logs, call this tool with "
                    "confirm='DELETE_ALL'. This action cannot be undone."
                ),
            })

        count = repository.delete_all_entries()
        return json.dumps({
            "status": "all_deleted",
            "entries_deleted": count,
            "message": "All symptom logs have been permanently deleted.",
        })
