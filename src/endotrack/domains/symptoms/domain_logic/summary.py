"""Derived metrics for the summary and overview screens.

Computes rolling 30-day statistics, logging streaks, top symptoms with trend
direction against the previous 30 days, and the seven-day chart/strip.
All functions are pure over an in-memory list of entries and never raise
on empty input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from fractions import Fraction
from typing import Any, Iterable

from endotrack.domains.symptoms.domain_logic.aggregation import round_tenths
from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30
RECENT_DAYS = 7

# Noise floor for trend classification (average points on the 0-10 scale).
# Compared against exact Fraction means.
TREND_THRESHOLD = Fraction(3, 10)

DEFAULT_TOP_LIMIT = 5


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class TrendSummary:
    """One metric's current 30-day average and its direction."""

    metric: str
    label: str
    average: float            # rounded to tenths for display
    previous_average: float   # rounded to tenths for display
    direction: str            # 'up' (worsening) | 'down' (improving) | 'stable'

    def as_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "label": self.label,
            "average": self.average,
            "previous_average": self.previous_average,
            "direction": self.direction,
        }


@dataclass
class DayStrip:
    label: str
    log_date: date
    average: float
    has_data: bool


@dataclass
class SummaryReport:
    entry_count_30d: int = 0
    streak_days: int = 0
    avg_severity_30d: float = 0.0
    days_since_last_log: int | None = None
    last_logged_label: str = "—"
    top_symptoms: list[TrendSummary] = field(default_factory=list)
    recent_chart: list[dict[str, Any]] = field(default_factory=list)
    recent_chart_metrics: list[str] = field(default_factory=list)
    weekly_strip: list[DayStrip] = field(default_factory=list)

    @property
    def trends(self) -> dict[str, str]:
        return {t.metric: t.direction for t in self.top_symptoms}

    def as_dict(self) -> dict[str, Any]:
        return {
            "entry_count_30d": self.entry_count_30d,
            "streak_days": self.streak_days,
            "avg_severity_30d": self.avg_severity_30d,
            "days_since_last_log": self.days_since_last_log,
            "last_logged": self.last_logged_label,
            "top_symptoms": [t.as_dict() for t in self.top_symptoms],
            "trends": self.trends,
            "recent_chart": {
                "metrics": self.recent_chart_metrics,
                "rows": self.recent_chart,
            },
            "weekly_strip": [
                {
                    "label": d.label,
                    "date": d.log_date.isoformat(),
                    "average": d.average,
                    "has_data": d.has_data,
                }
                for d in self.weekly_strip
            ],
        }


# ---------------------------------------------------------------------------
# Window helpers
# ---------------------------------------------------------------------------

def entries_between(
    entries: Iterable[LogEntry], after: date, until: date
) -> list[LogEntry]:
    """Entries with ``after < log_date <= until``."""
    return [e for e in entries if after < e.log_date <= until]


def current_window(entries: Iterable[LogEntry], today: date) -> list[LogEntry]:
    return entries_between(entries, today - timedelta(days=WINDOW_DAYS), today)


def previous_window(entries: Iterable[LogEntry], today: date) -> list[LogEntry]:
    return entries_between(
        entries,
        today - timedelta(days=2 * WINDOW_DAYS),
        today - timedelta(days=WINDOW_DAYS),
    )


# ---------------------------------------------------------------------------
# Individual statistics
# ---------------------------------------------------------------------------

def logging_streak(entries: Iterable[LogEntry], today: date) -> int:
    """Consecutive logged days ending today, or yesterday if today is unlogged."""
    logged = {e.log_date for e in entries}
    check = today if today in logged else today - timedelta(days=1)
    streak = 0
    while check in logged:
        streak += 1
        check -= timedelta(days=1)
    return streak


def nonzero_average(entries: Iterable[LogEntry], catalog: MetricCatalog) -> float:
    """Mean of all non-zero readings, rounded to tenths; 0 when there are none."""
    total = 0
    count = 0
    for entry in entries:
        for key in catalog.keys():
            value = entry.score(key)
            if value > 0:
                total += value
                count += 1
    return round_tenths(total / count) if count else 0.0


def metric_means(entries: list[LogEntry], catalog: MetricCatalog) -> dict[str, Fraction]:
    """Exact per-metric mean with zeros included; all 0 for an empty list."""
    if not entries:
        return dict.fromkeys(catalog.keys(), Fraction(0))
    return {
        key: Fraction(sum(e.score(key) for e in entries), len(entries))
        for key in catalog.keys()
    }


def classify_trend(current: Fraction | float, previous: Fraction | float) -> str:
    diff = current - previous
    if diff > TREND_THRESHOLD:
        return "up"
    if diff < -TREND_THRESHOLD:
        return "down"
    return "stable"


def rank_metrics(
    means: dict[str, Fraction | float], limit: int
) -> list[tuple[str, Fraction | float]]:
    """Non-zero metrics by descending mean; ties keep declared order."""
    ranked = sorted(means.items(), key=lambda kv: kv[1], reverse=True)
    return [(k, v) for k, v in ranked if v > 0][:limit]


def top_symptom_trends(
    entries: list[LogEntry],
    today: date,
    catalog: MetricCatalog,
    *,
    limit: int = DEFAULT_TOP_LIMIT,
) -> list[TrendSummary]:
    current = current_window(entries, today)
    if not current:
        return []
    current_means = metric_means(current, catalog)
    previous_means = metric_means(previous_window(entries, today), catalog)

    return [
        TrendSummary(
            metric=key,
            label=catalog.label(key),
            average=round_tenths(avg),
            previous_average=round_tenths(previous_means[key]),
            direction=classify_trend(avg, previous_means[key]),
        )
        for key, avg in rank_metrics(current_means, limit)
    ]


def days_since_last_log(entries: Iterable[LogEntry], today: date) -> int | None:
    dates = [e.log_date for e in entries]
    if not dates:
        return None
    return (today - max(dates)).days


def last_logged_label(days: int | None) -> str:
    if days is None:
        return "—"
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def _recent_days(today: date) -> list[date]:
    first = today - timedelta(days=RECENT_DAYS - 1)
    return [first + timedelta(days=i) for i in range(RECENT_DAYS)]


def recent_chart(
    entries: list[LogEntry],
    today: date,
    catalog: MetricCatalog,
    *,
    limit: int = DEFAULT_TOP_LIMIT,
) -> tuple[list[str], list[dict[str, Any]]]:
    """Top metrics by total over the last seven days, one row per day.

    Returns ``(metric_keys, rows)``; both empty when nothing was logged.
    """
    recent = entries_between(entries, today - timedelta(days=RECENT_DAYS), today)
    if not recent:
        return [], []

    totals = {key: sum(e.score(key) for e in recent) for key in catalog.keys()}
    top_keys = [k for k, _ in rank_metrics(totals, limit)]
    by_date = {e.log_date: e for e in recent}

    rows = []
    for day in _recent_days(today):
        entry = by_date.get(day)
        row: dict[str, Any] = {"label": day.strftime("%a")}
        for key in top_keys:
            row[key] = entry.score(key) if entry else 0
        rows.append(row)
    return top_keys, rows


def weekly_strip(
    entries: list[LogEntry], today: date, catalog: MetricCatalog
) -> list[DayStrip]:
    by_date = {e.log_date: e for e in entries}
    strip = []
    for day in _recent_days(today):
        entry = by_date.get(day)
        strip.append(DayStrip(
            label=day.strftime("%a"),
            log_date=day,
            average=nonzero_average([entry], catalog) if entry else 0.0,
            has_data=entry is not None,
        ))
    return strip


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def compute_summary(
    entries: Iterable[LogEntry],
    today: date,
    catalog: MetricCatalog,
    *,
    top_limit: int = DEFAULT_TOP_LIMIT,
) -> SummaryReport:
    """Compute the full summary for ``today``.

    A user with no entries gets a zeroed report.
    """
    entries = list(entries)
    current = current_window(entries, today)
    days = days_since_last_log(entries, today)
    chart_keys, chart_rows = recent_chart(entries, today, catalog)

    report = SummaryReport(
        entry_count_30d=len(current),
        streak_days=logging_streak(entries, today),
        avg_severity_30d=nonzero_average(current, catalog),
        days_since_last_log=days,
        last_logged_label=last_logged_label(days),
        top_symptoms=top_symptom_trends(entries, today, catalog, limit=top_limit),
        recent_chart=chart_rows,
        recent_chart_metrics=chart_keys,
        weekly_strip=weekly_strip(entries, today, catalog),
    )
    logger.debug(
        "Summary computed for %s: %d entries in window, streak %d",
        today,
        report.entry_count_30d,
        report.streak_days,
    )
    return report


def compute_overview(
    entries: Iterable[LogEntry],
    catalog: MetricCatalog,
    *,
    limit: int = DEFAULT_TOP_LIMIT,
) -> dict[str, Any]:
    """All-time totals and top metric averages for the profile screen."""
    entries = list(entries)
    if not entries:
        return {
            "total_entries": 0,
            "first_log_date": None,
            "last_log_date": None,
            "top_symptoms": [],
        }

    dates = [e.log_date for e in entries]
    means = metric_means(entries, catalog)
    return {
        "total_entries": len(entries),
        "first_log_date": min(dates).isoformat(),
        "last_log_date": max(dates).isoformat(),
        "top_symptoms": [
            {"metric": key, "label": catalog.label(key), "average": round_tenths(avg)}
            for key, avg in rank_metrics(means, limit)
        ],
    }
