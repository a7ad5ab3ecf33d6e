"""Bucketing of log entries into chart rows for the history view.

Day, week and month views emit one bucket per logged day. The year view
averages each calendar month into a single bucket.
"""

from __future__ import annotations

import calendar
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog
from endotrack.domains.symptoms.domain_logic.time_windows import (
    DateWindow,
    Granularity,
    resolve_window,
)


def round_tenths(value: float) -> float:
    """Round half-up to one decimal place (``2.25 -> 2.3``)."""
    return math.floor(value * 10 + 0.5) / 10


@dataclass
class Bucket:
    """One chart point: a label plus one value per metric."""

    label: str
    values: dict[str, float] = field(default_factory=dict)
    log_date: date | None = None  # set for per-day buckets
    month: int | None = None      # set for year-view buckets

    def as_row(self, hidden: Iterable[str] = ()) -> dict[str, float | str]:
        skip = set(hidden)
        row: dict[str, float | str] = {"label": self.label}
        for key, value in self.values.items():
            if key not in skip:
                row[key] = value
        return row


def chronological(entries: Iterable[LogEntry]) -> list[LogEntry]:
    return sorted(entries, key=lambda e: e.log_date)


def entries_in_window(entries: Iterable[LogEntry], window: DateWindow) -> list[LogEntry]:
    """Entries inside ``window``, oldest first."""
    return [e for e in chronological(entries) if window.contains(e.log_date)]


def aggregate(
    entries: Iterable[LogEntry],
    granularity: Granularity,
    reference: date,
    catalog: MetricCatalog,
) -> list[Bucket]:
    """Group entries into display buckets for the window around ``reference``.

    Returns an empty list when no entry falls inside the window.
    """
    window = resolve_window(reference, granularity)
    filtered = entries_in_window(entries, window)
    keys = catalog.keys()

    if granularity in (Granularity.DAY, Granularity.WEEK):
        return [
            Bucket(
                label=e.log_date.strftime("%m-%d"),
                values={k: e.score(k) for k in keys},
                log_date=e.log_date,
            )
            for e in filtered
        ]

    if granularity is Granularity.MONTH:
        return [
            Bucket(
                label=str(e.log_date.day),
                values={k: e.score(k) for k in keys},
                log_date=e.log_date,
            )
            for e in filtered
        ]

    # Year: average by calendar month
    sums: dict[int, dict[str, int]] = defaultdict(lambda: dict.fromkeys(keys, 0))
    counts: dict[int, int] = defaultdict(int)
    for e in filtered:
        month = e.log_date.month
        counts[month] += 1
        month_sum = sums[month]
        for k in keys:
            month_sum[k] += e.score(k)

    return [
        Bucket(
            label=calendar.month_abbr[month],
            values={k: round_tenths(sums[month][k] / counts[month]) for k in keys},
            month=month,
        )
        for month in range(1, 13)
        if counts.get(month)
    ]
