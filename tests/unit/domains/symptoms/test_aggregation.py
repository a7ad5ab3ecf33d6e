"""Tests for bucketing entries into chart rows."""

from __future__ import annotations

from datetime import date

from endotrack.domains.symptoms.domain_logic.aggregation import (
    aggregate,
    entries_in_window,
    round_tenths,
)
from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry, normalize_scores
from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG, MetricCatalog, MetricDefinition
from endotrack.domains.symptoms.domain_logic.time_windows import DateWindow, Granularity


def _entry(day: str, **scores) -> LogEntry:
    return LogEntry(
        id=day,
        log_date=date.fromisoformat(day),
        scores=normalize_scores(scores, DEFAULT_CATALOG),
    )


class TestRoundTenths:
    def test_half_up(self):
        assert round_tenths(2.25) == 2.3
        assert round_tenths(6.0) == 6.0
        assert round_tenths(10 / 3) == 3.3
        assert round_tenths(0.05) == 0.1


class TestPerDayBuckets:
    def test_week_one_bucket_per_logged_day(self, catalog):
        entries = [_entry("2025-01-08", headache=3), _entry("2025-01-06", headache=5)]
        buckets = aggregate(entries, Granularity.WEEK, date(2025, 1, 10), catalog)
        assert [b.label for b in buckets] == ["01-06", "01-08"]
        assert buckets[0].values["headache"] == 5
        assert len(buckets[0].values) == len(catalog)

    def test_week_excludes_outside_entries(self, catalog):
        entries = [_entry("2025-01-05", headache=9), _entry("2025-01-13", headache=9)]
        assert aggregate(entries, Granularity.WEEK, date(2025, 1, 8), catalog) == []

    def test_day(self, catalog):
        entries = [_entry("2025-01-08", sleep=2), _entry("2025-01-09", sleep=4)]
        buckets = aggregate(entries, Granularity.DAY, date(2025, 1, 9), catalog)
        assert len(buckets) == 1
        assert buckets[0].label == "01-09"
        assert buckets[0].log_date == date(2025, 1, 9)

    def test_month_labels_are_day_numbers(self, catalog):
        entries = [_entry("2025-02-03"), _entry("2025-02-28"), _entry("2025-03-01")]
        buckets = aggregate(entries, Granularity.MONTH, date(2025, 2, 10), catalog)
        assert [b.label for b in buckets] == ["3", "28"]


class TestYearBuckets:
    def test_monthly_averages(self, catalog):
        entries = [
            _entry("2025-01-01", headache=4),
            _entry("2025-01-15", headache=8),
            _entry("2025-02-10", headache=2),
        ]
        buckets = aggregate(entries, Granularity.YEAR, date(2025, 6, 1), catalog)
        assert [b.label for b in buckets] == ["Jan", "Feb"]
        assert buckets[0].values["headache"] == 6.0
        assert buckets[1].values["headache"] == 2.0
        assert buckets[0].month == 1

    def test_rounds_to_tenths(self, catalog):
        entries = [_entry("2025-03-01", fatigue=1), _entry("2025-03-02", fatigue=2),
                   _entry("2025-03-03", fatigue=2)]
        bucket = aggregate(entries, Granularity.YEAR, date(2025, 1, 1), catalog)[0]
        assert bucket.values["fatigue"] == 1.7

    def test_calendar_order_and_gaps(self, catalog):
        entries = [_entry("2025-11-02"), _entry("2025-03-09"), _entry("2024-12-31")]
        buckets = aggregate(entries, Granularity.YEAR, date(2025, 1, 1), catalog)
        assert [b.label for b in buckets] == ["Mar", "Nov"]

    def test_empty_input(self, catalog):
        assert aggregate([], Granularity.YEAR, date(2025, 1, 1), catalog) == []


class TestReducedCatalog:
    def test_only_catalog_metrics_emitted(self):
        catalog = MetricCatalog([MetricDefinition("headache", "Headache", "pain")])
        buckets = aggregate([_entry("2025-01-06", headache=1, sleep=9)],
                            Granularity.WEEK, date(2025, 1, 6), catalog)
        assert buckets[0].values == {"headache": 1}


class TestHelpers:
    def test_entries_in_window_sorted(self):
        entries = [_entry("2025-01-09"), _entry("2025-01-07"), _entry("2025-02-01")]
        window = DateWindow(date(2025, 1, 1), date(2025, 1, 31))
        assert [e.id for e in entries_in_window(entries, window)] == ["2025-01-07", "2025-01-09"]

    def test_as_row_hides_series(self, catalog):
        bucket = aggregate([_entry("2025-01-06", headache=1)],
                           Granularity.DAY, date(2025, 1, 6), catalog)[0]
        row = bucket.as_row(hidden=["headache"])
        assert row["label"] == "01-06"
        assert "headache" not in row
        assert "sleep" in row
