"""Tests for PDF layout and rendering."""

from __future__ import annotations

from datetime import date, timedelta

from endotrack.domains.symptoms.domain_logic.entry_models import (
    LogEntry,
    normalize_scores,
    parse_cycle_phase,
)
from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG
from endotrack.domains.symptoms.export.pdf_export import (
    BREAK_AT,
    EMPTY_MESSAGE,
    FOOTER,
    MARGIN,
    TITLE,
    export_pdf,
    layout_pdf,
)


def _entry(day: date, cycle_phase=None, notes=None, **scores) -> LogEntry:
    return LogEntry(
        id=day.isoformat(),
        log_date=day,
        scores=normalize_scores(scores, DEFAULT_CATALOG),
        cycle_phase=parse_cycle_phase(cycle_phase),
        notes=notes,
    )


class TestLayout:
    def test_empty_period(self, catalog):
        layout = layout_pdf([], catalog, "January 2025")
        assert len(layout.pages) == 1
        assert layout.texts() == [TITLE, "January 2025", EMPTY_MESSAGE, FOOTER]

    def test_entry_lines(self, catalog):
        entry = _entry(date(2025, 1, 6), cycle_phase="menstrual", notes="Heating pad helped",
                       headache=4, sleep=7)
        texts = layout_pdf([entry], catalog, "Jan 6 – Jan 12").texts()
        assert texts[2] == "2025-01-06"
        assert texts[3] == "Headache: 4/10  ·  Sleep: 7/10"
        assert texts[4] == "Cycle: Menstrual phase"
        assert texts[5] == "Notes: Heating pad helped"
        assert texts[-1] == FOOTER

    def test_zero_scores_omitted(self, catalog):
        texts = layout_pdf([_entry(date(2025, 1, 6))], catalog, "x").texts()
        assert texts == [TITLE, "x", "2025-01-06", FOOTER]

    def test_long_notes_wrap(self, catalog):
        entry = _entry(date(2025, 1, 6), notes="word " * 60)
        lines = layout_pdf([entry], catalog, "x").texts()
        note_lines = lines[3:-1]
        assert len(note_lines) > 1
        assert note_lines[0].startswith("Notes: ")

    def test_paginates(self, catalog):
        start = date(2025, 1, 1)
        entries = [
            _entry(start + timedelta(days=i), cycle_phase="luteal", headache=3, notes="ok")
            for i in range(40)
        ]
        layout = layout_pdf(entries, catalog, "2025")

        assert len(layout.pages) > 1
        for page in layout.pages:
            assert page[-1].text == FOOTER
            for line in page[:-1]:
                assert line.y <= BREAK_AT
        assert layout.pages[1][0].y == MARGIN
        assert sum(t == FOOTER for t in layout.texts()) == len(layout.pages)


class TestRender:
    def test_returns_pdf_bytes(self, catalog):
        entry = _entry(date(2025, 1, 6), cycle_phase="other:spotting", notes="ünïcode ☕",
                       headache=4)
        data = export_pdf([entry], catalog, "Jan 6 – Jan 12")
        assert isinstance(data, bytes)
        assert data.startswith(b"%PDF")

    def test_empty_renders(self, catalog):
        assert export_pdf([], catalog, "January 2025").startswith(b"%PDF")
