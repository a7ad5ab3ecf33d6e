"""Paginated PDF summary of symptom logs (fpdf2).

Layout is computed first as plain data by :func:`layout_pdf`, then drawn by
:func:`render_pdf`. Keeping pagination out of the renderer lets tests check
page breaks without parsing PDF bytes.
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field
from typing import Iterable

from fpdf import FPDF

from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog

logger = logging.getLogger(__name__)

PDF_FILENAME = "symptom-log-summary.pdf"

# A4 in millimetres
PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN = 15.0
BREAK_AT = PAGE_HEIGHT - 30.0
FOOTER_Y = PAGE_HEIGHT - 10.0
FIRST_ENTRY_Y = 45.0

# Characters per wrapped body line at 10pt Times across the printable width
WRAP_CHARS = 95

TITLE = "Symptom Log Summary"
FOOTER = "Living with Endo"
EMPTY_MESSAGE = "No entries in this period."
SYMPTOM_SEPARATOR = "  ·  "

# style -> (font style, size, rgb, centered)
_STYLES: dict[str, tuple[str, int, tuple[int, int, int], bool]] = {
    "title": ("B", 20, (44, 40, 37), True),
    "subtitle": ("", 11, (120, 113, 108), True),
    "empty": ("", 12, (44, 40, 37), True),
    "date": ("B", 12, (44, 40, 37), False),
    "body": ("", 10, (80, 75, 70), False),
    "footer": ("", 9, (120, 113, 108), True),
}


@dataclass
class PdfLine:
    y: float
    text: str
    style: str


@dataclass
class PdfLayout:
    pages: list[list[PdfLine]] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [line.text for page in self.pages for line in page]


class _Cursor:
    """Tracks the vertical position and starts new pages past the threshold."""

    def __init__(self, layout: PdfLayout) -> None:
        self._layout = layout
        self.y = FIRST_ENTRY_Y

    @property
    def page(self) -> list[PdfLine]:
        return self._layout.pages[-1]

    def ensure_room(self) -> None:
        if self.y > BREAK_AT:
            self.page.append(PdfLine(FOOTER_Y, FOOTER, "footer"))
            self._layout.pages.append([])
            self.y = MARGIN

    def write(self, text: str, style: str, advance: float) -> None:
        self.page.append(PdfLine(self.y, text, style))
        self.y += advance


def _symptom_line(entry: LogEntry, catalog: MetricCatalog) -> str:
    parts = [
        f"{m.label}: {entry.score(m.key)}/10"
        for m in catalog
        if entry.score(m.key) > 0
    ]
    return SYMPTOM_SEPARATOR.join(parts)


def layout_pdf(
    entries: Iterable[LogEntry],
    catalog: MetricCatalog,
    subtitle: str,
) -> PdfLayout:
    """Lay out the summary for ``entries`` (already filtered to one window)."""
    layout = PdfLayout(pages=[[
        PdfLine(25.0, TITLE, "title"),
        PdfLine(33.0, subtitle, "subtitle"),
    ]])
    cursor = _Cursor(layout)
    entries = list(entries)

    if not entries:
        cursor.write(EMPTY_MESSAGE, "empty", 0)
        cursor.page.append(PdfLine(FOOTER_Y, FOOTER, "footer"))
        return layout

    for entry in entries:
        cursor.ensure_room()
        cursor.write(entry.date_key, "date", 6)

        symptoms = _symptom_line(entry, catalog)
        if symptoms:
            for line in textwrap.wrap(symptoms, WRAP_CHARS):
                cursor.ensure_room()
                cursor.write(line, "body", 5)

        if not entry.cycle_phase.is_empty:
            cursor.ensure_room()
            cursor.write(f"Cycle: {entry.cycle_phase.label()}", "body", 5)

        if entry.notes:
            for line in textwrap.wrap(f"Notes: {entry.notes}", WRAP_CHARS):
                cursor.ensure_room()
                cursor.write(line, "body", 5)

        cursor.y += 4

    cursor.page.append(PdfLine(FOOTER_Y, FOOTER, "footer"))
    return layout


def _latin1(text: str) -> str:
    # Core PDF fonts only cover Latin-1
    text = text.replace("–", "-").replace("—", "-")
    return text.encode("latin-1", "replace").decode("latin-1")


def render_pdf(layout: PdfLayout) -> bytes:
    """Draw a computed layout and return the PDF document bytes."""
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(auto=False)

    for page in layout.pages:
        pdf.add_page()
        for line in page:
            font_style, size, rgb, centered = _STYLES[line.style]
            pdf.set_font("Times", style=font_style, size=size)
            pdf.set_text_color(*rgb)
            text = _latin1(line.text)
            x = (pdf.w - pdf.get_string_width(text)) / 2 if centered else MARGIN
            pdf.text(x, line.y, text)

    logger.info("Rendered PDF summary: %d pages", len(layout.pages))
    return bytes(pdf.output())


def export_pdf(
    entries: Iterable[LogEntry],
    catalog: MetricCatalog,
    subtitle: str,
) -> bytes:
    return render_pdf(layout_pdf(entries, catalog, subtitle))
