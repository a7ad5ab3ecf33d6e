"""CSV export of symptom logs.

Columns: ``Date``, one column per metric label in catalog order,
``Cycle Phase``, ``Notes``. Rows are written oldest first. Non-empty notes
are always double-quoted; other fields are quoted only when needed.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from endotrack.domains.symptoms.domain_logic.aggregation import chronological
from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry, coerce_score
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog

CSV_FILENAME = "symptom-logs.csv"


@dataclass
class ExportedRow:
    """A row read back from an exported CSV."""

    log_date: date
    scores: dict[str, int]
    cycle_phase_label: str
    notes: str


def csv_headers(catalog: MetricCatalog) -> list[str]:
    return ["Date", *(m.label for m in catalog), "Cycle Phase", "Notes"]


def _quote_notes(notes: str | None) -> str:
    if not notes:
        return ""
    return '"' + notes.replace('"', '""') + '"'


def export_csv(entries: Iterable[LogEntry], catalog: MetricCatalog) -> str:
    """Render entries as CSV text."""
    with io.StringIO() as output:
        csv.writer(output, lineterminator="\n").writerow(csv_headers(catalog))
        # Notes column is appended after the comma this writer ends each row with
        writer = csv.writer(output, lineterminator=",")
        for entry in chronological(entries):
            writer.writerow([
                entry.date_key,
                *(entry.score(key) for key in catalog.keys()),
                entry.cycle_phase.label(),
            ])
            output.write(_quote_notes(entry.notes) + "\n")
        return output.getvalue()


def parse_csv(text: str, catalog: MetricCatalog) -> list[ExportedRow]:
    """Read an exported CSV back into rows.

    Raises:
        ValueError: If the header does not match the catalog.
    """
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    expected = csv_headers(catalog)
    if header != expected:
        raise ValueError("CSV header does not match the metric catalog")

    keys = catalog.keys()
    rows = []
    for record in reader:
        if not record:
            continue
        rows.append(ExportedRow(
            log_date=date.fromisoformat(record[0]),
            scores={k: coerce_score(v) for k, v in zip(keys, record[1:1 + len(keys)])},
            cycle_phase_label=record[1 + len(keys)],
            notes=record[2 + len(keys)],
        ))
    return rows
