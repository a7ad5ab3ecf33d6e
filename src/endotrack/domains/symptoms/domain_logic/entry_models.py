"""Daily log entry model, score coercion and cycle-phase parsing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping

from endotrack.domains.symptoms.domain_logic.metrics import (
    SCORE_MAX,
    SCORE_MIN,
    MetricCatalog,
)

OTHER_PREFIX = "other:"


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def coerce_score(value: Any) -> int:
    """Coerce a user-entered score to an int in [0, 10].

    Integral floats and numeric strings are accepted. Anything else
    (None, bools, fractions, NaN, out-of-range values) becomes 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value) or not value.is_integer():
            return 0
        value = int(value)
    if not isinstance(value, int):
        return 0
    return value if SCORE_MIN <= value <= SCORE_MAX else 0


def validate_scores(raw: Mapping[str, Any] | None, catalog: MetricCatalog) -> dict[str, int]:
    """Strict check for user input: every known metric must be a whole number 0-10.

    Unknown keys are skipped (callers report them separately).

    Raises:
        ValueError: Naming every out-of-range or non-integer score.
    """
    checked: dict[str, int] = {}
    bad: list[str] = []
    for key, value in (raw or {}).items():
        if key not in catalog:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            bad.append(f"{key}={value!r}")
            continue
        if isinstance(value, float) and (math.isnan(value) or not value.is_integer()):
            bad.append(f"{key}={value!r}")
            continue
        if not SCORE_MIN <= value <= SCORE_MAX:
            bad.append(f"{key}={value!r}")
            continue
        checked[key] = int(value)
    if bad:
        raise ValueError(
            f"Scores must be whole numbers from {SCORE_MIN} to {SCORE_MAX}: {', '.join(bad)}"
        )
    return checked


def normalize_scores(raw: Mapping[str, Any] | None, catalog: MetricCatalog) -> dict[str, int]:
    """Return a score for every catalog key; unknown keys are dropped."""
    raw = raw or {}
    return {key: coerce_score(raw.get(key)) for key in catalog.keys()}


# ---------------------------------------------------------------------------
# Cycle phase
# ---------------------------------------------------------------------------

class CyclePhase(str, Enum):
    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATION = "ovulation"
    LUTEAL = "luteal"
    ON_PILL = "on_pill"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    CyclePhase.MENSTRUAL: "Menstrual phase",
    CyclePhase.FOLLICULAR: "Follicular phase",
    CyclePhase.OVULATION: "Ovulation",
    CyclePhase.LUTEAL: "Luteal phase",
    CyclePhase.ON_PILL: "On the pill",
}

_PHASE_VALUES = {p.value: p for p in CyclePhase}


@dataclass(frozen=True)
class CyclePhaseSelection:
    """Zero or more cycle-phase tags plus an optional free-text "other"."""

    phases: frozenset[CyclePhase] = frozenset()
    other: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.phases and not self.other

    def ordered_phases(self) -> list[CyclePhase]:
        return [p for p in CyclePhase if p in self.phases]

    def encode(self) -> str | None:
        """Storage form: comma-joined tags, ``other:<text>`` always last."""
        parts = [p.value for p in self.ordered_phases()]
        if self.other:
            parts.append(OTHER_PREFIX + self.other)
        return ",".join(parts) if parts else None

    def label(self) -> str:
        labels = [p.label for p in self.ordered_phases()]
        if self.other:
            labels.append(self.other)
        return ", ".join(labels)


EMPTY_CYCLE_PHASE = CyclePhaseSelection()


def parse_cycle_phase(raw: str | CyclePhaseSelection | None) -> CyclePhaseSelection:
    """Parse either storage revision of the cycle-phase column.

    Older rows hold a single tag (``"luteal"`` or ``"other:spotting"``);
    newer rows hold comma-joined tags. Everything after ``other:`` is free
    text, commas included. Unrecognised bare tokens are kept as free text.
    """
    if raw is None:
        return EMPTY_CYCLE_PHASE
    if isinstance(raw, CyclePhaseSelection):
        return raw

    tokens = raw.split(",")
    phases: set[CyclePhase] = set()
    other_parts: list[str] = []

    for i, token in enumerate(tokens):
        token = token.strip()
        if token.startswith(OTHER_PREFIX):
            rest = ",".join(tokens[i:]).strip()[len(OTHER_PREFIX):].strip()
            if rest:
                other_parts.append(rest)
            break
        phase = _PHASE_VALUES.get(token)
        if phase is not None:
            phases.add(phase)
        elif token:
            other_parts.append(token)

    other = "; ".join(other_parts) or None
    return CyclePhaseSelection(phases=frozenset(phases), other=other)


def build_cycle_phase(
    phases: list[str] | None = None,
    other: str | None = None,
) -> CyclePhaseSelection:
    """Build a selection from tool input.

    Raises:
        ValueError: If a tag is not one of the known phases.
    """
    selected: set[CyclePhase] = set()
    for name in phases or []:
        phase = _PHASE_VALUES.get(name.strip())
        if phase is None:
            valid = ", ".join(_PHASE_VALUES)
            raise ValueError(f"Unknown cycle phase {name!r}. Valid: {valid}")
        selected.add(phase)
    other = (other or "").strip() or None
    return CyclePhaseSelection(phases=frozenset(selected), other=other)


# ---------------------------------------------------------------------------
# LogEntry
# ---------------------------------------------------------------------------

def parse_log_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


@dataclass
class LogEntry:
    """One user's record for a single calendar date.

    ``id`` is assigned by the repository and is empty before insert.
    ``scores`` always holds every catalog key once built via
    :meth:`from_row` or :func:`normalize_scores`.
    """

    id: str
    log_date: date
    scores: dict[str, int] = field(default_factory=dict)
    cycle_phase: CyclePhaseSelection = EMPTY_CYCLE_PHASE
    notes: str | None = None

    def score(self, key: str) -> int:
        return coerce_score(self.scores.get(key))

    @property
    def date_key(self) -> str:
        return self.log_date.isoformat()

    @classmethod
    def from_row(cls, row: Mapping[str, Any], catalog: MetricCatalog) -> LogEntry:
        """Build an entry from a flat row (``log_date`` plus one column per metric)."""
        return cls(
            id=str(row.get("id") or ""),
            log_date=parse_log_date(row["log_date"]),
            scores=normalize_scores(row, catalog),
            cycle_phase=parse_cycle_phase(row.get("cycle_phase")),
            notes=row.get("notes") or None,
        )

    def as_dict(self) -> dict[str, Any]:
        """Nested, JSON-ready form for tool responses."""
        return {
            "id": self.id,
            "log_date": self.date_key,
            "scores": dict(self.scores),
            "cycle_phase": {
                "tags": [p.value for p in self.cycle_phase.ordered_phases()],
                "other": self.cycle_phase.other,
                "label": self.cycle_phase.label(),
            },
            "notes": self.notes,
        }

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.id, "log_date": self.date_key}
        row.update(self.scores)
        row["cycle_phase"] = self.cycle_phase.encode()
        row["notes"] = self.notes
        return row
