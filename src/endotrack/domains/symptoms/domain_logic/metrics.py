"""Symptom and lifestyle metric catalog.

The catalog is a closed, ordered set of 0-10 metrics. Declared order is the
CSV column order and the tie-break order for every ranking. Aggregation and
summary functions take the catalog as an argument instead of reading
module state, so tests can pass a reduced catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

SCORE_MIN = 0
SCORE_MAX = 10

CATEGORIES = ("pain", "symptoms", "lifestyle")


@dataclass(frozen=True)
class MetricDefinition:
    """A single tracked metric."""

    key: str
    label: str
    category: str  # 'pain' | 'symptoms' | 'lifestyle'


class MetricCatalog:
    """Immutable, ordered collection of metric definitions.

    Usage::

        catalog = MetricCatalog(DEFAULT_METRICS)
        catalog.keys()           # ('leg_pain', 'lower_back_pain', ...)
        catalog.label("sleep")   # 'Sleep'
    """

    def __init__(self, metrics: tuple[MetricDefinition, ...] | list[MetricDefinition]) -> None:
        self._metrics = tuple(metrics)
        self._by_key = {m.key: m for m in self._metrics}
        if len(self._by_key) != len(self._metrics):
            raise ValueError("Metric keys must be unique")
        for m in self._metrics:
            if m.category not in CATEGORIES:
                raise ValueError(f"Unknown metric category: {m.category!r}")

    def keys(self) -> tuple[str, ...]:
        return tuple(m.key for m in self._metrics)

    def label(self, key: str) -> str:
        """Display label for ``key``; unknown keys are returned unchanged."""
        metric = self._by_key.get(key)
        return metric.label if metric else key

    def get(self, key: str) -> MetricDefinition | None:
        return self._by_key.get(key)

    def by_category(self, category: str) -> tuple[MetricDefinition, ...]:
        return tuple(m for m in self._metrics if m.category == category)

    def as_dicts(self) -> list[dict[str, str]]:
        return [
            {"key": m.key, "label": m.label, "category": m.category}
            for m in self._metrics
        ]

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[MetricDefinition]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)


DEFAULT_METRICS: tuple[MetricDefinition, ...] = (
    # Pain
    MetricDefinition("leg_pain", "Leg Pain", "pain"),
    MetricDefinition("lower_back_pain", "Lower Back Pain", "pain"),
    MetricDefinition("chest_pain", "Chest Pain", "pain"),
    MetricDefinition("shoulder_pain", "Shoulder Pain", "pain"),
    MetricDefinition("headache", "Headache", "pain"),
    MetricDefinition("pelvic_pain", "Pelvic Pain", "pain"),
    MetricDefinition("bowel_urination_pain", "Bowel/Urination Pain", "pain"),
    MetricDefinition("intercourse_pain", "Intercourse Pain", "pain"),
    # Other symptoms
    MetricDefinition("bloating", "Bloating", "symptoms"),
    MetricDefinition("nausea", "Nausea", "symptoms"),
    MetricDefinition("diarrhea", "Diarrhea", "symptoms"),
    MetricDefinition("constipation", "Constipation", "symptoms"),
    MetricDefinition("fatigue", "Fatigue", "symptoms"),
    MetricDefinition("inflammation", "Inflammation", "symptoms"),
    MetricDefinition("mood", "Mood", "symptoms"),
    # Lifestyle
    MetricDefinition("stress", "Stress", "lifestyle"),
    MetricDefinition("inactivity", "Inactivity", "lifestyle"),
    MetricDefinition("overexertion", "Overexertion", "lifestyle"),
    MetricDefinition("coffee", "Coffee", "lifestyle"),
    MetricDefinition("alcohol", "Alcohol", "lifestyle"),
    MetricDefinition("smoking", "Smoking", "lifestyle"),
    MetricDefinition("diet", "Diet", "lifestyle"),
    MetricDefinition("sleep", "Sleep", "lifestyle"),
)

DEFAULT_CATALOG = MetricCatalog(DEFAULT_METRICS)
