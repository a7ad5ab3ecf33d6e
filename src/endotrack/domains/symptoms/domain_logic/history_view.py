"""Stateful history browser.

Holds the reference date, granularity and hidden chart series of one
history screen. Each reload is tagged with a generation number and only the
newest reload's result is applied: a slow load for an old reference date
that finishes after a newer one is discarded instead of overwriting it.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Awaitable, Callable

from endotrack.domains.symptoms.domain_logic.aggregation import (
    Bucket,
    aggregate,
    entries_in_window,
)
from endotrack.domains.symptoms.domain_logic.entry_models import LogEntry
from endotrack.domains.symptoms.domain_logic.metrics import MetricCatalog
from endotrack.domains.symptoms.domain_logic.time_windows import (
    DateWindow,
    Granularity,
    navigate,
    resolve_window,
    window_label,
)

logger = logging.getLogger(__name__)

EntryLoader = Callable[[DateWindow], Awaitable[list[LogEntry]]]


class LatestOnly:
    """Generation counter: only the most recently started request is current."""

    def __init__(self) -> None:
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation


class HistoryView:
    """Browse aggregated history one window at a time.

    Usage::

        view = HistoryView(loader, DEFAULT_CATALOG)  # reference defaults to today
        await view.reload()
        await view.step(-1)           # previous week
        view.toggle_series("sleep")   # hide a chart series
        view.snapshot()
    """

    def __init__(
        self,
        loader: EntryLoader,
        catalog: MetricCatalog,
        *,
        reference: date | None = None,
        granularity: Granularity = Granularity.WEEK,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._loader = loader
        self._catalog = catalog
        self._guard = LatestOnly()
        self._today = today
        # None until the first load, which then uses today's date
        self.reference: date | None = reference
        self.granularity = granularity
        self.hidden: set[str] = set()
        self._entries: list[LogEntry] = []
        self._buckets: list[Bucket] = []
        self._shown: tuple[date, Granularity] | None = None

    @property
    def buckets(self) -> list[Bucket]:
        return list(self._buckets)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    async def reload(self) -> bool:
        """Load and aggregate the current window.

        Returns:
            False if a newer reload started while this one was loading
            (its result is dropped), True otherwise.
        """
        generation = self._guard.begin()
        if self.reference is None:
            self.reference = self._today()
        reference, granularity = self.reference, self.granularity
        window = resolve_window(reference, granularity)

        entries = await self._loader(window)

        if not self._guard.is_current(generation):
            logger.debug(
                "Discarding stale history load %d for %s (%s)",
                generation,
                reference,
                granularity.name,
            )
            return False

        self._entries = entries_in_window(entries, window)
        self._buckets = aggregate(entries, granularity, reference, self._catalog)
        self._shown = (reference, granularity)
        return True

    async def set_reference(self, reference: date) -> bool:
        self.reference = reference
        return await self.reload()

    async def set_granularity(self, granularity: Granularity) -> bool:
        self.granularity = granularity
        return await self.reload()

    async def step(self, direction: int) -> bool:
        current = self.reference if self.reference is not None else self._today()
        self.reference = navigate(current, self.granularity, direction)
        return await self.reload()

    def toggle_series(self, key: str) -> bool:
        """Hide or show one metric; returns True if it is now hidden.

        Raises:
            ValueError: If ``key`` is not in the catalog.
        """
        if key not in self._catalog:
            raise ValueError(f"Unknown metric: {key!r}")
        if key in self.hidden:
            self.hidden.discard(key)
            return False
        self.hidden.add(key)
        return True

    def snapshot(self) -> dict[str, Any]:
        """Displayed state as a JSON-ready dict."""
        reference, granularity = self._shown or (
            self.reference or self._today(), self.granularity
        )
        window = resolve_window(reference, granularity)
        return {
            "granularity": granularity.name.lower(),
            "reference_date": reference.isoformat(),
            "label": window_label(reference, granularity),
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "previous_reference": navigate(reference, granularity, -1).isoformat(),
            "next_reference": navigate(reference, granularity, 1).isoformat(),
            "hidden_series": sorted(self.hidden),
            "buckets": [b.as_row(self.hidden) for b in self._buckets],
            "entries": [e.as_dict() for e in reversed(self._entries)],
        }
