"""Date windows for the history view.

Pure date arithmetic over ``datetime.date``: resolving the inclusive window
around a reference date, labelling it, and stepping to the adjacent window.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum


class Granularity(str, Enum):
    DAY = "D"
    WEEK = "W"
    MONTH = "M"
    YEAR = "Y"

    @classmethod
    def parse(cls, value: str | Granularity) -> Granularity:
        """Accept ``"W"``, ``"week"``, ``"Week"`` or a Granularity."""
        if isinstance(value, Granularity):
            return value
        text = value.strip().upper()
        for member in cls:
            if text in (member.value, member.name):
                return member
        raise ValueError(
            f"Unknown granularity {value!r}. Valid: day, week, month, year"
        )


@dataclass(frozen=True)
class DateWindow:
    """Inclusive ``[start, end]`` date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> int:
        return (self.end - self.start).days + 1


def start_of_week(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def resolve_window(reference: date, granularity: Granularity) -> DateWindow:
    if granularity is Granularity.DAY:
        return DateWindow(reference, reference)
    if granularity is Granularity.WEEK:
        start = start_of_week(reference)
        return DateWindow(start, start + timedelta(days=6))
    if granularity is Granularity.MONTH:
        last_day = calendar.monthrange(reference.year, reference.month)[1]
        return DateWindow(
            reference.replace(day=1),
            reference.replace(day=last_day),
        )
    return DateWindow(date(reference.year, 1, 1), date(reference.year, 12, 31))


def _short(day: date) -> str:
    return f"{calendar.month_abbr[day.month]} {day.day}"


def window_label(reference: date, granularity: Granularity) -> str:
    """Human-readable label, e.g. ``"Jan 6 – Jan 12"`` or ``"March 2025"``."""
    if granularity is Granularity.DAY:
        return reference.isoformat()
    if granularity is Granularity.WEEK:
        window = resolve_window(reference, granularity)
        return f"{_short(window.start)} – {_short(window.end)}"
    if granularity is Granularity.MONTH:
        return f"{calendar.month_name[reference.month]} {reference.year}"
    return str(reference.year)


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def navigate(reference: date, granularity: Granularity, direction: int) -> date:
    """Reference date of the adjacent window.

    Month and year steps land on the first of the month.

    Raises:
        ValueError: If ``direction`` is not -1 or +1.
    """
    if direction not in (-1, 1):
        raise ValueError(f"direction must be -1 or 1, got {direction!r}")

    if granularity is Granularity.DAY:
        return reference + timedelta(days=direction)
    if granularity is Granularity.WEEK:
        return reference + timedelta(days=7 * direction)
    if granularity is Granularity.MONTH:
        return _add_months(reference, direction)
    return date(reference.year + direction, reference.month, 1)
