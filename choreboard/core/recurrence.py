"""Recurring assignment expansion — pure date arithmetic.

Turns a start date and a recurrence pattern into the list of dates a new
assignment is due on. Monthly steps keep the start's day-of-month and clamp
it to shorter months (Jan 31 -> Feb 29 -> Mar 31).

No I/O: this module only transforms data.
"""

from __future__ import annotations

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from choreboard.data.models import RECURRENCE_TYPES, RecurrencePattern

_STEP_DAYS = {"daily": 1, "weekly": 7}


def expand(start_date: date, pattern: RecurrencePattern) -> list[date]:
    """Return the ``pattern.occurrences`` due dates starting at ``start_date``.

    Callers guarantee ``occurrences >= 1``.
    """
    dates = [start_date]
    if pattern.type == "monthly":
        for i in range(1, pattern.occurrences):
            dates.append(start_date + relativedelta(months=i))
        return dates

    step = timedelta(days=_STEP_DAYS[pattern.type])
    current = start_date
    while len(dates) < pattern.occurrences:
        current += step
        dates.append(current)
    return dates


def occurrence_label(text: str, index: int, total: int) -> str:
    """Suffix a task text with its position in a series, e.g. 'Trash (2/4)'."""
    return f"{text} ({index + 1}/{total})"


def pattern_for_frequency(frequency: str, occurrences: int) -> RecurrencePattern | None:
    """Build the pattern a chore's frequency tag implies.

    One-time (or empty) frequencies have no pattern.
    Raises ValueError on an unknown tag.
    """
    if frequency in ("", "one-time"):
        return None
    if frequency not in RECURRENCE_TYPES:
        raise ValueError(f"Unknown frequency: {frequency!r}")
    return RecurrencePattern(type=frequency, occurrences=occurrences)


def clamp_occurrences(count: int, maximum: int) -> int:
    """Clamp a user-entered count into [1, maximum]."""
    return max(1, min(count, maximum))
