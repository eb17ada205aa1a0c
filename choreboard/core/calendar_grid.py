"""Month calendar layout for the board.

A grid is a flat list of cells: ``None`` for each blank before the 1st,
then the day numbers. Weeks start on Sunday. Months are 1-based.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from datetime import date

from choreboard.core.aggregator import tasks_on
from choreboard.data.models import DisplayTask

WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st with 0 = Sunday .. 6 = Saturday."""
    # date.weekday() counts from Monday
    return (date(year, month, 1).weekday() + 1) % 7


def build_grid(year: int, month: int) -> list[int | None]:
    """Leading blanks followed by 1..days-in-month. No trailing padding."""
    days_in_month = calendar.monthrange(year, month)[1]
    return [None] * first_weekday(year, month) + list(range(1, days_in_month + 1))


def day_indicators(
    tasks: Mapping[str, list[DisplayTask]], year: int, month: int, day: int,
) -> list[str]:
    """One color per task due that day; N tasks give N indicators."""
    return [t.color for t in tasks_on(tasks, date(year, month, day))]


def month_title(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def shift_month(day: date, offset: int) -> date:
    """The 1st of the month ``offset`` months away from ``day``."""
    index = day.year * 12 + (day.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def is_current_day(year: int, month: int, day: int | None, today: date) -> bool:
    if not day:
        return False
    return today == date(year, month, day)


def render_month(
    tasks: Mapping[str, list[DisplayTask]],
    year: int,
    month: int,
    today: date,
    selected: date | None = None,
) -> str:
    """Plain-text month view.

    Each cell shows the day number and, when tasks are due, a count of
    indicators. Today is marked with '*', the selected day with '>'.
    """
    lines = [month_title(year, month), " ".join(f"{h:>5}" for h in WEEKDAY_HEADERS)]
    row: list[str] = []
    for cell in build_grid(year, month):
        if cell is None:
            row.append(" " * 5)
        else:
            marker = ""
            if selected is not None and selected == date(year, month, cell):
                marker = ">"
            elif is_current_day(year, month, cell, today):
                marker = "*"
            count = len(day_indicators(tasks, year, month, cell))
            badge = f"+{count}" if count else ""
            row.append(f"{marker}{cell}{badge}".rjust(5))
        if len(row) == 7:
            lines.append(" ".join(row))
            row = []
    if row:
        lines.append(" ".join(row))
    return "\n".join(lines)
