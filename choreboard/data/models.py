"""
Chore Board — Data Models.

Kids, chores and assignments are the three persisted tables. DisplayTask is
derived from them on every fetch and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

FREQUENCIES = ("one-time", "daily", "weekly", "monthly")
RECURRENCE_TYPES = ("daily", "weekly", "monthly")

# Indicator colors handed out to kids by list position
KID_COLORS = ("#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4")


@dataclass
class Kid:
    """A family member chores get assigned to."""

    id: int
    first_name: str
    last_name: str
    points: int = 0
    avatar_url: str | None = None
    color: str = KID_COLORS[0]
    phone: str | None = None       # SMS reminder contact

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}"


@dataclass
class Chore:
    """A reusable chore definition."""

    id: int
    description: str                  # e.g., "Take out trash"
    frequency: str                    # one of FREQUENCIES
    created_at: str                   # ISO timestamp


@dataclass
class Assignment:
    """A chore bound to a kid on one calendar date (a kids_chores row)."""

    id: int
    kid_id: int
    chore_id: int
    assigned_date: date
    completed: bool = False
    last_completed: str | None = None  # ISO timestamp, None if never done


@dataclass
class KidChore:
    """An assignment joined with its chore, as shown on a kid's profile."""

    kid_chore_id: int
    chore_id: int
    description: str
    assigned_date: date
    completed: bool


@dataclass
class RecurrencePattern:
    """How many times, and how often, a new assignment repeats."""

    type: str                         # one of RECURRENCE_TYPES
    occurrences: int


@dataclass
class DisplayTask:
    """An assignment rendered for the board.

    Synthesized from an Assignment plus its Kid and Chore; recomputed on
    every fetch.
    """

    id: str
    text: str
    assigned_to: str                  # kid's full name
    due_date: date
    due_time: str                     # HH:MM
    color: str
    completed: bool = False
    assignee_phone: str = ""
    timestamp: int = 0                # creation time, epoch ms
    assignment_id: int | None = None
    kid_id: int | None = None
    chore_id: int | None = None
    recurrence: RecurrencePattern | None = None


@dataclass
class NotificationPermission:
    """Whether reminders may be scheduled in this process."""

    granted: bool = False
    error: str | None = None


@dataclass
class ReminderPayload:
    """Everything a reminder needs once it fires."""

    task_id: str
    title: str
    body: str
    due_date: str                     # ISO date YYYY-MM-DD
    due_time: str                     # HH:MM
    phone: str = ""
    tag: str = ""
    data: dict = field(default_factory=dict)
