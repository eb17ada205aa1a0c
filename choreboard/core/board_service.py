"""
Chore Board — UI-Agnostic Board Service.

Orchestrates the board's operations: assign a chore (with recurrence),
edit/delete/complete tasks, manage chores, load a month of tasks, and show
a kid's profile. Storage calls run in a worker thread so the event loop
stays responsive; each ``await`` is a point where an operation can be
cancelled.

Each UI adapter calls this service and renders the results its own way.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import TYPE_CHECKING

from choreboard.core import reminders
from choreboard.core.aggregator import aggregate, task_from_assignment, tasks_on
from choreboard.core.recurrence import (
    clamp_occurrences,
    expand,
    occurrence_label,
    pattern_for_frequency,
)
from choreboard.data.models import (
    FREQUENCIES,
    Assignment,
    Chore,
    DisplayTask,
    Kid,
    KidChore,
)
from choreboard.ports.storage_port import DuplicateAssignmentError, DuplicateKeyError

if TYPE_CHECKING:
    from choreboard.core.task_store import TaskStore
    from choreboard.ports.notification_port import ReminderPort
    from choreboard.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """User input that blocks an operation; the message is shown as-is."""


@dataclass
class AssignResult:
    """Outcome of assigning a chore, possibly over several dates."""

    tasks: list[DisplayTask] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    skipped_dates: list[date] = field(default_factory=list)
    reminders_scheduled: int = 0


@dataclass
class KidProfile:
    kid: Kid
    chores: list[KidChore]


def _check_time(value: str) -> str:
    value = value.strip()
    try:
        datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValidationError(f"Invalid time {value!r}. Please use HH:MM (e.g. 17:30).")
    return value


def _carry_over(
    tasks: dict[str, list[DisplayTask]], previous: dict[int, DisplayTask],
) -> dict[str, list[DisplayTask]]:
    """Keep the board copy of each task, taking date and completion from storage."""
    result: dict[str, list[DisplayTask]] = {}
    for key, bucket in tasks.items():
        new_bucket = []
        for task in bucket:
            prev = previous.get(task.assignment_id)
            if prev is not None:
                task = replace(prev, due_date=task.due_date, completed=task.completed)
            new_bucket.append(task)
        result[key] = new_bucket
    return result


class BoardService:
    """Board operations over a storage port and the shared task store."""

    def __init__(
        self,
        storage: StoragePort,
        store: TaskStore,
        reminder_port: ReminderPort | None = None,
        now_fn: Callable[[], datetime] = datetime.now,
        default_due_time: str | None = None,
        lead_time_minutes: int | None = None,
        max_occurrences: int | None = None,
        points_per_chore: int | None = None,
    ) -> None:
        from choreboard.config import settings

        self._storage = storage
        self._store = store
        self._reminder_port = reminder_port
        self._now = now_fn
        self._due_time = default_due_time or settings.DEFAULT_DUE_TIME
        self._lead = lead_time_minutes if lead_time_minutes is not None else settings.REMINDER_LEAD_MINUTES
        self._max_occurrences = max_occurrences or settings.MAX_OCCURRENCES
        self._points = points_per_chore if points_per_chore is not None else settings.POINTS_PER_CHORE

    @property
    def store(self) -> TaskStore:
        return self._store

    async def _call(self, fn, *args, **kwargs):
        return await asyncio.to_thread(fn, *args, **kwargs)

    # ------------------------------------------------------------------
    # Reading the board
    # ------------------------------------------------------------------

    async def load_month(self, year: int, month: int) -> dict[str, list[DisplayTask]]:
        """Refetch one month of assignments into the store.

        Tasks of other months already in the store are kept; the month
        itself is replaced by what storage holds now. Rows already on the
        board keep their series label and edits, which storage does not
        record.
        """
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
        previous = {
            t.assignment_id: t
            for t in self._store.all_tasks()
            if t.assignment_id is not None and start <= t.due_date <= end
        }

        kids = await self._call(self._storage.list_kids)
        chores = await self._call(self._storage.list_chores)
        rows = await self._call(self._storage.list_assignments, start=start, end=end)

        tasks = aggregate(
            rows,
            {k.id: k for k in kids},
            {c.id: c for c in chores},
            existing=self._store.without_range(start, end),
            due_time=self._due_time,
        )
        if previous:
            tasks = _carry_over(tasks, previous)
        self._store.replace(tasks)
        logger.info("Loaded %d assignment(s) for %04d-%02d", len(rows), year, month)
        return tasks

    def tasks_for_day(self, day: date) -> list[DisplayTask]:
        return tasks_on(self._store.tasks, day)

    async def list_kids(self) -> list[Kid]:
        return await self._call(self._storage.list_kids)

    async def list_chores(self) -> list[Chore]:
        return await self._call(self._storage.list_chores)

    async def kid_profile(self, kid_id: int) -> KidProfile | None:
        kid = await self._call(self._storage.get_kid, kid_id)
        if kid is None:
            return None
        chores = await self._call(self._storage.list_kid_chores, kid_id)
        return KidProfile(kid=kid, chores=chores)

    # ------------------------------------------------------------------
    # Assigning chores
    # ------------------------------------------------------------------

    async def assign_chore(
        self,
        kid_id: int | None,
        chore_id: int | None,
        start_date: date,
        due_time: str | None = None,
        occurrences: int = 1,
        recurrence_type: str = "",
    ) -> AssignResult:
        """Assign a chore to a kid from ``start_date`` on.

        The chore's own frequency decides the recurrence; a one-time chore
        falls back to ``recurrence_type``. Raises ValidationError for bad
        input and DuplicateAssignmentError when the chore is already
        assigned to the kid on ``start_date``.
        """
        if kid_id is None or chore_id is None:
            raise ValidationError("Please select both a chore and a kid.")
        due_time = _check_time(due_time) if due_time else self._due_time

        kid = await self._call(self._storage.get_kid, kid_id)
        if kid is None:
            raise ValidationError(f"Kid {kid_id} not found.")
        chore = await self._call(self._storage.get_chore, chore_id)
        if chore is None:
            raise ValidationError(f"Chore {chore_id} not found.")

        occurrences = clamp_occurrences(occurrences, self._max_occurrences)
        frequency = chore.frequency if chore.frequency != "one-time" else recurrence_type
        try:
            pattern = pattern_for_frequency(frequency, occurrences)
        except ValueError as exc:
            raise ValidationError(str(exc))

        dates = expand(start_date, pattern) if pattern else [start_date]

        existing = await self._call(
            self._storage.find_assignment, kid.id, chore.id, start_date,
        )
        if existing is not None:
            raise DuplicateAssignmentError(
                "This chore is already assigned to this kid on this date."
            )

        result = AssignResult()
        stamp = int(time.time() * 1000)
        for index, due_date in enumerate(dates):
            try:
                assignment = await self._insert_assignment(kid.id, chore.id, due_date)
            except DuplicateAssignmentError:
                if index == 0:
                    raise
                logger.info("Skipping %s: already assigned", due_date)
                result.skipped_dates.append(due_date)
                continue

            task = task_from_assignment(assignment, kid, chore, due_time)
            task.timestamp = stamp
            if pattern:
                task.text = occurrence_label(chore.description, index, pattern.occurrences)
                task.recurrence = pattern
            result.assignments.append(assignment)
            result.tasks.append(task)

        self._store.add_tasks(result.tasks)
        for task in result.tasks:
            if reminders.maybe_schedule(task, self._lead, self._now, self._reminder_port):
                result.reminders_scheduled += 1

        logger.info(
            "Assigned '%s' to %s on %d date(s), %d skipped",
            chore.description, kid.full_name, len(result.tasks), len(result.skipped_dates),
        )
        return result

    async def _insert_assignment(self, kid_id: int, chore_id: int, due_date: date) -> Assignment:
        """Insert with the next explicit id; on an id collision retry once without one."""
        next_id = await self._call(self._storage.next_assignment_id)
        try:
            return await self._call(
                self._storage.add_assignment, kid_id, chore_id, due_date, assignment_id=next_id,
            )
        except DuplicateKeyError as exc:
            logger.warning("Assignment id %d taken (%s), retrying without id", next_id, exc)
            return await self._call(self._storage.add_assignment, kid_id, chore_id, due_date)

    # ------------------------------------------------------------------
    # Task actions
    # ------------------------------------------------------------------

    async def edit_task(
        self,
        task_id: str,
        chore_id: int | None = None,
        kid_id: int | None = None,
        due_time: str | None = None,
    ) -> DisplayTask:
        """Change a task's chore text, assignee or due time on the board."""
        task = self._store.find(task_id)
        if task is None:
            raise ValidationError(f"Task {task_id} not found.")

        changes: dict = {}
        if due_time is not None:
            changes["due_time"] = _check_time(due_time)
        if chore_id is not None:
            chore = await self._call(self._storage.get_chore, chore_id)
            if chore is None:
                raise ValidationError(f"Chore {chore_id} not found.")
            changes.update(text=chore.description, chore_id=chore.id)
        if kid_id is not None:
            kid = await self._call(self._storage.get_kid, kid_id)
            if kid is None:
                raise ValidationError(f"Kid {kid_id} not found.")
            changes.update(
                assigned_to=kid.full_name, color=kid.color,
                kid_id=kid.id, assignee_phone=kid.phone or "",
            )
        return self._store.update_task(task_id, **changes)

    async def delete_task(self, task_id: str) -> DisplayTask:
        """Remove a task from the board and its assignment from storage."""
        task = self._store.find(task_id)
        if task is None:
            raise ValidationError(f"Task {task_id} not found.")
        if task.assignment_id is not None:
            await self._call(self._storage.delete_assignment, task.assignment_id)
        self._store.remove_task(task_id)
        return task

    async def toggle_completion(self, task_id: str) -> DisplayTask:
        """Flip a task's completion, persisting it and adjusting the kid's points."""
        task = self._store.find(task_id)
        if task is None:
            raise ValidationError(f"Task {task_id} not found.")
        completed = not task.completed
        if task.assignment_id is not None:
            await self._call(self._storage.set_completed, task.assignment_id, completed)
            if task.kid_id is not None:
                await self._award(task.kid_id, completed)
        return self._store.toggle_completed(task_id)

    async def toggle_kid_chore(self, kid_id: int, kid_chore_id: int) -> KidChore:
        """Profile view: flip one of the kid's chores and adjust points."""
        chores = await self._call(self._storage.list_kid_chores, kid_id)
        match = next((c for c in chores if c.kid_chore_id == kid_chore_id), None)
        if match is None:
            raise ValidationError(f"Chore {kid_chore_id} is not assigned to this kid.")

        completed = not match.completed
        await self._call(self._storage.set_completed, kid_chore_id, completed)
        await self._award(kid_id, completed)
        self._store.update_task(str(kid_chore_id), completed=completed)
        match.completed = completed
        return match

    async def _award(self, kid_id: int, completed: bool) -> None:
        delta = self._points if completed else -self._points
        if delta:
            await self._call(self._storage.add_points, kid_id, delta)

    async def set_avatar(self, kid_id: int, avatar_url: str) -> None:
        avatar_url = avatar_url.strip()
        if not avatar_url:
            raise ValidationError("Please provide an image URL.")
        await self._call(self._storage.set_avatar, kid_id, avatar_url)

    # ------------------------------------------------------------------
    # Chore management
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_chore(description: str, frequency: str) -> tuple[str, str]:
        description = description.strip()
        if not description:
            raise ValidationError("Please enter a chore description")
        frequency = frequency.strip().lower()
        if frequency not in FREQUENCIES:
            raise ValidationError(
                f"Frequency must be one of: {', '.join(FREQUENCIES)}"
            )
        return description, frequency

    async def add_chore(self, description: str, frequency: str = "one-time") -> Chore:
        """Create a chore with the next explicit id, retrying once without it."""
        description, frequency = self._validate_chore(description, frequency)
        next_id = await self._call(self._storage.next_chore_id)
        try:
            return await self._call(
                self._storage.add_chore, description, frequency, chore_id=next_id,
            )
        except DuplicateKeyError as exc:
            logger.warning("Chore id %d taken (%s), retrying without id", next_id, exc)
            return await self._call(self._storage.add_chore, description, frequency)

    async def update_chore(self, chore_id: int, description: str, frequency: str) -> Chore:
        description, frequency = self._validate_chore(description, frequency)
        return await self._call(self._storage.update_chore, chore_id, description, frequency)

    async def delete_chore(self, chore_id: int) -> bool:
        return await self._call(self._storage.delete_chore, chore_id)
