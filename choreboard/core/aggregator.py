"""Task aggregation — assignment rows to board tasks.

Joins kids_chores rows with their kid and chore, and groups the resulting
DisplayTasks by date. Aggregating the same rows twice yields the same
mapping: a task already in its date bucket (same text, assignee and due
date) is never appended again.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime

from choreboard.data.models import Assignment, Chore, DisplayTask, Kid

logger = logging.getLogger(__name__)

DEFAULT_DUE_TIME = "12:00"

TaskMap = dict[str, list[DisplayTask]]


def date_key(day: date) -> str:
    """Bucket key for a date, e.g. 'Mon Jun 03 2024'."""
    return day.strftime("%a %b %d %Y")


def task_from_assignment(
    assignment: Assignment,
    kid: Kid,
    chore: Chore,
    due_time: str = DEFAULT_DUE_TIME,
) -> DisplayTask:
    """Synthesize the board task for one assignment."""
    return DisplayTask(
        id=str(assignment.id),
        text=chore.description,
        assigned_to=kid.full_name,
        assignee_phone=kid.phone or "",
        due_date=assignment.assigned_date,
        due_time=due_time,
        color=kid.color,
        completed=assignment.completed,
        assignment_id=assignment.id,
        kid_id=kid.id,
        chore_id=chore.id,
    )


def _is_duplicate(task: DisplayTask, bucket: list[DisplayTask]) -> bool:
    return any(
        t.text == task.text
        and t.assigned_to == task.assigned_to
        and t.due_date == task.due_date
        for t in bucket
    )


def merge_task(tasks: TaskMap, task: DisplayTask) -> bool:
    """Append ``task`` to its date bucket in place unless it's a duplicate.

    Returns True if the task was added. Only call this on a mapping you own.
    """
    key = date_key(task.due_date)
    bucket = tasks.setdefault(key, [])
    if _is_duplicate(task, bucket):
        return False
    bucket.append(task)
    return True


def aggregate(
    assignments: Iterable[Assignment],
    kids_by_id: Mapping[int, Kid],
    chores_by_id: Mapping[int, Chore],
    existing: Mapping[str, list[DisplayTask]] | None = None,
    due_time: str = DEFAULT_DUE_TIME,
) -> TaskMap:
    """Merge assignment rows into a copy of ``existing``, grouped by date key.

    Assignments referencing a missing kid or chore are skipped.
    ``existing`` is left untouched.
    """
    tasks: TaskMap = {key: list(bucket) for key, bucket in (existing or {}).items()}

    for assignment in assignments:
        kid = kids_by_id.get(assignment.kid_id)
        chore = chores_by_id.get(assignment.chore_id)
        if kid is None or chore is None:
            logger.warning(
                "Skipping assignment #%d: kid %d or chore %d not found",
                assignment.id, assignment.kid_id, assignment.chore_id,
            )
            continue
        merge_task(tasks, task_from_assignment(assignment, kid, chore, due_time))

    return tasks


def tasks_on(tasks: Mapping[str, list[DisplayTask]], day: date) -> list[DisplayTask]:
    """All tasks due on ``day``, searching every bucket."""
    return [t for bucket in tasks.values() for t in bucket if t.due_date == day]


def due_datetime(task: DisplayTask) -> datetime:
    """The task's due date and time as a naive datetime."""
    hour, minute = map(int, task.due_time.split(":"))
    return datetime(task.due_date.year, task.due_date.month, task.due_date.day, hour, minute)


def is_overdue(task: DisplayTask, now: datetime) -> bool:
    """An uncompleted task whose due date/time has passed."""
    if task.completed:
        return False
    return now > due_datetime(task)
