"""Board task store — the in-memory task collection, keyed by date.

One TaskStore is owned by the running board and handed to whoever needs it.
Every reducer builds a new mapping and swaps it in whole; buckets and
tasks are never mutated in place, so a mapping read before an ``await``
stays consistent after it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date

from choreboard.core.aggregator import TaskMap, date_key, merge_task
from choreboard.data.models import DisplayTask

logger = logging.getLogger(__name__)


class TaskStore:
    """Holds the current task mapping and applies copy-on-write updates."""

    def __init__(self, tasks: TaskMap | None = None) -> None:
        self._tasks: TaskMap = dict(tasks or {})

    @property
    def tasks(self) -> TaskMap:
        return self._tasks

    def all_tasks(self) -> list[DisplayTask]:
        return [t for bucket in self._tasks.values() for t in bucket]

    def find(self, task_id: str) -> DisplayTask | None:
        for task in self.all_tasks():
            if task.id == task_id:
                return task
        return None

    def replace(self, tasks: TaskMap) -> None:
        self._tasks = tasks

    def without_range(self, start: date, end: date) -> TaskMap:
        """A copy of the mapping minus tasks due in [start, end]."""
        result: TaskMap = {}
        for key, bucket in self._tasks.items():
            kept = [t for t in bucket if not (start <= t.due_date <= end)]
            if kept:
                result[key] = kept
        return result

    def add_tasks(self, tasks: Iterable[DisplayTask]) -> list[DisplayTask]:
        """Add tasks to their date buckets, skipping duplicates.

        Returns the tasks actually added.
        """
        new_tasks: TaskMap = {key: list(bucket) for key, bucket in self._tasks.items()}
        added = [t for t in tasks if merge_task(new_tasks, t)]
        self._tasks = new_tasks
        return added

    def _map_task(
        self, task_id: str, fn: Callable[[DisplayTask], DisplayTask],
    ) -> DisplayTask | None:
        updated: DisplayTask | None = None
        new_tasks: TaskMap = {}
        for key, bucket in self._tasks.items():
            new_bucket = []
            for task in bucket:
                if updated is None and task.id == task_id:
                    updated = fn(task)
                    new_bucket.append(updated)
                else:
                    new_bucket.append(task)
            new_tasks[key] = new_bucket
        self._tasks = new_tasks
        return updated

    def update_task(self, task_id: str, **changes) -> DisplayTask | None:
        """Replace fields of one task. Returns the new task, or None if absent."""
        return self._map_task(task_id, lambda t: replace(t, **changes))

    def toggle_completed(self, task_id: str) -> DisplayTask | None:
        return self._map_task(task_id, lambda t: replace(t, completed=not t.completed))

    def remove_task(self, task_id: str) -> DisplayTask | None:
        """Drop a task from every bucket; empty buckets are removed."""
        removed: DisplayTask | None = None
        new_tasks: TaskMap = {}
        for key, bucket in self._tasks.items():
            kept = []
            for task in bucket:
                if task.id == task_id:
                    removed = task
                else:
                    kept.append(task)
            if kept:
                new_tasks[key] = kept
        self._tasks = new_tasks
        return removed

    def bucket(self, day: date) -> list[DisplayTask]:
        return list(self._tasks.get(date_key(day), []))
