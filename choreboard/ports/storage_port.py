"""Storage port — abstract interface for the kids / chores / kids_chores tables.

Core modules depend on this protocol, never on a specific backend.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from choreboard.data.models import Assignment, Chore, Kid, KidChore


class StorageError(Exception):
    """Raised when any storage backend operation fails."""


class DuplicateAssignmentError(StorageError):
    """Raised when a (kid, chore, date) assignment already exists."""


class DuplicateKeyError(StorageError):
    """Raised when an insert with an explicit id collides with an existing row."""


class StoragePort(Protocol):
    """Abstract storage interface used by core modules."""

    def list_kids(self) -> list[Kid]: ...

    def get_kid(self, kid_id: int) -> Kid | None: ...

    def add_kid(
        self,
        first_name: str,
        last_name: str,
        points: int = 0,
        avatar_url: str | None = None,
        color: str | None = None,
        phone: str | None = None,
    ) -> Kid: ...

    def add_points(self, kid_id: int, delta: int) -> Kid: ...

    def set_avatar(self, kid_id: int, avatar_url: str) -> None: ...

    def list_chores(self) -> list[Chore]: ...

    def get_chore(self, chore_id: int) -> Chore | None: ...

    def next_chore_id(self) -> int: ...

    def add_chore(
        self, description: str, frequency: str, chore_id: int | None = None,
    ) -> Chore: ...

    def update_chore(self, chore_id: int, description: str, frequency: str) -> Chore: ...

    def delete_chore(self, chore_id: int) -> bool: ...

    def list_assignments(
        self,
        kid_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Assignment]: ...

    def find_assignment(
        self, kid_id: int, chore_id: int, assigned_date: date,
    ) -> Assignment | None: ...

    def next_assignment_id(self) -> int: ...

    def add_assignment(
        self,
        kid_id: int,
        chore_id: int,
        assigned_date: date,
        assignment_id: int | None = None,
    ) -> Assignment: ...

    def set_completed(self, assignment_id: int, completed: bool) -> Assignment: ...

    def delete_assignment(self, assignment_id: int) -> bool: ...

    def list_kid_chores(self, kid_id: int) -> list[KidChore]: ...
