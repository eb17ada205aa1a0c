"""Notification ports — abstract interfaces for reaching people.

Core modules depend on these protocols, never on a specific provider.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from choreboard.data.models import ReminderPayload


class NotificationPort(Protocol):
    """Sends a chat message right now."""

    async def send_message(self, user_id: int, text: str) -> None: ...


class ReminderPort(Protocol):
    """Delivers a reminder payload at a later time."""

    def is_available(self) -> bool: ...

    def schedule(self, when: datetime, payload: ReminderPayload) -> None: ...
