"""Task reminders — decide whether and when a reminder fires.

A reminder is due ``lead_time_minutes`` before the task. Nothing is
scheduled when permission was never granted or when that moment has
already passed; there is no catch-up.

Delivery belongs to the ReminderPort; this module only builds the payload.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from choreboard.core.aggregator import due_datetime
from choreboard.data.models import DisplayTask, NotificationPermission, ReminderPayload

if TYPE_CHECKING:
    from choreboard.ports.notification_port import ReminderPort

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Task Reminder"

# Process-wide permission, set once at startup by request_permission()
permission = NotificationPermission()


def request_permission(port: ReminderPort | None) -> NotificationPermission:
    """Ask the delivery port whether background reminders are possible.

    Records the outcome in the module-level ``permission``.
    """
    if port is None:
        permission.granted = False
        permission.error = "No reminder delivery configured"
    elif not port.is_available():
        permission.granted = False
        permission.error = "Reminder delivery unavailable"
    else:
        permission.granted = True
        permission.error = None

    if permission.granted:
        logger.info("Reminder permission granted")
    else:
        logger.warning("Reminder permission denied: %s", permission.error)
    return permission


def build_payload(task: DisplayTask, lead_time_minutes: int) -> ReminderPayload:
    """The structured payload handed to the delivery port."""
    return ReminderPayload(
        task_id=task.id,
        title=REMINDER_TITLE,
        body=f'Task "{task.text}" is due in {lead_time_minutes} minutes',
        due_date=task.due_date.isoformat(),
        due_time=task.due_time,
        phone=task.assignee_phone,
        tag=task.id,
        data={
            "taskId": task.id,
            "dueDate": task.due_date.isoformat(),
            "dueTime": task.due_time,
            "phone": task.assignee_phone,
        },
    )


def maybe_schedule(
    task: DisplayTask,
    lead_time_minutes: int,
    now_fn: Callable[[], datetime],
    port: ReminderPort | None = None,
) -> ReminderPayload | None:
    """Schedule a reminder for ``task`` if permitted and still in the future.

    Returns the payload handed to the port, or None for a no-op.
    """
    if not permission.granted or port is None:
        return None

    notify_at = due_datetime(task) - timedelta(minutes=lead_time_minutes)
    if notify_at <= now_fn():
        logger.debug("Reminder for task %s at %s already passed", task.id, notify_at)
        return None

    payload = build_payload(task, lead_time_minutes)
    try:
        port.schedule(notify_at, payload)
    except Exception as exc:
        logger.error("Error scheduling reminder for task %s: %s", task.id, exc)
        return None

    logger.info("Reminder for task %s scheduled at %s", task.id, notify_at)
    return payload
