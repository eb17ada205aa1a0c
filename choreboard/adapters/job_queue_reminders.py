"""JobQueue reminder adapter — implements ReminderPort.

Schedules a one-shot python-telegram-bot job per reminder. When the job
fires, the reminder goes to every board user as a chat message, and to the
assignee by SMS when the payload carries a phone number.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from telegram.ext import ContextTypes, JobQueue

from choreboard.data.models import ReminderPayload

if TYPE_CHECKING:
    from choreboard.ports.notification_port import NotificationPort
    from choreboard.ports.sms_port import SmsPort

logger = logging.getLogger(__name__)


class JobQueueReminders:
    """python-telegram-bot JobQueue implementation of ReminderPort."""

    def __init__(
        self,
        job_queue: JobQueue | None,
        notifier: NotificationPort,
        recipients: list[int],
        sms: SmsPort | None = None,
        timezone: str = "UTC",
    ) -> None:
        self._job_queue = job_queue
        self._notifier = notifier
        self._recipients = recipients
        self._sms = sms
        self._tz = ZoneInfo(timezone)

    def is_available(self) -> bool:
        return self._job_queue is not None

    def schedule(self, when: datetime, payload: ReminderPayload) -> None:
        if self._job_queue is None:
            raise RuntimeError("JobQueue is not available")
        if when.tzinfo is None:
            when = when.replace(tzinfo=self._tz)
        # Replace any pending reminder for the same task
        for job in self._job_queue.get_jobs_by_name(payload.tag):
            job.schedule_removal()
        self._job_queue.run_once(self._fire, when=when, data=payload, name=payload.tag)

    async def _fire(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.deliver(context.job.data)

    async def deliver(self, payload: ReminderPayload) -> None:
        """Send one reminder now. Failures are logged per recipient."""
        text = f"{payload.title}\n{payload.body}"
        for chat_id in self._recipients:
            try:
                await self._notifier.send_message(chat_id, text)
            except Exception as exc:
                logger.error("Failed to send reminder to %d: %s", chat_id, exc)

        if payload.phone and self._sms is not None:
            try:
                await self._sms.send_sms(payload.phone, payload.body)
            except Exception as exc:
                logger.error("Failed to text reminder to %s: %s", payload.phone, exc)

        logger.info("Reminder delivered for task %s", payload.task_id)
