"""Telegram notification adapter — implements NotificationPort.

Sends reminder text to a chat. A chat that blocked the bot is remembered
and skipped for the rest of the process, so each reminder doesn't retry it.
"""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.error import Forbidden

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot
        self._blocked: set[int] = set()

    async def send_message(self, user_id: int, text: str) -> None:
        if user_id in self._blocked:
            logger.debug("Skipping chat %d: bot was blocked", user_id)
            return
        try:
            await self._bot.send_message(chat_id=user_id, text=text)
        except Forbidden:
            self._blocked.add(user_id)
            logger.warning("Chat %d blocked the bot; no more reminders to it", user_id)
