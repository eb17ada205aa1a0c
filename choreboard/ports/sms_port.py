"""SMS port — abstract interface for sending text messages.

The relay server and the reminder delivery depend on this protocol, never on
a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class SmsError(Exception):
    """Raised when a text message could not be sent."""


class SmsPort(Protocol):
    """Abstract SMS interface."""

    async def send_sms(self, phone: str, message: str) -> None: ...
