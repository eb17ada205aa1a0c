"""Twilio SMS adapter — implements SmsPort with the Twilio SDK.

The SDK client is synchronous, so each send runs in a worker thread. Any
failure (missing credentials, API error, network error) is raised as
SmsError.
"""

from __future__ import annotations

import asyncio
import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from choreboard.ports.sms_port import SmsError

logger = logging.getLogger(__name__)


class TwilioSms:
    """Twilio implementation of SmsPort."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        client: Client | None = None,
    ) -> None:
        if account_sid is None or auth_token is None or from_number is None:
            from choreboard.config import settings
            account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
            auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
            from_number = from_number if from_number is not None else settings.TWILIO_PHONE_NUMBER

        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(self._account_sid, self._auth_token)
        return self._client

    async def send_sms(self, phone: str, message: str) -> None:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise SmsError("Twilio is not configured")

        client = self._get_client()
        try:
            sent = await asyncio.to_thread(
                client.messages.create,
                body=message,
                from_=self._from_number,
                to=phone,
            )
        except (TwilioException, OSError) as exc:
            raise SmsError(f"Twilio request failed: {exc}") from exc

        logger.info("SMS sent to %s (sid=%s)", phone, sent.sid)
