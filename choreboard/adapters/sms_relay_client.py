"""SMS relay client — implements SmsPort by calling our own relay server.

The bot never holds Twilio credentials; it posts ``{phone, message}`` to
``POST /api/send-sms`` on the relay.
"""

from __future__ import annotations

import logging

import httpx

from choreboard.ports.sms_port import SmsError

logger = logging.getLogger(__name__)

_SEND_PATH = "/api/send-sms"
_TIMEOUT_SECONDS = 10


class SmsRelayClient:
    """HTTP client for the SMS relay endpoint."""

    def __init__(self, base_url: str | None = None) -> None:
        if base_url is None:
            from choreboard.config import settings
            base_url = settings.SMS_RELAY_URL
        self._base_url = base_url.rstrip("/")

    async def send_sms(self, phone: str, message: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                resp = await client.post(
                    self._base_url + _SEND_PATH,
                    json={"phone": phone, "message": message},
                )
        except httpx.HTTPError as exc:
            raise SmsError(f"SMS relay unreachable: {exc}") from exc

        if resp.status_code != 200:
            try:
                detail = resp.json().get("error", resp.text)
            except ValueError:
                detail = resp.text
            raise SmsError(f"SMS relay returned {resp.status_code}: {detail}")

        logger.info("SMS relayed to %s", phone)
