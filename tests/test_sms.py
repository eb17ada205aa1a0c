"""Tests for the SMS adapters — the Twilio SDK and the relay client."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from twilio.base.exceptions import TwilioRestException

from choreboard.adapters.sms_relay_client import SmsRelayClient
from choreboard.adapters.twilio_sms import TwilioSms
from choreboard.ports.sms_port import SmsError


def _mock_client(resp=None, error=None):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        mock_client.post = AsyncMock(side_effect=error)
    else:
        mock_client.post = AsyncMock(return_value=resp)
    return mock_client


class TestTwilioSms:
    @pytest.mark.asyncio
    async def test_creates_message(self):
        client = MagicMock()
        client.messages.create.return_value = MagicMock(sid="SM123")

        sms = TwilioSms("AC1", "secret", "+15550000", client=client)
        await sms.send_sms("+15550001", "Trash in 15 minutes")

        client.messages.create.assert_called_once_with(
            body="Trash in 15 minutes", from_="+15550000", to="+15550001",
        )

    @pytest.mark.asyncio
    async def test_builds_client_from_credentials(self):
        with patch("choreboard.adapters.twilio_sms.Client") as client_cls:
            client_cls.return_value.messages.create.return_value = MagicMock(sid="SM1")
            sms = TwilioSms("AC1", "secret", "+15550000")
            await sms.send_sms("+15550001", "hi")

        client_cls.assert_called_once_with("AC1", "secret")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = MagicMock()
        sms = TwilioSms("", "", "", client=client)
        with pytest.raises(SmsError, match="not configured"):
            await sms.send_sms("+15550001", "hi")
        client.messages.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = MagicMock()
        client.messages.create.side_effect = TwilioRestException(
            400, "/Messages.json", "Invalid 'To' Phone Number",
        )
        sms = TwilioSms("AC1", "secret", "+15550000", client=client)
        with pytest.raises(SmsError, match="Twilio request failed"):
            await sms.send_sms("not-a-number", "hi")

    @pytest.mark.asyncio
    async def test_network_error(self):
        client = MagicMock()
        client.messages.create.side_effect = ConnectionError("boom")
        sms = TwilioSms("AC1", "secret", "+15550000", client=client)
        with pytest.raises(SmsError):
            await sms.send_sms("+15550001", "hi")


class TestSmsRelayClient:
    @pytest.mark.asyncio
    async def test_posts_json(self):
        mock_resp = MagicMock(status_code=200)
        client = _mock_client(mock_resp)

        relay = SmsRelayClient("http://relay:3001/")
        with patch("choreboard.adapters.sms_relay_client.httpx.AsyncClient", return_value=client):
            await relay.send_sms("+15550001", "hi")

        assert client.post.call_args.args[0] == "http://relay:3001/api/send-sms"
        assert client.post.call_args.kwargs["json"] == {"phone": "+15550001", "message": "hi"}

    @pytest.mark.asyncio
    async def test_error_status(self):
        mock_resp = MagicMock(status_code=500, text="")
        mock_resp.json.return_value = {"error": "Failed to send SMS"}
        client = _mock_client(mock_resp)

        relay = SmsRelayClient("http://relay:3001")
        with patch("choreboard.adapters.sms_relay_client.httpx.AsyncClient", return_value=client):
            with pytest.raises(SmsError, match="Failed to send SMS"):
                await relay.send_sms("+15550001", "hi")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        client = _mock_client(error=httpx.ConnectError("refused"))
        relay = SmsRelayClient("http://relay:3001")
        with patch("choreboard.adapters.sms_relay_client.httpx.AsyncClient", return_value=client):
            with pytest.raises(SmsError, match="unreachable"):
                await relay.send_sms("+15550001", "hi")
