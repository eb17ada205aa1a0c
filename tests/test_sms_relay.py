"""Tests for choreboard.server.sms_relay — the HTTP relay endpoints."""

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from choreboard.ports.sms_port import SmsError
from choreboard.server.sms_relay import create_app


def _client(sms):
    return TestClient(create_app(sms))


def _sms(error=None):
    sms = MagicMock()
    sms.send_sms = AsyncMock(side_effect=error)
    return sms


def test_send_sms_success():
    sms = _sms()
    resp = _client(sms).post("/api/send-sms", json={"phone": "+15550001", "message": "hi"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    sms.send_sms.assert_awaited_once_with("+15550001", "hi")


def test_send_sms_provider_failure():
    sms = _sms(error=SmsError("Twilio request failed"))
    resp = _client(sms).post("/api/send-sms", json={"phone": "+15550001", "message": "hi"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to send SMS"}


def test_send_sms_missing_field():
    resp = _client(_sms()).post("/api/send-sms", json={"phone": "+15550001"})
    assert resp.status_code == 422


def test_health():
    resp = _client(_sms()).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}
