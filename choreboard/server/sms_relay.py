"""
Chore Board — SMS relay server.

A tiny HTTP service that forwards ``{phone, message}`` to the messaging
provider, so provider credentials stay on the server.

    uvicorn choreboard.server.sms_relay:app --port 3001
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from choreboard.ports.sms_port import SmsPort

logger = logging.getLogger(__name__)


class SendSmsRequest(BaseModel):
    phone: str
    message: str


def create_app(sms: SmsPort | None = None) -> FastAPI:
    """Build the relay app. Defaults to the Twilio adapter."""
    if sms is None:
        from choreboard.adapters.twilio_sms import TwilioSms
        sms = TwilioSms()

    app = FastAPI(
        title="Chore Board SMS Relay",
        version="1.0.0",
        description="Relays reminder text messages to the SMS provider",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET"],
        allow_headers=["*"],
    )

    @app.post("/api/send-sms")
    async def send_sms(request: SendSmsRequest):
        try:
            await sms.send_sms(request.phone, request.message)
        except Exception as exc:
            logger.error("SMS Error: %s", exc)
            return JSONResponse(status_code=500, content={"error": "Failed to send SMS"})
        return {"success": True}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
