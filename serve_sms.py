"""
Chore Board — SMS relay entry point.

`python serve_sms.py` starts the relay server on SMS_RELAY_PORT.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

import uvicorn

from choreboard.config import settings

if __name__ == "__main__":
    if not settings.twilio_configured:
        logging.getLogger(__name__).warning("Twilio credentials not set; every send will fail")
    uvicorn.run("choreboard.server.sms_relay:app", host="0.0.0.0", port=settings.SMS_RELAY_PORT)
