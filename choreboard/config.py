"""
Chore Board — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from choreboard/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram (only needed by the bot entry point)
    TELEGRAM_BOT_TOKEN: str = ""

    # Security: ALLOWED sees the board, ADMIN manages it
    ALLOWED_USER_IDS: list[int] = []
    ADMIN_USER_IDS: list[int] = []

    # SQLite
    DATABASE_PATH: str = "data/choreboard.db"

    TIMEZONE: str = "UTC"

    # Board behaviour
    DEFAULT_DUE_TIME: str = "12:00"
    REMINDER_LEAD_MINUTES: int = 15
    MAX_OCCURRENCES: int = 52
    POINTS_PER_CHORE: int = 10

    # Twilio (only needed by the SMS relay server)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Where the bot reaches the relay, and where the relay listens
    SMS_RELAY_URL: str = "http://localhost:3001"
    SMS_RELAY_PORT: int = 3001

    @field_validator("ALLOWED_USER_IDS", "ADMIN_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator(
        "REMINDER_LEAD_MINUTES", "MAX_OCCURRENCES", "POINTS_PER_CHORE", "SMS_RELAY_PORT",
        mode="before",
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("DEFAULT_DUE_TIME")
    @classmethod
    def check_due_time(cls, v: str) -> str:
        hour, minute = v.split(":")
        if not (0 <= int(hour) <= 23 and 0 <= int(minute) <= 59):
            raise ValueError(f"DEFAULT_DUE_TIME out of range: {v!r}")
        return v

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_PHONE_NUMBER
        )


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        ADMIN_USER_IDS=os.getenv("ADMIN_USER_IDS", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/choreboard.db"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        DEFAULT_DUE_TIME=os.getenv("DEFAULT_DUE_TIME", "12:00"),
        REMINDER_LEAD_MINUTES=os.getenv("REMINDER_LEAD_MINUTES", "15"),
        MAX_OCCURRENCES=os.getenv("MAX_OCCURRENCES", "52"),
        POINTS_PER_CHORE=os.getenv("POINTS_PER_CHORE", "10"),
        TWILIO_ACCOUNT_SID=os.getenv("TWILIO_ACCOUNT_SID", ""),
        TWILIO_AUTH_TOKEN=os.getenv("TWILIO_AUTH_TOKEN", ""),
        TWILIO_PHONE_NUMBER=os.getenv("TWILIO_PHONE_NUMBER", ""),
        SMS_RELAY_URL=os.getenv("SMS_RELAY_URL", "http://localhost:3001"),
        SMS_RELAY_PORT=os.getenv("SMS_RELAY_PORT", "3001"),
    )


# Singleton, imported by all other modules as:
#   from choreboard.config import settings
settings = _load_settings()
