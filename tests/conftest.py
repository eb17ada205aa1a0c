"""Shared test fixtures and configuration.

Sets up fake environment variables before any choreboard imports,
and provides common fixtures like a temp DB.
"""

import os

# Patch env vars BEFORE any choreboard imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("ADMIN_USER_IDS", "99999")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_board.db")


@pytest.fixture
def board_db(tmp_db_path):
    """Return a BoardDB instance backed by a temp file."""
    from choreboard.data.db import BoardDB
    return BoardDB(db_path=tmp_db_path)


@pytest.fixture
def reset_permission():
    """Restore the process-wide reminder permission after a test."""
    from choreboard.core import reminders
    granted, error = reminders.permission.granted, reminders.permission.error
    yield reminders.permission
    reminders.permission.granted = granted
    reminders.permission.error = error
