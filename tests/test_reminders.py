"""Tests for choreboard.core.reminders — permission and reminder scheduling."""

from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from choreboard.core import reminders
from choreboard.data.models import DisplayTask

NOW = datetime(2024, 6, 3, 10, 0)


def _task(due_time="12:00", day=date(2024, 6, 3), phone="+15550001"):
    return DisplayTask(
        id="41", text="Take out trash (1/4)", assigned_to="Ava Smith",
        due_date=day, due_time=due_time, color="#FF6B6B", assignee_phone=phone,
    )


def _port(available=True):
    port = MagicMock()
    port.is_available.return_value = available
    return port


class TestRequestPermission:
    def test_granted(self, reset_permission):
        perm = reminders.request_permission(_port())
        assert perm.granted is True
        assert perm.error is None

    def test_no_port(self, reset_permission):
        perm = reminders.request_permission(None)
        assert perm.granted is False
        assert perm.error == "No reminder delivery configured"

    def test_unavailable(self, reset_permission):
        perm = reminders.request_permission(_port(available=False))
        assert perm.granted is False
        assert perm.error == "Reminder delivery unavailable"


class TestBuildPayload:
    def test_fields(self):
        payload = reminders.build_payload(_task(), 15)
        assert payload.title == "Task Reminder"
        assert payload.body == 'Task "Take out trash (1/4)" is due in 15 minutes'
        assert payload.tag == "41"
        assert payload.phone == "+15550001"
        assert payload.data == {
            "taskId": "41", "dueDate": "2024-06-03", "dueTime": "12:00", "phone": "+15550001",
        }


class TestMaybeSchedule:
    def test_schedules_lead_time_before_due(self, reset_permission):
        port = _port()
        reminders.request_permission(port)
        payload = reminders.maybe_schedule(_task(), 15, lambda: NOW, port)
        assert payload is not None
        when, sent = port.schedule.call_args.args
        assert when == datetime(2024, 6, 3, 11, 45)
        assert sent is payload

    def test_past_moment_is_noop(self, reset_permission):
        port = _port()
        reminders.request_permission(port)
        assert reminders.maybe_schedule(_task(due_time="10:10"), 15, lambda: NOW, port) is None
        port.schedule.assert_not_called()

    def test_exactly_now_is_noop(self, reset_permission):
        port = _port()
        reminders.request_permission(port)
        assert reminders.maybe_schedule(_task(due_time="10:15"), 15, lambda: NOW, port) is None

    def test_permission_denied_is_noop(self, reset_permission):
        port = _port(available=False)
        reminders.request_permission(port)
        assert reminders.maybe_schedule(_task(), 15, lambda: NOW, port) is None
        port.schedule.assert_not_called()

    def test_port_error_is_swallowed(self, reset_permission):
        port = _port()
        port.schedule.side_effect = RuntimeError("queue closed")
        reminders.request_permission(port)
        assert reminders.maybe_schedule(_task(), 15, lambda: NOW, port) is None
