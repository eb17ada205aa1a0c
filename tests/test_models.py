"""Tests for choreboard.data.models — dataclass defaults and helpers."""

from datetime import date

from choreboard.data.models import (
    FREQUENCIES,
    KID_COLORS,
    DisplayTask,
    Kid,
    NotificationPermission,
    ReminderPayload,
)


class TestKid:
    def test_full_name(self):
        kid = Kid(id=1, first_name="Ava", last_name="Smith")
        assert kid.full_name == "Ava Smith"

    def test_initials(self):
        kid = Kid(id=1, first_name="Ava", last_name="Smith")
        assert kid.initials == "AS"

    def test_defaults(self):
        kid = Kid(id=1, first_name="Ava", last_name="Smith")
        assert kid.points == 0
        assert kid.avatar_url is None
        assert kid.phone is None
        assert kid.color == KID_COLORS[0]


class TestDisplayTask:
    def test_defaults(self):
        task = DisplayTask(
            id="1", text="Dishes", assigned_to="Ava Smith",
            due_date=date(2024, 6, 3), due_time="12:00", color="#FF6B6B",
        )
        assert task.completed is False
        assert task.assignee_phone == ""
        assert task.recurrence is None


class TestConstants:
    def test_frequencies(self):
        assert FREQUENCIES == ("one-time", "daily", "weekly", "monthly")

    def test_palette(self):
        assert KID_COLORS == ("#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4")


def test_permission_defaults_to_denied():
    perm = NotificationPermission()
    assert perm.granted is False
    assert perm.error is None


def test_payload_data_not_shared():
    a = ReminderPayload(task_id="1", title="t", body="b", due_date="2024-06-03", due_time="12:00")
    b = ReminderPayload(task_id="2", title="t", body="b", due_date="2024-06-03", due_time="12:00")
    a.data["x"] = 1
    assert b.data == {}
