"""
Chore Board — Telegram Bot.

The chat surface of the board. Admins manage it (month board, assigning
chores, editing, deleting, completing, chore CRUD); users see a read-only
board, tick tasks off locally, and open kids' profiles.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Coroutine
from datetime import date, datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.helpers import escape_markdown
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from choreboard.config import settings
from choreboard.core import reminders
from choreboard.core.aggregator import is_overdue
from choreboard.core.board_service import BoardService, ValidationError
from choreboard.core.calendar_grid import render_month
from choreboard.core.inflight import InflightRegistry
from choreboard.core.task_store import TaskStore
from choreboard.ports.storage_port import DuplicateAssignmentError

if TYPE_CHECKING:
    from choreboard.data.models import DisplayTask
    from choreboard.ports.notification_port import ReminderPort
    from choreboard.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


def _now() -> datetime:
    """Board-local wall clock time (naive)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorators
# ---------------------------------------------------------------------------


def _guard(allowed: Callable[[], set[int]]):
    def decorator(
        func: Callable[..., Coroutine[Any, Any, Any]],
    ) -> Callable[..., Coroutine[Any, Any, Any]]:
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
            user = update.effective_user
            if user is None or user.id not in allowed():
                uid = user.id if user else "unknown"
                logger.warning("Unauthorized access attempt from user_id=%s", uid)
                return None  # Silent ignore
            return await func(update, context)

        return wrapper

    return decorator


def _board_users() -> set[int]:
    return set(settings.ALLOWED_USER_IDS) | set(settings.ADMIN_USER_IDS)


def _admins() -> set[int]:
    return set(settings.ADMIN_USER_IDS)


authorized_only = _guard(_board_users)
admin_only = _guard(_admins)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _service(context: ContextTypes.DEFAULT_TYPE) -> BoardService:
    return context.bot_data["service"]


async def _run(
    update: Update, context: ContextTypes.DEFAULT_TYPE, coro: Coroutine[Any, Any, Any],
) -> Any:
    """Run a board operation as a cancellable in-flight task for this chat.

    Returns None when the operation was cancelled with /cancel.
    """
    registry: InflightRegistry = context.bot_data["inflight"]
    task = registry.start(update.effective_chat.id, coro)
    try:
        return await task
    except asyncio.CancelledError:
        if not task.cancelled():
            raise
        await update.effective_message.reply_text("Cancelled.")
        return None


def _md(text: str) -> str:
    """Escape user-entered text for parse_mode="Markdown"."""
    return escape_markdown(text, version=1)


def _parse_month(args: list[str], today: date) -> tuple[int, int] | None:
    """Parse an optional YYYY-MM argument; None if malformed."""
    if not args:
        return today.year, today.month
    try:
        parsed = datetime.strptime(args[0], "%Y-%m")
    except ValueError:
        return None
    return parsed.year, parsed.month


def _parse_day(text: str, today: date) -> date | None:
    text = text.strip().lower()
    if text == "today":
        return today
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _format_task(task: DisplayTask, now: datetime, ticked: bool = False) -> str:
    box = "☑" if task.completed or ticked else "☐"
    line = f"{box} `{task.id}` {_md(task.text)} — {_md(task.assigned_to)} at {task.due_time}"
    if is_overdue(task, now) and not ticked:
        line += " ⚠️ overdue"
    return line


def _format_day(
    tasks: list[DisplayTask], day: date, now: datetime, ticks: dict[str, bool] | None = None,
) -> str:
    ticks = ticks or {}
    if not tasks:
        return f"No tasks on {day.isoformat()}."
    lines = [f"*Tasks on {day.isoformat()}:*"]
    lines += [_format_task(t, now, ticks.get(t.id, False)) for t in tasks]
    return "\n".join(lines)


async def _show_board(
    update: Update, context: ContextTypes.DEFAULT_TYPE, read_only: bool,
) -> None:
    now = _now()
    month = _parse_month(context.args or [], now.date())
    if month is None:
        await update.message.reply_text("Usage: /admin [YYYY-MM]" if not read_only else "Usage: /user [YYYY-MM]")
        return
    year, mon = month

    service = _service(context)
    try:
        tasks = await _run(update, context, service.load_month(year, mon))
    except Exception as exc:
        logger.error("Board load error: %s", exc)
        await update.message.reply_text("Couldn't load the board. Please try again later.")
        return
    if tasks is None:
        return

    selected: date = context.chat_data.get("selected", now.date())
    if (selected.year, selected.month) != (year, mon):
        selected = date(year, mon, 1)
    context.chat_data["selected"] = selected

    grid = render_month(tasks, year, mon, today=now.date(), selected=selected)
    ticks = context.chat_data.get("ticks", {}) if read_only else None
    day_text = _format_day(service.tasks_for_day(selected), selected, now, ticks)
    await update.message.reply_text(
        f"```\n{grid}\n```\n{day_text}", parse_mode="Markdown",
    )


# ---------------------------------------------------------------------------
# Board commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome, then the default board for the user."""
    await update.message.reply_text(
        "Welcome to the *Chore Board*!\n\n"
        "• /admin or /user to see this month's board\n"
        "• /day YYYY-MM-DD to see a day's tasks\n"
        "• /kid <id> to open a kid's profile\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )
    user = update.effective_user
    await _show_board(update, context, read_only=user.id not in _admins())


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Board:*\n"
        "/admin [YYYY-MM] — Manage the month board\n"
        "/user [YYYY-MM] — View the month board\n"
        "/day YYYY-MM-DD — Tasks on a day\n"
        "/tick <task> — Tick a task off on your view\n"
        "/kid [id] — Kid profile, /kiddone <id> to complete a chore\n\n"
        "*Admin:*\n"
        "/assign — Assign a chore to a kid\n"
        "/edit <task> <HH:MM> — Change a task's due time\n"
        "/complete <task> — Toggle a task's completion\n"
        "/delete <task> — Delete a task\n"
        "/chores — List chores\n"
        "/addchore <frequency> <description> — Add a chore\n"
        "/editchore <id> <frequency> <description> — Edit a chore\n"
        "/deletechore <id> — Delete a chore\n"
        "/avatar <kid> <url> — Set a kid's avatar\n"
        "/cancel — Abort running operations",
        parse_mode="Markdown",
    )


@admin_only
async def cmd_admin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /admin [YYYY-MM] — the management board."""
    await _show_board(update, context, read_only=False)


@authorized_only
async def cmd_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /user [YYYY-MM] — the read-only board."""
    await _show_board(update, context, read_only=True)


@authorized_only
async def cmd_day(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /day YYYY-MM-DD — select a day and list its tasks."""
    now = _now()
    day = _parse_day(context.args[0], now.date()) if context.args else now.date()
    if day is None:
        await update.message.reply_text("Usage: /day YYYY-MM-DD")
        return

    service = _service(context)
    selected = context.chat_data.get("selected")
    if selected is None or (selected.year, selected.month) != (day.year, day.month):
        try:
            if await _run(update, context, service.load_month(day.year, day.month)) is None:
                return
        except Exception as exc:
            logger.error("/day load error: %s", exc)
            await update.message.reply_text("Couldn't load tasks. Please try again later.")
            return
    context.chat_data["selected"] = day

    ticks = context.chat_data.get("ticks", {})
    await update.message.reply_text(
        _format_day(service.tasks_for_day(day), day, now, ticks), parse_mode="Markdown",
    )


@authorized_only
async def cmd_tick(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tick <task> — toggle a local tick that only this chat sees."""
    if not context.args:
        await update.message.reply_text("Usage: /tick <task_id>")
        return
    task_id = context.args[0]
    ticks = dict(context.chat_data.get("ticks", {}))
    ticks[task_id] = not ticks.get(task_id, False)
    context.chat_data["ticks"] = ticks
    state = "ticked" if ticks[task_id] else "unticked"
    await update.message.reply_text(f"Task {task_id} {state}.")


@authorized_only
async def cmd_cancel_ops(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel outside a conversation — abort running operations."""
    registry: InflightRegistry = context.bot_data["inflight"]
    count = registry.cancel_all(update.effective_chat.id)
    if count == 0:
        await update.message.reply_text("Nothing to cancel.")


# ---------------------------------------------------------------------------
# Task commands (admin)
# ---------------------------------------------------------------------------


async def _task_action(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    usage: str,
    action: Callable[[BoardService, list[str]], Coroutine[Any, Any, Any]],
    done: Callable[[Any], str],
) -> None:
    args = context.args or []
    if not args:
        await update.message.reply_text(usage)
        return
    try:
        result = await _run(update, context, action(_service(context), args))
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Task action error: %s", exc)
        await update.message.reply_text("Something went wrong. Please try again.")
        return
    if result is not None:
        await update.message.reply_text(done(result), parse_mode="Markdown")


@admin_only
async def cmd_edit(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <task> <HH:MM> — change a task's due time."""

    async def action(service: BoardService, args: list[str]):
        if len(args) < 2:
            raise ValidationError("Usage: /edit <task_id> <HH:MM>")
        return await service.edit_task(args[0], due_time=args[1])

    await _task_action(
        update, context, "Usage: /edit <task_id> <HH:MM>", action,
        lambda t: f"✏️ *{_md(t.text)}* now due at {t.due_time}",
    )


@admin_only
async def cmd_complete(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /complete <task> — toggle completion and points."""

    async def action(service: BoardService, args: list[str]):
        return await service.toggle_completion(args[0])

    await _task_action(
        update, context, "Usage: /complete <task_id>", action,
        lambda t: f"✅ *{_md(t.text)}* marked {'complete' if t.completed else 'not complete'}",
    )


@admin_only
async def cmd_delete(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <task> — ask for confirmation first."""
    if not context.args:
        await update.message.reply_text("Usage: /delete <task_id>")
        return
    task_id = context.args[0]
    task = _service(context).store.find(task_id)
    if task is None:
        await update.message.reply_text(f"Task {task_id} not found. Load the board first with /admin.")
        return
    keyboard = [[
        InlineKeyboardButton("Delete", callback_data=f"deltask:{task_id}"),
        InlineKeyboardButton("Cancel", callback_data="deltask:cancel"),
    ]]
    await update.message.reply_text(
        f"Are you sure you want to delete '{task.text}'?",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_delete_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle the confirmation buttons of /delete."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in _admins():
        return

    task_id = query.data.split(":", 1)[1]
    if task_id == "cancel":
        await query.edit_message_text("Deletion cancelled.")
        return

    try:
        task = await _service(context).delete_task(task_id)
        await query.edit_message_text(f"🗑️ Task '{task.text}' deleted.")
    except ValidationError as exc:
        await query.edit_message_text(str(exc))
    except Exception as exc:
        logger.error("delete task callback error: %s", exc)
        await query.edit_message_text("Something went wrong. Please try again.")


# ---------------------------------------------------------------------------
# /assign conversation (admin)
# ---------------------------------------------------------------------------

(
    ASSIGN_CHORE,
    ASSIGN_KID,
    ASSIGN_DATE,
    ASSIGN_TIME,
    ASSIGN_REPEAT,
    ASSIGN_COUNT,
) = range(6)

_REPEAT_CHOICES = ("no", "daily", "weekly", "monthly")


@admin_only
async def cmd_assign(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /assign — start the assignment conversation."""
    try:
        chores = await _service(context).list_chores()
    except Exception as exc:
        logger.error("/assign chores error: %s", exc)
        await update.message.reply_text("Couldn't load chores. Please try again.")
        return ConversationHandler.END

    if not chores:
        await update.message.reply_text("No chores yet. Add one with /addchore.")
        return ConversationHandler.END

    lines = ["Which chore? Reply with its id:\n"]
    lines += [f"`{c.id}` — {_md(c.description)} ({c.frequency})" for c in chores]
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")
    return ASSIGN_CHORE


async def assign_chore_id(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the chore id, ask for the kid."""
    try:
        chore_id = int(update.message.text.strip())
    except ValueError:
        await update.message.reply_text("Please reply with a chore id (a number).")
        return ASSIGN_CHORE
    chore = next((c for c in await _service(context).list_chores() if c.id == chore_id), None)
    if chore is None:
        await update.message.reply_text("No chore with that id. Try again.")
        return ASSIGN_CHORE
    context.user_data["assign_chore"] = chore

    kids = await _service(context).list_kids()
    if not kids:
        await update.message.reply_text("No kids on the board yet.")
        _clear_assign_data(context)
        return ConversationHandler.END
    lines = ["Which kid? Reply with their id:\n"]
    lines += [f"`{k.id}` — {_md(k.full_name)}" for k in kids]
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")
    return ASSIGN_KID


async def assign_kid_id(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the kid id, ask for the start date."""
    try:
        context.user_data["assign_kid"] = int(update.message.text.strip())
    except ValueError:
        await update.message.reply_text("Please reply with a kid id (a number).")
        return ASSIGN_KID
    selected: date = context.chat_data.get("selected", _now().date())
    keyboard = ReplyKeyboardMarkup(
        [["today", selected.isoformat()]], one_time_keyboard=True, resize_keyboard=True,
    )
    await update.message.reply_text("Starting on which date? (YYYY-MM-DD)", reply_markup=keyboard)
    return ASSIGN_DATE


async def assign_date(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the start date, ask for the due time."""
    day = _parse_day(update.message.text, _now().date())
    if day is None:
        await update.message.reply_text("Please enter a date as YYYY-MM-DD.")
        return ASSIGN_DATE
    context.user_data["assign_date"] = day
    keyboard = ReplyKeyboardMarkup(
        [[settings.DEFAULT_DUE_TIME, "08:00", "17:00"]], one_time_keyboard=True, resize_keyboard=True,
    )
    await update.message.reply_text("Due at what time? (HH:MM)", reply_markup=keyboard)
    return ASSIGN_TIME


async def assign_time(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the due time; ask how to repeat or how many times."""
    text = update.message.text.strip()
    try:
        datetime.strptime(text, "%H:%M")
    except ValueError:
        await update.message.reply_text("Please enter a time as HH:MM (e.g. 17:30).")
        return ASSIGN_TIME
    context.user_data["assign_time"] = text

    chore = context.user_data["assign_chore"]
    if chore.frequency == "one-time":
        keyboard = ReplyKeyboardMarkup([list(_REPEAT_CHOICES)], one_time_keyboard=True, resize_keyboard=True)
        await update.message.reply_text("Repeat this chore? (no/daily/weekly/monthly)", reply_markup=keyboard)
        return ASSIGN_REPEAT

    return await _ask_count(update, chore.frequency)


async def assign_repeat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the repeat choice for a one-time chore."""
    choice = update.message.text.strip().lower()
    if choice not in _REPEAT_CHOICES:
        await update.message.reply_text("Please answer no, daily, weekly or monthly.")
        return ASSIGN_REPEAT
    if choice == "no":
        context.user_data["assign_count"] = 1
        return await _finish_assign(update, context)

    context.user_data["assign_repeat"] = choice
    return await _ask_count(update, choice)


async def _ask_count(update: Update, frequency: str) -> int:
    keyboard = ReplyKeyboardMarkup([["1", "4", "8", "12"]], one_time_keyboard=True, resize_keyboard=True)
    await update.message.reply_text(
        f"This chore repeats {frequency}. How many times? (1-{settings.MAX_OCCURRENCES})",
        reply_markup=keyboard,
    )
    return ASSIGN_COUNT


async def assign_count(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive the occurrence count and assign."""
    try:
        context.user_data["assign_count"] = max(1, int(update.message.text.strip()))
    except ValueError:
        await update.message.reply_text("Please enter a number.")
        return ASSIGN_COUNT
    return await _finish_assign(update, context)


async def _finish_assign(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    data = context.user_data
    service = _service(context)
    try:
        result = await _run(update, context, service.assign_chore(
            kid_id=data["assign_kid"],
            chore_id=data["assign_chore"].id,
            start_date=data["assign_date"],
            due_time=data["assign_time"],
            occurrences=data["assign_count"],
            recurrence_type=data.get("assign_repeat", ""),
        ))
    except (ValidationError, DuplicateAssignmentError) as exc:
        await update.message.reply_text(str(exc), reply_markup=ReplyKeyboardRemove())
        _clear_assign_data(context)
        return ConversationHandler.END
    except Exception as exc:
        logger.error("Assignment error: %s", exc)
        await update.message.reply_text(
            f"Failed to assign chore: {exc}", reply_markup=ReplyKeyboardRemove(),
        )
        _clear_assign_data(context)
        return ConversationHandler.END

    _clear_assign_data(context)
    if result is None:
        return ConversationHandler.END

    lines = ["✅ Chore assigned successfully!"]
    lines += [f"• {t.due_date.isoformat()} {t.due_time} — {t.text}" for t in result.tasks]
    if result.skipped_dates:
        skipped = ", ".join(d.isoformat() for d in result.skipped_dates)
        lines.append(f"Already assigned on: {skipped}")
    if result.reminders_scheduled:
        lines.append(f"🔔 {result.reminders_scheduled} reminder(s) scheduled")
    await update.message.reply_text("\n".join(lines), reply_markup=ReplyKeyboardRemove())
    return ConversationHandler.END


async def assign_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /cancel during /assign, including an assignment still being saved."""
    registry: InflightRegistry = context.bot_data["inflight"]
    registry.cancel_all(update.effective_chat.id)
    _clear_assign_data(context)
    await update.message.reply_text("Assignment cancelled.", reply_markup=ReplyKeyboardRemove())
    return ConversationHandler.END


def _clear_assign_data(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remove all assignment-related keys from user_data."""
    for k in (
        "assign_chore", "assign_kid", "assign_date", "assign_time", "assign_repeat", "assign_count",
    ):
        context.user_data.pop(k, None)


# ---------------------------------------------------------------------------
# Chore commands (admin)
# ---------------------------------------------------------------------------


@admin_only
async def cmd_chores(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /chores — list all chores, newest first."""
    try:
        chores = await _service(context).list_chores()
    except Exception as exc:
        logger.error("/chores error: %s", exc)
        await update.message.reply_text("Couldn't load chores. Please try again.")
        return

    if not chores:
        await update.message.reply_text("No chores found. Add some with /addchore!")
        return

    lines = ["*All chores:*\n"]
    for c in chores:
        created = c.created_at[:10] if c.created_at else "N/A"
        lines.append(f"`{c.id}` — {_md(c.description)} ({c.frequency}, created {created})")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@admin_only
async def cmd_addchore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addchore <frequency> <description>."""
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text(
            "Usage: /addchore <one-time|daily|weekly|monthly> <description>"
        )
        return
    try:
        chore = await _service(context).add_chore(" ".join(args[1:]), args[0])
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Error adding chore: %s", exc)
        await update.message.reply_text(f"Error adding chore: {exc}")
        return
    await update.message.reply_text(
        f"✅ Chore added successfully! `{chore.id}` — {_md(chore.description)} ({chore.frequency})",
        parse_mode="Markdown",
    )


@admin_only
async def cmd_editchore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /editchore <id> <frequency> <description>."""
    args = context.args or []
    try:
        chore_id = int(args[0])
    except (IndexError, ValueError):
        chore_id = None
    if chore_id is None or len(args) < 3:
        await update.message.reply_text(
            "Usage: /editchore <chore_id> <one-time|daily|weekly|monthly> <description>"
        )
        return
    try:
        chore = await _service(context).update_chore(chore_id, " ".join(args[2:]), args[1])
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Error updating chore: %s", exc)
        await update.message.reply_text("Couldn't update the chore. Please try again.")
        return
    await update.message.reply_text(
        f"Chore updated successfully! `{chore.id}` — {_md(chore.description)} ({chore.frequency})",
        parse_mode="Markdown",
    )


@admin_only
async def cmd_deletechore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deletechore <id>."""
    try:
        chore_id = int(context.args[0])
    except (IndexError, TypeError, ValueError):
        await update.message.reply_text("Usage: /deletechore <chore_id>\nUse /chores to see IDs.")
        return
    try:
        deleted = await _service(context).delete_chore(chore_id)
    except Exception as exc:
        logger.error("Error deleting chore: %s", exc)
        await update.message.reply_text("Couldn't delete the chore. Please try again.")
        return
    if deleted:
        await update.message.reply_text("Chore deleted successfully!")
    else:
        await update.message.reply_text(f"Chore {chore_id} not found.")


# ---------------------------------------------------------------------------
# Kid profile
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_kid(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /kid [id] — show a kid's points and chores."""
    args = context.args or []
    try:
        kid_id = int(args[0]) if args else context.chat_data.get("kid_id", 1)
    except ValueError:
        await update.message.reply_text("Usage: /kid <kid_id>")
        return

    try:
        profile = await _service(context).kid_profile(kid_id)
    except Exception as exc:
        logger.error("Error fetching kid profile: %s", exc)
        await update.message.reply_text("Couldn't load the profile. Please try again.")
        return
    if profile is None:
        await update.message.reply_text("Kid not found")
        return

    context.chat_data["kid_id"] = kid_id
    kid = profile.kid
    lines = [f"*{_md(kid.full_name)}*", f"Points: *{kid.points}*"]
    if kid.avatar_url:
        lines.append(f"Avatar: {_md(kid.avatar_url)}")
    lines.append("\n*My chores:*")
    if not profile.chores:
        lines.append("No chores assigned yet.")
    for c in profile.chores:
        box = "☑" if c.completed else "☐"
        lines.append(f"{box} `{c.kid_chore_id}` {_md(c.description)} (assigned {c.assigned_date.isoformat()})")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_kiddone(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /kiddone <kid_chore_id> — toggle a chore on the open profile."""
    kid_id = context.chat_data.get("kid_id")
    if kid_id is None:
        await update.message.reply_text("Open a profile first with /kid <id>.")
        return
    try:
        kid_chore_id = int(context.args[0])
    except (IndexError, TypeError, ValueError):
        await update.message.reply_text("Usage: /kiddone <chore_id>")
        return

    try:
        chore = await _run(update, context, _service(context).toggle_kid_chore(kid_id, kid_chore_id))
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Error toggling chore completion: %s", exc)
        await update.message.reply_text("Couldn't update the chore. Please try again.")
        return
    if chore is not None:
        state = "done" if chore.completed else "not done"
        await update.message.reply_text(f"'{chore.description}' marked {state}.")


@admin_only
async def cmd_avatar(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /avatar <kid_id> <url>."""
    args = context.args or []
    try:
        kid_id = int(args[0])
        url = args[1]
    except (IndexError, ValueError):
        await update.message.reply_text("Usage: /avatar <kid_id> <image_url>")
        return
    try:
        await _service(context).set_avatar(kid_id, url)
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except Exception as exc:
        logger.error("Error updating avatar: %s", exc)
        await update.message.reply_text("Error updating avatar")
        return
    await update.message.reply_text("Avatar updated successfully!")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    storage: StoragePort | None = None,
    reminder_port: ReminderPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        storage: Storage port implementation. Defaults to BoardDB.
        reminder_port: Reminder delivery. Defaults to JobQueueReminders on
                       the application's job queue.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).concurrent_updates(True).build()

    if storage is None:
        from choreboard.data.db import BoardDB
        storage = BoardDB()

    if reminder_port is None:
        from choreboard.adapters.job_queue_reminders import JobQueueReminders
        from choreboard.adapters.sms_relay_client import SmsRelayClient
        from choreboard.adapters.telegram_notifier import TelegramNotifier

        reminder_port = JobQueueReminders(
            app.job_queue,
            TelegramNotifier(app.bot),
            recipients=sorted(_board_users()),
            sms=SmsRelayClient(),
            timezone=settings.TIMEZONE,
        )

    reminders.request_permission(reminder_port)

    # Store the board in bot_data for handler access
    app.bot_data["service"] = BoardService(storage, TaskStore(), reminder_port, now_fn=_now)
    app.bot_data["inflight"] = InflightRegistry()

    # /assign conversation handler
    _text = filters.TEXT & ~filters.COMMAND
    assign_conv = ConversationHandler(
        entry_points=[CommandHandler("assign", cmd_assign)],
        states={
            ASSIGN_CHORE: [MessageHandler(_text, assign_chore_id)],
            ASSIGN_KID: [MessageHandler(_text, assign_kid_id)],
            ASSIGN_DATE: [MessageHandler(_text, assign_date)],
            ASSIGN_TIME: [MessageHandler(_text, assign_time)],
            ASSIGN_REPEAT: [MessageHandler(_text, assign_repeat)],
            ASSIGN_COUNT: [MessageHandler(_text, assign_count)],
        },
        fallbacks=[CommandHandler("cancel", assign_cancel)],
    )
    app.add_handler(assign_conv)

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("admin", cmd_admin))
    app.add_handler(CommandHandler("user", cmd_user))
    app.add_handler(CommandHandler("day", cmd_day))
    app.add_handler(CommandHandler("tick", cmd_tick))
    app.add_handler(CommandHandler("edit", cmd_edit))
    app.add_handler(CommandHandler("complete", cmd_complete))
    app.add_handler(CommandHandler("delete", cmd_delete))
    app.add_handler(CommandHandler("chores", cmd_chores))
    app.add_handler(CommandHandler("addchore", cmd_addchore))
    app.add_handler(CommandHandler("editchore", cmd_editchore))
    app.add_handler(CommandHandler("deletechore", cmd_deletechore))
    app.add_handler(CommandHandler("kid", cmd_kid))
    app.add_handler(CommandHandler("kiddone", cmd_kiddone))
    app.add_handler(CommandHandler("avatar", cmd_avatar))
    app.add_handler(CommandHandler("cancel", cmd_cancel_ops))
    app.add_handler(CallbackQueryHandler(_handle_delete_callback, pattern=r"^deltask:"))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not settings.TELEGRAM_BOT_TOKEN or settings.TELEGRAM_BOT_TOKEN.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting Chore Board bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
