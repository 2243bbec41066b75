# src/taskboard/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..tasks.activity import PERIODS, cumulative, period_to_days
from ..tasks.task_api import (
    load_board,
    load_stats,
    set_filtered_completed,
    toggle_filtered,
    toggle_task_completed,
    toggle_task_important,
)
from ..tasks.task_models import ChangeType, TaskNotFoundError
from ..users.user_models import UserNotFoundError
from ..views.formatting import format_datetime, format_duration, format_relative_time
from ..views.stats import StatsColumn
from ..views.task_view import (
    SORT_LABELS,
    DurationFilter,
    HistoryFilter,
    ImportanceFilter,
    SortKey,
    parse_user_ids,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (TaskNotFoundError, UserNotFoundError) as e:
            return str(e)
        except ValueError as e:
            logger.debug("Bad arguments for /%s: %s", name, e)
            return f"Invalid arguments for /{name}: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering helpers ----


def _render_board(state: AppState) -> str:
    snap = load_board(state)
    board = state.board
    q = board.query

    shown = []
    if q.status.show_completed:
        shown.append("completed")
    if q.status.show_incomplete:
        shown.append("incomplete")

    header = (
        f"Tasks {len(snap.visible)}/{snap.total} | sort: {SORT_LABELS[q.sort]} | "
        f"show: {'+'.join(shown)} | duration: {q.duration.value} | importance: {q.importance.value}"
    )
    if board.search:
        header += f" | search: {board.search!r}"
    if q.user_ids:
        header += f" | users: {','.join(str(u) for u in sorted(q.user_ids))}"

    if not snap.visible:
        return header + "\n  (no tasks)"

    lines = [header]
    for item in snap.visible:
        t = item.task
        mark = "x" if t.is_completed else " "
        star = "*" if t.is_important else " "
        owner = item.user_name or "-"
        lines.append(
            f"  [{mark}]{star} #{t.id} {t.title} "
            f"({format_duration(t.duration)}, {item.history_count} change"
            f"{'' if item.history_count == 1 else 's'}, updated {format_relative_time(t.updated_at)}, {owner})"
        )
    if snap.has_more:
        lines.append(f"  ... {snap.total - len(snap.visible)} more, use /more")
    return "\n".join(lines)


def _id_arg(args: list[str], usage: str) -> int:
    if not args:
        raise ValueError(usage)
    return int(args[0].lstrip("#"))


# ---- list view ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return _render_board(state)


def cmd_more(state: AppState, args: list[str]) -> str:
    snap = load_board(state)
    if not state.board.window.load_more(snap.total):
        return "No more tasks."
    return _render_board(state)


def cmd_search(state: AppState, args: list[str]) -> str:
    """
    /search text  -> filter by title/description
    /search       -> clear
    """
    state.board.set_search(" ".join(args))
    return _render_board(state)


def cmd_show(state: AppState, args: list[str]) -> str:
    """/show completed | /show incomplete -> toggle that status on/off"""
    if not args or args[0].lower() not in ("completed", "incomplete"):
        return "Usage: /show completed | /show incomplete"
    if args[0].lower() == "completed":
        ok = state.board.toggle_show_completed()
    else:
        ok = state.board.toggle_show_incomplete()
    if not ok:
        return "At least one of completed/incomplete must stay visible."
    return _render_board(state)


def cmd_duration(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /duration " + " | ".join(m.value for m in DurationFilter)
    state.board.set_duration(args[0].lower())
    return _render_board(state)


def cmd_importance(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /importance " + " | ".join(m.value for m in ImportanceFilter)
    state.board.set_importance(args[0].lower())
    return _render_board(state)


def cmd_sort(state: AppState, args: list[str]) -> str:
    if not args:
        return "Sort options:\n" + "\n".join(f"  {k.value} - {label}" for k, label in SORT_LABELS.items())
    state.board.set_sort(args[0].lower())
    return _render_board(state)


def cmd_users(state: AppState, args: list[str]) -> str:
    """
    /users            -> list users
    /users 1 2        -> show only these users' tasks
    /users all        -> every user
    """
    if not args:
        users = state.users.get_all_users()
        if not users:
            return "No users."
        selected = state.board.query.user_ids
        lines = ["Users:"]
        for u in users:
            sel = ">" if u.id in selected else " "
            lines.append(f" {sel} #{u.id} {u.name} (color: {u.color or '-'}, avatar: {'yes' if u.image else 'no'})")
        return "\n".join(lines)

    if args[0].lower() == "all":
        state.board.set_users(frozenset())
    else:
        state.board.set_users(parse_user_ids(args))
    return _render_board(state)


# ---- mutations ----


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add [--minutes N] [--user ID] [--important] title words...
    """
    duration: int | None = None
    user_id: int | None = None
    important = False
    words: list[str] = []

    it = iter(args)
    for a in it:
        if a == "--minutes":
            duration = int(next(it, ""))
        elif a == "--user":
            user_id = int(next(it, ""))
        elif a == "--important":
            important = True
        else:
            words.append(a)

    if user_id is not None and state.users.get_user(user_id) is None:
        raise UserNotFoundError(user_id)

    task_id = state.tasks.add_task(
        title=" ".join(words),
        duration=duration,
        user_id=user_id,
        is_important=important,
    )
    return f"Task #{task_id} added."


def cmd_done(state: AppState, args: list[str]) -> str:
    task = toggle_task_completed(state, _id_arg(args, "Usage: /done <task id>"))
    return f"Task #{task.id} marked as {'complete' if task.is_completed else 'incomplete'}."


def cmd_important(state: AppState, args: list[str]) -> str:
    task = toggle_task_important(state, _id_arg(args, "Usage: /important <task id>"))
    return f"Task #{task.id} marked as {'important' if task.is_important else 'not important'}."


def cmd_done_all(state: AppState, args: list[str]) -> str:
    """/done-all on|off -> set completion on every filtered task"""
    if not args or args[0].lower() not in ("on", "off"):
        return "Usage: /done-all on | /done-all off"
    changed = set_filtered_completed(state, args[0].lower() == "on")
    return f"{changed} task(s) changed."


def cmd_toggle_all(state: AppState, args: list[str]) -> str:
    flipped = toggle_filtered(state)
    return f"{flipped} task(s) toggled."


# ---- history / stats ----


def cmd_history(state: AppState, args: list[str]) -> str:
    """
    /history <id> [completed] [incomplete] [important] [not-important]
    """
    task_id = _id_arg(args, "Usage: /history <task id> [completed|incomplete|important|not-important]")
    task = state.tasks.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)

    chips = {a.lower() for a in args[1:]}
    unknown = chips - {"completed", "incomplete", "important", "not-important"}
    if unknown:
        raise ValueError(f"unknown filter(s): {', '.join(sorted(unknown))}")
    flt = HistoryFilter(
        show_completed="completed" in chips,
        show_incomplete="incomplete" in chips,
        show_important="important" in chips,
        show_not_important="not-important" in chips,
    )

    history = state.tasks.get_task_history(task_id)
    if not history:
        return f"#{task.id} {task.title}: no status changes recorded yet."
    entries = flt.apply(history)
    if not entries:
        return f"#{task.id} {task.title}: no matching entries."

    lines = [f"History of #{task.id} {task.title}:"]
    for e in entries:
        if e.change_type is ChangeType.IMPORTANCE:
            label = "Important" if e.changed_to else "Not important"
        else:
            label = "Completed" if e.changed_to else "Incomplete"
        lines.append(f"  {format_datetime(e.changed_at)}  {label}")
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str]) -> str:
    """
    /stats          -> per-user statistics
    /stats <column> -> sort by column (again to reverse)
    """
    if args:
        state.board.stats_sort.click(args[0].lower())

    rows, tot = load_stats(state)
    if not rows:
        return "No users."

    sort = state.board.stats_sort
    lines = [
        f"Statistics (sort: {sort.column.value} {sort.direction.value})",
        f"  {'user':<16} {'done':>5} {'open':>5} {'imp':>5} {'chg':>5} {'idle':>5} {'short':>5} {'long':>5}  last active",
    ]
    for r in rows:
        last = format_relative_time(r.last_active) if r.last_active else "Never"
        lines.append(
            f"  {r.user.name[:16]:<16} {r.completed:>5} {r.incomplete:>5} {r.important:>5} "
            f"{r.changes:>5} {r.inactive:>5} {r.short:>5} {r.long:>5}  {last}"
        )
    lines.append(
        f"  {'TOTAL':<16} {tot.completed:>5} {tot.incomplete:>5} {tot.important:>5} "
        f"{tot.changes:>5} {tot.inactive:>5} {tot.short:>5} {tot.long:>5}"
    )
    return "\n".join(lines)


def cmd_changes(state: AppState, args: list[str]) -> str:
    """
    /changes [completed] [incomplete] [important] [not-important]
    """
    chips = {a.lower() for a in args}
    limit = int(getattr(state.settings, "latest_changes_limit", 15))
    page = state.tasks.get_latest_changes(
        limit=limit,
        user_ids=state.board.query.user_ids or None,
        show_completed="completed" in chips,
        show_incomplete="incomplete" in chips,
        show_important="important" in chips,
        show_not_important="not-important" in chips,
    )
    if not page.items:
        return "No changes recorded."
    lines = ["Latest changes:"]
    for item in page.items:
        e = item.entry
        if e.change_type is ChangeType.IMPORTANCE:
            label = "important" if e.changed_to else "not important"
        else:
            label = "completed" if e.changed_to else "incomplete"
        lines.append(f"  {format_relative_time(e.changed_at):>10}  #{e.task_id} {item.task_title} -> {label}")
    if page.has_more:
        lines.append("  ...")
    return "\n".join(lines)


def cmd_activity(state: AppState, args: list[str]) -> str:
    """
    /activity ["1 month"] [delta|total]
    """
    mode = "delta"
    words = []
    for a in args:
        if a.lower() in ("delta", "total"):
            mode = a.lower()
        else:
            words.append(a)
    period = " ".join(words) or "5 days"
    if period.lower() not in PERIODS:
        return "Periods: " + ", ".join(PERIODS)

    buckets = state.tasks.get_changes_over_time(
        days=period_to_days(period),
        user_ids=state.board.query.user_ids or None,
    )
    if mode == "total":
        buckets = cumulative(buckets)

    lines = [f"Activity over {period} ({mode}):"]
    for b in buckets:
        lines.append(
            f"  {format_datetime(b.start)[:10]}  total={b.total:<4} done={b.completed:<4} "
            f"undone={b.incomplete:<4} imp={b.important:<4} unimp={b.not_important}"
        )
    return "\n".join(lines)


# ---- users ----


def cmd_adduser(state: AppState, args: list[str]) -> str:
    """/adduser name [color]"""
    if not args:
        return "Usage: /adduser <name> [color]"
    user_id = state.users.add_user(name=args[0], color=args[1] if len(args) > 1 else None)
    return f"User #{user_id} added."


def cmd_deluser(state: AppState, args: list[str]) -> str:
    user_id = _id_arg(args, "Usage: /deluser <user id>")
    detached = state.users.delete_user(user_id)
    state.board.set_users(state.board.query.user_ids - {user_id})
    return f"User #{user_id} deleted; {detached} task(s) now have no owner."


def cmd_color(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /color <user id> <color>"
    state.users.update_user_color(int(args[0]), args[1])
    return f"Color of user #{args[0]} set to {args[1]}."


def cmd_avatar(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/avatar <user id> <file with base64 image>"""
    if len(args) < 2:
        return "Usage: /avatar <user id> <path to base64 file>"
    path = Path(args[1]).expanduser()
    if not path.is_file():
        return f"File not found: {path}"
    if emit:
        emit(f"Reading {path}...")
    state.users.update_user_image(int(args[0]), path.read_text("utf-8").strip())
    return f"Avatar of user #{args[0]} updated."


def cmd_count(state: AppState, args: list[str]) -> str:
    return f"{state.tasks.completed_count()} of {state.tasks.count_tasks()} task(s) completed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"])
registry.register("more", cmd_more, help_text="Load the next page of tasks.")
registry.register("search", cmd_search, help_text="Search title/description: /search text (empty clears).")
registry.register("show", cmd_show, help_text="Toggle statuses: /show completed | /show incomplete.")
registry.register("duration", cmd_duration, help_text="Duration filter: /duration all | quick | long.")
registry.register("importance", cmd_importance, help_text="Importance filter: /importance all | important | not-important.")
registry.register("sort", cmd_sort, help_text="Sort: /sort " + " | ".join(k.value for k in SortKey) + ".")
registry.register("users", cmd_users, help_text="List users or filter: /users | /users 1 2 | /users all.")
registry.register("add", cmd_add, help_text="Add a task: /add [--minutes N] [--user ID] [--important] title.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("important", cmd_important, help_text="Toggle importance: /important <id>.")
registry.register("done-all", cmd_done_all, help_text="Set completion on all filtered tasks: /done-all on | off.")
registry.register("toggle-all", cmd_toggle_all, help_text="Toggle completion of all filtered tasks.")
registry.register("history", cmd_history, help_text="Task history: /history <id> [completed|incomplete|important|not-important].")
registry.register(
    "stats", cmd_stats, help_text="Per-user statistics: /stats [" + "|".join(c.value for c in StatsColumn) + "]."
)
registry.register("changes", cmd_changes, help_text="Latest changes across tasks.")
registry.register("activity", cmd_activity, help_text="Changes over time: /activity [\"1 month\"] [delta|total].")
registry.register("count", cmd_count, help_text="Completed task count.")
registry.register("adduser", cmd_adduser, help_text="Add a user: /adduser <name> [color].")
registry.register("deluser", cmd_deluser, help_text="Delete a user (its tasks keep no owner).")
registry.register("color", cmd_color, help_text="Set a user's color: /color <user id> <color>.")
registry.register("avatar", cmd_avatar, help_text="Set a user's avatar from a base64 file.")
