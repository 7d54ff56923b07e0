# src/pomotodo/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.state import AppState
from ..tasks import task_api

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%s", name, args)
        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    snap = state.timer.snapshot()
    tracked = state.tracked
    task_line = f"[{tracked.id}] {tracked.name}" if tracked else "none"
    return (
        "Status:\n"
        f"  Database: {state.gateway.display_name} ({state.gateway.name} v{state.gateway.version})\n"
        f"  Tracking: {task_line}\n"
        f"  Timer: {snap.state.value} {snap.remaining} ({snap.percent:.0f}%)"
    )


async def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    await state.repository.refresh()
    return ""


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = await task_api.add_task(state, " ".join(args))
    if task_id is None:
        return ""
    return f"Added task {task_id}."


async def cmd_track(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /track <id>"
    await task_api.track_task(state, task_id)
    return ""


async def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    snap = task_api.start_pomodoro(state)
    if snap is None:
        return ""
    return f"Pomodoro started: {snap.remaining} to go."


async def cmd_stop(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not task_api.stop_pomodoro(state):
        return "No pomodoro is running."
    return ""


async def cmd_pomodoro(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    snap = task_api.toggle_pomodoro(state)
    if snap is None:
        return ""
    return f"Timer {snap.state.value}."


async def cmd_interrupt(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    count = await task_api.add_interruption(state)
    if count is None:
        return ""
    return f"Interruption recorded ({count} total)."


async def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /delete <id>"
    if state.timer.is_running and state.timer.task_id == task_id:
        if emit:
            emit("Stopping the pomodoro of the task being deleted...")
        task_api.stop_pomodoro(state)
    if not await task_api.delete_task(state, task_id):
        return ""
    return f"Deleted task {task_id}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show timer and tracked task.")
registry.register("list", cmd_list, help_text="Show all tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <name> (plain text works too).")
registry.register("track", cmd_track, help_text="Show a task and make it current: /track <id>.")
registry.register("start", cmd_start, help_text="Start a pomodoro for the current task.")
registry.register("stop", cmd_stop, help_text="Stop the running pomodoro (not counted).")
registry.register("pomodoro", cmd_pomodoro, help_text="Start/stop toggle.", aliases=["p"])
registry.register("interrupt", cmd_interrupt, help_text="Record an interruption on the current task.", aliases=["i"])
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
