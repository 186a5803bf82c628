# src/aide_client/cli/commands.py

from __future__ import annotations

import asyncio
import getpass
import logging
from collections.abc import Awaitable, Callable

from ..core.events import (
    AuthMode,
    CreateExpense,
    CreateTask,
    DeleteTask,
    Login,
    Logout,
    Navigate,
    RefreshExpenses,
    RefreshTasks,
    Register,
    RequestAnalysis,
    RequestSuggestion,
    RetryChat,
    Section,
    SendChat,
    SwitchAuthMode,
    ToggleTask,
)
from ..core.state import AppState
from ..dispatcher import Dispatcher

CommandHandler = Callable[[AppState, Dispatcher, list[str]], Awaitable[str]]

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

    async def handle(self, state: AppState, dispatcher: Dispatcher, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string ("" when the renderer already showed the outcome)
        or None if not a command.
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

        return await handler(state, dispatcher, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve_task_id(state: AppState, ref: str) -> str:
    """Accept either a task id or its 1-based position in the last listing."""
    tasks = state.tasks.tasks or []
    if ref.isdigit():
        n = int(ref)
        if 1 <= n <= len(tasks):
            return tasks[n - 1].id
    return ref


async def _read_password() -> str:
    return await asyncio.to_thread(getpass.getpass, "Password: ")


async def cmd_help(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    user = state.session.user
    tasks = state.tasks.tasks
    snapshot = state.expenses.snapshot
    who = f" ({user.email})" if user else ""
    lines = [
        "Status:",
        f"  Server: {getattr(state.settings, 'api_base_url', '?')}",
        f"  Session: {state.session.state.value}{who}",
        f"  View: {state.router.view.value} / {state.router.section.value}",
        f"  Tasks: {'not loaded' if tasks is None else len(tasks)}",
        f"  Expenses: {'not loaded' if snapshot is None else len(snapshot.expenses)}",
        f"  Chat messages: {len(state.assistant.transcript)}",
    ]
    return "\n".join(lines)


async def _auth(
        state: AppState,
        dispatcher: Dispatcher,
        args: list[str],
        mode: AuthMode,
) -> str:
    if not args:
        return f"Usage: /{mode.value} <email> [password]"
    await dispatcher.dispatch(SwitchAuthMode(mode))
    email = args[0]
    password = args[1] if len(args) > 1 else await _read_password()
    intent = Login(email, password) if mode is AuthMode.LOGIN else Register(email, password)
    await dispatcher.dispatch(intent)
    return ""


async def cmd_login(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    """
    /login <email>             -> asks for the password
    /login <email> <password>  -> non-interactive
    """
    if state.session.is_authenticated:
        return "Already signed in. Use /logout first."
    return await _auth(state, dispatcher, args, AuthMode.LOGIN)


async def cmd_register(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    return await _auth(state, dispatcher, args, AuthMode.REGISTER)


async def cmd_logout(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(Logout())
    return ""


async def cmd_show(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    names = ", ".join(s.value for s in Section)
    if not args:
        return f"Usage: /show <{names}>"
    try:
        section = Section(args[0].lower())
    except ValueError:
        return f"Unknown section: {args[0]}. Choose one of: {names}."
    if not state.router.navigate(section):
        return "Sign in first."
    return ""


async def cmd_tasks(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(Navigate(Section.TASKS))
    await dispatcher.dispatch(RefreshTasks())
    return ""


async def cmd_add(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(CreateTask(" ".join(args)))
    return ""


async def cmd_done(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task # or id>"
    await dispatcher.dispatch(ToggleTask(_resolve_task_id(state, args[0]), True))
    return ""


async def cmd_undo(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    if not args:
        return "Usage: /undo <task # or id>"
    await dispatcher.dispatch(ToggleTask(_resolve_task_id(state, args[0]), False))
    return ""


async def cmd_rm(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task # or id>"
    await dispatcher.dispatch(DeleteTask(_resolve_task_id(state, args[0])))
    return ""


async def cmd_expenses(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(Navigate(Section.EXPENSES))
    await dispatcher.dispatch(RefreshExpenses())
    return ""


async def cmd_spend(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    """
    /spend <category> <amount>   (category may contain spaces; the amount is the last word)
    """
    if len(args) < 2:
        return "Usage: /spend <category> <amount>"
    await dispatcher.dispatch(CreateExpense(" ".join(args[:-1]), args[-1]))
    return ""


async def cmd_suggest(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(RequestSuggestion())
    return ""


async def cmd_analyze(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(RequestAnalysis())
    return ""


async def cmd_chat(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(Navigate(Section.ASSISTANT))
    await dispatcher.dispatch(SendChat(" ".join(args)))
    return ""


async def cmd_retry(state: AppState, dispatcher: Dispatcher, args: list[str]) -> str:
    await dispatcher.dispatch(RetryChat())
    return ""


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show session, view and cache status.")
registry.register("login", cmd_login, help_text="Sign in: /login <email> [password].")
registry.register("register", cmd_register, help_text="Create an account: /register <email> [password].")
registry.register("logout", cmd_logout, help_text="Sign out on this machine.")
registry.register("show", cmd_show, help_text="Switch section: /show tasks | expenses | assistant.")
registry.register("tasks", cmd_tasks, help_text="Reload and show tasks.")
registry.register("add", cmd_add, help_text="Add a task: /add <title>.")
registry.register("done", cmd_done, help_text="Mark a task complete: /done <#|id>.")
registry.register("undo", cmd_undo, help_text="Mark a task not complete: /undo <#|id>.")
registry.register("rm", cmd_rm, help_text="Delete a task (asks first): /rm <#|id>.", aliases=["delete"])
registry.register("expenses", cmd_expenses, help_text="Reload and show expenses + summary.")
registry.register("spend", cmd_spend, help_text="Record an expense: /spend <category> <amount>.")
registry.register("suggest", cmd_suggest, help_text="Ask the AI for a suggestion.")
registry.register("analyze", cmd_analyze, help_text="Ask the AI to analyze your budget.")
registry.register("chat", cmd_chat, help_text="Send a chat message (plain text works too).")
registry.register("retry", cmd_retry, help_text="Re-send the last chat message that failed.")
