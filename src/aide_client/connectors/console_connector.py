# src/aide_client/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.events import (
    ErrorRaised,
    ExpensesChanged,
    ModalShown,
    Notice,
    Notification,
    Section,
    SendChat,
    SessionChanged,
    TasksChanged,
    TranscriptChanged,
    View,
    ViewChanged,
)
from ..core.models import (
    AuthState,
    ChatMessage,
    ChatRole,
    DeliveryStatus,
    ExpenseSnapshot,
    Task,
    format_money,
    format_percent,
)
from ..core.state import AppState
from ..dispatcher import Dispatcher

logger = logging.getLogger(__name__)

RULE = "─" * 40


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def render_tasks(tasks: list[Task]) -> str:
    if not tasks:
        return "No tasks yet."
    lines = ["Your tasks:", RULE]
    for i, task in enumerate(tasks, start=1):
        mark = "[x]" if task.completed else "[ ]"
        lines.append(f"{i:>3}. {mark} {task.title}")
    lines.append(RULE)
    return "\n".join(lines)


def render_expenses(snapshot: ExpenseSnapshot) -> str:
    lines = [f"Total spending: {format_money(snapshot.summary.total_spending)}", RULE]
    if not snapshot.expenses:
        lines.append("No expenses yet.")
    for exp in snapshot.expenses:
        day = exp.created_at.strftime("%Y-%m-%d") if exp.created_at else "?"
        lines.append(f"  {day}  {exp.category:<20} {format_money(exp.amount):>12}")
    shares = snapshot.shares
    if shares:
        lines.append(RULE)
        for share in shares:
            bar = "#" * int(round(share.percent / 5))
            lines.append(
                f"  {share.category:<20} {format_money(share.amount):>12} "
                f"({format_percent(share.percent)}) {bar}"
            )
    lines.append(RULE)
    return "\n".join(lines)


def render_message(msg: ChatMessage, app_name: str = "aide") -> str:
    if msg.role is ChatRole.ASSISTANT:
        return f"<<< {app_name}: {msg.text}"
    line = f">>> You: {msg.text}"
    if msg.status is DeliveryStatus.PENDING:
        line += "  (sending...)"
    elif msg.status is DeliveryStatus.FAILED:
        line += f"  (not delivered: {msg.error or 'unknown error'}; use /retry)"
    return line


class ConsoleRenderer:
    """Prints core notifications. Chat lines are printed incrementally."""

    def __init__(self, app_name: str = "aide") -> None:
        self._app_name = app_name
        self._printed: list[tuple[int, DeliveryStatus]] = []

    def __call__(self, event: Notification) -> None:
        if isinstance(event, SessionChanged):
            if event.state is AuthState.AUTHENTICATED and event.user is not None:
                _print_ts(f"Signed in as {event.user.email}.")
            elif event.state is AuthState.VERIFYING:
                _print_ts("Checking saved session...")
            else:
                self._printed = []
                _print_ts("Signed out. Use /login <email> or /register <email>.")
        elif isinstance(event, ViewChanged):
            if event.view is View.AUTH:
                _print_ts(f"[auth] mode: {event.auth_mode.value}")
            elif event.view is View.DASHBOARD:
                _print_ts(f"[dashboard] section: {event.section.value}")
        elif isinstance(event, TasksChanged):
            print(render_tasks(event.tasks))
        elif isinstance(event, ExpensesChanged):
            print(render_expenses(event.snapshot))
        elif isinstance(event, TranscriptChanged):
            self._render_transcript(event.messages)
        elif isinstance(event, ModalShown):
            print(f"\n== {event.title} ==\n{event.body}\n")
        elif isinstance(event, Notice):
            _print_ts(event.text)
        elif isinstance(event, ErrorRaised):
            _print_ts(f"[error] {event.message}")

    def _render_transcript(self, messages: list[ChatMessage]) -> None:
        # Print only what changed since the last notification (new lines or status changes).
        seen = {idx: status for idx, status in self._printed}
        printed: list[tuple[int, DeliveryStatus]] = []
        for idx, msg in enumerate(messages):
            if seen.get(idx) is not msg.status:
                _print_ts(render_message(msg, self._app_name))
            printed.append((idx, msg.status))
        self._printed = printed


class ConsoleConfirmer:
    async def confirm(self, prompt: str) -> bool:
        try:
            answer = await asyncio.to_thread(input, f"{prompt} [y/N] ")
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in {"y", "yes"}


async def run_console_loop(state: AppState, dispatcher: Dispatcher) -> None:
    logger.info("Console connector started (server=%s).", getattr(state.settings, "api_base_url", "?"))
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = await command_registry.handle(state, dispatcher, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            if cmd_response:
                _print_ts(cmd_response)
            continue

        # Plain text: chat with the assistant when signed in.
        if not state.session.is_authenticated:
            _print_ts("Sign in first: /login <email> (or /register <email>).")
            continue

        try:
            state.router.navigate(Section.ASSISTANT)
            await dispatcher.dispatch(SendChat(user_input))
        except Exception:
            logger.exception("Console chat handler crashed.")
            _print_ts("Internal error while sending a message.")

    logger.info("Console connector finished.")
