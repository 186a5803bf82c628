# src/aide_client/core/events.py

"""
Intents (UI -> core) and notifications (core -> renderer).

The renderer never calls controllers directly: it emits an intent through the
dispatcher and redraws from the notifications published on the EventBus.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .models import AuthState, ChatMessage, ExpenseSnapshot, Task, User

logger = logging.getLogger(__name__)


class View(StrEnum):
    LOADING = "loading"
    AUTH = "auth"
    DASHBOARD = "dashboard"


class Section(StrEnum):
    TASKS = "tasks"
    EXPENSES = "expenses"
    ASSISTANT = "assistant"


class AuthMode(StrEnum):
    LOGIN = "login"
    REGISTER = "register"


# ---- Intents ----


@dataclass(slots=True, frozen=True)
class Login:
    email: str
    password: str


@dataclass(slots=True, frozen=True)
class Register:
    email: str
    password: str


@dataclass(slots=True, frozen=True)
class Logout:
    pass


@dataclass(slots=True, frozen=True)
class SwitchAuthMode:
    mode: AuthMode


@dataclass(slots=True, frozen=True)
class Navigate:
    section: Section


@dataclass(slots=True, frozen=True)
class RefreshTasks:
    pass


@dataclass(slots=True, frozen=True)
class CreateTask:
    title: str


@dataclass(slots=True, frozen=True)
class ToggleTask:
    task_id: str
    completed: bool


@dataclass(slots=True, frozen=True)
class DeleteTask:
    task_id: str


@dataclass(slots=True, frozen=True)
class RefreshExpenses:
    pass


@dataclass(slots=True, frozen=True)
class CreateExpense:
    category: str
    amount: str | float


@dataclass(slots=True, frozen=True)
class RequestSuggestion:
    pass


@dataclass(slots=True, frozen=True)
class RequestAnalysis:
    pass


@dataclass(slots=True, frozen=True)
class SendChat:
    text: str


@dataclass(slots=True, frozen=True)
class RetryChat:
    pass


Intent = (
    Login
    | Register
    | Logout
    | SwitchAuthMode
    | Navigate
    | RefreshTasks
    | CreateTask
    | ToggleTask
    | DeleteTask
    | RefreshExpenses
    | CreateExpense
    | RequestSuggestion
    | RequestAnalysis
    | SendChat
    | RetryChat
)


# ---- Notifications ----


@dataclass(slots=True, frozen=True)
class SessionChanged:
    state: AuthState
    user: User | None


@dataclass(slots=True, frozen=True)
class ViewChanged:
    view: View
    section: Section
    auth_mode: AuthMode


@dataclass(slots=True, frozen=True)
class TasksChanged:
    tasks: list[Task]


@dataclass(slots=True, frozen=True)
class ExpensesChanged:
    snapshot: ExpenseSnapshot


@dataclass(slots=True, frozen=True)
class TranscriptChanged:
    messages: list[ChatMessage]


@dataclass(slots=True, frozen=True)
class ModalShown:
    title: str
    body: str


@dataclass(slots=True, frozen=True)
class Notice:
    """Informational message (e.g. "Registration successful")."""

    text: str


@dataclass(slots=True, frozen=True)
class ErrorRaised:
    message: str
    kind: str


Notification = (
    SessionChanged
    | ViewChanged
    | TasksChanged
    | ExpensesChanged
    | TranscriptChanged
    | ModalShown
    | Notice
    | ErrorRaised
)

Listener = Callable[[Notification], None]


class EventBus:
    """Synchronous fan-out of notifications to subscribed renderers."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, event: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # Listener failures never propagate to the publisher.
                logger.exception("Listener failed on %s", type(event).__name__)
