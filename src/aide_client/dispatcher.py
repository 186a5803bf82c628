# src/aide_client/dispatcher.py

"""
Intent dispatch.

The UI layer emits intents; the dispatcher routes each one to the owning
component and turns failures into ErrorRaised notifications, so renderers
never see exceptions:

- ValidationError -> its message (nothing was sent)
- NetworkError    -> generic "couldn't reach server" text
- AuthError       -> forced logout + "session expired" text
- ApiError        -> server message verbatim
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .core.errors import ApiError, AuthError, NetworkError, ValidationError
from .core.events import (
    AuthMode,
    CreateExpense,
    CreateTask,
    DeleteTask,
    ErrorRaised,
    Intent,
    Login,
    Logout,
    Navigate,
    Notice,
    RefreshExpenses,
    RefreshTasks,
    Register,
    RequestAnalysis,
    RequestSuggestion,
    RetryChat,
    SendChat,
    SwitchAuthMode,
    ToggleTask,
)
from .core.state import AppState

logger = logging.getLogger(__name__)

NETWORK_MESSAGE = "Couldn't reach the server. Check your connection and try again."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."

Handler = Callable[[Any], Awaitable[None]]


class Dispatcher:
    def __init__(self, state: AppState) -> None:
        self._state = state
        self._handlers: dict[type, Handler] = {
            Login: self._login,
            Register: self._register,
            Logout: self._logout,
            SwitchAuthMode: self._switch_auth_mode,
            Navigate: self._navigate,
            RefreshTasks: self._refresh_tasks,
            CreateTask: self._create_task,
            ToggleTask: self._toggle_task,
            DeleteTask: self._delete_task,
            RefreshExpenses: self._refresh_expenses,
            CreateExpense: self._create_expense,
            RequestSuggestion: self._suggest,
            RequestAnalysis: self._analyze,
            SendChat: self._send_chat,
            RetryChat: self._retry_chat,
        }

    async def dispatch(self, intent: Intent) -> bool:
        """Handle one intent. Returns False when it failed (an ErrorRaised was published)."""
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unsupported intent: {type(intent).__name__}")
        logger.debug("dispatch %s", type(intent).__name__)
        return await self._guard(handler(intent))

    async def start(self) -> bool:
        """Restore a persisted session and, if it is valid, load the dashboard."""
        return await self._guard(self._start())

    async def _guard(self, work: Awaitable[None]) -> bool:
        try:
            await work
        except ValidationError as e:
            self._error(e.message, "validation")
        except AuthError as e:
            session = self._state.session
            session.invalidate("backend rejected the token", token=e.token)
            if session.is_authenticated:
                # Rejection belonged to a session that has since been replaced.
                logger.debug("Dropping auth failure of a replaced session.")
                return True
            self._error(SESSION_EXPIRED_MESSAGE, "auth")
        except NetworkError:
            self._error(NETWORK_MESSAGE, "network")
        except ApiError as e:
            self._error(e.message, "api")
        else:
            return True
        return False

    def _error(self, message: str, kind: str) -> None:
        logger.debug("error surfaced (%s): %s", kind, message)
        self._state.bus.publish(ErrorRaised(message=message, kind=kind))

    async def _start(self) -> None:
        await self._state.session.restore()
        if self._state.session.is_authenticated:
            await self._load_dashboard()

    async def _load_dashboard(self) -> None:
        results = await asyncio.gather(
            self._state.tasks.refresh(),
            self._state.expenses.refresh(),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        for err in errors:
            if isinstance(err, AuthError):
                raise err
        if errors:
            raise errors[0]

    # ---- auth ----

    async def _login(self, intent: Login) -> None:
        result = await self._state.session.login(intent.email, intent.password)
        if result.ignored:
            return
        if not result.ok:
            self._error(result.message or "Authentication failed", "login")
            return
        await self._load_dashboard()

    async def _register(self, intent: Register) -> None:
        result = await self._state.session.register(intent.email, intent.password)
        if result.ignored:
            return
        if not result.ok:
            self._error(result.message or "Registration failed", "register")
            return
        self._state.bus.publish(Notice(text=result.message or "Registration successful."))
        self._state.router.set_auth_mode(AuthMode.LOGIN)

    async def _logout(self, intent: Logout) -> None:
        self._state.session.logout()

    async def _switch_auth_mode(self, intent: SwitchAuthMode) -> None:
        self._state.router.set_auth_mode(intent.mode)

    async def _navigate(self, intent: Navigate) -> None:
        self._state.router.navigate(intent.section)

    # ---- tasks ----

    async def _refresh_tasks(self, intent: RefreshTasks) -> None:
        await self._state.tasks.refresh()

    async def _create_task(self, intent: CreateTask) -> None:
        await self._state.tasks.create(intent.title)

    async def _toggle_task(self, intent: ToggleTask) -> None:
        await self._state.tasks.toggle(intent.task_id, intent.completed)

    async def _delete_task(self, intent: DeleteTask) -> None:
        await self._state.tasks.delete(intent.task_id)

    # ---- expenses ----

    async def _refresh_expenses(self, intent: RefreshExpenses) -> None:
        await self._state.expenses.refresh()

    async def _create_expense(self, intent: CreateExpense) -> None:
        await self._state.expenses.create(intent.category, intent.amount)

    # ---- assistant ----

    async def _suggest(self, intent: RequestSuggestion) -> None:
        await self._state.assistant.suggest()

    async def _analyze(self, intent: RequestAnalysis) -> None:
        await self._state.assistant.analyze()

    async def _send_chat(self, intent: SendChat) -> None:
        await self._state.assistant.chat(intent.text)

    async def _retry_chat(self, intent: RetryChat) -> None:
        await self._state.assistant.retry_failed()
