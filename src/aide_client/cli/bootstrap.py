# src/aide_client/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (API client, token slot, controllers).
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from ..api.client import ApiClient
from ..config import get_settings
from ..core.events import EventBus
from ..core.ports import Confirmer, TokenStorage
from ..core.state import AppState
from ..resources.assistant import AssistantController
from ..resources.expenses import ExpenseController
from ..resources.tasks import TaskController
from ..router import ViewRouter
from ..session.storage import FileTokenStorage
from ..session.store import SessionStore

logger = logging.getLogger(__name__)


class AutoConfirmer:
    """Confirms everything. Used when destructive-action prompts are disabled."""

    async def confirm(self, prompt: str) -> bool:
        logger.debug("Auto-confirmed: %s", prompt)
        return True


def _ensure_local_dirs(settings) -> None:
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.token_path).parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
        *,
        settings=None,
        storage: TokenStorage | None = None,
        confirmer: Confirmer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the storage/transport seams) injectable makes the app easy
    to test and avoids hidden global config reads. If settings is None, falls back
    to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = FileTokenStorage(settings.token_path)

    if confirmer is None or not getattr(settings, "confirm_destructive", True):
        confirmer = AutoConfirmer()

    bus = EventBus()

    session: SessionStore
    api = ApiClient.from_settings(settings, lambda: session.token, transport=transport)
    session = SessionStore(api, storage, bus)

    state = AppState(
        settings=settings,
        bus=bus,
        api=api,
        session=session,
        router=ViewRouter(bus, initial=session.state),
        tasks=TaskController(api, session, bus, confirmer),
        expenses=ExpenseController(api, session, bus),
        assistant=AssistantController(api, session, bus),
    )
    logger.debug("AppState ready (api=%s, session=%s)", settings.api_base_url, session.state)
    return state
