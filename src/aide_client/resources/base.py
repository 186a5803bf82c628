# src/aide_client/resources/base.py

from __future__ import annotations

import logging
from typing import Any

from ..api.client import ApiClient
from ..core.errors import AuthError
from ..core.events import EventBus, Notification, SessionChanged
from ..core.models import AuthState
from ..session.store import SessionStore

logger = logging.getLogger(__name__)


class ResourceController:
    """
    Shared plumbing for the per-resource controllers.

    - Every backend call goes through _call(), which routes AuthError to
      session invalidation before re-raising it.
    - Cached state is dropped whenever the session leaves AUTHENTICATED.
    """

    resource = "resource"

    def __init__(self, api: ApiClient, session: SessionStore, bus: EventBus) -> None:
        self._api = api
        self._session = session
        self._bus = bus
        bus.subscribe(self._on_event)

    async def _call(self, path: str, method: str = "GET", body: Any = None) -> Any:
        try:
            return await self._api.request(path, method, body, auth_required=True)
        except AuthError as e:
            logger.info("%s: %s %s rejected with %s", self.resource, method, path, e.status)
            self._session.invalidate(f"{method} {path} -> HTTP {e.status}", token=e.token)
            raise

    def _on_event(self, event: Notification) -> None:
        if isinstance(event, SessionChanged) and event.state is AuthState.UNAUTHENTICATED:
            self.reset()

    def reset(self) -> None:
        """Drop cached server state. Subclasses extend."""
