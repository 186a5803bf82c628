# src/aide_client/router.py

from __future__ import annotations

import logging

from .core.events import AuthMode, EventBus, Notification, Section, SessionChanged, View, ViewChanged
from .core.models import AuthState

logger = logging.getLogger(__name__)

_VIEW_FOR_STATE = {
    AuthState.VERIFYING: View.LOADING,
    AuthState.UNAUTHENTICATED: View.AUTH,
    AuthState.AUTHENTICATED: View.DASHBOARD,
}


class ViewRouter:
    """
    Decides which top-level view and dashboard section are visible.

    The view follows the session state; the section and auth mode follow user
    navigation. Pure state: loading data on dashboard entry is the dispatcher's job.
    """

    def __init__(self, bus: EventBus, initial: AuthState = AuthState.UNAUTHENTICATED) -> None:
        self._bus = bus
        self.view = _VIEW_FOR_STATE[initial]
        self.section = Section.TASKS
        self.auth_mode = AuthMode.LOGIN
        bus.subscribe(self._on_event)

    def _on_event(self, event: Notification) -> None:
        if isinstance(event, SessionChanged):
            self._set(view=_VIEW_FOR_STATE[event.state])

    def navigate(self, section: Section) -> bool:
        if self.view is not View.DASHBOARD:
            logger.debug("Navigation to %s ignored in view=%s", section, self.view)
            return False
        self._set(section=section)
        return True

    def set_auth_mode(self, mode: AuthMode) -> None:
        self._set(auth_mode=mode)

    def _set(
            self,
            *,
            view: View | None = None,
            section: Section | None = None,
            auth_mode: AuthMode | None = None,
    ) -> None:
        new_view = view or self.view
        new_section = section or self.section
        new_mode = auth_mode or self.auth_mode

        if new_view is not View.DASHBOARD and self.view is View.DASHBOARD:
            # Leaving the dashboard: next visit starts on the default section.
            new_section = Section.TASKS

        if (new_view, new_section, new_mode) == (self.view, self.section, self.auth_mode):
            return

        self.view, self.section, self.auth_mode = new_view, new_section, new_mode
        self._bus.publish(ViewChanged(view=new_view, section=new_section, auth_mode=new_mode))
