# tests/test_router.py

from __future__ import annotations

from aide_client.core.events import AuthMode, EventBus, Section, SessionChanged, View, ViewChanged
from aide_client.core.models import AuthState, User
from aide_client.router import ViewRouter

from .fakes import RecordingListener


def _router(initial: AuthState = AuthState.UNAUTHENTICATED) -> tuple[ViewRouter, EventBus, RecordingListener]:
    bus = EventBus()
    listener = RecordingListener()
    router = ViewRouter(bus, initial=initial)
    bus.subscribe(listener)
    return router, bus, listener


def test_initial_view_follows_session_state() -> None:
    assert _router(AuthState.VERIFYING)[0].view is View.LOADING
    assert _router(AuthState.UNAUTHENTICATED)[0].view is View.AUTH
    assert _router(AuthState.AUTHENTICATED)[0].view is View.DASHBOARD


def test_navigation_only_on_dashboard() -> None:
    router, bus, listener = _router()

    assert not router.navigate(Section.EXPENSES)
    assert router.section is Section.TASKS
    assert listener.events == []

    bus.publish(SessionChanged(state=AuthState.AUTHENTICATED, user=User(id="u1", email="a@b.com")))
    assert router.navigate(Section.EXPENSES)
    assert listener.of(ViewChanged)[-1] == ViewChanged(View.DASHBOARD, Section.EXPENSES, AuthMode.LOGIN)


def test_leaving_dashboard_resets_section() -> None:
    router, bus, _ = _router(AuthState.AUTHENTICATED)
    router.navigate(Section.ASSISTANT)

    bus.publish(SessionChanged(state=AuthState.UNAUTHENTICATED, user=None))

    assert router.view is View.AUTH
    assert router.section is Section.TASKS


def test_auth_mode_switch_publishes_once() -> None:
    router, _, listener = _router()

    router.set_auth_mode(AuthMode.REGISTER)
    router.set_auth_mode(AuthMode.REGISTER)

    assert router.auth_mode is AuthMode.REGISTER
    assert len(listener.of(ViewChanged)) == 1
