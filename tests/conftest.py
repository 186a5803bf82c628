# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from aide_client.cli.bootstrap import create_initial_state
from aide_client.core.state import AppState
from aide_client.dispatcher import Dispatcher
from aide_client.session.storage import MemoryTokenStorage

from .fakes import FakeBackend, FakeConfirmer, RecordingListener

USER = {"id": "u1", "email": "a@b.com"}


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="aide-test",
        log_level="DEBUG",
        api_base_url="http://testserver/api",
        connect_timeout=1.0,
        read_timeout=1.0,
        data_dir=tmp_path,
        token_path=tmp_path / "session.json",
        confirm_destructive=True,
    )


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def storage() -> MemoryTokenStorage:
    return MemoryTokenStorage()


@pytest.fixture()
def confirmer() -> FakeConfirmer:
    return FakeConfirmer(answer=True)


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def state(
        settings: SimpleNamespace,
        backend: FakeBackend,
        storage: MemoryTokenStorage,
        confirmer: FakeConfirmer,
        listener: RecordingListener,
) -> AppState:
    """AppState wired with the fake backend and an in-memory token slot."""
    st = create_initial_state(
        settings=settings,
        storage=storage,
        confirmer=confirmer,
        transport=backend.transport(),
    )
    st.bus.subscribe(listener)
    return st


@pytest.fixture()
def dispatcher(state: AppState) -> Dispatcher:
    return Dispatcher(state)


@pytest_asyncio.fixture()
async def signed_in(state: AppState, backend: FakeBackend) -> AppState:
    """State with an authenticated session (login call already made and forgotten)."""
    backend.on("POST", "/auth/login", json_body={"token": "t1", "user": USER})
    result = await state.session.login("a@b.com", "x")
    assert result.ok
    backend.reset_calls()
    return state
