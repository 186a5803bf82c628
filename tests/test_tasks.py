# tests/test_tasks.py

from __future__ import annotations

import asyncio

import httpx
import pytest

from aide_client.core.errors import ApiError, AuthError, ValidationError
from aide_client.core.events import TasksChanged
from aide_client.core.models import AuthState
from aide_client.core.state import AppState
from aide_client.core.sync import RequestGeneration

from .fakes import FakeBackend, FakeConfirmer, RecordingListener, task_json


@pytest.mark.asyncio
async def test_empty_list_is_distinct_from_not_loaded(signed_in: AppState, backend: FakeBackend) -> None:
    backend.on("GET", "/tasks", json_body=[])

    assert signed_in.tasks.tasks is None
    assert not signed_in.tasks.loaded

    assert await signed_in.tasks.refresh() == []
    assert signed_in.tasks.loaded
    assert signed_in.tasks.tasks == []


@pytest.mark.asyncio
async def test_create_posts_title_then_refetches(
        signed_in: AppState, backend: FakeBackend, listener: RecordingListener
) -> None:
    backend.on("POST", "/tasks", status=201, json_body=task_json("1", "buy milk"))
    backend.on("GET", "/tasks", json_body=[task_json("1", "buy milk")])

    tasks = await signed_in.tasks.create("  buy milk ")

    assert backend.paths() == [("POST", "/tasks"), ("GET", "/tasks")]
    assert backend.calls[0].body == {"title": "buy milk"}
    assert backend.calls[0].authorization == "Bearer t1"
    assert [t.title for t in tasks] == ["buy milk"]
    assert listener.of(TasksChanged)[-1].tasks == tasks


@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
@pytest.mark.asyncio
async def test_blank_title_makes_no_call(signed_in: AppState, backend: FakeBackend, title: str) -> None:
    with pytest.raises(ValidationError):
        await signed_in.tasks.create(title)
    assert backend.calls == []


@pytest.mark.asyncio
async def test_toggle_patches_then_refetches(signed_in: AppState, backend: FakeBackend) -> None:
    backend.on("PATCH", "/tasks/1", json_body=task_json("1", "a", True))
    backend.on("GET", "/tasks", json_body=[task_json("1", "a", True)])

    tasks = await signed_in.tasks.toggle("1", True)

    assert backend.paths() == [("PATCH", "/tasks/1"), ("GET", "/tasks")]
    assert backend.calls[0].body == {"completed": True}
    assert tasks[0].completed


@pytest.mark.asyncio
async def test_delete_declined_sends_nothing(
        signed_in: AppState, backend: FakeBackend, confirmer: FakeConfirmer
) -> None:
    confirmer.answer = False

    assert await signed_in.tasks.delete("1") is False
    assert confirmer.prompts
    assert backend.calls == []


@pytest.mark.asyncio
async def test_delete_confirmed_then_refetches(
        signed_in: AppState, backend: FakeBackend, confirmer: FakeConfirmer
) -> None:
    backend.on("DELETE", "/tasks/1", status=204)
    backend.on("GET", "/tasks", json_body=[])

    assert await signed_in.tasks.delete("1") is True
    assert backend.paths() == [("DELETE", "/tasks/1"), ("GET", "/tasks")]
    assert signed_in.tasks.tasks == []


@pytest.mark.asyncio
async def test_unauthorized_refresh_signs_out(signed_in: AppState, backend: FakeBackend) -> None:
    backend.on("GET", "/tasks", status=401, json_body={"message": "expired"})

    with pytest.raises(AuthError):
        await signed_in.tasks.refresh()

    assert signed_in.session.state is AuthState.UNAUTHENTICATED
    assert signed_in.tasks.tasks is None


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_list(signed_in: AppState, backend: FakeBackend) -> None:
    backend.on("GET", "/tasks", json_body=[task_json("1", "a")])
    before = await signed_in.tasks.refresh()

    backend.on("GET", "/tasks", status=500, json_body={"message": "db down"})
    with pytest.raises(ApiError):
        await signed_in.tasks.refresh()

    assert signed_in.tasks.tasks == before


@pytest.mark.asyncio
async def test_stale_response_is_discarded(signed_in: AppState, backend: FakeBackend) -> None:
    first_started = asyncio.Event()
    release_first = asyncio.Event()
    calls = {"n": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            first_started.set()
            await release_first.wait()
            return httpx.Response(200, json=[task_json("old", "old")])
        return httpx.Response(200, json=[task_json("new", "new")])

    backend.route("GET", "/tasks", handler)

    slow = asyncio.create_task(signed_in.tasks.refresh())
    await first_started.wait()
    await signed_in.tasks.refresh()
    release_first.set()
    await slow

    assert [t.id for t in signed_in.tasks.tasks or []] == ["new"]


def test_request_generation_only_latest_is_current() -> None:
    gen = RequestGeneration("tasks")
    a = gen.begin()
    b = gen.begin()
    assert not gen.is_current(a)
    assert gen.is_current(b)
    gen.invalidate()
    assert not gen.is_current(b)


@pytest.mark.asyncio
async def test_late_rejection_of_replaced_token_keeps_new_session(
        signed_in: AppState, backend: FakeBackend
) -> None:
    started = asyncio.Event()
    release = asyncio.Event()

    async def rejected(request: httpx.Request) -> httpx.Response:
        started.set()
        await release.wait()
        return httpx.Response(401, json={"message": "expired"})

    backend.route("GET", "/tasks", rejected)
    backend.on("POST", "/auth/login", json_body={"token": "t2", "user": {"id": "u1", "email": "a@b.com"}})

    slow = asyncio.create_task(signed_in.tasks.refresh())
    await started.wait()
    signed_in.session.logout()
    assert (await signed_in.session.login("a@b.com", "x")).ok
    release.set()

    with pytest.raises(AuthError):
        await slow

    assert signed_in.session.state is AuthState.AUTHENTICATED
    assert signed_in.session.token == "t2"


@pytest.mark.asyncio
async def test_failure_of_superseded_refresh_is_dropped(signed_in: AppState, backend: FakeBackend) -> None:
    first_started = asyncio.Event()
    release_first = asyncio.Event()
    calls = {"n": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            first_started.set()
            await release_first.wait()
            return httpx.Response(500, json={"message": "db down"})
        return httpx.Response(200, json=[task_json("new", "new")])

    backend.route("GET", "/tasks", handler)

    slow = asyncio.create_task(signed_in.tasks.refresh())
    await first_started.wait()
    await signed_in.tasks.refresh()
    release_first.set()

    assert [t.id for t in await slow] == ["new"]
    assert [t.id for t in signed_in.tasks.tasks or []] == ["new"]
