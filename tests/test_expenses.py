# tests/test_expenses.py

from __future__ import annotations

import asyncio
import math

import httpx
import pytest

from aide_client.core.errors import ApiError, ValidationError
from aide_client.core.events import ExpensesChanged
from aide_client.core.models import ExpenseSummary, category_shares
from aide_client.core.state import AppState
from aide_client.resources.expenses import parse_amount

from .fakes import FakeBackend, RecordingListener, expense_json

SUMMARY = {"total_spending": 100.0, "categories": [["food", 60.0], ["transport", 40.0]]}


def _serve(backend: FakeBackend, expenses: list, summary: dict) -> None:
    backend.on("GET", "/expenses", json_body=expenses)
    backend.on("GET", "/expenses/summary", json_body=summary)


def test_shares_split_total() -> None:
    summary = ExpenseSummary.from_json(SUMMARY)

    shares = category_shares(summary)

    assert [(s.category, s.percent) for s in shares] == [("food", 60.0), ("transport", 40.0)]
    assert sum(s.percent for s in shares) == pytest.approx(100.0)


@pytest.mark.parametrize("total", [0.0, -5.0, math.inf, math.nan])
def test_shares_never_divide_by_bad_total(total: float) -> None:
    summary = ExpenseSummary(total_spending=total, categories=(("food", 10.0), ("rent", 0.0)))

    shares = category_shares(summary)

    assert [s.percent for s in shares] == [0.0, 0.0]
    assert all(math.isfinite(s.percent) for s in shares)


@pytest.mark.asyncio
async def test_refresh_fetches_list_and_summary(
        signed_in: AppState, backend: FakeBackend, listener: RecordingListener
) -> None:
    _serve(backend, [expense_json("e1", "food", 60.0), expense_json("e2", "transport", 40.0)], SUMMARY)

    snapshot = await signed_in.expenses.refresh()

    assert sorted(backend.paths()) == [("GET", "/expenses"), ("GET", "/expenses/summary")]
    assert [e.category for e in snapshot.expenses] == ["food", "transport"]
    assert snapshot.summary.total_spending == 100.0
    assert listener.of(ExpensesChanged)[-1].snapshot == snapshot
    assert snapshot.expenses[0].created_at is not None


@pytest.mark.asyncio
async def test_partial_failure_keeps_previous_snapshot(signed_in: AppState, backend: FakeBackend) -> None:
    _serve(backend, [expense_json("e1", "food", 60.0)], {"total_spending": 60.0, "categories": [["food", 60.0]]})
    before = await signed_in.expenses.refresh()

    backend.on("GET", "/expenses", json_body=[])
    backend.on("GET", "/expenses/summary", status=500, json_body={"message": "boom"})

    with pytest.raises(ApiError):
        await signed_in.expenses.refresh()

    assert signed_in.expenses.snapshot == before


@pytest.mark.asyncio
async def test_create_posts_then_resyncs_both(signed_in: AppState, backend: FakeBackend) -> None:
    backend.on("POST", "/expenses", status=201, json_body=expense_json("e1", "food", 12.5))
    _serve(backend, [expense_json("e1", "food", 12.5)], {"total_spending": 12.5, "categories": [["food", 12.5]]})

    await signed_in.expenses.create(" food ", "12.5")

    assert backend.paths()[0] == ("POST", "/expenses")
    assert backend.calls[0].body == {"category": "food", "amount": 12.5}
    assert sorted(backend.paths()[1:]) == [("GET", "/expenses"), ("GET", "/expenses/summary")]


@pytest.mark.parametrize(
    "category,amount",
    [("", "10"), ("   ", "10"), ("food", "abc"), ("food", "nan"), ("food", "inf"), ("food", "0"), ("food", "-3")],
)
@pytest.mark.asyncio
async def test_invalid_input_makes_no_call(
        signed_in: AppState, backend: FakeBackend, category: str, amount: str
) -> None:
    with pytest.raises(ValidationError):
        await signed_in.expenses.create(category, amount)
    assert backend.calls == []


def test_parse_amount_accepts_numbers_and_text() -> None:
    assert parse_amount(3) == 3.0
    assert parse_amount(" 4.25 ") == 4.25
    with pytest.raises(ValidationError):
        parse_amount(None)
    with pytest.raises(ValidationError):
        parse_amount(True)


def _held_expenses(backend: FakeBackend, first_status: int) -> tuple[asyncio.Event, asyncio.Event]:
    """First GET /expenses waits for release and answers first_status; later ones answer at once."""
    started = asyncio.Event()
    release = asyncio.Event()
    calls = {"n": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            started.set()
            await release.wait()
            if first_status != 200:
                return httpx.Response(first_status, json={"message": "boom"})
            return httpx.Response(200, json=[expense_json("old", "old", 1.0)])
        return httpx.Response(200, json=[expense_json("new", "food", 60.0)])

    backend.route("GET", "/expenses", handler)
    backend.on("GET", "/expenses/summary", json_body=SUMMARY)
    return started, release


@pytest.mark.asyncio
async def test_stale_snapshot_is_discarded(
        signed_in: AppState, backend: FakeBackend, listener: RecordingListener
) -> None:
    started, release = _held_expenses(backend, 200)

    slow = asyncio.create_task(signed_in.expenses.refresh())
    await started.wait()
    fresh = await signed_in.expenses.refresh()
    release.set()
    await slow

    assert signed_in.expenses.snapshot == fresh
    published = [e.snapshot for e in listener.of(ExpensesChanged)]
    assert published == [fresh]
    assert [e.id for e in fresh.expenses] == ["new"]


@pytest.mark.asyncio
async def test_failure_of_superseded_refresh_is_dropped(signed_in: AppState, backend: FakeBackend) -> None:
    started, release = _held_expenses(backend, 500)

    slow = asyncio.create_task(signed_in.expenses.refresh())
    await started.wait()
    fresh = await signed_in.expenses.refresh()
    release.set()

    assert await slow == fresh
    assert signed_in.expenses.snapshot == fresh
