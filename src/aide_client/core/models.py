# src/aide_client/core/models.py

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

from .errors import NetworkError

T = TypeVar("T")


class AuthState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"


class ChatRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class DeliveryStatus(StrEnum):
    """Delivery of a user chat message. Assistant replies are always SENT."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


def _parse_ts(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError:
        return None


@dataclass(slots=True, frozen=True)
class User:
    id: str
    email: str

    @classmethod
    def from_json(cls, raw: Any) -> User:
        if not isinstance(raw, dict) or not raw.get("email"):
            raise NetworkError("Unexpected user payload from server.")
        return cls(id=str(raw.get("id") or ""), email=str(raw["email"]))


@dataclass(slots=True, frozen=True)
class Session:
    """
    In-memory session.

    Invariant: user is set only while token is set.
    """

    token: str | None = None
    user: User | None = None

    def __post_init__(self) -> None:
        if self.user is not None and not self.token:
            raise ValueError("Session user requires a token")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    completed: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_json(cls, raw: Any) -> Task:
        if not isinstance(raw, dict) or "id" not in raw:
            raise NetworkError("Unexpected task payload from server.")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            completed=bool(raw.get("completed", False)),
            created_at=_parse_ts(raw.get("created_at")),
        )


@dataclass(slots=True, frozen=True)
class Expense:
    id: str
    category: str
    amount: float
    created_at: datetime | None = None

    @classmethod
    def from_json(cls, raw: Any) -> Expense:
        if not isinstance(raw, dict) or "id" not in raw:
            raise NetworkError("Unexpected expense payload from server.")
        try:
            amount = float(raw.get("amount", 0.0))
        except (TypeError, ValueError) as e:
            raise NetworkError("Unexpected expense amount from server.") from e
        return cls(
            id=str(raw["id"]),
            category=str(raw.get("category") or ""),
            amount=amount,
            created_at=_parse_ts(raw.get("created_at")),
        )


@dataclass(slots=True, frozen=True)
class ExpenseSummary:
    """
    Server-computed spending summary.

    categories keeps the server order (largest spend first). The sum of the
    category amounts is expected to equal total_spending; this is not checked.
    """

    total_spending: float
    categories: tuple[tuple[str, float], ...] = ()

    @classmethod
    def from_json(cls, raw: Any) -> ExpenseSummary:
        if not isinstance(raw, dict):
            raise NetworkError("Unexpected summary payload from server.")
        try:
            total = float(raw.get("total_spending") or 0.0)
            pairs = tuple((str(name), float(amount)) for name, amount in raw.get("categories") or [])
        except (TypeError, ValueError) as e:
            raise NetworkError("Unexpected summary payload from server.") from e
        return cls(total_spending=total, categories=pairs)


@dataclass(slots=True, frozen=True)
class CategoryShare:
    category: str
    amount: float
    percent: float


def category_shares(summary: ExpenseSummary) -> list[CategoryShare]:
    """
    Percentage of total spending per category.

    A zero, negative or non-finite total yields 0.0 for every category.
    """
    total = summary.total_spending
    usable = math.isfinite(total) and total > 0
    out: list[CategoryShare] = []
    for name, amount in summary.categories:
        pct = (amount / total) * 100.0 if usable else 0.0
        if not math.isfinite(pct):
            pct = 0.0
        out.append(CategoryShare(category=name, amount=amount, percent=pct))
    return out


@dataclass(slots=True)
class ChatMessage:
    role: ChatRole
    text: str
    status: DeliveryStatus = DeliveryStatus.SENT
    error: str | None = None


@dataclass(slots=True, frozen=True)
class ExpenseSnapshot:
    """Expenses and their summary, always fetched and replaced together."""

    expenses: list[Expense] = field(default_factory=list)
    summary: ExpenseSummary = field(default_factory=lambda: ExpenseSummary(total_spending=0.0))

    @property
    def shares(self) -> list[CategoryShare]:
        return category_shares(self.summary)


def decode_list(raw: Any, item: Callable[[Any], T]) -> list[T]:
    if not isinstance(raw, list):
        raise NetworkError("Expected a list from server.")
    return [item(x) for x in raw]


def format_money(amount: float) -> str:
    return f"${amount:.2f}"


def format_percent(pct: float) -> str:
    return f"{pct:.0f}%"
