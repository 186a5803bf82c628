# src/aide_client/resources/expenses.py

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

from ..core.errors import AuthError, ClientError, ValidationError
from ..core.events import ExpensesChanged
from ..core.models import Expense, ExpenseSnapshot, ExpenseSummary, decode_list
from ..core.sync import RequestGeneration
from .base import ResourceController

logger = logging.getLogger(__name__)


def parse_amount(raw: Any) -> float:
    """Accept a number or numeric text; reject anything not finite and positive."""
    if isinstance(raw, bool):
        raise ValidationError("Amount must be a number.")
    try:
        value = float(raw.strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number.") from None
    if not math.isfinite(value):
        raise ValidationError("Amount must be a finite number.")
    if value <= 0:
        raise ValidationError("Amount must be greater than zero.")
    return value


def _first_error(results: list[Any]) -> BaseException | None:
    errors = [r for r in results if isinstance(r, BaseException)]
    if not errors:
        return None
    # Auth failures win: they decide what the user sees next.
    for err in errors:
        if isinstance(err, AuthError):
            return err
    return errors[0]


class ExpenseController(ResourceController):
    """
    Expenses and their summary are one unit: both requests run concurrently and
    both must succeed, otherwise the previous snapshot stays as it was.
    """

    resource = "expenses"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._generation = RequestGeneration(self.resource)
        self.snapshot: ExpenseSnapshot | None = None

    @property
    def loaded(self) -> bool:
        return self.snapshot is not None

    async def refresh(self) -> ExpenseSnapshot:
        ticket = self._generation.begin()
        results = await asyncio.gather(
            self._call("/expenses"),
            self._call("/expenses/summary"),
            return_exceptions=True,
        )
        err = _first_error(results)
        if err is None:
            raw_expenses, raw_summary = results
            try:
                snapshot = ExpenseSnapshot(
                    expenses=decode_list(raw_expenses, Expense.from_json),
                    summary=ExpenseSummary.from_json(raw_summary),
                )
            except ClientError as e:
                err = e

        if err is not None:
            if not isinstance(err, AuthError) and not self._generation.is_current(ticket):
                logger.debug("expenses: dropping failure of stale request: %r", err)
                return self.snapshot or ExpenseSnapshot()
            raise err

        if not self._generation.is_current(ticket):
            logger.debug("expenses: dropping stale response (ticket=%s latest=%s)", ticket, self._generation.latest)
            return self.snapshot or snapshot

        self.snapshot = snapshot
        self._bus.publish(ExpensesChanged(snapshot=snapshot))
        return snapshot

    async def create(self, category: str, amount: Any) -> ExpenseSnapshot:
        category = (category or "").strip()
        if not category:
            raise ValidationError("Category cannot be empty.")
        value = parse_amount(amount)

        await self._call("/expenses", "POST", {"category": category, "amount": value})
        logger.info("Expense created: %s %.2f", category, value)
        return await self.refresh()

    def reset(self) -> None:
        self.snapshot = None
        self._generation.invalidate()
