# src/aide_client/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..api.client import ApiClient
from ..session.store import SessionStore
from .events import EventBus

if TYPE_CHECKING:
    from ..resources.assistant import AssistantController
    from ..resources.expenses import ExpenseController
    from ..resources.tasks import TaskController
    from ..router import ViewRouter


@dataclass
class AppState:
    # Settings are stored on the state so connectors/commands can read them.
    settings: Any

    bus: EventBus
    api: ApiClient
    session: SessionStore
    router: ViewRouter
    tasks: TaskController
    expenses: ExpenseController
    assistant: AssistantController

    async def aclose(self) -> None:
        await self.api.aclose()
