# src/aide_client/resources/tasks.py

from __future__ import annotations

import logging
from urllib.parse import quote

from ..api.client import ApiClient
from ..core.errors import AuthError, ClientError, ValidationError
from ..core.events import EventBus, TasksChanged
from ..core.models import Task, decode_list
from ..core.ports import Confirmer
from ..core.sync import RequestGeneration
from ..session.store import SessionStore
from .base import ResourceController

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this task?"


def _task_path(task_id: str) -> str:
    return f"/tasks/{quote(str(task_id), safe='')}"


class TaskController(ResourceController):
    """
    Fetch-and-render cycle for tasks.

    Every mutation is followed by a full refresh; nothing is patched locally.
    `tasks` is None until the first successful fetch, so "no tasks yet" can be
    told apart from "not loaded".
    """

    resource = "tasks"

    def __init__(
            self,
            api: ApiClient,
            session: SessionStore,
            bus: EventBus,
            confirmer: Confirmer,
    ) -> None:
        super().__init__(api, session, bus)
        self._confirmer = confirmer
        self._generation = RequestGeneration(self.resource)
        self.tasks: list[Task] | None = None

    @property
    def loaded(self) -> bool:
        return self.tasks is not None

    async def refresh(self) -> list[Task]:
        ticket = self._generation.begin()
        try:
            data = await self._call("/tasks")
            tasks = decode_list(data, Task.from_json)
        except AuthError:
            raise
        except ClientError as e:
            if not self._generation.is_current(ticket):
                logger.debug("tasks: dropping failure of stale request: %r", e)
                return list(self.tasks or [])
            raise

        if not self._generation.is_current(ticket):
            logger.debug("tasks: dropping stale response (ticket=%s latest=%s)", ticket, self._generation.latest)
            return list(self.tasks or [])

        self.tasks = tasks
        self._bus.publish(TasksChanged(tasks=list(tasks)))
        return tasks

    async def create(self, title: str) -> list[Task]:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Task title cannot be empty.")

        await self._call("/tasks", "POST", {"title": title})
        logger.info("Task created: %r", title)
        return await self.refresh()

    async def toggle(self, task_id: str, completed: bool) -> list[Task]:
        await self._call(_task_path(task_id), "PATCH", {"completed": bool(completed)})
        logger.debug("Task %s completed=%s", task_id, completed)
        return await self.refresh()

    async def delete(self, task_id: str) -> bool:
        """Returns False when the user declined; nothing is sent in that case."""
        if not await self._confirmer.confirm(DELETE_PROMPT):
            logger.debug("Task %s delete declined.", task_id)
            return False

        await self._call(_task_path(task_id), "DELETE")
        logger.info("Task deleted: %s", task_id)
        await self.refresh()
        return True

    def find(self, task_id: str) -> Task | None:
        for task in self.tasks or []:
            if task.id == task_id:
                return task
        return None

    def reset(self) -> None:
        self.tasks = None
        self._generation.invalidate()
