from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import Task


class TaskRepository(Protocol):
    def get_by_id(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def list_for_assignee(self, *, farm_id: str, user_id: str) -> Sequence[Task]:
        raise NotImplementedError

    def update_status(self, task_id: str, status: TaskStatus) -> bool:
        raise NotImplementedError
