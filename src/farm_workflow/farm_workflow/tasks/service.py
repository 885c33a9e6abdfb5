from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import Role, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import SessionUser
from .model import Task, TaskStatistics
from .repository import TaskRepository


def task_statistics(tasks: Sequence[Task], *, today: date) -> TaskStatistics:
    def count(status: TaskStatus) -> int:
        return sum(1 for t in tasks if t.status == status)

    return TaskStatistics(
        total=len(tasks),
        pending=count(TaskStatus.PENDING),
        in_progress=count(TaskStatus.IN_PROGRESS),
        completed=count(TaskStatus.COMPLETED),
        cancelled=count(TaskStatus.CANCELLED),
        overdue=sum(1 for t in tasks if t.due_date and t.due_date < today and t.status != TaskStatus.COMPLETED),
    )


class TaskService:
    def __init__(self, tasks: TaskRepository, *, clock: Optional[Callable] = None):
        self._tasks = tasks
        self._clock = clock or now_local

    def list_my_tasks(self, current_user: SessionUser) -> tuple[Sequence[Task], TaskStatistics]:
        if not current_user.farm_id:
            raise NotFoundError("No farm associated with this user")
        tasks = self._tasks.list_for_assignee(farm_id=current_user.farm_id, user_id=current_user.user_id)
        return tasks, task_statistics(tasks, today=self._clock().date())

    def get_for_user(self, current_user: SessionUser, task_id: str) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task or task.farm_id != current_user.farm_id:
            raise NotFoundError("Task not found")
        if current_user.role == Role.WORKER and task.assigned_to != current_user.user_id:
            raise NotFoundError("Task not found")
        return task

    def update_status(self, current_user: SessionUser, task_id: str, status: str) -> Task:
        try:
            new_status = TaskStatus(status)
        except ValueError:
            raise ValidationError("Invalid task status")

        task = self.get_for_user(current_user, task_id)
        if current_user.role == Role.WORKER and new_status in {TaskStatus.COMPLETED, TaskStatus.CANCELLED}:
            # Workers complete tasks through the submission workflow.
            raise AuthorizationError("Workers cannot set this status directly")

        self._tasks.update_status(task.task_id, new_status)
        return self.get_for_user(current_user, task_id)
