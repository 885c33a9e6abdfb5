from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import TaskPriority, TaskStatus


@dataclass(frozen=True)
class Task:
    """Domain entity: a unit of farm work assigned to one worker."""

    task_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority = TaskPriority.MEDIUM
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[str] = None
    location: Optional[str] = None
    estimated_hours: Optional[float] = None
    farm_id: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to_name: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.task_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "assigned_to": self.assigned_to,
            "assigned_to_name": self.assigned_to_name,
            "location": self.location,
            "estimated_hours": self.estimated_hours,
            "farm_id": self.farm_id,
            "created_by": self.created_by,
            "created_by_name": self.created_by_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        due = data.get("due_date")
        created = data.get("created_at")
        hours = data.get("estimated_hours")
        return cls(
            task_id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=data.get("description"),
            priority=TaskPriority(data.get("priority") or TaskPriority.MEDIUM.value),
            status=TaskStatus(data.get("status") or TaskStatus.PENDING.value),
            due_date=parse_iso_date(due) if due else None,
            assigned_to=data.get("assigned_to"),
            assigned_to_name=data.get("assigned_to_name"),
            location=data.get("location"),
            estimated_hours=float(hours) if hours is not None else None,
            farm_id=data.get("farm_id"),
            created_by=data.get("created_by"),
            created_by_name=data.get("created_by_name"),
            created_at=datetime.fromisoformat(created) if created else None,
        )


@dataclass(frozen=True)
class TaskStatistics:
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    overdue: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "in_progress": self.in_progress,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "overdue": self.overdue,
        }
