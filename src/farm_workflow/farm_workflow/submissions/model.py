from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ..core.enums import SubmissionStatus


def _parse_ts(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        # Compare everything as naive UTC so mixed payloads still order.
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class Submission:
    """Domain entity: a worker's completion evidence for one task."""

    submission_id: str
    task_id: str
    notes: str
    submitted_at: datetime
    status: SubmissionStatus
    submitted_by: Optional[str] = None
    photo_url: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    submitted_by_name: Optional[str] = None
    reviewed_by_name: Optional[str] = None
    task_title: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.submission_id,
            "task_id": self.task_id,
            "task_title": self.task_title,
            "submitted_by": self.submitted_by,
            "submitted_by_name": self.submitted_by_name,
            "notes": self.notes,
            "photo_url": self.photo_url,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "review_notes": self.review_notes,
            "reviewed_by": self.reviewed_by,
            "reviewed_by_name": self.reviewed_by_name,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Submission":
        return cls(
            submission_id=str(data["id"]),
            task_id=str(data.get("task_id") or ""),
            notes=data.get("notes") or "",
            submitted_at=_parse_ts(data.get("submitted_at")) or datetime.min,
            status=SubmissionStatus(data["status"]),
            submitted_by=data.get("submitted_by"),
            photo_url=data.get("photo_url"),
            review_notes=data.get("review_notes"),
            reviewed_by=data.get("reviewed_by"),
            reviewed_at=_parse_ts(data.get("reviewed_at")),
            submitted_by_name=data.get("submitted_by_name"),
            reviewed_by_name=data.get("reviewed_by_name"),
            task_title=data.get("task_title"),
        )


@dataclass(frozen=True)
class PhotoUpload:
    """A photo picked by the worker, held in memory until submit."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)
