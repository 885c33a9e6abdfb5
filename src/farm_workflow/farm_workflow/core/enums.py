from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route authorization."""

    ADMIN = "admin"
    OWNER = "farm_owner"
    MANAGER = "farm_manager"
    WORKER = "field_worker"
    VIEWER = "viewer"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SubmissionStatus(str, Enum):
    """Review state of a single submission. APPROVED/REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    LATE = "late"


class SubmissionState(str, Enum):
    """Per-task state derived from the submission history (never stored)."""

    NO_SUBMISSION = "no_submission"
    PENDING_REVIEW = "pending_review"
    REJECTED = "rejected"
    APPROVED = "approved"


class Gating(str, Enum):
    """Which submission action a view may offer for a task."""

    CAN_SUBMIT = "can_submit"
    CAN_RESUBMIT = "can_resubmit"
    AWAITING_REVIEW = "awaiting_review"
    LOCKED = "locked"
