from __future__ import annotations

from typing import Optional, Sequence

import structlog

from ..common.validators import require_non_empty
from ..core.enums import Role, SubmissionStatus, TaskStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..tasks.model import Task
from ..tasks.repository import TaskRepository
from ..users.model import SessionUser
from .model import PhotoUpload, Submission
from .photo_store import PhotoStore
from .repository import SubmissionRepository

logger = structlog.get_logger(__name__)

SUBMITTER_ROLES = frozenset({Role.WORKER, Role.MANAGER})
REVIEWER_ROLES = frozenset({Role.OWNER, Role.MANAGER})


class SubmissionService:
    """Use cases for submitting task evidence and reviewing it.

    A task holds at most one pending submission. Decisions are terminal: a
    submission that is no longer pending cannot be reviewed again.
    """

    def __init__(self, submissions: SubmissionRepository, tasks: TaskRepository, photos: PhotoStore):
        self._submissions = submissions
        self._tasks = tasks
        self._photos = photos

    def _task_in_farm(self, current_user: SessionUser, task_id: str) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task or not current_user.farm_id or task.farm_id != current_user.farm_id:
            raise NotFoundError("Task not found")
        return task

    def submit(
        self,
        current_user: SessionUser,
        task_id: str,
        *,
        notes: str,
        photo: Optional[PhotoUpload] = None,
    ) -> str:
        if current_user.role not in SUBMITTER_ROLES:
            raise AuthorizationError("Insufficient permissions")
        notes = require_non_empty(notes, "Notes")

        task = self._task_in_farm(current_user, task_id)
        if task.assigned_to != current_user.user_id:
            raise NotFoundError("Task not found or not assigned to you")
        if task.status == TaskStatus.CANCELLED:
            raise ConflictError("Task has been cancelled")
        if self._submissions.has_pending(task_id):
            raise ConflictError("Task already has a submission awaiting review")

        photo_url = self._photos.save(photo)
        try:
            submission_id = self._submissions.create_pending(
                task_id=task_id,
                submitted_by=current_user.user_id,
                notes=notes,
                photo_url=photo_url,
            )
        except Exception:
            self._photos.delete(photo_url)
            raise
        if submission_id is None:
            self._photos.delete(photo_url)
            raise ConflictError("Task already has a submission awaiting review")

        self._tasks.update_status(task_id, TaskStatus.COMPLETED)
        logger.info("submission_received", task_id=task_id, submission_id=submission_id, user_id=current_user.user_id)
        return submission_id

    def review(
        self,
        current_user: SessionUser,
        submission_id: str,
        *,
        status: str,
        review_notes: Optional[str] = None,
    ) -> Submission:
        if current_user.role not in REVIEWER_ROLES:
            raise AuthorizationError("Insufficient permissions")
        try:
            decision = SubmissionStatus(status)
        except ValueError:
            decision = None
        if decision not in {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED}:
            raise ValidationError("Invalid status. Must be approved or rejected")

        submission = self._submissions.get_by_id(submission_id)
        if not submission:
            raise NotFoundError("Submission not found")
        self._task_in_farm(current_user, submission.task_id)
        if not submission.is_pending:
            raise ConflictError(f"Submission already {submission.status.value}")

        if not self._submissions.decide(
            submission_id,
            status=decision,
            reviewed_by=current_user.user_id,
            review_notes=(review_notes or "").strip() or None,
        ):
            raise ConflictError("Submission was reviewed by someone else")

        if decision == SubmissionStatus.REJECTED:
            self._tasks.update_status(submission.task_id, TaskStatus.IN_PROGRESS)
        logger.info("submission_reviewed", submission_id=submission_id, decision=decision.value, reviewer=current_user.user_id)
        return self._submissions.get_by_id(submission_id) or submission

    def list_for_task(self, current_user: SessionUser, task_id: str) -> Sequence[Submission]:
        task = self._task_in_farm(current_user, task_id)
        if current_user.role == Role.WORKER and task.assigned_to != current_user.user_id:
            raise NotFoundError("Task not found")
        return self._submissions.list_for_task(task_id)

    def list_for_farm(self, current_user: SessionUser) -> Sequence[Submission]:
        if current_user.role not in REVIEWER_ROLES:
            raise AuthorizationError("Insufficient permissions")
        if not current_user.farm_id:
            raise NotFoundError("No farm associated with this user")
        return self._submissions.list_for_farm(current_user.farm_id)
