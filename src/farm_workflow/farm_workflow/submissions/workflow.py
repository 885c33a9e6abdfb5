from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from ..common.validators import require_non_empty, require_photo_extension, require_photo_size
from ..core.enums import Gating, SubmissionState, SubmissionStatus
from ..core.exceptions import ConflictError, ValidationError
from ..tasks.model import Task
from .gating import GatingView, derive_state, describe
from .model import PhotoUpload, Submission

logger = structlog.get_logger(__name__)

_REVIEW_DECISIONS = frozenset({SubmissionStatus.APPROVED, SubmissionStatus.REJECTED})


@dataclass(frozen=True)
class TaskSubmissionsView:
    task_id: str
    task: Optional[Task]
    submissions: tuple[Submission, ...]
    state: SubmissionState
    gating: GatingView


def build_view(task_id: str, submissions, *, task: Optional[Task] = None) -> TaskSubmissionsView:
    """Newest first; the larger id wins on equal timestamps."""

    ordered = sorted(submissions, key=lambda s: (s.submitted_at, s.submission_id), reverse=True)
    return TaskSubmissionsView(
        task_id=task_id,
        task=task,
        submissions=tuple(ordered),
        state=derive_state(ordered),
        gating=describe(task, ordered),
    )


def validate_submission(notes: str, photo: Optional[PhotoUpload]) -> str:
    """Local checks done before any network call."""

    notes = require_non_empty(notes, "Notes")
    if photo is not None:
        require_photo_size(photo.size)
        require_photo_extension(photo.filename)
    return notes


class SubmissionWorkflow:
    """Client side of the submit / review loop for a single task."""

    def __init__(self, api):
        self._api = api

    def load(self, task_id: str, *, task: Optional[Task] = None) -> TaskSubmissionsView:
        return build_view(task_id, self._api.task_submissions(task_id), task=task)

    def submit(
        self,
        task_id: str,
        notes: str,
        photo: Optional[PhotoUpload] = None,
        *,
        task: Optional[Task] = None,
    ) -> str:
        notes = validate_submission(notes, photo)

        # Re-derive from fresh server state right before posting.
        current = self.load(task_id, task=task)
        if not current.gating.can_submit:
            if current.gating.gating == Gating.AWAITING_REVIEW:
                message = "A submission for this task is already awaiting review"
            else:
                message = "This task no longer accepts submissions"
            raise ConflictError(message, refreshed=current)

        try:
            submission_id = self._api.submit_task(task_id, notes, photo)
        except ConflictError as e:
            logger.info("submission_conflict", task_id=task_id)
            raise ConflictError(str(e), refreshed=self.load(task_id, task=task)) from e

        logger.info(
            "submission_created",
            task_id=task_id,
            submission_id=submission_id,
            resubmission=current.gating.gating == Gating.CAN_RESUBMIT,
            has_photo=photo is not None,
        )
        return submission_id

    def review(
        self,
        submission_id: str,
        decision: SubmissionStatus,
        review_notes: Optional[str] = None,
        *,
        task_id: Optional[str] = None,
    ) -> None:
        try:
            decision = SubmissionStatus(decision)
        except ValueError:
            raise ValidationError("Decision must be approved or rejected") from None
        if decision not in _REVIEW_DECISIONS:
            raise ValidationError("Decision must be approved or rejected")

        try:
            self._api.review_submission(submission_id, decision, (review_notes or "").strip() or None)
        except ConflictError as e:
            refreshed = self.load(task_id) if task_id else None
            raise ConflictError(str(e), refreshed=refreshed) from e

        logger.info("submission_reviewed", submission_id=submission_id, decision=decision.value)
