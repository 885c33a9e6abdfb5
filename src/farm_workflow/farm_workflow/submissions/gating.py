"""Gating rules: which submission action a view may offer for a task.

Everything here is a pure function of (task, submissions). Views never
inspect submission lists themselves; they call :func:`gate` and render the
matching :class:`GatingView`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.enums import Gating, SubmissionState, SubmissionStatus, TaskStatus
from ..tasks.model import Task
from .model import Submission


def latest_submission(submissions: Iterable[Submission]) -> Optional[Submission]:
    """Most recent submission by timestamp; ties broken by id, never by list order."""

    return max(submissions, key=lambda s: (s.submitted_at, s.submission_id), default=None)


def derive_state(submissions: Sequence[Submission]) -> SubmissionState:
    if any(s.status == SubmissionStatus.PENDING for s in submissions):
        return SubmissionState.PENDING_REVIEW

    latest = latest_submission(submissions)
    if latest is None:
        return SubmissionState.NO_SUBMISSION
    if latest.status == SubmissionStatus.REJECTED:
        return SubmissionState.REJECTED
    return SubmissionState.APPROVED


def gate(task: Optional[Task], submissions: Sequence[Submission]) -> Gating:
    state = derive_state(submissions)
    if state == SubmissionState.PENDING_REVIEW:
        return Gating.AWAITING_REVIEW
    if task is not None and task.status == TaskStatus.CANCELLED:
        return Gating.LOCKED
    if state == SubmissionState.REJECTED:
        return Gating.CAN_RESUBMIT
    if state == SubmissionState.APPROVED:
        return Gating.LOCKED
    return Gating.CAN_SUBMIT


@dataclass(frozen=True)
class GatingView:
    gating: Gating
    action_label: Optional[str]
    banner: Optional[str]
    badge_css: str

    @property
    def can_submit(self) -> bool:
        return self.gating in {Gating.CAN_SUBMIT, Gating.CAN_RESUBMIT}


_ACTION_LABELS = {
    Gating.CAN_SUBMIT: "Submit",
    Gating.CAN_RESUBMIT: "Resubmit",
    Gating.AWAITING_REVIEW: None,
    Gating.LOCKED: None,
}

_BADGE_CSS = {
    Gating.CAN_SUBMIT: "bg-primary",
    Gating.CAN_RESUBMIT: "bg-danger",
    Gating.AWAITING_REVIEW: "bg-warning text-dark",
    Gating.LOCKED: "bg-success",
}


def describe(task: Optional[Task], submissions: Sequence[Submission]) -> GatingView:
    gating = gate(task, submissions)
    latest = latest_submission(submissions)

    banner: Optional[str] = None
    if gating == Gating.AWAITING_REVIEW:
        banner = "Submission awaiting manager review"
    elif gating == Gating.CAN_RESUBMIT and latest is not None:
        banner = "Your last submission was rejected"
        if latest.review_notes:
            banner = f"{banner}: {latest.review_notes}"
    elif gating == Gating.LOCKED:
        if task is not None and task.status == TaskStatus.CANCELLED:
            banner = "Task cancelled"
        else:
            banner = "Submission approved"

    return GatingView(
        gating=gating,
        action_label=_ACTION_LABELS[gating],
        banner=banner,
        badge_css=_BADGE_CSS[gating],
    )
