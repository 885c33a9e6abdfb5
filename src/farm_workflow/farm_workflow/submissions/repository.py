from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SubmissionStatus
from .model import Submission


class SubmissionRepository(Protocol):
    def create_pending(
        self,
        *,
        task_id: str,
        submitted_by: str,
        notes: str,
        photo_url: Optional[str],
    ) -> Optional[str]:
        """Insert a pending submission; return None if the task already has one."""
        raise NotImplementedError

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        raise NotImplementedError

    def list_for_task(self, task_id: str) -> Sequence[Submission]:
        raise NotImplementedError

    def list_for_farm(self, farm_id: str) -> Sequence[Submission]:
        raise NotImplementedError

    def has_pending(self, task_id: str) -> bool:
        raise NotImplementedError

    def decide(
        self,
        submission_id: str,
        *,
        status: SubmissionStatus,
        reviewed_by: str,
        review_notes: Optional[str],
    ) -> bool:
        """Record a review decision; return False if the submission is no longer pending."""
        raise NotImplementedError
