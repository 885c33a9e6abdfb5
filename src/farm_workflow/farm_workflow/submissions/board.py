from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog

from ..common.datetime_utils import now_local
from ..core.enums import Gating, SubmissionStatus, TaskStatus
from ..core.exceptions import ConflictError, NetworkError
from ..tasks.model import Task
from .gating import GatingView
from .model import PhotoUpload, Submission
from .workflow import SubmissionWorkflow, TaskSubmissionsView, build_view

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TaskCard:
    task: Task
    view: TaskSubmissionsView
    stale: bool = False

    @property
    def gating(self) -> GatingView:
        return self.view.gating

    @property
    def latest(self) -> Optional[Submission]:
        return self.view.submissions[0] if self.view.submissions else None


@dataclass
class SubmissionDraft:
    """Unsaved form state. Refreshes never touch it."""

    notes: str = ""
    photo: Optional[PhotoUpload] = None


def is_available(task: Task, today: date) -> bool:
    """Tasks show up once due (or immediately when they have no due date)."""

    return task.due_date is None or task.due_date <= today


class TaskBoard:
    """Worker "My Tasks" view model: one card per task plus open drafts."""

    def __init__(self, api, workflow: Optional[SubmissionWorkflow] = None):
        self._api = api
        self._workflow = workflow or SubmissionWorkflow(api)
        self._lock = threading.Lock()
        self._cards: dict[str, TaskCard] = {}
        self._drafts: dict[str, SubmissionDraft] = {}

    def refresh(self, *, today: Optional[date] = None) -> list[TaskCard]:
        today = today or now_local().date()
        cards: dict[str, TaskCard] = {}
        for task in self._api.my_tasks():
            if not is_available(task, today):
                continue
            stale = False
            try:
                view = self._workflow.load(task.task_id, task=task)
            except NetworkError:
                logger.warning("task_submissions_unavailable", task_id=task.task_id)
                previous = self._cards.get(task.task_id)
                if previous is None:
                    continue
                view, stale = previous.view, True
            cards[task.task_id] = TaskCard(task=task, view=view, stale=stale)

        with self._lock:
            self._cards = cards
        return self.cards()

    def cards(self, *, status: Optional[TaskStatus] = None) -> list[TaskCard]:
        with self._lock:
            cards = list(self._cards.values())
        if status is not None:
            cards = [c for c in cards if c.task.status == status]
        return cards

    def card(self, task_id: str) -> Optional[TaskCard]:
        with self._lock:
            return self._cards.get(task_id)

    def count(self, gating: Gating) -> int:
        return sum(1 for c in self.cards() if c.gating.gating == gating)

    # -------- Drafts --------
    def draft(self, task_id: str) -> SubmissionDraft:
        with self._lock:
            return self._drafts.setdefault(task_id, SubmissionDraft())

    def edit_draft(self, task_id: str, *, notes: Optional[str] = None, photo: Optional[PhotoUpload] = None) -> SubmissionDraft:
        draft = self.draft(task_id)
        if notes is not None:
            draft.notes = notes
        if photo is not None:
            draft.photo = photo
        return draft

    def discard_draft(self, task_id: str) -> None:
        with self._lock:
            self._drafts.pop(task_id, None)

    def submit_draft(self, task_id: str) -> str:
        draft = self.draft(task_id)
        card = self.card(task_id)
        task = card.task if card else None

        try:
            submission_id = self._workflow.submit(task_id, draft.notes, draft.photo, task=task)
        except ConflictError as e:
            if task is not None and e.refreshed is not None:
                self._replace_card(TaskCard(task=task, view=e.refreshed))
            raise

        notes = draft.notes.strip()
        self.discard_draft(task_id)
        if task is not None:
            try:
                self._replace_card(TaskCard(task=task, view=self._workflow.load(task_id, task=task)))
            except NetworkError:
                # Already accepted by the server; show it as pending until the next refresh.
                logger.warning("task_submissions_unavailable", task_id=task_id, submission_id=submission_id)
                pending = Submission(
                    submission_id=submission_id,
                    task_id=task_id,
                    notes=notes,
                    submitted_at=now_local(),
                    status=SubmissionStatus.PENDING,
                )
                view = build_view(task_id, (pending,) + card.view.submissions, task=task)
                self._replace_card(TaskCard(task=task, view=view, stale=True))
        return submission_id

    def _replace_card(self, card: TaskCard) -> None:
        with self._lock:
            self._cards[card.task.task_id] = card
