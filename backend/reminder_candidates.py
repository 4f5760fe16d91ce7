"""Candidate scanner: find tasks that may need a deadline reminder this pass."""
import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.orm import joinedload

from models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderCandidate:
    task: Task
    user_id: int


@dataclass
class CandidateScan:
    due_soon: List[ReminderCandidate] = field(default_factory=list)
    overdue: List[ReminderCandidate] = field(default_factory=list)
    skipped_task_ids: List[int] = field(default_factory=list)

    def __len__(self):
        return len(self.due_soon) + len(self.overdue)


def resolve_target_user_id(task):
    """Assignee when set, else the owner of the task's board, else None."""
    if task.assignee_id:
        return task.assignee_id
    board = task.board
    if board is not None and board.user_id:
        return board.user_id
    return None


def scan_candidates(now):
    """
    Split live (unarchived, dated) tasks into due-soon candidates (due after now)
    and overdue candidates (due at or before now).
    """
    scan = CandidateScan()
    tasks = Task.query.options(joinedload(Task.board)).filter(
        Task.archived_at.is_(None),
        Task.due_at.isnot(None),
    ).order_by(Task.due_at.asc(), Task.id.asc()).all()

    for task in tasks:
        user_id = resolve_target_user_id(task)
        if not user_id:
            logger.warning("Task %s has no assignee or board owner; skipping reminders", task.id)
            scan.skipped_task_ids.append(task.id)
            continue
        candidate = ReminderCandidate(task=task, user_id=user_id)
        if task.due_at > now:
            scan.due_soon.append(candidate)
        else:
            scan.overdue.append(candidate)
    return scan
