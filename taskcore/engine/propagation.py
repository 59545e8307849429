"""Propagate parent edits to the still-open children of a recurring series."""

import logging
from typing import Any, Dict

from taskcore.database.repository import TaskRepository
from taskcore.errors import TaskCoreError
from taskcore.models.task_factory import with_time_of
from taskcore.models.requests import TaskPatch
from taskcore.models.task import Task

logger = logging.getLogger(__name__)


class ChangePropagator:
    """Copies an allow-list of edited fields from a parent to its pending children.

    Propagated: title, category, estimated effort, description, all-day flag,
    and the clock time of start/end (each child keeps its own calendar date).
    Never propagated: status and the child's date. Completed children are
    historical and left untouched.
    """

    def __init__(self, task_repository: TaskRepository):
        self.tasks = task_repository

    def _child_updates(self, parent: Task, child: Task, patch: TaskPatch) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        if patch.title is not None:
            updates["title"] = parent.title
        if patch.has_category:
            updates["category_id"] = parent.category_id
        if patch.estimated_pomodoros is not None:
            updates["estimated_pomodoros"] = parent.estimated_pomodoros
        if patch.description is not None:
            updates["description"] = parent.description
        if patch.is_all_day is not None:
            updates["is_all_day"] = parent.is_all_day
        if child.scheduled_start_at is not None:
            child_day = child.scheduled_start_at.date()
            if patch.scheduled_start_at is not None:
                updates["scheduled_start_at"] = with_time_of(patch.scheduled_start_at, child_day)
            if patch.scheduled_end_at is not None:
                updates["scheduled_end_at"] = with_time_of(patch.scheduled_end_at, child_day)
        return updates

    def propagate(self, parent: Task, patch: TaskPatch) -> int:
        """Apply `patch`'s propagated fields to every pending child of `parent`.

        A failed write on one child is logged and the rest are still attempted.
        Returns the number of children written.
        """
        children = [c for c in self.tasks.find_pending_children_by_parent_id(parent.id) if not c.is_deleted]
        if not children:
            return 0

        logger.info(f"Propagating changes from parent task {parent.id} to {len(children)} pending children")
        written = 0
        for child in children:
            updates = self._child_updates(parent, child, patch)
            if not updates:
                continue
            if parent.updated_at is not None:
                updates["updated_at"] = parent.updated_at
            try:
                self.tasks.save(child.model_copy(update=updates))
                written += 1
            except TaskCoreError as e:
                logger.warning(f"Failed to propagate changes to child task {child.id}: {type(e).__name__}: {str(e)}")

        logger.info(f"Propagated changes to {written} child tasks of parent {parent.id}")
        return written
