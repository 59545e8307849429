"""Lifecycle of task instances: creation, recurrence transitions and deletion.

A task is always in exactly one role:
- standalone: no parent, not recurring
- parent: `is_recurring` with an encoded rule; the first occurrence of a series
- child: generated occurrence pointing at its parent via `recurrence_parent_id`

Only pending (non-COMPLETED) children are ever regenerated, propagated to, or
cascaded by soft delete; completed children are history.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from taskcore.clock import Clock, resolve_clock
from taskcore.database.category_repository import CategoryRepository
from taskcore.database.database import atomic
from taskcore.database.repository import TaskRepository
from taskcore.database.task_list_repository import TaskListRepository
from taskcore.engine.propagation import ChangePropagator
from taskcore.errors import (
    ConcurrentModificationError,
    FormatError,
    NotFoundError,
    StructuralTransitionError,
)
from taskcore.models.constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_NAME
from taskcore.models.recurrence import RecurrenceRule
from taskcore.models.requests import TaskCreate, TaskPatch
from taskcore.models.task import Task, TaskRole
from taskcore.models.task_factory import (
    completed_at_for_transition,
    create_task_base,
    shift_to_date,
)
from taskcore.recurrence.codec import decode, encode, same_rule
from taskcore.recurrence.generator import default_horizon, generate_dates, occurrence_dates

logger = logging.getLogger(__name__)


class InstanceLifecycleManager:
    """Single-task operations. Every public method is one transaction."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = resolve_clock(clock)
        self.tasks = TaskRepository(db)
        self.categories = CategoryRepository(db)
        self.task_lists = TaskListRepository(db)
        self.propagator = ChangePropagator(self.tasks)

    # ---- reads ----

    def get_task(self, task_id: int, user_id: str) -> Task:
        return self._require(user_id, task_id)

    def list_tasks(self, user_id: str) -> List[Task]:
        return self.tasks.find_by_owner(user_id)

    def list_task_list_tasks(self, task_list_id: int, user_id: str) -> List[Task]:
        """Tasks in a list; recurring children are hidden behind their parent."""
        if self.task_lists.get(user_id, task_list_id) is None:
            logger.warning(f"Task list {task_list_id} not found for user: {user_id}")
            raise NotFoundError("Task list not found or access denied")
        return self.tasks.find_by_task_list(user_id, task_list_id)

    def list_trash(self, user_id: str) -> List[Task]:
        return self.tasks.find_trash(user_id)

    # ---- collaborator resolution ----

    def resolve_task_list_id(
        self, user_id: str, task_list_id: Optional[int] = None, task_list_title: Optional[str] = None
    ) -> int:
        """Title wins (get-or-create); no id (or 0) means the owner's Inbox."""
        if task_list_title and task_list_title.strip():
            return self.task_lists.get_or_create(user_id, task_list_title.strip()).id
        if not task_list_id:
            return self.task_lists.get_or_create_inbox(user_id).id
        task_list = self.task_lists.get(user_id, task_list_id)
        if task_list is None:
            logger.warning(f"Task list {task_list_id} not found for user: {user_id}")
            raise NotFoundError("Task list not found or access denied")
        return task_list.id

    def resolve_category_id(
        self, user_id: str, category_id: Optional[int] = None, category_name: Optional[str] = None
    ) -> int:
        """Explicit id must exist; a name is get-or-create; otherwise the default category."""
        if category_id is not None:
            category = self.categories.get(user_id, category_id)
            if category is None:
                logger.warning(f"Category {category_id} not found for user: {user_id}")
                raise NotFoundError("Category not found or access denied")
            return category.id
        if category_name and category_name.strip():
            return self.categories.get_or_create(user_id, category_name.strip()).id
        return self.categories.get_or_create(user_id, DEFAULT_CATEGORY_NAME, DEFAULT_CATEGORY_COLOR).id

    # ---- create ----

    def create(self, request: TaskCreate, user_id: str) -> Task:
        """Create a task; a recurring request creates the whole series and returns the parent."""
        logger.info(f"Creating task for user: {user_id}")
        with atomic(self.db):
            return self._create(request, user_id)

    def bulk_create(self, requests: List[TaskCreate], user_id: str) -> List[Task]:
        logger.info(f"Bulk creating {len(requests)} tasks for user: {user_id}")
        with atomic(self.db):
            return [self._create(request, user_id) for request in requests]

    def _create(self, request: TaskCreate, user_id: str) -> Task:
        task_list_id = self.resolve_task_list_id(user_id, request.task_list_id, request.task_list_title)
        category_id = self.resolve_category_id(user_id, request.category_id, request.category_name)
        now = self.clock.now()

        if request.custom_dates:
            logger.info(f"Creating {len(request.custom_dates)} tasks with custom dates for user: {user_id}")
            created = self.tasks.save_all([
                self._build(request, user_id, task_list_id, category_id, now, day)
                for day in request.custom_dates
            ])
            return created[0]

        if request.is_recurring and request.recurrence_rule is not None:
            return self._create_series(request, user_id, task_list_id, category_id, now)

        day = request.scheduled_start_at.date() if request.scheduled_start_at else self.clock.today()
        saved = self.tasks.save(self._build(request, user_id, task_list_id, category_id, now, day))
        logger.info(f"Created task {saved.id} for user: {user_id}")
        return saved

    def _create_series(
        self, request: TaskCreate, user_id: str, task_list_id: int, category_id: int, now: datetime
    ) -> Task:
        rule = request.recurrence_rule
        encoded = encode(rule)
        anchor = request.scheduled_start_at.date() if request.scheduled_start_at else self.clock.today()
        dates = occurrence_dates(anchor, rule)
        logger.info(f"Creating recurring tasks for user: {user_id} with rule: {encoded} ({len(dates)} dates)")

        parent = self.tasks.save(
            self._build(
                request, user_id, task_list_id, category_id, now, dates[0],
                is_recurring=True, recurrence_rule=encoded,
            )
        )
        self.tasks.save_all([self._child_of(parent, day, now) for day in dates[1:]])
        return parent

    def _build(
        self,
        request: TaskCreate,
        user_id: str,
        task_list_id: int,
        category_id: int,
        now: datetime,
        day: date,
        is_recurring: bool = False,
        recurrence_rule: Optional[str] = None,
    ) -> Task:
        start, end = shift_to_date(request.scheduled_start_at, request.scheduled_end_at, day)
        return create_task_base(
            user_id=user_id,
            title=request.title,
            task_list_id=task_list_id,
            category_id=category_id,
            now=now,
            description=request.description,
            status=request.status,
            estimated_pomodoros=request.estimated_pomodoros,
            scheduled_start_at=start,
            scheduled_end_at=end,
            is_all_day=request.is_all_day,
            is_recurring=is_recurring,
            recurrence_rule=recurrence_rule,
        )

    def _child_of(self, parent: Task, day: date, now: datetime) -> Task:
        start, end = shift_to_date(parent.scheduled_start_at, parent.scheduled_end_at, day)
        return create_task_base(
            user_id=parent.user_id,
            title=parent.title,
            task_list_id=parent.task_list_id,
            category_id=parent.category_id,
            now=now,
            description=parent.description,
            estimated_pomodoros=parent.estimated_pomodoros,
            scheduled_start_at=start,
            scheduled_end_at=end,
            is_all_day=parent.is_all_day,
            recurrence_parent_id=parent.id,
        )

    # ---- update ----

    def update(self, task_id: int, user_id: str, patch: TaskPatch) -> Task:
        """Apply a partial update, including recurrence state transitions."""
        logger.info(f"Updating task {task_id} for user: {user_id}")
        if patch is None:
            raise ValueError("Update request cannot be null")
        with atomic(self.db):
            return self._update(task_id, user_id, patch)

    def _update(self, task_id: int, user_id: str, patch: TaskPatch) -> Task:
        existing = self._require(user_id, task_id)
        if patch.version is not None and patch.version != existing.version:
            raise ConcurrentModificationError(
                f"Task {task_id} was modified concurrently (expected version {patch.version}, found {existing.version})",
                task_id=task_id,
            )

        now = self.clock.now()
        task = existing.model_copy(update=self._field_updates(existing, patch, user_id, now))

        was_recurring = existing.is_recurring
        effective_recurring = patch.is_recurring if patch.is_recurring is not None else was_recurring
        turned_off = patch.is_recurring is False
        turned_on = not was_recurring and effective_recurring
        rule_changed = (
            effective_recurring
            and patch.recurrence_rule is not None
            and not same_rule(existing.recurrence_rule, patch.recurrence_rule)
        )

        if turned_off:
            logger.info(f"Turning off recurrence for task {task_id} (requested is_recurring=false)")
            saved = self.tasks.save(task.model_copy(update={"is_recurring": False}))
            self._delete_pending_children(saved.id)
            return saved

        if turned_on or rule_changed:
            if existing.role == TaskRole.CHILD:
                raise StructuralTransitionError(
                    f"Task {task_id} is an occurrence of task {existing.recurrence_parent_id} and cannot become recurring"
                )
            rule = patch.recurrence_rule if patch.recurrence_rule is not None else decode(existing.recurrence_rule)
            if rule is None:
                raise FormatError("A recurrence rule is required to enable recurrence")
            logger.info(
                f"Recurrence changed for task {task_id} (turned_on={turned_on}, rule_changed={rule_changed}). "
                f"Regenerating instances."
            )
            saved = self.tasks.save(task.model_copy(update={"is_recurring": True, "recurrence_rule": encode(rule)}))
            self._replace_pending_children(saved, rule, now)
            return saved

        if patch.recurrence_rule is not None and not effective_recurring:
            logger.debug(f"Ignoring recurrence rule on non-recurring task {task_id}")

        saved = self.tasks.save(task)
        logger.info(f"Updated task {saved.id} for user: {user_id}")
        if saved.is_recurring:
            self.propagator.propagate(saved, patch)
        return saved

    def _field_updates(self, existing: Task, patch: TaskPatch, user_id: str, now: datetime) -> dict:
        updates = {"updated_at": now}
        if patch.title is not None:
            updates["title"] = patch.title
        if patch.status is not None:
            updates["status"] = patch.status
            updates["completed_at"] = completed_at_for_transition(
                existing.status, existing.completed_at, patch.status, now
            )
        if patch.has_category:
            updates["category_id"] = self.resolve_category_id(user_id, patch.category_id, patch.category_name)
        if patch.has_task_list:
            updates["task_list_id"] = self.resolve_task_list_id(user_id, patch.task_list_id, patch.task_list_title)
            logger.info(f"Moving task {existing.id} to task list {updates['task_list_id']}")
        if patch.completed_at is not None:
            updates["completed_at"] = patch.completed_at
        if patch.estimated_pomodoros is not None:
            updates["estimated_pomodoros"] = patch.estimated_pomodoros
        if patch.description is not None:
            updates["description"] = patch.description
        if patch.scheduled_start_at is not None:
            updates["scheduled_start_at"] = patch.scheduled_start_at
        if patch.scheduled_end_at is not None:
            updates["scheduled_end_at"] = patch.scheduled_end_at
        if patch.is_all_day is not None:
            updates["is_all_day"] = patch.is_all_day
        return updates

    # ---- children ----

    def _delete_pending_children(self, parent_id: int) -> int:
        pending = self.tasks.find_pending_children_by_parent_id(parent_id)
        if not pending:
            logger.debug(f"No pending child tasks found for parent {parent_id}")
            return 0
        logger.info(f"Permanently deleting {len(pending)} pending child tasks of parent {parent_id}")
        return self.tasks.delete_all(pending)

    def _replace_pending_children(self, parent: Task, rule: RecurrenceRule, now: datetime) -> List[Task]:
        """The only path that rewrites a parent's open occurrences.

        Pending children are dropped and regenerated strictly after the parent's
        date. Dates already held by a completed child are not duplicated.
        """
        self._delete_pending_children(parent.id)

        anchor = parent.scheduled_start_at.date() if parent.scheduled_start_at else self.clock.today()
        completed_days = {
            c.scheduled_start_at.date()
            for c in self.tasks.find_all_children_by_parent_id(parent.id)
            if c.scheduled_start_at is not None
        }
        dates = [
            d for d in generate_dates(anchor, rule, default_horizon(anchor))
            if d > anchor and d not in completed_days
        ]
        logger.info(f"Generating {len(dates)} recurring instances for task {parent.id}")
        return self.tasks.save_all([self._child_of(parent, day, now) for day in dates])

    # ---- delete / restore ----

    def soft_delete(self, task_id: int, user_id: str) -> Task:
        """Move a task to the trash; a parent takes its pending children with it."""
        logger.info(f"Soft deleting task {task_id} for user: {user_id}")
        with atomic(self.db):
            task = self._require(user_id, task_id, include_deleted=True)
            if task.is_deleted:
                return task
            deleted = self.mark_deleted([task])
            logger.info(f"Soft deleted task {task_id} for user: {user_id}")
            return deleted[0]

    def mark_deleted(self, targets: List[Task]) -> List[Task]:
        """Soft-delete `targets` (plus pending children of parents); returns the targets."""
        now = self.clock.now()
        target_ids = {t.id for t in targets}
        rows: List[Task] = []
        for task in targets:
            rows.append(task.model_copy(update={"deleted_at": now, "updated_at": now}))
            if task.role != TaskRole.PARENT:
                continue
            pending = [
                c for c in self.tasks.find_pending_children_by_parent_id(task.id)
                if not c.is_deleted and c.id not in target_ids
            ]
            if pending:
                logger.info(f"Propagating delete to {len(pending)} pending child tasks of parent {task.id}")
            rows.extend(c.model_copy(update={"deleted_at": now, "updated_at": now}) for c in pending)
        saved = self.tasks.save_all(rows)
        return [t for t in saved if t.id in target_ids]

    def restore(self, task_id: int, user_id: str) -> Task:
        """Take a single task out of the trash.

        Children soft-deleted alongside a parent are not restored with it.
        """
        logger.info(f"Restoring task {task_id} for user: {user_id}")
        with atomic(self.db):
            task = self._require(user_id, task_id, include_deleted=True)
            if not task.is_deleted:
                return task
            now = self.clock.now()
            restored = self.tasks.save(task.model_copy(update={"deleted_at": None, "updated_at": now}))
            logger.info(f"Restored task {task_id} for user: {user_id}")
            return restored

    def permanent_delete(self, task_id: int, user_id: str) -> None:
        """Remove a task (active or trashed) and every one of its children."""
        logger.info(f"Permanently deleting task {task_id} for user: {user_id}")
        with atomic(self.db):
            task = self._require(user_id, task_id, include_deleted=True)
            children = self.tasks.find_all_children_by_parent_id(task.id)
            if children:
                logger.info(f"Cascading permanent delete to {len(children)} child tasks of parent {task.id}")
                self.tasks.delete_all(children)
            self.tasks.delete_all([task])
        logger.info(f"Permanently deleted task {task_id} for user: {user_id}")

    def _require(self, user_id: str, task_id: int, include_deleted: bool = False) -> Task:
        task = self.tasks.find_by_owner_and_id(user_id, task_id, include_deleted=include_deleted)
        if task is None:
            logger.warning(f"Task {task_id} not found for user: {user_id}")
            raise NotFoundError("Task not found or access denied")
        return task
