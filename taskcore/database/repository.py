"""Repository layer for task database operations.

Writes are flushed, not committed: the caller owns the transaction (see
`taskcore.database.database.atomic`), so a multi-row operation either lands
entirely or not at all.
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import desc
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from taskcore.errors import ConcurrentModificationError, NotFoundError
from taskcore.models.task import Task, TaskStatus
from taskcore.database.models import TaskDB

logger = logging.getLogger(__name__)


def as_unique_ids(task_ids: Iterable[int]) -> List[int]:
    """Deduplicate while preserving order."""
    seen: Set[int] = set()
    unique: List[int] = []
    for task_id in task_ids:
        if task_id not in seen:
            seen.add(task_id)
            unique.append(task_id)
    return unique


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, task_id: int) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(TaskDB.id == task_id).first()

    def find_by_id(self, task_id: int) -> Optional[Task]:
        """Get task by ID regardless of owner or deletion state."""
        task_db = self._row(task_id)
        return task_db.to_pydantic() if task_db else None

    def find_by_owner_and_id(self, user_id: str, task_id: int, include_deleted: bool = False) -> Optional[Task]:
        """Get task by ID for a specific user."""
        query = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
        )
        if not include_deleted:
            query = query.filter(TaskDB.deleted_at.is_(None))
        task_db = query.first()
        return task_db.to_pydantic() if task_db else None

    def find_by_owner(self, user_id: str) -> List[Task]:
        """Get all active tasks for a user ordered by schedule."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.deleted_at.is_(None),
        ).order_by(TaskDB.scheduled_start_at, TaskDB.id).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def find_by_task_list(self, user_id: str, task_list_id: int) -> List[Task]:
        """Active tasks in a list, excluding recurring children."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.task_list_id == task_list_id,
            TaskDB.deleted_at.is_(None),
            TaskDB.recurrence_parent_id.is_(None),
        ).order_by(TaskDB.scheduled_start_at, TaskDB.id).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def find_trash(self, user_id: str) -> List[Task]:
        """Soft-deleted tasks, excluding recurring children."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.deleted_at.isnot(None),
            TaskDB.recurrence_parent_id.is_(None),
        ).order_by(desc(TaskDB.deleted_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def find_pending_children_by_parent_id(self, parent_id: int) -> List[Task]:
        """Children that are not COMPLETED (soft-deleted ones included)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.recurrence_parent_id == parent_id,
            TaskDB.status != TaskStatus.COMPLETED.value,
        ).order_by(TaskDB.scheduled_start_at, TaskDB.id).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def find_all_children_by_parent_id(self, parent_id: int) -> List[Task]:
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.recurrence_parent_id == parent_id,
        ).order_by(TaskDB.scheduled_start_at, TaskDB.id).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def _stage(self, task: Task) -> TaskDB:
        if task.id is None:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            return task_db

        task_db = self._row(task.id)
        if task_db is None or task_db.user_id != task.user_id:
            raise NotFoundError(f"Task {task.id} not found or access denied")
        if task.version is not None and task.version != task_db.version:
            raise ConcurrentModificationError(
                f"Task {task.id} was modified concurrently (expected version {task.version}, found {task_db.version})",
                task_id=task.id,
            )
        task_db.apply(task)
        return task_db

    def _flush(self, what: str) -> None:
        try:
            self.db.flush()
        except StaleDataError as e:
            logger.error(f"Failed to save {what}: {type(e).__name__}: {str(e)}")
            raise ConcurrentModificationError(f"Concurrent modification while saving {what}") from e
        except Exception as e:
            logger.error(f"Failed to save {what}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, task: Task) -> Task:
        """Insert (id is None) or update a task; returns the stored state."""
        task_db = self._stage(task)
        self._flush(f"task {task.id if task.id is not None else task.title[:50]}")
        logger.debug(f"Saved task {task_db.id}: {task_db.title[:50]}")
        return task_db.to_pydantic()

    def save_all(self, tasks: List[Task]) -> List[Task]:
        """Insert or update many tasks with a single flush."""
        if not tasks:
            return []
        rows = [self._stage(task) for task in tasks]
        self._flush(f"{len(rows)} tasks")
        logger.debug(f"Saved {len(rows)} tasks")
        return [row.to_pydantic() for row in rows]

    def delete_all(self, tasks: List[Task]) -> int:
        """Permanently delete the given tasks."""
        ids = as_unique_ids(t.id for t in tasks if t.id is not None)
        if not ids:
            return 0
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(TaskDB.id.in_(ids))
                .delete(synchronize_session=False)
            )
            self.db.flush()
        except Exception as e:
            logger.error(f"Failed to delete tasks {ids}: {type(e).__name__}: {str(e)}")
            raise
        # Drop stale identities so later lookups do not return deleted rows.
        self.db.expire_all()
        logger.debug(f"Deleted {affected} tasks")
        return int(affected)
