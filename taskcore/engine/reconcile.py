"""Batch reconciliation of many tasks at once.

Two failure policies live here:
- sync: a desired-state list applied all-or-nothing (one transaction)
- bulk: one uniform edit or delete applied to many ids, reported per id
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from dateutil import parser as date_parser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskcore.clock import Clock
from taskcore.database.database import atomic
from taskcore.database.repository import as_unique_ids
from taskcore.engine.lifecycle import InstanceLifecycleManager
from taskcore.errors import ConcurrentModificationError, NotFoundError, SyncBatchError
from taskcore.models.requests import SyncTaskItem, TaskCreate, TaskPatch
from taskcore.models.results import BulkErrorCode, BulkOperationResult, FailedTask, SyncResult
from taskcore.models.task import Task, TaskStatus
from taskcore.models.task_factory import completed_at_for_transition

logger = logging.getLogger(__name__)

_NOT_FOUND_REASON = "Task not found"
_UNAUTHORIZED_REASON = "Access denied - task belongs to another user"
_CONCURRENT_REASON = "Task was modified concurrently, retry the operation"


def _parse_datetime(value: Optional[str], field: str) -> Optional[datetime]:
    """Lenient ISO-8601 parse; unparseable input is logged and ignored.

    Offsets are normalized to naive UTC.
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        logger.warning(f"Invalid {field} format: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_status(value: Optional[str]) -> Optional[TaskStatus]:
    if value is None or not value.strip():
        return None
    try:
        return TaskStatus(value.strip().lower())
    except ValueError:
        logger.warning(f"Invalid status value: {value}")
        return None


class BatchReconciler:
    """Applies sync lists and bulk operations through the lifecycle manager."""

    def __init__(
        self,
        db: Session,
        lifecycle: Optional[InstanceLifecycleManager] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.lifecycle = lifecycle if lifecycle is not None else InstanceLifecycleManager(db, clock=clock)
        self.clock = self.lifecycle.clock
        self.tasks = self.lifecycle.tasks

    # ---- sync ----

    def sync_batch(self, items: Optional[List[SyncTaskItem]], user_id: str) -> SyncResult:
        """Apply a desired-state list in order; any failure rolls back the whole batch.

        Classification per item: `id > 0` with `is_deleted` deletes, a missing or
        non-positive id creates, anything else updates.

        Raises:
            SyncBatchError: carrying the index of the failing item (cause chained)
        """
        logger.info(f"Syncing {len(items) if items else 0} tasks for user: {user_id}")
        if not items:
            return SyncResult(success=True, message="No tasks to sync")

        created = updated = deleted = 0
        with atomic(self.db):
            for index, item in enumerate(items):
                logger.debug(
                    f"Task to sync: id={item.id}, title={item.title}, "
                    f"start_at={item.scheduled_start_at}, end_at={item.scheduled_end_at}"
                )
                try:
                    if item.is_deleted and item.id is not None and item.id > 0:
                        self.lifecycle.soft_delete(item.id, user_id)
                        deleted += 1
                    elif item.id is None or item.id <= 0:
                        self.lifecycle.create(self._to_create(item), user_id)
                        created += 1
                    else:
                        self.lifecycle.update(item.id, user_id, self._to_patch(item))
                        updated += 1
                except Exception as e:
                    logger.error(f"Failed to sync task at index {index} (id={item.id}): {type(e).__name__}: {str(e)}")
                    raise SyncBatchError(f"Sync aborted at item {index}: {str(e)}", index=index) from e

        message = f"Sync completed: Created {created}, Updated {updated}, Deleted {deleted}"
        logger.info(f"{message} for user: {user_id}")
        return SyncResult(
            success=True,
            message=message,
            created_count=created,
            updated_count=updated,
            deleted_count=deleted,
        )

    def _to_create(self, item: SyncTaskItem) -> TaskCreate:
        return TaskCreate(
            title=item.title,
            description=item.description,
            category_name=item.category_name,
            task_list_title=item.task_list_title,
            estimated_pomodoros=item.estimated_pomodoros,
            is_recurring=item.is_recurring,
            recurrence_rule=item.recurrence_rule,
            scheduled_start_at=_parse_datetime(item.scheduled_start_at, "scheduled_start_at"),
            scheduled_end_at=_parse_datetime(item.scheduled_end_at, "scheduled_end_at"),
            is_all_day=item.is_all_day,
            status=_parse_status(item.status),
        )

    def _to_patch(self, item: SyncTaskItem) -> TaskPatch:
        return TaskPatch(
            title=item.title,
            description=item.description,
            category_name=item.category_name,
            task_list_title=item.task_list_title,
            estimated_pomodoros=item.estimated_pomodoros,
            is_recurring=item.is_recurring,
            recurrence_rule=item.recurrence_rule,
            scheduled_start_at=_parse_datetime(item.scheduled_start_at, "scheduled_start_at"),
            scheduled_end_at=_parse_datetime(item.scheduled_end_at, "scheduled_end_at"),
            is_all_day=item.is_all_day,
            status=_parse_status(item.status),
        )

    # ---- bulk ----

    def bulk_update(self, task_ids: List[int], user_id: str, patch: TaskPatch) -> BulkOperationResult:
        """Apply one patch to many tasks; failures are reported per id, never raised."""
        unique_ids = as_unique_ids(task_ids or [])
        logger.info(f"Bulk updating {len(unique_ids)} tasks for user: {user_id}")
        if not unique_ids:
            return BulkOperationResult.build(0, [])
        if patch.touches_recurrence:
            logger.warning(f"Rejected bulk update with recurrence fields for user: {user_id}")
            return self._fail_all(
                unique_ids, "Recurrence cannot be changed in a bulk update", BulkErrorCode.INVALID_REQUEST
            )

        try:
            with atomic(self.db):
                try:
                    shared = self._shared_updates(user_id, patch)
                except NotFoundError as e:
                    logger.warning(f"Rejected bulk update for user {user_id}: {str(e)}")
                    return self._fail_all(unique_ids, str(e), BulkErrorCode.INVALID_REQUEST)

                valid, failed = self._resolve_targets(unique_ids, user_id)
                now = self.clock.now()
                changed = []
                for task in valid:
                    updates = dict(shared, updated_at=now)
                    if patch.status is not None:
                        updates["completed_at"] = completed_at_for_transition(
                            task.status, task.completed_at, patch.status, now
                        )
                    changed.append(task.model_copy(update=updates))

                saved = self.tasks.save_all(changed)
                for task in saved:
                    if task.is_recurring:
                        self.lifecycle.propagator.propagate(task, patch)
        except ConcurrentModificationError as e:
            logger.warning(f"Bulk update for user {user_id} hit a concurrent modification: {str(e)}")
            return self._fail_all(unique_ids, _CONCURRENT_REASON, BulkErrorCode.CONCURRENT_MODIFICATION)
        except SQLAlchemyError as e:
            logger.error(f"Failed to bulk update tasks for user {user_id}: {type(e).__name__}: {str(e)}")
            return self._fail_all(unique_ids, f"Database error: {str(e)}", BulkErrorCode.DATABASE_ERROR)

        logger.info(f"Bulk update finished for user {user_id}: {len(saved)} updated, {len(failed)} failed")
        return BulkOperationResult.build(len(saved), failed)

    def bulk_delete(self, task_ids: List[int], user_id: str) -> BulkOperationResult:
        """Soft-delete many tasks (parents cascade to pending children)."""
        unique_ids = as_unique_ids(task_ids or [])
        logger.info(f"Bulk deleting {len(unique_ids)} tasks for user: {user_id}")
        if not unique_ids:
            return BulkOperationResult.build(0, [])

        try:
            with atomic(self.db):
                valid, failed = self._resolve_targets(unique_ids, user_id)
                deleted = self.lifecycle.mark_deleted(valid) if valid else []
        except ConcurrentModificationError as e:
            logger.warning(f"Bulk delete for user {user_id} hit a concurrent modification: {str(e)}")
            return self._fail_all(unique_ids, _CONCURRENT_REASON, BulkErrorCode.CONCURRENT_MODIFICATION)
        except SQLAlchemyError as e:
            logger.error(f"Failed to bulk delete tasks for user {user_id}: {type(e).__name__}: {str(e)}")
            return self._fail_all(unique_ids, f"Database error: {str(e)}", BulkErrorCode.DATABASE_ERROR)

        logger.info(f"Bulk delete finished for user {user_id}: {len(deleted)} deleted, {len(failed)} failed")
        return BulkOperationResult.build(len(deleted), failed)

    def _shared_updates(self, user_id: str, patch: TaskPatch) -> dict:
        """Field values identical for every target; resolves category and task list once."""
        updates = {}
        if patch.title is not None:
            updates["title"] = patch.title
        if patch.status is not None:
            updates["status"] = patch.status
        if patch.has_category:
            updates["category_id"] = self.lifecycle.resolve_category_id(
                user_id, patch.category_id, patch.category_name
            )
        if patch.has_task_list:
            updates["task_list_id"] = self.lifecycle.resolve_task_list_id(
                user_id, patch.task_list_id, patch.task_list_title
            )
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

    def _resolve_targets(self, task_ids: List[int], user_id: str) -> Tuple[List[Task], List[FailedTask]]:
        valid: List[Task] = []
        failed: List[FailedTask] = []
        for task_id in task_ids:
            try:
                task = self.tasks.find_by_id(task_id)
            except SQLAlchemyError:
                raise
            except Exception as e:
                logger.error(f"Failed to load task {task_id}: {type(e).__name__}: {str(e)}")
                failed.append(FailedTask.build(task_id, f"Unexpected error: {str(e)}", BulkErrorCode.INTERNAL_ERROR))
                continue

            if task is None or task.is_deleted:
                failed.append(FailedTask.build(task_id, _NOT_FOUND_REASON, BulkErrorCode.NOT_FOUND))
            elif task.user_id != user_id:
                logger.warning(f"User {user_id} attempted to modify task {task_id} owned by another user")
                failed.append(FailedTask.build(task_id, _UNAUTHORIZED_REASON, BulkErrorCode.UNAUTHORIZED))
            else:
                valid.append(task)
        return valid, failed

    @staticmethod
    def _fail_all(task_ids: List[int], reason: str, code: BulkErrorCode) -> BulkOperationResult:
        return BulkOperationResult.build(0, [FailedTask.build(task_id, reason, code) for task_id in task_ids])
