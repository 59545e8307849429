"""Task creation factory for taskcore.

This module centralizes task construction so standalone tasks, recurring parents
and generated children all get consistent default values.
"""

from datetime import date, datetime, time
from typing import Any, Dict, Optional

from taskcore.models.constants import DEFAULT_IS_ALL_DAY
from taskcore.models.task import Task, TaskStatus


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary."""
    return {
        "status": TaskStatus.PENDING,
        "description": None,
        "estimated_pomodoros": None,
        "scheduled_end_at": None,
        "is_all_day": DEFAULT_IS_ALL_DAY,
    }


def create_task_base(
    user_id: str,
    title: str,
    task_list_id: Optional[int],
    category_id: Optional[int],
    now: datetime,
    description: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    estimated_pomodoros: Optional[int] = None,
    scheduled_start_at: Optional[datetime] = None,
    scheduled_end_at: Optional[datetime] = None,
    is_all_day: Optional[bool] = None,
    is_recurring: bool = False,
    recurrence_rule: Optional[str] = None,
    recurrence_parent_id: Optional[int] = None,
) -> Task:
    """Create an unsaved task with defaults, allowing overrides.

    Args:
        user_id: Owner identity (required)
        title: Task title (required)
        task_list_id: Resolved task list
        category_id: Resolved category
        now: Creation timestamp (from the injected clock)
        status: Initial status (defaults to PENDING); COMPLETED also stamps completed_at
        is_recurring / recurrence_rule: Only set for a recurring parent
        recurrence_parent_id: Only set for a generated child

    Returns:
        Task object with defaults applied (id is None until saved)
    """
    defaults = create_task_defaults()
    status = status if status is not None else defaults["status"]

    return Task(
        user_id=user_id,
        task_list_id=task_list_id,
        category_id=category_id,
        title=title,
        description=description if description is not None else defaults["description"],
        status=status,
        completed_at=now if status == TaskStatus.COMPLETED else None,
        estimated_pomodoros=estimated_pomodoros if estimated_pomodoros is not None else defaults["estimated_pomodoros"],
        scheduled_start_at=scheduled_start_at,
        scheduled_end_at=scheduled_end_at if scheduled_end_at is not None else defaults["scheduled_end_at"],
        is_all_day=is_all_day if is_all_day is not None else defaults["is_all_day"],
        is_recurring=is_recurring,
        recurrence_rule=recurrence_rule if is_recurring else None,
        recurrence_parent_id=recurrence_parent_id,
        created_at=now,
        updated_at=now,
    )


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time(0, 0))


def shift_to_date(template_start: Optional[datetime], template_end: Optional[datetime], day: date):
    """Move a start/end pair onto `day`, keeping clock time and duration.

    Returns (start, end); start falls back to midnight when there is no template.
    """
    if template_start is None:
        return start_of_day(day), None
    start = datetime.combine(day, template_start.timetz())
    end = None
    if template_end is not None:
        end = start + (template_end - template_start)
    return start, end


def with_time_of(source: datetime, day: date) -> datetime:
    """`source`'s clock time on `day` (calendar date preserved, clock time overwritten)."""
    return datetime.combine(day, source.timetz())


def completed_at_for_transition(
    current_status: TaskStatus,
    current_completed_at: Optional[datetime],
    new_status: TaskStatus,
    now: datetime,
) -> Optional[datetime]:
    """Completion timestamp after a status change.

    Set when moving into COMPLETED, cleared when moving out, otherwise unchanged.
    """
    was_completed = current_status == TaskStatus.COMPLETED
    is_completed = new_status == TaskStatus.COMPLETED
    if is_completed and not was_completed:
        return now
    if was_completed and not is_completed:
        return None
    return current_completed_at
