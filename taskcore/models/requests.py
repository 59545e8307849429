"""Request payloads accepted by the lifecycle manager and batch reconciler."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskcore.models.recurrence import RecurrenceRule
from taskcore.models.task import TaskStatus


class TaskCreate(BaseModel):
    """Create request for a single task (or a recurring series)."""

    title: str
    description: Optional[str] = None
    task_list_id: Optional[int] = None
    task_list_title: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    estimated_pomodoros: Optional[int] = Field(None, ge=0)
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[RecurrenceRule] = None
    custom_dates: Optional[List[date]] = Field(
        None, description="Create one standalone task per date instead of a single task"
    )
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    is_all_day: Optional[bool] = None
    status: Optional[TaskStatus] = None


class TaskPatch(BaseModel):
    """Partial update. A field is applied only when it is not None."""

    title: Optional[str] = None
    status: Optional[TaskStatus] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    task_list_id: Optional[int] = None
    task_list_title: Optional[str] = None
    completed_at: Optional[datetime] = None
    estimated_pomodoros: Optional[int] = Field(None, ge=0)
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[RecurrenceRule] = None
    description: Optional[str] = None
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    is_all_day: Optional[bool] = None
    version: Optional[int] = Field(None, description="Expected stored version (optimistic lock)")

    @property
    def has_category(self) -> bool:
        return self.category_id is not None or bool(self.category_name and self.category_name.strip())

    @property
    def has_task_list(self) -> bool:
        return self.task_list_id is not None or bool(self.task_list_title and self.task_list_title.strip())

    @property
    def touches_recurrence(self) -> bool:
        return self.is_recurring is not None or self.recurrence_rule is not None


class SyncTaskItem(BaseModel):
    """One entry of a desired-state sync list (client or AI supplied).

    Schedule and status arrive as loosely formatted strings; unparseable values
    are ignored rather than rejected.
    """

    id: Optional[int] = None
    is_deleted: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    category_name: Optional[str] = None
    task_list_title: Optional[str] = None
    estimated_pomodoros: Optional[int] = Field(None, ge=0)
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[RecurrenceRule] = None
    scheduled_start_at: Optional[str] = None
    scheduled_end_at: Optional[str] = None
    is_all_day: Optional[bool] = None
    status: Optional[str] = None
