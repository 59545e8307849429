"""Task data model for taskcore."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskRole(str, Enum):
    """Position of a task within a recurring series."""
    STANDALONE = "standalone"
    PARENT = "parent"
    CHILD = "child"


class Task(BaseModel):
    """Canonical task instance model."""

    id: Optional[int] = Field(None, description="Store-assigned identifier (None before first save)")
    user_id: str = Field(..., description="Owner identity")
    task_list_id: Optional[int] = Field(None, description="Task list this task belongs to")
    category_id: Optional[int] = Field(None, description="Category reference")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description (Markdown supported)")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    completed_at: Optional[datetime] = Field(None, description="Set exactly while status is COMPLETED")
    estimated_pomodoros: Optional[int] = Field(None, ge=0, description="Estimated effort in pomodoros")
    scheduled_start_at: Optional[datetime] = Field(None, description="Scheduled start")
    scheduled_end_at: Optional[datetime] = Field(None, description="Scheduled end")
    is_all_day: bool = Field(True, description="Whether the task has no specific time")

    # Recurrence markers (parent only)
    is_recurring: bool = Field(False, description="True only on a recurring parent")
    recurrence_rule: Optional[str] = Field(None, description="Encoded recurrence rule (parent only)")
    recurrence_parent_id: Optional[int] = Field(None, description="Parent id for generated occurrences")

    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")
    version: Optional[int] = Field(None, description="Optimistic lock version")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def role(self) -> TaskRole:
        if self.recurrence_parent_id is not None:
            return TaskRole.CHILD
        if self.is_recurring:
            return TaskRole.PARENT
        return TaskRole.STANDALONE


class Category(BaseModel):
    """Owner-scoped task category."""

    id: Optional[int] = None
    user_id: str
    name: str
    color: Optional[str] = None


class TaskList(BaseModel):
    """Owner-scoped task list."""

    id: Optional[int] = None
    user_id: str
    title: str
