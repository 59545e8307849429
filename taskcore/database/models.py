"""SQLAlchemy database models for taskcore."""

from datetime import datetime
from typing import Type, TypeVar, Union

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from taskcore.database.database import Base
from taskcore.models.task import Category, Task, TaskList, TaskStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert (case-insensitive)
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class CategoryDB(Base):
    """Database model for Category."""

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self) -> Category:
        return Category(id=self.id, user_id=self.user_id, name=self.name, color=self.color)

    @classmethod
    def from_pydantic(cls, category: Category) -> "CategoryDB":
        return cls(user_id=category.user_id, name=category.name, color=category.color)


class TaskListDB(Base):
    """Database model for TaskList."""

    __tablename__ = "task_lists"
    __table_args__ = (
        UniqueConstraint("user_id", "title", name="uq_task_list_user_title"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self) -> TaskList:
        return TaskList(id=self.id, user_id=self.user_id, title=self.title)

    @classmethod
    def from_pydantic(cls, task_list: TaskList) -> "TaskListDB":
        return cls(user_id=task_list.user_id, title=task_list.title)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # User association
    user_id = Column(String, nullable=False, index=True)

    # Containers
    task_list_id = Column(Integer, ForeignKey("task_lists.id", ondelete="CASCADE"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    # Basic fields
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value)
    completed_at = Column(DateTime, nullable=True)
    estimated_pomodoros = Column(Integer, nullable=True)

    # Scheduling fields
    scheduled_start_at = Column(DateTime, nullable=True, index=True)
    scheduled_end_at = Column(DateTime, nullable=True)
    is_all_day = Column(Boolean, nullable=False, default=True)

    # Recurrence (rule and flag live on the parent; children point at it)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_rule = Column(String(500), nullable=True)
    recurrence_parent_id = Column(Integer, nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Optimistic lock; incremented by SQLAlchemy on every UPDATE
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_pydantic(self) -> Task:
        """Convert database model to Pydantic model."""
        return Task(
            id=self.id,
            user_id=self.user_id,
            task_list_id=self.task_list_id,
            category_id=self.category_id,
            title=self.title,
            description=self.description,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.PENDING),
            completed_at=self.completed_at,
            estimated_pomodoros=self.estimated_pomodoros,
            scheduled_start_at=self.scheduled_start_at,
            scheduled_end_at=self.scheduled_end_at,
            is_all_day=bool(self.is_all_day),
            is_recurring=bool(self.is_recurring),
            recurrence_rule=self.recurrence_rule,
            recurrence_parent_id=self.recurrence_parent_id,
            deleted_at=self.deleted_at,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def apply(self, task: Task) -> None:
        """Copy mutable fields from a Pydantic task onto this row."""
        self.task_list_id = task.task_list_id
        self.category_id = task.category_id
        self.title = task.title
        self.description = task.description
        self.status = enum_to_value(task.status)
        self.completed_at = task.completed_at
        self.estimated_pomodoros = task.estimated_pomodoros
        self.scheduled_start_at = task.scheduled_start_at
        self.scheduled_end_at = task.scheduled_end_at
        self.is_all_day = task.is_all_day
        self.is_recurring = task.is_recurring
        self.recurrence_rule = task.recurrence_rule
        self.recurrence_parent_id = task.recurrence_parent_id
        self.deleted_at = task.deleted_at
        if task.updated_at is not None:
            self.updated_at = task.updated_at

    @classmethod
    def from_pydantic(cls, task: Task) -> "TaskDB":
        """Create database model from Pydantic model (id assigned on insert)."""
        row = cls(user_id=task.user_id)
        row.apply(task)
        if task.created_at is not None:
            row.created_at = task.created_at
        return row
