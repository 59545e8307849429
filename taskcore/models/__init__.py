"""Data models for taskcore."""

from taskcore.models.task import Task, TaskStatus, TaskRole, Category, TaskList
from taskcore.models.recurrence import RecurrenceRule, RecurrenceFrequency, Weekday
from taskcore.models.requests import TaskCreate, TaskPatch, SyncTaskItem
from taskcore.models.results import SyncResult, BulkOperationResult, FailedTask, BulkErrorCode

__all__ = [
    "Task",
    "TaskStatus",
    "TaskRole",
    "Category",
    "TaskList",
    "RecurrenceRule",
    "RecurrenceFrequency",
    "Weekday",
    "TaskCreate",
    "TaskPatch",
    "SyncTaskItem",
    "SyncResult",
    "BulkOperationResult",
    "FailedTask",
    "BulkErrorCode",
]
