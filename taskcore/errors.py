"""Exception types raised by taskcore."""

from typing import Optional


class TaskCoreError(Exception):
    """Base class for all taskcore errors."""


class FormatError(TaskCoreError, ValueError):
    """Malformed recurrence rule input."""


class NotFoundError(TaskCoreError, LookupError):
    """Referenced task, category or task list does not exist for the owner.

    Ownership mismatches are reported identically to absence so callers cannot
    discover the existence of other users' rows.
    """


class StructuralTransitionError(TaskCoreError):
    """Requested recurrence role change is not allowed (e.g. child -> parent)."""


class ConcurrentModificationError(TaskCoreError):
    """Optimistic lock failure: the row changed since it was read."""

    def __init__(self, message: str, *, task_id: Optional[int] = None):
        super().__init__(message)
        self.task_id = task_id


class SyncBatchError(TaskCoreError):
    """A sync batch was rejected; nothing from the batch was persisted."""

    def __init__(self, message: str, *, index: int):
        super().__init__(message)
        self.index = index
