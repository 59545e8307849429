"""Result models returned by batch operations."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SyncResult(BaseModel):
    """Outcome of an all-or-nothing sync batch."""

    success: bool
    message: str
    created_count: int = 0
    updated_count: int = 0
    deleted_count: int = 0


class BulkErrorCode(str, Enum):
    """Machine-readable per-item failure reasons."""
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class FailedTask(BaseModel):
    """A single id that a bulk operation could not apply."""

    task_id: Optional[int]
    reason: str
    error_code: BulkErrorCode
    display_message: str

    @classmethod
    def build(cls, task_id: Optional[int], reason: str, error_code: BulkErrorCode) -> "FailedTask":
        return cls(
            task_id=task_id,
            reason=reason,
            error_code=error_code,
            display_message=f"ID:{task_id} - {reason}",
        )


class BulkOperationResult(BaseModel):
    """Outcome of a best-effort bulk operation; partial success is expected."""

    success_count: int
    failed_count: int
    failed_tasks: List[FailedTask] = Field(default_factory=list)
    all_succeeded: bool
    display_messages: List[str] = Field(default_factory=list)

    @classmethod
    def build(cls, success_count: int, failed_tasks: List[FailedTask]) -> "BulkOperationResult":
        return cls(
            success_count=success_count,
            failed_count=len(failed_tasks),
            failed_tasks=failed_tasks,
            all_succeeded=not failed_tasks,
            display_messages=[f.display_message for f in failed_tasks],
        )
