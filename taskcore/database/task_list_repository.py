"""Repository for TaskList database operations."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from taskcore.database.models import TaskListDB
from taskcore.models.constants import INBOX_TITLE
from taskcore.models.task import TaskList

logger = logging.getLogger(__name__)


class TaskListRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, task_list_id: int) -> Optional[TaskList]:
        row = (
            self.db.query(TaskListDB)
            .filter(TaskListDB.user_id == user_id, TaskListDB.id == task_list_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def get_or_create(self, user_id: str, title: str) -> TaskList:
        row = (
            self.db.query(TaskListDB)
            .filter(TaskListDB.user_id == user_id, TaskListDB.title == title)
            .first()
        )
        if row is not None:
            return row.to_pydantic()
        row = TaskListDB.from_pydantic(TaskList(user_id=user_id, title=title))
        try:
            self.db.add(row)
            self.db.flush()
        except Exception as e:
            logger.error(f"Failed to create task list '{title}': {type(e).__name__}: {str(e)}")
            raise
        logger.info(f"Created task list {row.id} '{title}' for user {user_id}")
        return row.to_pydantic()

    def get_or_create_inbox(self, user_id: str) -> TaskList:
        return self.get_or_create(user_id, INBOX_TITLE)
