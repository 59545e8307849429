"""Repository for Category database operations."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from taskcore.database.models import CategoryDB
from taskcore.models.task import Category

logger = logging.getLogger(__name__)


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, category_id: int) -> Optional[Category]:
        row = (
            self.db.query(CategoryDB)
            .filter(CategoryDB.user_id == user_id, CategoryDB.id == category_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def get_by_name(self, user_id: str, name: str) -> Optional[Category]:
        row = (
            self.db.query(CategoryDB)
            .filter(CategoryDB.user_id == user_id, CategoryDB.name == name)
            .first()
        )
        return row.to_pydantic() if row else None

    def get_or_create(self, user_id: str, name: str, color: Optional[str] = None) -> Category:
        existing = self.get_by_name(user_id, name)
        if existing is not None:
            return existing
        row = CategoryDB.from_pydantic(Category(user_id=user_id, name=name, color=color))
        try:
            self.db.add(row)
            self.db.flush()
        except Exception as e:
            logger.error(f"Failed to create category '{name}': {type(e).__name__}: {str(e)}")
            raise
        logger.info(f"Created category {row.id} '{name}' for user {user_id}")
        return row.to_pydantic()
