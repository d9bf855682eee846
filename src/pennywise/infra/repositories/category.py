"""SQLModel implementation of the Category repository."""

from __future__ import annotations

from typing import Iterable

from sqlmodel import col, select

from ...errors import OwnershipError, ValidationError
from ...models.category import MAX_CATEGORY_DEPTH, Category
from ..database import SessionFactory


class SQLModelCategoryRepository:
    """Category lookups plus creation with tree-depth enforcement."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_many(self, category_ids: Iterable[int]) -> list[Category]:
        ids = list(category_ids)
        if not ids:
            return []
        with self.session_factory() as session:
            rows = list(session.exec(select(Category).where(col(Category.id).in_(ids))).all())
            session.expunge_all()
            return rows

    def create(self, category: Category, *, user_id: int) -> Category:
        """Persist a category, keeping the parent chain within five levels."""
        with self.session_factory() as session:
            depth = 1
            parent_id = category.parent_id
            while parent_id is not None:
                parent = session.get(Category, parent_id)
                if parent is None or parent.user_id != user_id:
                    raise OwnershipError("Parent category not found")
                depth += 1
                if depth > MAX_CATEGORY_DEPTH:
                    raise ValidationError(
                        f"Categories cannot be nested more than {MAX_CATEGORY_DEPTH} levels"
                    )
                parent_id = parent.parent_id

            category.user_id = user_id
            session.add(category)
            session.commit()
            session.refresh(category)
            session.expunge(category)
            return category
