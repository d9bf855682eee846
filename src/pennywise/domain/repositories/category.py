"""Category repository protocol."""

from __future__ import annotations

from typing import Iterable, Protocol

from ...models.category import Category


class CategoryRepository(Protocol):
    """Lookup of categories referenced by allocations and goals."""

    def get_many(self, category_ids: Iterable[int]) -> list[Category]:
        """Return the categories that exist among ``category_ids``."""
        ...
