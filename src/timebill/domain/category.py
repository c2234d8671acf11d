"""Category domain service."""

import re
import uuid
from typing import Optional
from timebill.database.base import Database
from timebill.database.mappers import category_to_domain
from timebill.domain.entities import Category
from timebill.domain.errors import ValidationError
from timebill.domain.loading import LoadingState

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


class CategoryService:
    """Service for time tracking categories. Categories can be added, not edited."""

    def __init__(self, db: Database, loading: Optional[LoadingState] = None):
        """Initialize category service.

        Args:
            db: Database instance
            loading: Shared loading state; a private one is created if omitted
        """
        self.db = db
        self.loading = loading or LoadingState()
        self._categories: list[Category] = []

    def load(self) -> None:
        """Load categories from the record store."""
        with self.loading.track("category.load"):
            records = self.db.categories.fetch_all()
        self._categories = [category_to_domain(r) for r in records]

    def add_category(self, name: str, color: str, category_id: Optional[str] = None) -> Category:
        """Add a category.

        Args:
            name: Display name
            color: Display color as "#rrggbb"
            category_id: Optional fixed ID (used for the seed set); generated if omitted

        Returns:
            The new Category

        Raises:
            ValidationError: If name is empty, color is malformed or the ID is taken
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        if not _COLOR_RE.match(color or ""):
            raise ValidationError(f"Invalid color '{color}': expected #rrggbb")
        if category_id is None:
            category_id = uuid.uuid4().hex
        elif self.get_category(category_id) is not None:
            raise ValidationError(f"Category '{category_id}' already exists")

        with self.loading.track("category.add"):
            record = self.db.categories.create({"id": category_id, "name": name, "color": color.lower()})
        category = category_to_domain(record)
        self._categories.append(category)
        return category

    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID, or None if not found."""
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def find_category(self, ref: str) -> Optional[Category]:
        """Find a category by ID or by case-insensitive name."""
        category = self.get_category(ref)
        if category is not None:
            return category
        for category in self._categories:
            if category.name.lower() == ref.strip().lower():
                return category
        return None

    def list_categories(self) -> list[Category]:
        """List categories."""
        return list(self._categories)
