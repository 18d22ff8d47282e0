"""
Category and assignment persistence.

Both stores keep their full state in memory and write the whole list to the
key-value collaborator after every mutation. Mutations are serialized with a
lock so read-modify-write cycles never interleave.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Sequence
from typing import Any

from core.config import ASSIGNMENTS_STORAGE_KEY, CATEGORIES_STORAGE_KEY
from core.database import KeyValueStore
from models.events import Category, EventKey

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"name", "color"}


class CategoryNotFoundError(KeyError):
    """Raised for an unknown category id."""

    def __init__(self, category_id: str):
        super().__init__(category_id)
        self.category_id = category_id

    def __str__(self) -> str:
        return f"Category '{self.category_id}' not found"


class PersistenceError(RuntimeError):
    """
    Raised when a write to the key-value store fails.

    The in-memory state has already changed when this is raised; callers
    either retry with `save()` or treat the state as unsaved.
    """


class CategoryStore:
    """Ordered, persisted list of user categories."""

    def __init__(self, storage: KeyValueStore, key: str = CATEGORIES_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.has_unsaved_changes = False
        self._lock = threading.RLock()
        self._categories: list[Category] = self._load()

    def _load(self) -> list[Category]:
        try:
            stored = self.storage.get(self.key)
            data = json.loads(stored) if stored else []
            return [Category.from_dict(item) for item in data]
        except Exception:
            logger.exception("Error loading categories from %r", self.key)
            return []

    def _commit(self, categories: list[Category]):
        self._categories = categories
        self.has_unsaved_changes = True
        self.save()

    def save(self):
        """Write the current list to storage."""
        with self._lock:
            payload = json.dumps([category.to_dict() for category in self._categories])
            try:
                self.storage.set(self.key, payload)
            except Exception as e:
                logger.error("Error saving categories: %s", e)
                raise PersistenceError(f"Failed to save categories: {e}") from e
            self.has_unsaved_changes = False

    def list(self) -> list[Category]:
        with self._lock:
            return list(self._categories)

    def get(self, category_id: str) -> Category:
        with self._lock:
            for category in self._categories:
                if category.id == category_id:
                    return category
        raise CategoryNotFoundError(category_id)

    def __contains__(self, category_id: str) -> bool:
        with self._lock:
            return any(category.id == category_id for category in self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def add(self, name: str, color: str | None = None) -> Category:
        """Append a new category with a generated id."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name cannot be empty")
        category = Category(id=uuid.uuid4().hex, name=name, color=color)
        with self._lock:
            self._commit([*self._categories, category])
        logger.info("Added category %s (%s)", category.name, category.id)
        return category

    def update(self, category_id: str, **fields: Any) -> Category:
        """Change name and/or color in place; the id never changes."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update category fields: {', '.join(sorted(unknown))}")
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValueError("Category name cannot be empty")

        with self._lock:
            current = self.get(category_id)
            updated = Category(
                id=current.id,
                name=fields.get("name", current.name),
                color=fields.get("color", current.color),
            )
            self._commit([updated if c.id == category_id else c for c in self._categories])
        return updated

    def remove(self, category_id: str) -> Category:
        with self._lock:
            removed = self.get(category_id)
            self._commit([c for c in self._categories if c.id != category_id])
        logger.info("Removed category %s (%s)", removed.name, removed.id)
        return removed

    def reorder(self, new_order: Sequence[Category]) -> list[Category]:
        """Replace the order; `new_order` must hold exactly the current categories."""
        with self._lock:
            current_ids = [c.id for c in self._categories]
            new_ids = [c.id for c in new_order]
            if sorted(new_ids) != sorted(current_ids):
                raise ValueError("Reordered list must contain exactly the existing categories")
            by_id = {c.id: c for c in self._categories}
            self._commit([by_id[category_id] for category_id in new_ids])
            return list(self._categories)

    def move(self, source_index: int, destination_index: int) -> list[Category]:
        """Drag-style reorder: remove at source, reinsert at destination."""
        with self._lock:
            size = len(self._categories)
            if not 0 <= source_index < size or not 0 <= destination_index < size:
                raise IndexError(
                    f"Category index out of range (got {source_index} -> "
                    f"{destination_index}, {size} categories)"
                )
            reordered = list(self._categories)
            moved = reordered.pop(source_index)
            reordered.insert(destination_index, moved)
            return self.reorder(reordered)


class AssignmentStore:
    """Persisted event -> category mapping, keyed by (calendar id, event id)."""

    def __init__(self, storage: KeyValueStore, key: str = ASSIGNMENTS_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.has_unsaved_changes = False
        self._lock = threading.RLock()

    def load(self) -> dict[EventKey, str]:
        try:
            stored = self.storage.get(self.key)
            data = json.loads(stored) if stored else []
            return {
                EventKey(item["calendar_id"], item["event_id"]): item["category_id"]
                for item in data
            }
        except Exception:
            logger.exception("Error loading category assignments from %r", self.key)
            return {}

    def save(self, assignments: dict[EventKey, str]):
        with self._lock:
            self.has_unsaved_changes = True
            payload = json.dumps(
                [
                    {"calendar_id": key.calendar_id, "event_id": key.event_id, "category_id": value}
                    for key, value in sorted(assignments.items())
                ]
            )
            try:
                self.storage.set(self.key, payload)
            except Exception as e:
                logger.error("Error saving category assignments: %s", e)
                raise PersistenceError(f"Failed to save category assignments: {e}") from e
            self.has_unsaved_changes = False

    def remove_category(self, category_id: str) -> int:
        """Drop every assignment to `category_id`; returns how many were removed."""
        with self._lock:
            assignments = self.load()
            kept = {key: value for key, value in assignments.items() if value != category_id}
            removed = len(assignments) - len(kept)
            if removed:
                self.save(kept)
        if removed:
            logger.info("Removed %d assignments to deleted category %s", removed, category_id)
        return removed
