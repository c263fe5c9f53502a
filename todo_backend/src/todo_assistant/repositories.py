from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from threading import RLock
from typing import Dict, List, Optional

import structlog

from .errors import StoreError
from .models import DEFAULT_CATEGORIES, CategoryEntity, TodoEntity, TodoFields
from .settings import get_settings

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """
    Return the current UTC time, bumped past `previous` when the clock has not
    advanced, so successive updates of one record are strictly increasing.
    """
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def new_todo_id() -> str:
    return str(uuid.uuid4())


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo and category storage backends."""

    @abstractmethod
    def list_todos(self) -> List[TodoEntity]:
        """Return all todos in store order (creation order, oldest first)."""

    @abstractmethod
    def get(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def create(self, fields: TodoFields) -> TodoEntity:
        """
        Create and return a new TodoEntity. Raises StoreError when the category
        does not exist.
        """

    @abstractmethod
    def update(self, todo: TodoEntity) -> Optional[TodoEntity]:
        """
        Replace the stored record with `todo` (matched by id) and stamp a new
        updated_at. Return the updated entity or None if not found.
        """

    @abstractmethod
    def delete(self, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list_categories(self) -> List[CategoryEntity]:
        """Return all categories ordered by display name."""

    @abstractmethod
    def ensure_default_categories(self) -> bool:
        """
        Seed the default categories if, and only if, no category exists yet.
        Return True when the defaults were inserted.
        """


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}
        self._categories: Dict[str, CategoryEntity] = {}

    def _require_category(self, category_id: str) -> None:
        if category_id not in self._categories:
            raise StoreError(f"Category '{category_id}' does not exist")

    def list_todos(self) -> List[TodoEntity]:
        with self._lock:
            # dicts keep insertion order, which is creation order here
            return [t.copy() for t in self._items.values()]

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def create(self, fields: TodoFields) -> TodoEntity:
        with self._lock:
            self._require_category(fields["category"])
            now = utcnow()
            entity: TodoEntity = {
                "id": new_todo_id(),
                "title": fields["title"],
                "description": fields["description"],
                "completed": fields["completed"],
                "priority": fields["priority"],
                "category": fields["category"],
                "due_date": fields["due_date"],
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
            return entity.copy()

    def update(self, todo: TodoEntity) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo["id"])
            if existing is None:
                return None
            self._require_category(todo["category"])

            updated = todo.copy()
            # Store-assigned fields are never taken from the caller
            updated["created_at"] = existing["created_at"]
            updated["updated_at"] = next_timestamp(existing["updated_at"])
            self._items[todo["id"]] = updated
            return updated.copy()

    def delete(self, todo_id: str) -> bool:
        with self._lock:
            return self._items.pop(todo_id, None) is not None

    def list_categories(self) -> List[CategoryEntity]:
        with self._lock:
            return sorted((c.copy() for c in self._categories.values()), key=lambda c: c["name"])

    def ensure_default_categories(self) -> bool:
        with self._lock:
            if self._categories:
                return False
            for category in DEFAULT_CATEGORIES:
                self._categories[category["id"]] = category.copy()
        logger.info("Seeded default categories", count=len(DEFAULT_CATEGORIES))
        return True


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository for the configured backend.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by SQLITE_DB_PATH
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
