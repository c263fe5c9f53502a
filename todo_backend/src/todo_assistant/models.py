from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Literal, Optional, TypedDict

Priority = Literal["high", "medium", "low"]


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item as held by the
    storage backends.

    Fields:
    - id: Opaque unique identifier assigned by the store
    - title: Short title, never empty
    - description: Free text, may be empty
    - completed: Boolean completion flag
    - priority: 'high', 'medium' or 'low'
    - category: Category identifier (foreign key to CategoryEntity.id)
    - due_date: Calendar date the todo is due
    - created_at: UTC creation timestamp
    - updated_at: UTC last update timestamp, never earlier than created_at
    """

    id: str
    title: str
    description: str
    completed: bool
    priority: Priority
    category: str
    due_date: date
    created_at: datetime
    updated_at: datetime


class TodoFields(TypedDict):
    """Todo fields minus id/timestamps, with every default already applied."""

    title: str
    description: str
    completed: bool
    priority: Priority
    category: str
    due_date: date


# PUBLIC_INTERFACE
class CategoryEntity(TypedDict):
    """A named, colored grouping that todos reference by id."""

    id: str
    name: str
    color: str


@dataclass(frozen=True)
class TodoChanges:
    """
    Partial set of fields for an update. None means "not supplied": the stored
    value is kept.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    due_date: Optional[date] = None


DEFAULT_CATEGORIES: List[CategoryEntity] = [
    {"id": "work", "name": "Work", "color": "#3B82F6"},
    {"id": "personal", "name": "Personal", "color": "#10B981"},
    {"id": "health", "name": "Health", "color": "#EF4444"},
    {"id": "learning", "name": "Learning", "color": "#8B5CF6"},
]
