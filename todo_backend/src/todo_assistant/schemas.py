from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority, TodoChanges

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]

_WIRE_CONFIG = dict(alias_generator=to_camel, populate_by_name=True)


def coerce_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Internal helper to normalize due_date input into a calendar date.
    - If value is a string, accept 'YYYY-MM-DD' or a full ISO8601 datetime (time is dropped).
    - If value is a datetime, return its date part.
    - If value is a date, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid dueDate format. Use an ISO8601 date such as '2025-01-31'."
                ) from e

    # Any other type is invalid
    raise ValueError("Invalid type for dueDate; expected date, datetime, or ISO8601 string.")


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item. Omitted fields receive the configured defaults.
    """

    model_config = ConfigDict(
        **_WIRE_CONFIG,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": "high",
                "category": "personal",
                "dueDate": "2025-02-01",
                "completed": False,
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Detailed description; defaults to 'Task: {title}'")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description="Category identifier")
    due_date: Optional[date] = Field(default=None, description="Due date (ISO8601 date)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        if v is None:
            raise ValueError("title is required")
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return coerce_due_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        **_WIRE_CONFIG,
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
                "dueDate": "2025-02-02",
            }
        },
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description="Category identifier")
    due_date: Optional[date] = Field(default=None, description="Due date (ISO8601 date)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return coerce_due_date(v)

    def to_changes(self) -> TodoChanges:
        return TodoChanges(
            title=self.title,
            description=self.description,
            completed=self.completed,
            priority=self.priority,
            category=self.category,
            due_date=self.due_date,
        )


# PUBLIC_INTERFACE
class TodoReplace(BaseModel):
    """
    Schema for the full-record PUT. Timestamps are accepted and ignored; the store
    assigns them.
    """

    model_config = ConfigDict(**_WIRE_CONFIG)

    id: str = Field(..., min_length=1, description="Identifier of the todo to replace")
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="")
    completed: bool = Field(default=False)
    priority: Priority = Field(default="medium")
    category: str = Field(..., min_length=1)
    due_date: date = Field(...)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: DueDateInput) -> Optional[date]:
        return coerce_due_date(v)

    def to_changes(self) -> TodoChanges:
        return TodoChanges(
            title=self.title,
            description=self.description,
            completed=self.completed,
            priority=self.priority,
            category=self.category,
            due_date=self.due_date,
        )


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        **_WIRE_CONFIG,
        json_schema_extra={
            "example": {
                "id": "6f1c0f7e-8a51-4f55-9a43-5d0c2a3e9b10",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "priority": "medium",
                "category": "personal",
                "dueDate": "2025-02-01",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-26T09:00:00.000001Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(default="", description="Detailed description")
    completed: bool = Field(..., description="Completion status flag")
    priority: Priority = Field(..., description="high, medium or low")
    category: str = Field(..., description="Category identifier")
    due_date: date = Field(..., description="Due date as an ISO8601 date")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class TodoView(TodoOut):
    """TodoOut enriched with the category display name for list snapshots."""

    category_name: str = Field(..., description="Display name of the category, or its id if unknown")


class CategoryOut(BaseModel):
    model_config = ConfigDict(**_WIRE_CONFIG)

    id: str
    name: str
    color: str


class SnapshotMetadata(BaseModel):
    model_config = ConfigDict(**_WIRE_CONFIG)

    last_updated: datetime
    total_todos: int
    completed_todos: int
    version: str


# PUBLIC_INTERFACE
class TodoSnapshot(BaseModel):
    """Full list response: todos, categories and summary metadata."""

    model_config = ConfigDict(**_WIRE_CONFIG)

    todos: List[TodoView]
    categories: List[CategoryOut]
    metadata: SnapshotMetadata


class ChatTurn(BaseModel):
    """One prior message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


# PUBLIC_INTERFACE
class ChatRequest(BaseModel):
    """Body of POST /api/v1/chat/."""

    model_config = ConfigDict(
        **_WIRE_CONFIG,
        json_schema_extra={
            "example": {
                "message": "Mark the dentist todo as done",
                "history": [{"role": "assistant", "content": "Hi! How can I help with your todos?"}],
            }
        },
    )

    message: str = Field(..., min_length=1, description="The user's chat message")
    history: List[ChatTurn] = Field(default_factory=list, description="Prior turns, oldest first")


# PUBLIC_INTERFACE
class ChatResponse(BaseModel):
    """Reply of the assistant plus the raw action outcome, when an action ran."""

    model_config = ConfigDict(**_WIRE_CONFIG)

    message: str
    function_called: Optional[str] = None
    function_result: Optional[Dict[str, Any]] = None
    refresh_todos: bool = False
