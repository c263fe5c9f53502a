"""
Catalog of the actions the chat model may call.

Each ActionKind has a pydantic argument model. The OpenAI tool descriptors are
generated from those models, and decode_tool_call validates a model-issued
call against them.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import UnparseableToolCallError
from .models import Priority, TodoChanges
from .schemas import coerce_due_date

_CATEGORY_HELP = "Category id, one of: work, personal, health, learning"
_DUE_DATE_HELP = "The due date in YYYY-MM-DD format"


class ActionKind(str, Enum):
    GET_ALL_TODOS = "get_all_todos"
    CREATE_TODO = "create_todo"
    UPDATE_TODO = "update_todo"
    DELETE_TODO = "delete_todo"
    TOGGLE_TODO_COMPLETION = "toggle_todo_completion"
    FIND_TODOS_BY_TITLE = "find_todos_by_title"
    FIND_TODOS_BY_DESCRIPTION = "find_todos_by_description"
    SMART_SEARCH_TODOS = "smart_search_todos"
    DELETE_TODO_BY_TITLE = "delete_todo_by_title"
    UPDATE_TODO_BY_TITLE = "update_todo_by_title"
    TOGGLE_TODO_BY_TITLE = "toggle_todo_by_title"

    @property
    def mutates(self) -> bool:
        """True for the actions that may change stored todos."""
        return self in MUTATING_ACTIONS


MUTATING_ACTIONS = frozenset(
    {
        ActionKind.CREATE_TODO,
        ActionKind.UPDATE_TODO,
        ActionKind.DELETE_TODO,
        ActionKind.TOGGLE_TODO_COMPLETION,
        ActionKind.UPDATE_TODO_BY_TITLE,
        ActionKind.DELETE_TODO_BY_TITLE,
        ActionKind.TOGGLE_TODO_BY_TITLE,
    }
)


class ToolArguments(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _DueDateMixin(ToolArguments):
    @field_validator("due_date", mode="before", check_fields=False)
    @classmethod
    def parse_due_date(cls, v: Any) -> Optional[date]:
        return coerce_due_date(v)


class NoArguments(ToolArguments):
    pass


class CreateTodoArgs(_DueDateMixin):
    title: str = Field(..., description="The title of the todo")
    description: Optional[str] = Field(default=None, description="A detailed description of the todo")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description=_CATEGORY_HELP)
    due_date: Optional[date] = Field(default=None, description=_DUE_DATE_HELP)
    completed: Optional[bool] = Field(default=None, description="Whether the todo is initially completed (defaults to false)")


class UpdateTodoArgs(_DueDateMixin):
    id: str = Field(..., description="The ID of the todo to update")
    title: Optional[str] = Field(default=None, description="The new title of the todo")
    description: Optional[str] = Field(default=None, description="A detailed description of the todo")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description=_CATEGORY_HELP)
    due_date: Optional[date] = Field(default=None, description=_DUE_DATE_HELP)
    completed: Optional[bool] = Field(default=None, description="Whether the todo is completed")

    def to_changes(self) -> TodoChanges:
        return TodoChanges(
            title=self.title,
            description=self.description,
            completed=self.completed,
            priority=self.priority,
            category=self.category,
            due_date=self.due_date,
        )


class TodoIdArgs(ToolArguments):
    id: str = Field(..., description="The ID of the todo")


class FindByTitleArgs(ToolArguments):
    title: str = Field(..., description="The title to search for")


class FindByDescriptionArgs(ToolArguments):
    description: str = Field(..., description="The description text to search for")


class SmartSearchArgs(ToolArguments):
    query: str = Field(..., description="Search query - can be keywords, phrases, or partial matches")


class FuzzyTitleArgs(ToolArguments):
    title: str = Field(..., description="Keywords or partial title to search for the todo")


class UpdateByTitleArgs(_DueDateMixin):
    title: str = Field(..., description="Keywords or partial title to search for the todo to update")
    new_title: Optional[str] = Field(default=None, description="The new title")
    description: Optional[str] = Field(default=None, description="The new description")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description=_CATEGORY_HELP)
    due_date: Optional[date] = Field(default=None, description=_DUE_DATE_HELP)
    completed: Optional[bool] = Field(default=None, description="Whether the todo is completed")

    def to_changes(self) -> TodoChanges:
        return TodoChanges(
            title=self.new_title,
            description=self.description,
            completed=self.completed,
            priority=self.priority,
            category=self.category,
            due_date=self.due_date,
        )


@dataclass(frozen=True)
class ToolSpec:
    kind: ActionKind
    description: str
    arguments: Type[ToolArguments]

    def descriptor(self) -> Dict[str, Any]:
        """OpenAI 'tools' entry for this action."""
        parameters = self.arguments.model_json_schema(by_alias=True)
        parameters.pop("title", None)
        parameters.setdefault("properties", {})
        parameters.setdefault("required", [])
        return {
            "type": "function",
            "function": {
                "name": self.kind.value,
                "description": self.description,
                "parameters": parameters,
            },
        }


TOOL_SPECS: Dict[ActionKind, ToolSpec] = {
    spec.kind: spec
    for spec in [
        ToolSpec(ActionKind.GET_ALL_TODOS, "Get all todos from the database", NoArguments),
        ToolSpec(ActionKind.CREATE_TODO, "Create a new todo item", CreateTodoArgs),
        ToolSpec(ActionKind.UPDATE_TODO, "Update an existing todo by ID", UpdateTodoArgs),
        ToolSpec(ActionKind.DELETE_TODO, "Delete a todo by ID", TodoIdArgs),
        ToolSpec(ActionKind.TOGGLE_TODO_COMPLETION, "Toggle the completion status of a todo by ID", TodoIdArgs),
        ToolSpec(
            ActionKind.FIND_TODOS_BY_TITLE,
            "Find todos by searching their titles (best for exact titles)",
            FindByTitleArgs,
        ),
        ToolSpec(
            ActionKind.FIND_TODOS_BY_DESCRIPTION,
            "Find todos by searching their descriptions",
            FindByDescriptionArgs,
        ),
        ToolSpec(
            ActionKind.SMART_SEARCH_TODOS,
            "ONLY for finding or showing todos to the user. Never use this for update, delete or "
            "toggle requests; use the by-title action functions instead.",
            SmartSearchArgs,
        ),
        ToolSpec(
            ActionKind.DELETE_TODO_BY_TITLE,
            "Delete a todo found by keywords or a partial title. Use this when the user wants to delete a todo.",
            FuzzyTitleArgs,
        ),
        ToolSpec(
            ActionKind.UPDATE_TODO_BY_TITLE,
            "Update a todo found by keywords or a partial title. Use this when the user wants to change a todo.",
            UpdateByTitleArgs,
        ),
        ToolSpec(
            ActionKind.TOGGLE_TODO_BY_TITLE,
            "Toggle the completion status of a todo found by keywords or a partial title. "
            "Use this when the user wants to mark a todo complete or incomplete.",
            FuzzyTitleArgs,
        ),
    ]
}


def tool_catalog() -> List[Dict[str, Any]]:
    """Descriptors for every action, in catalog order."""
    return [spec.descriptor() for spec in TOOL_SPECS.values()]


@dataclass(frozen=True)
class ToolCall:
    """A validated model-selected action with its typed arguments."""

    kind: ActionKind
    arguments: ToolArguments


# PUBLIC_INTERFACE
def decode_tool_call(name: str, raw_arguments: Optional[str]) -> ToolCall:
    """
    Decode a model tool call into a ToolCall.

    Raises:
        UnparseableToolCallError: unknown action name, arguments that are not a
            JSON object, or arguments that fail the action's schema.
    """
    try:
        kind = ActionKind(name)
    except ValueError:
        raise UnparseableToolCallError(name, "unknown function") from None

    try:
        payload = json.loads(raw_arguments) if raw_arguments and raw_arguments.strip() else {}
    except json.JSONDecodeError as exc:
        raise UnparseableToolCallError(name, f"arguments are not valid JSON ({exc.msg})") from exc
    if not isinstance(payload, dict):
        raise UnparseableToolCallError(name, "arguments must be a JSON object")

    try:
        arguments = TOOL_SPECS[kind].arguments.model_validate(payload)
    except ValidationError as exc:
        raise UnparseableToolCallError(name, f"{exc.error_count()} invalid argument(s)") from exc
    return ToolCall(kind=kind, arguments=arguments)
