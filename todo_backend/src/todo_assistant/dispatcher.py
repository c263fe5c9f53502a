from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog

from .errors import StoreError, TodoNotFoundError, TodoValidationError
from .models import TodoChanges, TodoEntity, TodoFields
from .repositories import Repository
from .schemas import TodoOut
from .search import Ambiguous, NotFound, SearchResolver
from .settings import TodoDefaults, get_todo_defaults
from .tools import (
    ActionKind,
    CreateTodoArgs,
    FindByDescriptionArgs,
    FindByTitleArgs,
    FuzzyTitleArgs,
    SmartSearchArgs,
    TodoIdArgs,
    ToolArguments,
    ToolCall,
    UpdateByTitleArgs,
    UpdateTodoArgs,
)

logger = structlog.get_logger(__name__)


class ActionStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    FAILURE = "failure"


class FuzzyAction(str, Enum):
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE = "toggle"


def serialize_todo(todo: TodoEntity) -> Dict[str, Any]:
    """JSON-ready camelCase rendering of a todo."""
    return TodoOut.model_validate(todo).model_dump(mode="json", by_alias=True)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of one dispatcher operation.

    `todo` carries the affected record; `todos` carries search results or, for
    an ambiguous match, every candidate.
    """

    status: ActionStatus
    message: str
    todo: Optional[TodoEntity] = None
    todos: Optional[List[TodoEntity]] = None

    @property
    def success(self) -> bool:
        return self.status is ActionStatus.SUCCESS

    @classmethod
    def ok(
        cls,
        message: str,
        todo: Optional[TodoEntity] = None,
        todos: Optional[Sequence[TodoEntity]] = None,
    ) -> "ActionResult":
        listed = list(todos) if todos is not None else None
        return cls(ActionStatus.SUCCESS, message, todo=todo, todos=listed)

    @classmethod
    def not_found(cls, message: str) -> "ActionResult":
        return cls(ActionStatus.NOT_FOUND, message)

    @classmethod
    def ambiguous(cls, query: str, candidates: Sequence[TodoEntity]) -> "ActionResult":
        listing = "\n".join(f"{i}. {t['title']}" for i, t in enumerate(candidates, start=1))
        message = f'Multiple todos found matching "{query}". Please be more specific:\n{listing}'
        return cls(ActionStatus.AMBIGUOUS, message, todos=list(candidates))

    @classmethod
    def failure(cls, message: str) -> "ActionResult":
        return cls(ActionStatus.FAILURE, message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "status": self.status.value,
            "message": self.message,
        }
        if self.todo is not None:
            data["todo"] = serialize_todo(self.todo)
        if self.todos is not None:
            data["todos"] = [serialize_todo(t) for t in self.todos]
        return data


def clean_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise TodoValidationError("title is required")
    if len(s) > 200:
        raise TodoValidationError("title length must be at most 200 characters")
    return s


def apply_changes(current: TodoEntity, changes: TodoChanges) -> TodoEntity:
    """Overlay the supplied fields of `changes` onto `current`."""
    merged = current.copy()
    if changes.title is not None:
        merged["title"] = clean_title(changes.title)
    if changes.description is not None:
        merged["description"] = changes.description
    if changes.completed is not None:
        merged["completed"] = changes.completed
    if changes.priority is not None:
        merged["priority"] = changes.priority
    if changes.category is not None:
        merged["category"] = changes.category
    if changes.due_date is not None:
        merged["due_date"] = changes.due_date
    return merged  # type: ignore[return-value]


def _supplied(value: Optional[str]) -> Optional[str]:
    return value if value and value.strip() else None


def apply_fuzzy_update(current: TodoEntity, changes: TodoChanges, defaults: TodoDefaults) -> TodoEntity:
    """
    Merge for update-by-title: a new title without a new description also
    regenerates the description from the defaults template.

    Blank title, description or category count as not supplied, the same as
    on the create path.
    """
    changes = replace(
        changes,
        title=_supplied(changes.title),
        description=_supplied(changes.description),
        category=_supplied(changes.category),
    )
    if changes.title is not None and changes.description is None:
        changes = replace(changes, description=defaults.describe(clean_title(changes.title)))
    return apply_changes(current, changes)


# PUBLIC_INTERFACE
class ActionDispatcher:
    """
    Applies create/update/delete/toggle actions to the record store, addressing
    a todo either by id or by a fuzzy title.

    The *_by_id and create operations raise TodoNotFoundError,
    TodoValidationError or StoreError. resolve_and_act and execute never raise
    those: they report them as an ActionResult.
    """

    def __init__(self, repo: Repository, defaults: Optional[TodoDefaults] = None) -> None:
        self._repo = repo
        self._defaults = defaults or get_todo_defaults()
        self._resolver = SearchResolver(repo)
        self._handlers: Dict[ActionKind, Callable[[Any], ActionResult]] = {
            ActionKind.GET_ALL_TODOS: self._get_all,
            ActionKind.CREATE_TODO: self._create,
            ActionKind.UPDATE_TODO: self._update,
            ActionKind.DELETE_TODO: self._delete,
            ActionKind.TOGGLE_TODO_COMPLETION: self._toggle,
            ActionKind.FIND_TODOS_BY_TITLE: self._find_by_title,
            ActionKind.FIND_TODOS_BY_DESCRIPTION: self._find_by_description,
            ActionKind.SMART_SEARCH_TODOS: self._smart_search,
            ActionKind.DELETE_TODO_BY_TITLE: self._delete_by_title,
            ActionKind.UPDATE_TODO_BY_TITLE: self._update_by_title,
            ActionKind.TOGGLE_TODO_BY_TITLE: self._toggle_by_title,
        }

    @property
    def resolver(self) -> SearchResolver:
        return self._resolver

    @property
    def defaults(self) -> TodoDefaults:
        return self._defaults

    def _require(self, todo_id: str) -> TodoEntity:
        todo = self._repo.get(todo_id)
        if todo is None:
            raise TodoNotFoundError(todo_id)
        return todo

    def _save(self, todo: TodoEntity) -> TodoEntity:
        saved = self._repo.update(todo)
        if saved is None:
            # Deleted between read and write
            raise TodoNotFoundError(todo["id"])
        return saved

    # Direct operations

    def create_by_fields(
        self,
        title: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        due_date: Optional[date] = None,
        completed: Optional[bool] = None,
    ) -> TodoEntity:
        """Create a todo, filling every omitted field from the configured defaults."""
        clean = clean_title(title)
        fields: TodoFields = {
            "title": clean,
            "description": description if description else self._defaults.describe(clean),
            "completed": completed if completed is not None else self._defaults.completed,
            "priority": priority or self._defaults.priority,  # type: ignore[typeddict-item]
            "category": category or self._defaults.category,
            "due_date": due_date or self._defaults.due_date(),
        }
        created = self._repo.create(fields)
        logger.info("Todo created", todo_id=created["id"])
        return created

    def update_by_id(self, todo_id: str, changes: TodoChanges) -> TodoEntity:
        updated = self._save(apply_changes(self._require(todo_id), changes))
        logger.info("Todo updated", todo_id=todo_id)
        return updated

    def delete_by_id(self, todo_id: str) -> None:
        if not self._repo.delete(todo_id):
            raise TodoNotFoundError(todo_id)
        logger.info("Todo deleted", todo_id=todo_id)

    def toggle_by_id(self, todo_id: str) -> TodoEntity:
        current = self._require(todo_id)
        toggled = self._save(apply_changes(current, TodoChanges(completed=not current["completed"])))
        logger.info("Todo toggled", todo_id=todo_id, completed=toggled["completed"])
        return toggled

    # Fuzzy-title operations

    def resolve_and_act(
        self,
        fuzzy_title: str,
        action: FuzzyAction,
        changes: Optional[TodoChanges] = None,
    ) -> ActionResult:
        """
        Smart-search `fuzzy_title` and apply `action` only when exactly one todo
        matches. Zero matches give a not-found result; several give an ambiguous
        result listing every candidate, and nothing is written.
        """
        try:
            resolution = self._resolver.resolve_target(fuzzy_title)
            if isinstance(resolution, NotFound):
                logger.info("Fuzzy title matched nothing", action=action.value)
                return ActionResult.not_found(f'No todos found matching: "{fuzzy_title}"')
            if isinstance(resolution, Ambiguous):
                logger.info(
                    "Fuzzy title is ambiguous",
                    action=action.value,
                    candidates=len(resolution.candidates),
                )
                return ActionResult.ambiguous(fuzzy_title, resolution.candidates)
            return self._act(action, resolution.todo, changes or TodoChanges())
        except (TodoNotFoundError, TodoValidationError, StoreError) as exc:
            return self._recover(f"{action.value} by title", exc)

    def _act(self, action: FuzzyAction, target: TodoEntity, changes: TodoChanges) -> ActionResult:
        if action is FuzzyAction.DELETE:
            self.delete_by_id(target["id"])
            return ActionResult.ok(f'Successfully deleted todo: "{target["title"]}"', todo=target)
        if action is FuzzyAction.TOGGLE:
            toggled = self.toggle_by_id(target["id"])
            return ActionResult.ok(self._toggle_message(toggled), todo=toggled)
        updated = self._save(apply_fuzzy_update(target, changes, self._defaults))
        logger.info("Todo updated", todo_id=updated["id"])
        return ActionResult.ok(f'Successfully updated todo: "{updated["title"]}"', todo=updated)

    @staticmethod
    def _toggle_message(todo: TodoEntity) -> str:
        state = "completed" if todo["completed"] else "uncompleted"
        return f'Successfully {state} todo: "{todo["title"]}"'

    @staticmethod
    def _recover(operation: str, exc: Exception) -> ActionResult:
        if isinstance(exc, TodoNotFoundError):
            return ActionResult.not_found(str(exc))
        if isinstance(exc, StoreError):
            logger.error("Store failure during action", operation=operation, error=str(exc))
        else:
            logger.info("Action rejected", operation=operation, error=str(exc))
        return ActionResult.failure(f"Could not {operation}: {exc}")

    # Catalog routing

    def execute(self, call: ToolCall) -> ActionResult:
        """Run the operation behind a decoded tool call exactly once."""
        handler = self._handlers[call.kind]
        logger.info("Executing action", action=call.kind.value)
        try:
            return handler(call.arguments)
        except (TodoNotFoundError, TodoValidationError, StoreError) as exc:
            return self._recover(call.kind.value.replace("_", " "), exc)

    def _get_all(self, _: ToolArguments) -> ActionResult:
        todos = self._repo.list_todos()
        return ActionResult.ok(f"Found {len(todos)} todos", todos=todos)

    def _create(self, args: CreateTodoArgs) -> ActionResult:
        created = self.create_by_fields(
            args.title,
            description=args.description,
            priority=args.priority,
            category=args.category,
            due_date=args.due_date,
            completed=args.completed,
        )
        return ActionResult.ok(f'Successfully created todo: "{created["title"]}"', todo=created)

    def _update(self, args: UpdateTodoArgs) -> ActionResult:
        updated = self.update_by_id(args.id, args.to_changes())
        return ActionResult.ok(f'Successfully updated todo: "{updated["title"]}"', todo=updated)

    def _delete(self, args: TodoIdArgs) -> ActionResult:
        self.delete_by_id(args.id)
        return ActionResult.ok(f"Successfully deleted todo with ID: {args.id}")

    def _toggle(self, args: TodoIdArgs) -> ActionResult:
        toggled = self.toggle_by_id(args.id)
        return ActionResult.ok(self._toggle_message(toggled), todo=toggled)

    def _find_by_title(self, args: FindByTitleArgs) -> ActionResult:
        found = self._resolver.resolve_by_title(args.title)
        return ActionResult.ok(f'Found {len(found)} todos matching title: "{args.title}"', todos=found)

    def _find_by_description(self, args: FindByDescriptionArgs) -> ActionResult:
        found = self._resolver.resolve_by_description(args.description)
        return ActionResult.ok(
            f'Found {len(found)} todos matching description: "{args.description}"', todos=found
        )

    def _smart_search(self, args: SmartSearchArgs) -> ActionResult:
        found = self._resolver.smart_search(args.query)
        return ActionResult.ok(f'Found {len(found)} todos matching: "{args.query}"', todos=found)

    def _delete_by_title(self, args: FuzzyTitleArgs) -> ActionResult:
        return self.resolve_and_act(args.title, FuzzyAction.DELETE)

    def _update_by_title(self, args: UpdateByTitleArgs) -> ActionResult:
        return self.resolve_and_act(args.title, FuzzyAction.UPDATE, args.to_changes())

    def _toggle_by_title(self, args: FuzzyTitleArgs) -> ActionResult:
        return self.resolve_and_act(args.title, FuzzyAction.TOGGLE)
