from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dispatcher import ActionDispatcher
from ..errors import TodoNotFoundError
from ..repositories import Repository, get_repository
from ..schemas import TodoCreate, TodoOut, TodoReplace, TodoSnapshot, TodoUpdate
from ..settings import get_todo_defaults
from ..utils import STATUS_FILTERS, snapshot_envelope

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)

_NOT_FOUND = "Todo not found"


def _get_dispatcher(repo: Repository = Depends(get_repository)) -> ActionDispatcher:
    """
    Dependency building the dispatcher over the configured repository.
    """
    return ActionDispatcher(repo, get_todo_defaults())


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TodoSnapshot,
    summary="List Todos",
    description=(
        "Return every todo with the categories and summary metadata.\n\n"
        "Query parameters:\n"
        "- status: all (default), completed or pending\n"
        "- category: only todos of this category id\n\n"
        "Default categories are seeded first if none exist."
    ),
    responses={
        200: {"description": "Snapshot retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    status_filter: str = Query("all", alias="status", description="all, completed or pending"),
    category: Optional[str] = Query(None, description="Filter by category id"),
    repo: Repository = Depends(get_repository),
) -> TodoSnapshot:
    """
    Snapshot of todos (newest first), categories and metadata.
    """
    normalized = status_filter.strip().lower()
    if normalized not in STATUS_FILTERS:
        raise HTTPException(status_code=400, detail="status must be 'all', 'completed' or 'pending'")

    repo.ensure_default_categories()
    envelope = snapshot_envelope(
        repo.list_todos(),
        repo.list_categories(),
        status=normalized,
        category=category.strip() if category else None,
    )
    return TodoSnapshot.model_validate(envelope)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item. Omitted fields receive the configured defaults.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
        500: {"description": "Store rejected the write (e.g. unknown category)"},
    },
)
def create_todo(payload: TodoCreate, dispatcher: ActionDispatcher = Depends(_get_dispatcher)) -> TodoOut:
    created = dispatcher.create_by_fields(
        payload.title,
        description=payload.description,
        priority=payload.priority,
        category=payload.category,
        due_date=payload.due_date,
        completed=payload.completed,
    )
    return TodoOut.model_validate(created)


# PUBLIC_INTERFACE
@router.put(
    "/",
    response_model=TodoOut,
    summary="Replace Todo",
    description="Replace an existing Todo with the full record in the body. Timestamps are store-assigned.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def put_todo(payload: TodoReplace, dispatcher: ActionDispatcher = Depends(_get_dispatcher)) -> TodoOut:
    try:
        updated = dispatcher.update_by_id(payload.id, payload.to_changes())
    except TodoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/",
    summary="Delete Todo",
    description="Delete a Todo item identified by the 'id' query parameter.",
    responses={
        200: {"description": "Todo deleted"},
        400: {"description": "Missing id"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: Optional[str] = Query(None, alias="id", description="Identifier of the todo to delete"),
    dispatcher: ActionDispatcher = Depends(_get_dispatcher),
) -> Dict[str, str]:
    if not todo_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Todo ID is required")
    try:
        dispatcher.delete_by_id(todo_id)
    except TodoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return {"message": "Todo deleted successfully"}


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: str, repo: Repository = Depends(get_repository)) -> TodoOut:
    item = repo.get(todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut.model_validate(item)


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Partially update fields of a Todo item; omitted fields keep their value.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(
    todo_id: str,
    payload: TodoUpdate,
    dispatcher: ActionDispatcher = Depends(_get_dispatcher),
) -> TodoOut:
    try:
        updated = dispatcher.update_by_id(todo_id, payload.to_changes())
    except TodoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo",
    description="Flip the completion flag of a Todo item.",
    responses={
        200: {"description": "Todo toggled"},
        404: {"description": "Todo not found"},
    },
)
def toggle_todo(todo_id: str, dispatcher: ActionDispatcher = Depends(_get_dispatcher)) -> TodoOut:
    try:
        toggled = dispatcher.toggle_by_id(todo_id)
    except TodoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut.model_validate(toggled)
