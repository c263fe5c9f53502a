import os
from datetime import date, datetime, timezone

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from todo_assistant.dispatcher import ActionDispatcher  # noqa: E402
from todo_assistant.repositories import InMemoryRepository  # noqa: E402
from todo_assistant.settings import TodoDefaults  # noqa: E402


def make_todo(
    title,
    description="",
    category="personal",
    completed=False,
    todo_id=None,
    priority="medium",
):
    """Build a TodoEntity for pure search tests without going through a store."""
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return {
        "id": todo_id or f"id-{title.lower().replace(' ', '-')}",
        "title": title,
        "description": description,
        "completed": completed,
        "priority": priority,
        "category": category,
        "due_date": date(2025, 1, 31),
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def repo():
    store = InMemoryRepository()
    store.ensure_default_categories()
    return store


@pytest.fixture
def dispatcher(repo):
    return ActionDispatcher(repo, TodoDefaults())


@pytest.fixture
def todo_factory():
    return make_todo
