from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from .models import CategoryEntity, TodoEntity

SNAPSHOT_VERSION = "2.0.0"

STATUS_FILTERS = ("all", "completed", "pending")


# PUBLIC_INTERFACE
def category_display_name(category_id: str, categories: Sequence[CategoryEntity]) -> str:
    """
    Return the display name of `category_id`, or the id itself when no such
    category exists (a dangling reference).
    """
    for category in categories:
        if category["id"] == category_id:
            return category["name"]
    return category_id


# PUBLIC_INTERFACE
def snapshot_envelope(
    todos: Sequence[TodoEntity],
    categories: Sequence[CategoryEntity],
    status: str = "all",
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the list response for the todo endpoint.

    Args:
        todos: All todos in store order.
        categories: All categories, already ordered by name.
        status: 'all', 'completed' or 'pending'.
        category: Optional category id to filter on.

    Returns:
        Dict with keys: todos (newest first, each with category_name),
        categories, metadata. Metadata counts the returned todos.
    """
    items = list(todos)
    if status == "completed":
        items = [t for t in items if t["completed"]]
    elif status == "pending":
        items = [t for t in items if not t["completed"]]
    if category:
        items = [t for t in items if t["category"] == category]

    # Store order is oldest first; on equal timestamps the later insertion comes first
    items = sorted(reversed(items), key=lambda t: t["created_at"], reverse=True)

    return {
        "todos": [{**t, "category_name": category_display_name(t["category"], categories)} for t in items],
        "categories": list(categories),
        "metadata": {
            "last_updated": datetime.now(timezone.utc),
            "total_todos": len(items),
            "completed_todos": sum(1 for t in items if t["completed"]),
            "version": SNAPSHOT_VERSION,
        },
    }
