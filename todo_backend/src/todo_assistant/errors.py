"""
Exception types raised by the todo assistant core.

Inside a chat action, NotFound, validation and store failures are recovered by
the dispatcher into an ActionResult. Anywhere else StoreError and UpstreamError
reach the HTTP boundary, where main.py turns them into a generic 500 response.
ConfigError is raised before any model call and becomes a 400.
"""
from __future__ import annotations


class TodoAssistantError(Exception):
    """Base class for all errors raised by the todo assistant."""

    kind = "TodoAssistantError"


class TodoNotFoundError(TodoAssistantError):
    """An identifier did not resolve to a stored todo."""

    kind = "NotFound"

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"Todo with ID {todo_id} not found")
        self.todo_id = todo_id


class TodoValidationError(TodoAssistantError):
    """A required field is missing or malformed (e.g. an empty title)."""

    kind = "ValidationError"


class StoreError(TodoAssistantError):
    """The persistence layer failed or rejected a write."""

    kind = "StoreError"


class UpstreamError(TodoAssistantError):
    """The model-completion call failed."""

    kind = "UpstreamError"


class UnparseableToolCallError(UpstreamError):
    """The model selected an unknown tool or sent arguments that fail validation."""

    kind = "UnparseableToolCall"

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Cannot decode tool call '{name}': {reason}")
        self.name = name
        self.reason = reason


class ConfigError(TodoAssistantError):
    """Required configuration (such as the model credential) is missing."""

    kind = "ConfigError"
