from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

PLACEHOLDER_API_KEY = "your-api-key-here"

_PRIORITIES = {"high", "medium", "low"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - OPENAI_API_KEY: credential for the chat model (required by the chat endpoint)
    - OPENAI_MODEL: chat model name. Default 'gpt-4o'
    - OPENAI_TEMPERATURE: sampling temperature. Default 0.7
    - OPENAI_TIMEOUT_SECONDS: per-request timeout for model calls. Default 30
    - OPENAI_MAX_RETRIES: bounded retries (with backoff) for model calls. Default 2
    - LOG_LEVEL: logging level name. Default 'INFO'
    - LOG_FORMAT: 'console' (default) or 'json'
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    openai_api_key: Optional[str]
    openai_model: str
    openai_temperature: float
    openai_timeout_seconds: float
    openai_max_retries: int
    log_level: str
    log_format: str

    @property
    def has_model_credentials(self) -> bool:
        """True when a real (non-placeholder) OpenAI key is configured."""
        return bool(self.openai_api_key) and self.openai_api_key != PLACEHOLDER_API_KEY


@dataclass(frozen=True)
class TodoDefaults:
    """
    Single source of the values applied when a todo field is not supplied.

    Used by both the create path and the fuzzy-update path of the dispatcher.
    """

    priority: str = "medium"
    category: str = "personal"
    description_template: str = "Task: {title}"
    completed: bool = False

    def describe(self, title: str) -> str:
        return self.description_template.format(title=title)

    def due_date(self) -> date:
        # Calendar date in UTC, matching the ISO date-only wire format.
        return datetime.now(timezone.utc).date()


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str, default: int) -> int:
    try:
        return max(int(value), 0)
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        # Star will be handled in main via allow_origins=["*"]
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/todos.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    api_key = os.getenv("OPENAI_API_KEY")
    log_format = _get_env("LOG_FORMAT", "console").strip().lower()
    if log_format not in {"console", "json"}:
        log_format = "console"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        openai_api_key=api_key.strip() if api_key else None,
        openai_model=_get_env("OPENAI_MODEL", "gpt-4o").strip(),
        openai_temperature=_parse_float(_get_env("OPENAI_TEMPERATURE", "0.7"), 0.7),
        openai_timeout_seconds=_parse_float(_get_env("OPENAI_TIMEOUT_SECONDS", "30"), 30.0),
        openai_max_retries=_parse_int(_get_env("OPENAI_MAX_RETRIES", "2"), 2),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )


# PUBLIC_INTERFACE
def get_todo_defaults() -> TodoDefaults:
    """
    Return the todo field defaults. DEFAULT_TODO_PRIORITY and DEFAULT_TODO_CATEGORY
    override the built-in 'medium' / 'personal'.
    """
    priority = _get_env("DEFAULT_TODO_PRIORITY", "medium").strip().lower()
    if priority not in _PRIORITIES:
        priority = "medium"
    category = _get_env("DEFAULT_TODO_CATEGORY", "personal").strip()
    return TodoDefaults(priority=priority, category=category)
