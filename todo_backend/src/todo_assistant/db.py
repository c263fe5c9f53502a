from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Generator, List, Optional

import structlog

from .errors import StoreError
from .models import DEFAULT_CATEGORIES, CategoryEntity, TodoEntity, TodoFields
from .repositories import Repository, new_todo_id, next_timestamp, utcnow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    priority: str = "priority"
    category: str = "category_id"
    due_date: str = "due_date"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _CategoryCols:
    table: str = "categories"
    id: str = "id"
    name: str = "name"
    color: str = "color"


_COLS = _Cols()
_CAT = _CategoryCols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    Todos reference categories through a foreign key; every sqlite3 failure is
    re-raised as StoreError.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            logger.error("SQLite connection failed", db_path=self._db_path, error=str(exc))
            raise StoreError("Todo store is unavailable") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("SQLite operation failed", error=str(exc))
            raise StoreError("Todo store operation failed") from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_CAT.table} (
                    {_CAT.id} TEXT PRIMARY KEY,
                    {_CAT.name} TEXT NOT NULL,
                    {_CAT.color} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL CHECK (length({_COLS.title}) > 0),
                    {_COLS.description} TEXT NOT NULL DEFAULT '',
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.priority} TEXT NOT NULL DEFAULT 'medium'
                        CHECK ({_COLS.priority} IN ('high', 'medium', 'low')),
                    {_COLS.category} TEXT NOT NULL REFERENCES {_CAT.table}({_CAT.id}),
                    {_COLS.due_date} TEXT NOT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description] or "",
            "completed": bool(row[_COLS.completed]),
            "priority": row[_COLS.priority],
            "category": str(row[_COLS.category]),
            "due_date": date.fromisoformat(row[_COLS.due_date]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: str) -> Optional[TodoEntity]:
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def _require_category(self, conn: sqlite3.Connection, category_id: str) -> None:
        row = conn.execute(f"SELECT 1 FROM {_CAT.table} WHERE {_CAT.id} = ?", (category_id,)).fetchone()
        if row is None:
            raise StoreError(f"Category '{category_id}' does not exist")

    def list_todos(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.created_at} ASC, rowid ASC"
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            return self._fetch(conn, todo_id)

    def create(self, fields: TodoFields) -> TodoEntity:
        now = utcnow().isoformat()
        new_id = new_todo_id()
        with self._conn() as conn:
            self._require_category(conn, fields["category"])
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description}, {_COLS.completed},
                    {_COLS.priority}, {_COLS.category}, {_COLS.due_date}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    fields["title"],
                    fields["description"],
                    1 if fields["completed"] else 0,
                    fields["priority"],
                    fields["category"],
                    fields["due_date"].isoformat(),
                    now,
                    now,
                ),
            )
            created = self._fetch(conn, new_id)
            assert created is not None
            return created

    def update(self, todo: TodoEntity) -> Optional[TodoEntity]:
        with self._conn() as conn:
            current = self._fetch(conn, todo["id"])
            if current is None:
                return None
            self._require_category(conn, todo["category"])
            updated_at = next_timestamp(current["updated_at"]).isoformat()
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.completed} = ?,
                    {_COLS.priority} = ?, {_COLS.category} = ?, {_COLS.due_date} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    todo["title"],
                    todo["description"],
                    1 if todo["completed"] else 0,
                    todo["priority"],
                    todo["category"],
                    todo["due_date"].isoformat(),
                    updated_at,
                    todo["id"],
                ),
            )
            updated = self._fetch(conn, todo["id"])
            assert updated is not None
            return updated

    def delete(self, todo_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            return cur.rowcount > 0

    def list_categories(self) -> List[CategoryEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_CAT.table} ORDER BY {_CAT.name} ASC").fetchall()
            return [{"id": r[_CAT.id], "name": r[_CAT.name], "color": r[_CAT.color]} for r in rows]

    def ensure_default_categories(self) -> bool:
        with self._conn() as conn:
            count = conn.execute(f"SELECT COUNT(*) AS cnt FROM {_CAT.table}").fetchone()["cnt"]
            if count:
                return False
            # Another connection may seed between the count and the insert
            before = conn.total_changes
            conn.executemany(
                f"INSERT OR IGNORE INTO {_CAT.table} ({_CAT.id}, {_CAT.name}, {_CAT.color}) VALUES (?, ?, ?)",
                [(c["id"], c["name"], c["color"]) for c in DEFAULT_CATEGORIES],
            )
            if conn.total_changes == before:
                return False
        logger.info("Seeded default categories", count=len(DEFAULT_CATEGORIES))
        return True
