"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclass in tasks/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///taskboard.db")
    task_id = store.create_task(Task(title="buy milk", user_id=1))
    tasks = store.list_tasks_for_user(1)
    store.update_task(task_id, expected_status="Todo", status="Done")
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine

from core.database import make_engine
from tasks.models import STATUS_TODO, Task

# Columns a caller may change through update_task(). user_id is deliberately absent.
_MUTABLE_FIELDS = frozenset({"title", "status"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default=STATUS_TODO),
    Column("user_id", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_tasks_user_id", "user_id"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_task(self, task: Task) -> int:
        """Insert a new task and return its assigned database ID.

        The status stored is whatever the Task carries; the API layer always
        builds new tasks with the default "Todo".
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    title=task.title,
                    status=task.status,
                    user_id=task.user_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_task(self, task_id: int) -> Optional[Task]:
        """Fetch a single task by ID regardless of owner. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_tasks_for_user(self, user_id: int) -> list[Task]:
        """Return every task owned by user_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tasks.select().where(_tasks.c.user_id == user_id).order_by(_tasks.c.created_at, _tasks.c.id)
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_task(self, task_id: int, expected_status: str, **fields) -> bool:
        """Apply a partial update to a task, conditional on its current status.

        Accepts any subset of: title, status. The WHERE clause also matches
        expected_status (the status the caller read before deciding), so a
        concurrent writer that changed the status in between makes this a
        zero-row update instead of silently overwriting.

        Returns True if a row was updated, False if the task is gone or its
        status no longer equals expected_status.
        Raises ValueError for fields outside the mutable set.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update()
                .where((_tasks.c.id == task_id) & (_tasks.c.status == expected_status))
                .values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by GET /health."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        status=row.status,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
