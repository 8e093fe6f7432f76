from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

import structlog
from fastapi import Request
from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import TODO_COLUMNS, todos
from .errors import StoreError
from .models import TodoEntity

logger = structlog.get_logger(__name__)


# PUBLIC_INTERFACE
class TodoRepository:
    """
    Data access for the todos table.

    Every method runs exactly one statement on a connection borrowed from the
    engine's pool for the duration of that statement. Driver errors are
    logged and re-raised as StoreError with a client-safe message.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _conn(self, operation: str, message: str) -> Generator[Connection, None, None]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            logger.error("store_error", operation=operation, exc_info=exc)
            raise StoreError(message) from exc

    @staticmethod
    def _row_to_entity(row: Any) -> TodoEntity:
        return {
            "id": int(row["id"]),
            "title": str(row["title"]),
            "completed": bool(row["completed"]),
            "created_at": row["created_at"],
        }

    def ping(self) -> None:
        """Raise StoreError unless the store answers a trivial query."""
        with self._conn("ping", "Store unavailable") as conn:
            conn.execute(text("SELECT 1"))

    def list(self) -> List[TodoEntity]:
        """Return every todo, newest (highest id) first."""
        with self._conn("list", "Failed to load todos") as conn:
            rows = conn.execute(select(*TODO_COLUMNS).order_by(todos.c.id.desc())).mappings().all()
        return [self._row_to_entity(r) for r in rows]

    def create(self, title: str) -> TodoEntity:
        with self._conn("create", "Failed to create todo") as conn:
            row = conn.execute(
                insert(todos).values(title=title).returning(*TODO_COLUMNS)
            ).mappings().one()
        return self._row_to_entity(row)

    def update(self, todo_id: int, changes: Dict[str, Any]) -> Optional[TodoEntity]:
        """
        Apply the given column changes to one row and return it, or None if
        no row has that id. No version check: the last writer wins.
        """
        with self._conn("update", "Failed to update todo") as conn:
            row = conn.execute(
                update(todos)
                .where(todos.c.id == todo_id)
                .values(**changes)
                .returning(*TODO_COLUMNS)
            ).mappings().first()
        return self._row_to_entity(row) if row is not None else None

    def delete(self, todo_id: int) -> bool:
        """Delete a todo by id. Return True if deleted, False if not found."""
        with self._conn("delete", "Failed to delete todo") as conn:
            result = conn.execute(delete(todos).where(todos.c.id == todo_id))
            return result.rowcount > 0


# PUBLIC_INTERFACE
def get_repository(request: Request) -> TodoRepository:
    """FastAPI dependency returning the repository owned by the running app."""
    return request.app.state.repository
