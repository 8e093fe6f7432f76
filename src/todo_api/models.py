from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A Todo row as read back from the store.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - completed: Boolean completion flag
    - created_at: Creation timestamp set by the store
    """

    id: int
    title: str
    completed: bool
    created_at: datetime
