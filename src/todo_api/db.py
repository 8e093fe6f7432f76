from __future__ import annotations

from typing import Any, Dict

import structlog
from sqlalchemy import Boolean, Column, DateTime, Integer, MetaData, Table, Text, create_engine, false, func
from sqlalchemy.engine import Engine, make_url

from .settings import Settings

logger = structlog.get_logger(__name__)

metadata = MetaData()

todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("completed", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Without AUTOINCREMENT SQLite would hand out the id of a deleted last row again
    sqlite_autoincrement=True,
)

# Columns returned to clients, in wire order
TODO_COLUMNS = (todos.c.id, todos.c.title, todos.c.completed, todos.c.created_at)


# PUBLIC_INTERFACE
def create_store_engine(settings: Settings) -> Engine:
    """
    Build the pooled engine that every request borrows its connection from.

    The engine is owned by the application (see main.lifespan) and disposed
    on shutdown. Connections are checked with a ping before being handed
    out so a restarted database does not surface as a failed request.
    """
    url = make_url(settings.database_url)
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() != "sqlite":
        kwargs["pool_size"] = settings.db_pool_size
    return create_engine(url, **kwargs)


# PUBLIC_INTERFACE
def init_schema(engine: Engine) -> None:
    """Create the todos table if it does not exist yet."""
    metadata.create_all(engine, checkfirst=True)
    logger.info("schema_ready", table=todos.name, backend=engine.url.get_backend_name())
