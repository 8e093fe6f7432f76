from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.engine import URL, make_url

_DEFAULT_STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_URL: full store connection string; takes precedence over the PG* fields
    - PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE: discrete store connection fields
    - DB_POOL_SIZE: number of pooled store connections (default 5)
    - HOST / PORT: listen address for the HTTP server (default 0.0.0.0:3000)
    - STATIC_DIR: directory holding the client bundle (default: packaged public/)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: log level name (default INFO)
    - LOG_FORMAT: 'console' (default) or 'json'
    """

    database_url: str
    db_pool_size: int
    host: str
    port: int
    static_dir: str
    cors_allow_origins: List[str]
    log_level: str
    log_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def normalize_database_url(raw: str) -> str:
    """
    Map bare postgres URLs (as handed out by most hosting providers) onto the
    psycopg driver. Any other SQLAlchemy URL is returned unchanged.
    """
    url = raw.strip()
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def _database_url_from_parts() -> str:
    url = URL.create(
        "postgresql+psycopg",
        username=_get_env("PGUSER", "postgres"),
        password=_get_env("PGPASSWORD", "postgres"),
        host=_get_env("PGHOST", "localhost"),
        port=_parse_int(_get_env("PGPORT", "5432"), 5432),
        database=_get_env("PGDATABASE", "todos"),
    )
    return url.render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    raw_url: Optional[str] = os.getenv("DATABASE_URL")
    if raw_url and raw_url.strip():
        database_url = normalize_database_url(raw_url)
        # Fail fast on garbage rather than on the first request
        make_url(database_url)
    else:
        database_url = _database_url_from_parts()

    log_format = _get_env("LOG_FORMAT", "console").strip().lower()
    if log_format not in {"console", "json"}:
        log_format = "console"

    return Settings(
        database_url=database_url,
        db_pool_size=_parse_int(_get_env("DB_POOL_SIZE", "5"), 5),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
        static_dir=_get_env("STATIC_DIR", _DEFAULT_STATIC_DIR).strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )
