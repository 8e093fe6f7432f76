"""
FastAPI application entry point for the Todo API.

This module:
- Builds the application via create_app(), owning the store engine in the lifespan
- Configures structured logging with structlog
- Converts every error into a ``{"error": message}`` JSON body
- Serves the static client bundle with a single-page-app fallback
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .db import create_store_engine, init_schema
from .errors import StoreError, TodoAPIError
from .repositories import TodoRepository
from .routers import todos as todos_router
from .schemas import COMPLETED_ERROR, EMPTY_UPDATE_ERROR, TITLE_ERROR, HealthOut
from .settings import Settings, get_settings

logger = structlog.get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "CRUD operations for Todo items."},
]

INVALID_ID_ERROR = "Invalid todo id"
INVALID_JSON_ERROR = "Invalid JSON body"
INVALID_BODY_ERROR = "Invalid request body"

# What a request without any body is missing, per method
_MISSING_BODY_ERRORS = {"POST": TITLE_ERROR, "PATCH": EMPTY_UPDATE_ERROR}


# PUBLIC_INTERFACE
def configure_logging(settings: Settings) -> None:
    """Configure structlog: JSON lines when LOG_FORMAT=json, console output otherwise."""
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def validation_message(method: str, errors: Sequence[Dict[str, Any]]) -> str:
    """
    Pick the client-facing message for a failed request validation.

    Path errors win over body errors so a bad id is reported as such
    whatever the body looks like.
    """
    if any(tuple(err.get("loc", ()))[:1] == ("path",) for err in errors):
        return INVALID_ID_ERROR
    for err in errors:
        loc = tuple(err.get("loc", ()))
        err_type = err.get("type")
        if err_type == "json_invalid":
            return INVALID_JSON_ERROR
        if "title" in loc:
            return TITLE_ERROR
        if "completed" in loc:
            return COMPLETED_ERROR
        if err_type == "missing" and loc == ("body",):
            return _MISSING_BODY_ERRORS.get(method, INVALID_BODY_ERROR)
        if err_type == "value_error":
            ctx_error = (err.get("ctx") or {}).get("error")
            if ctx_error is not None:
                return str(ctx_error)
    return INVALID_BODY_ERROR


def _static_file(static_dir: str, requested: str) -> Optional[str]:
    """
    Resolve a request path to a file inside static_dir, or None when it does
    not exist or points outside the directory.
    """
    root = os.path.realpath(static_dir)
    try:
        candidate = os.path.realpath(os.path.join(root, requested.lstrip("/")))
    except ValueError:
        # embedded NUL byte
        return None
    if os.path.commonpath([root, candidate]) != root:
        return None
    return candidate if os.path.isfile(candidate) else None


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TodoAPIError)
    async def todo_api_error_handler(request: Request, exc: TodoAPIError) -> JSONResponse:
        logger.warning(
            "api_error",
            error=exc.message,
            status_code=exc.status_code,
            method=request.method,
            path=request.url.path,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return ``{"error": message}`` with status 400 for request validation errors.
        """
        message = validation_message(request.method, exc.errors())
        logger.info("validation_failed", error=message, method=request.method, path=request.url.path)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", method=request.method, path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The store engine is created when the app starts and disposed when it
    stops; handlers reach it only through the repository on app.state.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "application_starting",
            version=__version__,
            backend=settings.database_url.split(":", 1)[0],
            static_dir=settings.static_dir,
        )
        engine = create_store_engine(settings)
        try:
            init_schema(engine)
            app.state.engine = engine
            app.state.repository = TodoRepository(engine)
            yield
        finally:
            logger.info("application_shutting_down")
            engine.dispose()

    app = FastAPI(
        title="Todo API",
        description="Minimal task-list service backed by a single relational table.",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings

    origins: List[str] = settings.cors_allow_origins
    allow_all = origins == ["*"] or len(origins) == 0
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else origins,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )
        response.headers["X-Process-Time"] = str(round(process_time, 3))
        return response

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get(
        "/api/health",
        response_model=HealthOut,
        summary="Health Check",
        tags=["health"],
        responses={500: {"model": HealthOut, "description": "Store unreachable"}},
    )
    def health_check(request: Request):
        """
        Report whether the store answers queries. No side effects.
        """
        try:
            request.app.state.repository.ping()
        except StoreError:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"status": "error"},
            )
        return {"status": "ok"}

    app.include_router(todos_router.router)

    # Must stay last: it matches every GET the API did not claim
    @app.get("/{full_path:path}", include_in_schema=False)
    def client_app(full_path: str) -> FileResponse:
        path = _static_file(settings.static_dir, full_path) if full_path else None
        if path is None:
            path = _static_file(settings.static_dir, "index.html")
        if path is None:
            raise StarletteHTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        return FileResponse(path)

    return app


app = create_app()


# PUBLIC_INTERFACE
def main() -> None:
    """Run the API with uvicorn on the configured host and port."""
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
