"""
Todo API package.

A FastAPI service exposing a small REST API over a single relational
``todos`` table, plus the static browser client. Run it with
``uvicorn todo_api.main:app`` or the ``todo-api`` console script.
"""

__version__ = "0.1.0"
