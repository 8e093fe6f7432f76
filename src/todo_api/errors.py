"""
Error types surfaced by the Todo API.

Every error the API returns to a client has the body ``{"error": <message>}``.
The status code is carried by the exception class:

- ValidationError: malformed, missing or oversized input (400)
- NotFoundError: no todo row for the given id (404)
- StoreError: store connectivity or query failure (500)
"""

from __future__ import annotations

from typing import Dict, Optional


class TodoAPIError(Exception):
    """
    Base exception for all errors the API converts into a JSON response.

    Attributes:
        message: Human-readable description shown to the client
        status_code: HTTP status code of the response
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message}


class ValidationError(TodoAPIError):
    status_code = 400


class NotFoundError(TodoAPIError):
    status_code = 404


class StoreError(TodoAPIError):
    """Raised when the store is unreachable or a statement fails."""

    status_code = 500
