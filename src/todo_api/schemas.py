from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TITLE_MAX_LENGTH = 200

TITLE_ERROR = "Title is required and must be under 200 characters"
COMPLETED_ERROR = "Completed must be a boolean"
EMPTY_UPDATE_ERROR = "Provide title or completed to update"


def _clean_title(value: Any) -> str:
    """
    Strip whitespace and enforce 1..200 length. Anything that is not a
    string (including an explicit null) is rejected.
    """
    if not isinstance(value, str):
        raise ValueError(TITLE_ERROR)
    s = value.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(TITLE_ERROR)
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: str = Field(..., description="Short title for the todo item (1..200 chars after trim)")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _clean_title(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating an existing Todo item.
    Only the fields present in the request body are applied; at least one of
    title/completed must be sent.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Buy oat milk", "completed": True}}
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """
        A provided title gets the same validation as on create; null is not a title.
        """
        return _clean_title(v)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> Any:
        if v is None:
            raise ValueError(COMPLETED_ERROR)
        return v

    @model_validator(mode="after")
    def require_some_field(self) -> "TodoUpdate":
        if not ({"title", "completed"} & self.model_fields_set):
            raise ValueError(EMPTY_UPDATE_ERROR)
        return self

    # PUBLIC_INTERFACE
    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return self.model_dump(include={"title", "completed"} & self.model_fields_set)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456+00:00",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")


class HealthOut(BaseModel):
    status: str = Field(..., description="'ok' when the store is reachable, 'error' otherwise")


class ErrorOut(BaseModel):
    error: str = Field(..., description="Human-readable error message")
