from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Response, status

from ..errors import NotFoundError
from ..repositories import TodoRepository, get_repository
from ..schemas import ErrorOut, TodoCreate, TodoOut, TodoUpdate

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

# Ids are SERIAL (int4) in the store
_MAX_ID = 2**31 - 1

TodoId = Annotated[int, Path(ge=-_MAX_ID - 1, le=_MAX_ID, description="Identifier of the todo item")]

_NOT_FOUND = "Todo not found"


# PUBLIC_INTERFACE
@router.get("/", response_model=List[TodoOut], include_in_schema=False)
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List every todo, newest first.",
    responses={500: {"model": ErrorOut, "description": "Store failure"}},
)
def list_todos(repo: TodoRepository = Depends(get_repository)) -> List[TodoOut]:
    return [TodoOut(**it) for it in repo.list()]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        400: {"model": ErrorOut, "description": "Validation error"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
)
def create_todo(payload: TodoCreate, repo: TodoRepository = Depends(get_repository)) -> TodoOut:
    created = repo.create(payload.title)
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Partially update the title and/or completion flag of a Todo item.",
    responses={
        400: {"model": ErrorOut, "description": "Validation error"},
        404: {"model": ErrorOut, "description": "Todo not found"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
)
def patch_todo(
    todo_id: TodoId,
    payload: TodoUpdate,
    repo: TodoRepository = Depends(get_repository),
) -> TodoOut:
    updated = repo.update(todo_id, payload.changes())
    if updated is None:
        raise NotFoundError(_NOT_FOUND)
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        400: {"model": ErrorOut, "description": "Invalid id"},
        404: {"model": ErrorOut, "description": "Todo not found"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
)
def delete_todo(todo_id: TodoId, repo: TodoRepository = Depends(get_repository)) -> Response:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    if not repo.delete(todo_id):
        raise NotFoundError(_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
