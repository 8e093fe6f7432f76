import pytest
from sqlalchemy import create_engine, inspect, text

from todo_api.db import create_store_engine, init_schema
from todo_api.errors import StoreError
from todo_api.repositories import TodoRepository


@pytest.fixture
def engine(settings):
    eng = create_store_engine(settings)
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def repo(engine):
    return TodoRepository(engine)


@pytest.fixture
def broken_repo(tmp_path):
    # The parent directory does not exist, so every connect attempt fails
    eng = create_engine(f"sqlite:///{tmp_path / 'missing' / 'todos.db'}")
    yield TodoRepository(eng)
    eng.dispose()


class TestSchema:
    def test_table_created(self, engine):
        columns = {c["name"] for c in inspect(engine).get_columns("todos")}
        assert columns == {"id", "title", "completed", "created_at"}

    def test_init_schema_is_idempotent(self, engine, repo):
        repo.create("Survives")
        init_schema(engine)
        assert [t["title"] for t in repo.list()] == ["Survives"]

    def test_store_defaults(self, engine, repo):
        with engine.begin() as conn:
            conn.execute(text("INSERT INTO todos (title) VALUES ('raw')"))
        (todo,) = repo.list()
        assert todo["completed"] is False
        assert todo["created_at"] is not None


class TestTodoRepository:
    def test_ping(self, repo):
        repo.ping()

    def test_create_returns_row(self, repo):
        todo = repo.create("Buy milk")
        assert todo["id"] == 1
        assert todo["title"] == "Buy milk"
        assert todo["completed"] is False

    def test_list_orders_by_id_desc(self, repo):
        for i in range(3):
            repo.create(f"Task {i}")
        assert [t["id"] for t in repo.list()] == [3, 2, 1]

    def test_update_applies_only_given_columns(self, repo):
        created = repo.create("Title")
        updated = repo.update(created["id"], {"completed": True})
        assert updated is not None
        assert updated["completed"] is True
        assert updated["title"] == "Title"
        assert updated["created_at"] == created["created_at"]

    def test_update_missing_row(self, repo):
        assert repo.update(42, {"title": "Nope"}) is None

    def test_delete(self, repo):
        created = repo.create("Gone soon")
        assert repo.delete(created["id"]) is True
        assert repo.delete(created["id"]) is False
        assert repo.list() == []

    def test_ids_not_reused_after_delete(self, repo):
        first = repo.create("First")
        repo.delete(first["id"])
        second = repo.create("Second")
        assert second["id"] > first["id"]


class TestStoreFailures:
    @pytest.mark.parametrize(
        "call, message",
        [
            (lambda r: r.ping(), "Store unavailable"),
            (lambda r: r.list(), "Failed to load todos"),
            (lambda r: r.create("x"), "Failed to create todo"),
            (lambda r: r.update(1, {"completed": True}), "Failed to update todo"),
            (lambda r: r.delete(1), "Failed to delete todo"),
        ],
    )
    def test_driver_errors_become_store_errors(self, broken_repo, call, message):
        with pytest.raises(StoreError) as info:
            call(broken_repo)
        assert info.value.message == message
        assert info.value.status_code == 500
