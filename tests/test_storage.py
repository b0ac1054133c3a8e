from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from tasktree.config import Settings
from tasktree.infra import db
from tasktree.infra.db import build_engine, build_session_factory, init_db
from tasktree.infra.repository import TaskRepository
from tasktree.infra.storage import (
    InMemoryKeyValueStore,
    SqlKeyValueStore,
    StorageError,
    StorageQuotaExceeded,
)
from tasktree.main import build_service


@pytest.fixture()
def sql_store(tmp_path: Path) -> SqlKeyValueStore:
    engine = build_engine(f"sqlite:///{tmp_path / 'kv.sqlite3'}")
    init_db(engine)
    return SqlKeyValueStore(build_session_factory(engine), max_bytes=64)


def test_sql_store_get_set_overwrite(sql_store: SqlKeyValueStore) -> None:
    assert sql_store.get("tasks") is None

    sql_store.set("tasks", "[]")
    sql_store.set("tasks", '[{"id": "a"}]')

    assert sql_store.get("tasks") == '[{"id": "a"}]'
    assert sql_store.get("other") is None


def test_sql_store_enforces_quota(sql_store: SqlKeyValueStore) -> None:
    sql_store.set("tasks", "[]")

    with pytest.raises(StorageQuotaExceeded):
        sql_store.set("tasks", "x" * 65)

    assert sql_store.get("tasks") == "[]"


def test_sql_store_wraps_database_errors(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.sqlite3'}")
    store = SqlKeyValueStore(build_session_factory(engine))

    with pytest.raises(StorageError):
        store.get("tasks")
    with pytest.raises(StorageError):
        store.set("tasks", "[]")


def test_quota_counts_utf8_bytes() -> None:
    store = InMemoryKeyValueStore(max_bytes=4)
    store.set("k", "abcd")

    with pytest.raises(StorageQuotaExceeded):
        store.set("k", "ééé")

    assert store.get("k") == "abcd"


def test_quota_error_is_a_storage_error() -> None:
    assert issubclass(StorageQuotaExceeded, StorageError)


def test_repository_unreadable_store_loads_empty(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.sqlite3'}")
    repo = TaskRepository(SqlKeyValueStore(build_session_factory(engine)))

    assert repo.load() == []


def test_build_service_persists_through_sqlite(tmp_path: Path) -> None:
    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'app.sqlite3'}",
        storage_key="my-tasks",
        storage_max_bytes=None,
    )
    service = build_service(settings)
    task = service.add_task("Persisted", "2024-01-01", "2024-01-02")
    service.add_subtask(task.id, "Child")

    reloaded = build_service(settings)

    assert [t.text for t in reloaded.tasks] == ["Persisted"]
    assert [s.text for s in reloaded.tasks[0].subtasks] == ["Child"]

    engine = build_engine(settings.database_url)
    with engine.connect() as connection:
        keys = connection.execute(text("SELECT key FROM kv_store")).scalars().all()
    assert keys == ["my-tasks"]


def test_init_db_creates_table_on_the_given_engine(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'fresh.sqlite3'}")

    init_db(engine)

    assert "kv_store" in inspect(engine).get_table_names()
    assert not hasattr(db, "engine")
    assert not hasattr(db, "SessionLocal")
