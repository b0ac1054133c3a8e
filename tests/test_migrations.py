from __future__ import annotations

import json
from datetime import date, datetime, timezone

from tasktree.domain.entities import SubSubtaskEntity, SubtaskEntity, TaskEntity
from tasktree.domain.enums import TaskStatus
from tasktree.domain.identity import IdGenerator, datetime_from_ms, timestamp_from_id
from tasktree.domain.migrations import MIGRATIONS, migrate_task, normalize
from tasktree.infra.repository import TaskRepository, deserialize_tasks, serialize_tasks
from tasktree.infra.storage import InMemoryKeyValueStore

LEGACY = [
    {
        "id": 1700000000000,
        "text": "Old task",
        "startDate": "2023-11-01",
        "dueDate": "2023-11-20",
        "showSubtaskForm": True,
        "subtasks": [
            {"id": "s1", "text": "Child", "showSubSubtaskForm": False},
            {"id": "s2", "text": "Child 2", "completed": True, "subsubtasks": [{"id": "x", "text": "Leaf"}]},
        ],
    }
]


def test_normalize_backfills_missing_fields() -> None:
    (task,) = normalize(LEGACY)

    assert task["id"] == "1700000000000"
    assert task["notes"] == ""
    assert task["status"] == "pending"
    assert task["completed"] is False
    assert task["pinned"] is False
    assert datetime.fromisoformat(task["createdAt"]) == datetime.fromtimestamp(
        1_700_000_000, tz=timezone.utc
    )
    first, second = task["subtasks"]
    assert first == {
        "id": "s1",
        "text": "Child",
        "notes": "",
        "completed": False,
        "pinned": False,
        "subsubtasks": [],
    }
    assert second["completed"] is True
    assert second["subsubtasks"] == [
        {"id": "x", "text": "Leaf", "notes": "", "completed": False, "pinned": False}
    ]


def test_normalize_drops_view_flags() -> None:
    (task,) = normalize(LEGACY)

    assert "showSubtaskForm" not in task
    assert all("showSubSubtaskForm" not in s for s in task["subtasks"])


def test_normalize_is_idempotent_and_pure() -> None:
    snapshot = json.dumps(LEGACY)
    once = normalize(LEGACY)

    assert normalize(once) == once
    assert json.dumps(LEGACY) == snapshot


def test_each_step_is_idempotent() -> None:
    record = migrate_task(LEGACY[0])
    for _revision, step in MIGRATIONS:
        assert step(json.loads(json.dumps(record))) == record


def test_completion_is_reconciled() -> None:
    stale = {"id": "a", "text": "a", "completed": False, "status": "completed", "completedAt": "x"}
    done = {"id": "b", "text": "b", "completed": True, "status": "pending"}

    first, second = normalize([stale, done])

    assert first["status"] == "pending" and "completedAt" not in first
    assert second["status"] == "completed"


def test_normalize_rejects_wrong_shapes() -> None:
    assert normalize({"tasks": []}) == []
    assert normalize(None) == []
    assert normalize([1, "x", {"id": "a", "text": "a"}])[0]["id"] == "a"
    assert normalize([{"id": "a", "text": "a", "subtasks": "oops"}])[0]["subtasks"] == []


def test_corrupt_document_loads_as_empty() -> None:
    store = InMemoryKeyValueStore()
    store.set("tasks", "{not json")

    assert TaskRepository(store).load() == []
    assert deserialize_tasks("") == []
    assert deserialize_tasks('"just a string"') == []


def test_out_of_range_timestamps_fall_back_instead_of_raising() -> None:
    store = InMemoryKeyValueStore()
    store.set("tasks", json.dumps([{"id": "9" * 400 + "-1-x", "text": "huge id"}]))

    (from_id,) = TaskRepository(store).load()
    (from_number,) = deserialize_tasks(json.dumps([{"id": "a", "text": "a", "createdAt": 1e308}]))
    (from_completion,) = deserialize_tasks(
        json.dumps([{"id": "b", "text": "b", "completed": True, "completedAt": -1e300}])
    )

    assert from_id.text == "huge id"
    assert from_id.created_at.tzinfo is not None
    assert from_number.created_at.tzinfo is not None
    assert from_completion.completed_at == from_completion.created_at
    assert datetime_from_ms(1e308) is None
    assert timestamp_from_id(float("inf")) is None


def test_only_literal_true_counts_as_a_flag() -> None:
    (task,) = normalize(
        [
            {
                "id": "a",
                "text": "a",
                "completed": "false",
                "pinned": 1,
                "notes": 5,
                "subtasks": [{"id": "s", "text": "s", "completed": True, "notes": None}],
            }
        ]
    )

    assert task["completed"] is False
    assert task["status"] == "pending"
    assert task["pinned"] is False
    assert task["notes"] == "5"
    assert task["subtasks"][0]["completed"] is True
    assert task["subtasks"][0]["notes"] == ""


def test_completed_record_without_stamp_gets_created_at() -> None:
    (record,) = normalize(
        [{"id": "a", "text": "a", "completed": True, "createdAt": "2024-03-01T10:00:00+00:00"}]
    )
    (task,) = deserialize_tasks(json.dumps([record]))

    assert record["completedAt"] == "2024-03-01T10:00:00+00:00"
    assert task.completed_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert normalize([record]) == [record]


def test_round_trip_preserves_every_field() -> None:
    task = TaskEntity(
        id="1-2-abc",
        text="Write report",
        start_date=date(2024, 1, 1),
        due_date=date(2024, 1, 10),
        created_at=datetime(2024, 1, 1, 8, 30, 15, 250000, tzinfo=timezone.utc),
        notes="quarterly",
        status=TaskStatus.COMPLETED,
        completed=True,
        pinned=True,
        completed_at=datetime(2024, 1, 9, 17, 0, tzinfo=timezone.utc),
        subtasks=[
            SubtaskEntity(
                id="s",
                text="Draft",
                completed=True,
                pinned=True,
                notes="n",
                subsubtasks=[SubSubtaskEntity(id="ss", text="Outline", pinned=True)],
            )
        ],
    )
    pending = TaskEntity(
        id="p",
        text="Later",
        start_date=date(2024, 2, 1),
        due_date=date(2024, 2, 2),
        created_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        status=TaskStatus.IN_PROGRESS,
    )

    blob = serialize_tasks([task, pending])

    assert deserialize_tasks(blob) == [task, pending]
    assert "completedAt" not in json.loads(blob)[1]


def test_legacy_millisecond_timestamps_are_accepted() -> None:
    blob = json.dumps(
        [{"id": "a", "text": "a", "createdAt": 1704067200000, "completed": True, "completedAt": 1704153600000}]
    )

    (task,) = deserialize_tasks(blob)

    assert task.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert task.completed_at == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert task.status == TaskStatus.COMPLETED


def test_id_generator_is_unique_and_time_prefixed() -> None:
    generate = IdGenerator(seed=100)

    ids = [generate() for _ in range(1000)]

    assert len(set(ids)) == 1000
    assert ids[0].split("-")[1] == "101"
    assert all(timestamp_from_id(i) is not None for i in ids)
    assert timestamp_from_id("abc-1") is None
    assert timestamp_from_id(True) is None
