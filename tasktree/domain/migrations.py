"""Document migrations applied when the task document is loaded.

The stored document is a plain JSON array with no version marker, so every
step is written to be idempotent: running it over a record that is already
current returns an equal record. ``normalize`` runs all steps in order.
"""
from __future__ import annotations

import copy
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from .enums import TaskStatus
from .identity import datetime_from_ms, generate_id, timestamp_from_id

Record = dict[str, Any]
Step = Callable[[Record], Record]

VIEW_FLAGS = ("showSubtaskForm", "showSubSubtaskForm")


def _records(value: Any) -> list[Record]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _children(record: Record) -> list[Record]:
    return record.get("subtasks", [])


def _grandchildren(subtask: Record) -> list[Record]:
    return subtask.get("subsubtasks", [])


def _walk(task: Record) -> list[Record]:
    nodes = [task]
    for subtask in _children(task):
        nodes.append(subtask)
        nodes.extend(_grandchildren(subtask))
    return nodes


def add_child_lists(task: Record) -> Record:
    task["subtasks"] = _records(task.get("subtasks"))
    for subtask in task["subtasks"]:
        subtask["subsubtasks"] = _records(subtask.get("subsubtasks"))
    return task


def stringify_ids(task: Record) -> Record:
    for node in _walk(task):
        raw = node.get("id")
        if raw is None or raw == "":
            node["id"] = generate_id()
        elif not isinstance(raw, str):
            node["id"] = str(raw)
    return task


def add_notes_and_flags(task: Record) -> Record:
    for node in _walk(task):
        notes = node.get("notes")
        node["notes"] = notes if isinstance(notes, str) else str(notes or "")
        node["completed"] = node.get("completed") is True
        node["pinned"] = node.get("pinned") is True
    task["status"] = TaskStatus.parse(task.get("status")).value
    return task


def add_created_at(task: Record) -> Record:
    if task.get("createdAt"):
        return task
    millis = timestamp_from_id(task.get("id"))
    stamp = datetime_from_ms(millis) if millis is not None else None
    task["createdAt"] = (stamp or datetime.now(timezone.utc)).isoformat()
    return task


def reconcile_completion(task: Record) -> Record:
    if task["completed"]:
        task["status"] = TaskStatus.COMPLETED.value
        if not task.get("completedAt"):
            task["completedAt"] = task["createdAt"]
    else:
        if task["status"] == TaskStatus.COMPLETED.value:
            task["status"] = TaskStatus.PENDING.value
        task.pop("completedAt", None)
    return task


def drop_view_flags(task: Record) -> Record:
    for node in _walk(task):
        for flag in VIEW_FLAGS:
            node.pop(flag, None)
    return task


# Ordered like schema revisions; later steps rely on the shape earlier ones
# guarantee.
MIGRATIONS: list[tuple[str, Step]] = [
    ("0001_add_child_lists", add_child_lists),
    ("0002_stringify_ids", stringify_ids),
    ("0003_add_notes_and_flags", add_notes_and_flags),
    ("0004_add_created_at", add_created_at),
    ("0005_reconcile_completion", reconcile_completion),
    ("0006_drop_view_flags", drop_view_flags),
]


def migrate_task(record: Record) -> Record:
    migrated = copy.deepcopy(record)
    for _revision, step in MIGRATIONS:
        migrated = step(migrated)
    return migrated


def normalize(raw: Any) -> list[Record]:
    return [migrate_task(record) for record in _records(raw)]
