from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from tasktree.domain.entities import SubSubtaskEntity, SubtaskEntity, TaskEntity
from tasktree.domain.enums import TaskStatus
from tasktree.domain.identity import datetime_from_ms, timestamp_from_id
from tasktree.domain.migrations import normalize
from tasktree.domain.validation import parse_date

from .storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "tasks"


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return datetime_from_ms(raw)
    try:
        value = datetime.fromisoformat(str(raw))
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _created_at(record: dict) -> datetime:
    parsed = _parse_timestamp(record.get("createdAt"))
    if parsed is not None:
        return parsed
    millis = timestamp_from_id(record.get("id"))
    stamp = datetime_from_ms(millis) if millis is not None else None
    return stamp or datetime.now(timezone.utc)


def _to_subsubtask(record: dict) -> SubSubtaskEntity:
    return SubSubtaskEntity(
        id=record["id"],
        text=str(record.get("text") or ""),
        completed=record["completed"],
        pinned=record["pinned"],
        notes=record["notes"],
    )


def _to_subtask(record: dict) -> SubtaskEntity:
    return SubtaskEntity(
        id=record["id"],
        text=str(record.get("text") or ""),
        completed=record["completed"],
        pinned=record["pinned"],
        notes=record["notes"],
        subsubtasks=[_to_subsubtask(item) for item in record["subsubtasks"]],
    )


def _to_entity(record: dict) -> TaskEntity:
    completed = record["completed"]
    created_at = _created_at(record)
    completed_at = None
    if completed:
        completed_at = _parse_timestamp(record.get("completedAt")) or created_at
    return TaskEntity(
        id=record["id"],
        text=str(record.get("text") or ""),
        start_date=parse_date(record.get("startDate")),
        due_date=parse_date(record.get("dueDate")),
        created_at=created_at,
        notes=record["notes"],
        status=TaskStatus.parse(record["status"]),
        completed=completed,
        pinned=record["pinned"],
        completed_at=completed_at,
        subtasks=[_to_subtask(item) for item in record["subtasks"]],
    )


def _subsubtask_record(item: SubSubtaskEntity) -> dict:
    return {
        "id": item.id,
        "text": item.text,
        "completed": item.completed,
        "pinned": item.pinned,
        "notes": item.notes,
    }


def _subtask_record(item: SubtaskEntity) -> dict:
    return {
        "id": item.id,
        "text": item.text,
        "completed": item.completed,
        "pinned": item.pinned,
        "notes": item.notes,
        "subsubtasks": [_subsubtask_record(child) for child in item.subsubtasks],
    }


def _to_record(task: TaskEntity) -> dict:
    record = {
        "id": task.id,
        "text": task.text,
        "startDate": task.start_date.isoformat() if task.start_date else None,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "notes": task.notes,
        "status": task.status.value,
        "completed": task.completed,
        "pinned": task.pinned,
        "createdAt": task.created_at.isoformat(),
        "subtasks": [_subtask_record(item) for item in task.subtasks],
    }
    if task.completed_at is not None:
        record["completedAt"] = task.completed_at.isoformat()
    return record


def serialize_tasks(tasks: list[TaskEntity]) -> str:
    return json.dumps([_to_record(task) for task in tasks], ensure_ascii=False)


def deserialize_tasks(blob: str | None) -> list[TaskEntity]:
    """Decode, migrate and build entities; a corrupt document yields ``[]``."""
    if not blob:
        return []
    try:
        return [_to_entity(record) for record in normalize(json.loads(blob))]
    except (ValueError, TypeError, KeyError, AttributeError, OverflowError, OSError):
        logger.exception("Stored task document is corrupt; starting with an empty list.")
        return []


class TaskRepository:
    """Whole-document persistence of the task list under a single key."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> list[TaskEntity]:
        try:
            blob = self._store.get(self._key)
        except StorageError:
            logger.exception("Failed to read key=%s; starting with an empty list.", self._key)
            return []
        tasks = deserialize_tasks(blob)
        logger.info("Loaded %s tasks from key=%s", len(tasks), self._key)
        return tasks

    def save(self, tasks: list[TaskEntity]) -> None:
        self._store.set(self._key, serialize_tasks(tasks))
