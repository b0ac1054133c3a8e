from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .entities import SubSubtaskEntity, SubtaskEntity, TaskEntity
from .enums import FilterKey, SortKey, TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    filter_key: str = FilterKey.ALL.value
    sort_key: str = SortKey.ALPHABET_AZ.value


def is_overdue(task: TaskEntity, today: date) -> bool:
    if task.due_date is None:
        return False
    return task.due_date < today and not task.completed


def apply_filter(tasks: Iterable[TaskEntity], filter_key: str, today: date) -> list[TaskEntity]:
    if filter_key == FilterKey.PENDING:
        return [t for t in tasks if t.status == TaskStatus.PENDING]
    if filter_key == FilterKey.IN_PROGRESS:
        return [t for t in tasks if t.status == TaskStatus.IN_PROGRESS]
    if filter_key == FilterKey.COMPLETED:
        return [t for t in tasks if t.completed]
    if filter_key == FilterKey.OVERDUE:
        return [t for t in tasks if is_overdue(t, today)]
    if filter_key == FilterKey.PINNED:
        return [t for t in tasks if t.pinned]
    return list(tasks)


def _closed_key(task: TaskEntity) -> tuple[bool, float]:
    if not task.completed:
        return (True, 0.0)
    closed = task.completed_at or task.created_at
    return (False, -closed.timestamp())


def apply_sort(tasks: Iterable[TaskEntity], sort_key: str) -> list[TaskEntity]:
    """Stable sort with pinned tasks always ahead of unpinned ones."""
    ordered = list(tasks)
    if sort_key == SortKey.ALPHABET_ZA:
        ordered.sort(key=lambda t: t.text.lower(), reverse=True)
    elif sort_key == SortKey.DATE_CREATED:
        ordered.sort(key=lambda t: t.created_at)
    elif sort_key == SortKey.DATE_CLOSED:
        ordered.sort(key=_closed_key)
    else:
        ordered.sort(key=lambda t: t.text.lower())
    ordered.sort(key=lambda t: not t.pinned)
    return ordered


def filter_and_sort(
    tasks: Iterable[TaskEntity], filters: TaskFilters, today: date
) -> list[TaskEntity]:
    return apply_sort(apply_filter(tasks, filters.filter_key, today), filters.sort_key)


def ordered_subtasks(task: TaskEntity) -> list[SubtaskEntity]:
    return sorted(task.subtasks, key=lambda s: not s.pinned)


def ordered_subsubtasks(subtask: SubtaskEntity) -> list[SubSubtaskEntity]:
    return sorted(subtask.subsubtasks, key=lambda s: not s.pinned)
