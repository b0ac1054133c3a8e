from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .entities import TaskEntity
from .enums import TaskStatus
from .filters import is_overdue


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    progress: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "overdue": self.overdue,
            "progress": self.progress,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_stats(tasks: Iterable[TaskEntity], today: date) -> TaskStats:
    total = completed = pending = overdue = 0
    for task in tasks:
        total += 1
        if task.completed:
            completed += 1
        if task.status == TaskStatus.PENDING:
            pending += 1
        if is_overdue(task, today):
            overdue += 1
    progress = _round_half_up(completed / total * 100) if total else 0
    return TaskStats(
        total=total,
        completed=completed,
        pending=pending,
        overdue=overdue,
        progress=progress,
    )
