from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .enums import TaskStatus


@dataclass
class SubSubtaskEntity:
    id: str
    text: str
    completed: bool = False
    pinned: bool = False
    notes: str = ""


@dataclass
class SubtaskEntity:
    id: str
    text: str
    completed: bool = False
    pinned: bool = False
    notes: str = ""
    subsubtasks: list[SubSubtaskEntity] = field(default_factory=list)

    def find_subsubtask(self, subsubtask_id: str) -> SubSubtaskEntity | None:
        return next((s for s in self.subsubtasks if s.id == subsubtask_id), None)


@dataclass
class TaskEntity:
    id: str
    text: str
    start_date: Optional[date]
    due_date: Optional[date]
    created_at: datetime
    notes: str = ""
    status: TaskStatus = TaskStatus.PENDING
    completed: bool = False
    pinned: bool = False
    completed_at: Optional[datetime] = None
    subtasks: list[SubtaskEntity] = field(default_factory=list)

    def find_subtask(self, subtask_id: str) -> SubtaskEntity | None:
        return next((s for s in self.subtasks if s.id == subtask_id), None)
