from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except (ValueError, TypeError):
            return cls.PENDING


class FilterKey(StrEnum):
    ALL = "all"
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    PINNED = "pinned"


class SortKey(StrEnum):
    ALPHABET_AZ = "alphabet-az"
    ALPHABET_ZA = "alphabet-za"
    DATE_CREATED = "date-created"
    DATE_CLOSED = "date-closed"


class Severity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
