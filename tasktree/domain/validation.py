from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol

MSG_REQUIRED = "Please fill in all required fields"
MSG_INVALID_DATES = "Invalid dates or start date is after due date"
MSG_EMPTY_TASK = "Task name cannot be empty"
MSG_EMPTY_SUBTASK = "Subtask name cannot be empty"
MSG_EMPTY_SUBSUBTASK = "Sub-subtask name cannot be empty"
MSG_DUPLICATE_TASK = "A task with this name already exists!"
MSG_DUPLICATE_SUBTASK = "A subtask with this name already exists in this task!"
MSG_DUPLICATE_SUBSUBTASK = "A sub-subtask with this name already exists in this subtask!"


class ValidationError(ValueError):
    """User input rejected before anything was mutated."""


class _Named(Protocol):
    id: str
    text: str


def clean_text(raw: str | None, message: str) -> str:
    text = (raw or "").strip()
    if not text:
        raise ValidationError(message)
    return text


def ensure_unique(
    text: str,
    siblings: Iterable[_Named],
    message: str,
    exclude_id: str | None = None,
) -> None:
    key = text.lower()
    for sibling in siblings:
        if sibling.id != exclude_id and sibling.text.lower() == key:
            raise ValidationError(message)


def parse_date(raw: date | str | None) -> date | None:
    """Calendar date from a ``date`` or an ISO string; ``None`` when unparseable."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    value = str(raw).strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def validate_date_range(
    start: date | str | None, due: date | str | None
) -> tuple[date, date]:
    if start is None or due is None or start == "" or due == "":
        raise ValidationError(MSG_REQUIRED)
    start_date = parse_date(start)
    due_date = parse_date(due)
    if start_date is None or due_date is None or start_date > due_date:
        raise ValidationError(MSG_INVALID_DATES)
    return start_date, due_date
