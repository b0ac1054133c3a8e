from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from tasktree.domain.enums import Severity
from tasktree.infra.repository import TaskRepository
from tasktree.infra.storage import InMemoryKeyValueStore
from tasktree.services.task_service import TaskService

TODAY = date(2024, 6, 15)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.messages.append((message, severity))


class SteppingClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def service(store: InMemoryKeyValueStore, notifier: RecordingNotifier) -> TaskService:
    return TaskService(
        TaskRepository(store),
        notifier=notifier,
        today=TODAY,
        clock=SteppingClock(),
    )
