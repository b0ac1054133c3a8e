from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

from tasktree.domain.entities import SubSubtaskEntity, SubtaskEntity, TaskEntity
from tasktree.domain.enums import Severity, TaskStatus
from tasktree.domain.filters import TaskFilters, filter_and_sort, is_overdue
from tasktree.domain.identity import generate_id
from tasktree.domain.stats import TaskStats, compute_stats
from tasktree.domain.validation import (
    MSG_DUPLICATE_SUBSUBTASK,
    MSG_DUPLICATE_SUBTASK,
    MSG_DUPLICATE_TASK,
    MSG_EMPTY_SUBSUBTASK,
    MSG_EMPTY_SUBTASK,
    MSG_EMPTY_TASK,
    MSG_REQUIRED,
    ValidationError,
    clean_text,
    ensure_unique,
    validate_date_range,
)
from tasktree.infra.repository import TaskRepository
from tasktree.infra.storage import StorageError, StorageQuotaExceeded

from .notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

MSG_QUOTA = "Storage quota exceeded. Please delete some tasks."
MSG_SAVE_FAILED = "Failed to save data."
MSG_INVALID_STATUS = "Invalid status"

Listener = Callable[[], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskService:
    """In-memory task tree with write-through persistence.

    Every successful mutation changes the tree in place, saves the whole list
    through the repository and then calls the subscribed listeners. Rejected
    input is reported to the notifier and leaves the tree untouched; ids that
    no longer exist are ignored.
    """

    def __init__(
        self,
        repo: TaskRepository,
        notifier: Notifier | None = None,
        today: date | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._repo = repo
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._new_id = id_factory
        self._today = today or date.today()
        self._filters = TaskFilters()
        self._listeners: list[Listener] = []
        self._tasks: list[TaskEntity] = repo.load()

    # ---- view state ----

    @property
    def tasks(self) -> list[TaskEntity]:
        return list(self._tasks)

    @property
    def filters(self) -> TaskFilters:
        return self._filters

    @property
    def today(self) -> date:
        return self._today

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_filter(self, filter_key: str) -> None:
        self._filters = TaskFilters(filter_key=str(filter_key), sort_key=self._filters.sort_key)
        self._refresh()

    def set_sort(self, sort_key: str) -> None:
        self._filters = TaskFilters(filter_key=self._filters.filter_key, sort_key=str(sort_key))
        self._refresh()

    def get_filtered_tasks(self) -> list[TaskEntity]:
        return filter_and_sort(self._tasks, self._filters, self._today)

    def is_overdue(self, task: TaskEntity) -> bool:
        return is_overdue(task, self._today)

    def get_stats(self) -> TaskStats:
        return compute_stats(self._tasks, self._today)

    # ---- lookups ----

    def get_task(self, task_id: str) -> TaskEntity | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get_subtask(self, task_id: str, subtask_id: str) -> SubtaskEntity | None:
        task = self.get_task(task_id)
        return task.find_subtask(subtask_id) if task else None

    def get_subsubtask(
        self, task_id: str, subtask_id: str, subsubtask_id: str
    ) -> SubSubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        return subtask.find_subsubtask(subsubtask_id) if subtask else None

    # ---- tasks ----

    def add_task(
        self,
        text: str,
        start_date: date | str | None,
        due_date: date | str | None,
        notes: str = "",
    ) -> TaskEntity | None:
        try:
            cleaned = clean_text(text, MSG_REQUIRED)
            start, due = validate_date_range(start_date, due_date)
            ensure_unique(cleaned, self._tasks, MSG_DUPLICATE_TASK)
        except ValidationError as exc:
            return self._reject(exc)

        task = TaskEntity(
            id=self._new_id(),
            text=cleaned,
            start_date=start,
            due_date=due,
            created_at=self._clock(),
            notes=(notes or "").strip(),
        )
        self._tasks.insert(0, task)
        logger.info("Task added id=%s", task.id)
        self._commit()
        return task

    def edit_task(self, task_id: str, text: str) -> TaskEntity | None:
        return self.update_task(task_id, text=text)

    def update_task(
        self,
        task_id: str,
        *,
        text: str | None = None,
        start_date: date | str | None = None,
        due_date: date | str | None = None,
        notes: str | None = None,
        status: TaskStatus | str | None = None,
    ) -> TaskEntity | None:
        task = self.get_task(task_id)
        if task is None:
            return None

        try:
            new_text = task.text
            if text is not None:
                new_text = clean_text(text, MSG_EMPTY_TASK)
                ensure_unique(new_text, self._tasks, MSG_DUPLICATE_TASK, exclude_id=task.id)

            new_start, new_due = task.start_date, task.due_date
            if start_date is not None or due_date is not None:
                new_start, new_due = validate_date_range(
                    start_date if start_date is not None else task.start_date,
                    due_date if due_date is not None else task.due_date,
                )

            new_status = task.status
            if status is not None:
                try:
                    new_status = TaskStatus(status)
                except ValueError:
                    raise ValidationError(MSG_INVALID_STATUS) from None
        except ValidationError as exc:
            return self._reject(exc)

        task.text = new_text
        task.start_date, task.due_date = new_start, new_due
        if notes is not None:
            task.notes = notes.strip()
        if status is not None:
            self._apply_status(task, new_status)
        self._commit()
        return task

    def toggle_task(self, task_id: str) -> TaskEntity | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        self._apply_status(
            task, TaskStatus.PENDING if task.completed else TaskStatus.COMPLETED
        )
        self._commit()
        return task

    def toggle_task_pin(self, task_id: str) -> TaskEntity | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        task.pinned = not task.pinned
        self._commit()
        return task

    def delete_task(self, task_id: str) -> TaskEntity | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        self._tasks.remove(task)
        logger.info("Task deleted id=%s subtasks=%s", task.id, len(task.subtasks))
        self._commit()
        return task

    # ---- subtasks ----

    def add_subtask(self, task_id: str, text: str, notes: str = "") -> SubtaskEntity | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        try:
            cleaned = clean_text(text, MSG_EMPTY_SUBTASK)
            ensure_unique(cleaned, task.subtasks, MSG_DUPLICATE_SUBTASK)
        except ValidationError as exc:
            return self._reject(exc)

        subtask = SubtaskEntity(id=self._new_id(), text=cleaned, notes=(notes or "").strip())
        task.subtasks.append(subtask)
        self._commit()
        return subtask

    def edit_subtask(self, task_id: str, subtask_id: str, text: str) -> SubtaskEntity | None:
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if subtask is None:
            return None
        try:
            cleaned = clean_text(text, MSG_EMPTY_SUBTASK)
            ensure_unique(cleaned, task.subtasks, MSG_DUPLICATE_SUBTASK, exclude_id=subtask.id)
        except ValidationError as exc:
            return self._reject(exc)

        subtask.text = cleaned
        self._commit()
        return subtask

    def update_subtask_notes(
        self, task_id: str, subtask_id: str, notes: str
    ) -> SubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        if subtask is None:
            return None
        subtask.notes = (notes or "").strip()
        self._commit()
        return subtask

    def toggle_subtask(self, task_id: str, subtask_id: str) -> SubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        if subtask is None:
            return None
        subtask.completed = not subtask.completed
        self._commit()
        return subtask

    def toggle_subtask_pin(self, task_id: str, subtask_id: str) -> SubtaskEntity | None:
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if subtask is None:
            return None
        subtask.pinned = not subtask.pinned
        if subtask.pinned:
            task.pinned = True
        self._commit()
        return subtask

    def delete_subtask(self, task_id: str, subtask_id: str) -> SubtaskEntity | None:
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if subtask is None:
            return None
        task.subtasks.remove(subtask)
        self._commit()
        return subtask

    # ---- sub-subtasks ----

    def add_subsubtask(
        self, task_id: str, subtask_id: str, text: str, notes: str = ""
    ) -> SubSubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        if subtask is None:
            return None
        try:
            cleaned = clean_text(text, MSG_EMPTY_SUBSUBTASK)
            ensure_unique(cleaned, subtask.subsubtasks, MSG_DUPLICATE_SUBSUBTASK)
        except ValidationError as exc:
            return self._reject(exc)

        item = SubSubtaskEntity(id=self._new_id(), text=cleaned, notes=(notes or "").strip())
        subtask.subsubtasks.append(item)
        self._commit()
        return item

    def edit_subsubtask(
        self, task_id: str, subtask_id: str, subsubtask_id: str, text: str
    ) -> SubSubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        item = subtask.find_subsubtask(subsubtask_id) if subtask else None
        if item is None:
            return None
        try:
            cleaned = clean_text(text, MSG_EMPTY_SUBSUBTASK)
            ensure_unique(
                cleaned, subtask.subsubtasks, MSG_DUPLICATE_SUBSUBTASK, exclude_id=item.id
            )
        except ValidationError as exc:
            return self._reject(exc)

        item.text = cleaned
        self._commit()
        return item

    def update_subsubtask_notes(
        self, task_id: str, subtask_id: str, subsubtask_id: str, notes: str
    ) -> SubSubtaskEntity | None:
        item = self.get_subsubtask(task_id, subtask_id, subsubtask_id)
        if item is None:
            return None
        item.notes = (notes or "").strip()
        self._commit()
        return item

    def toggle_subsubtask(
        self, task_id: str, subtask_id: str, subsubtask_id: str
    ) -> SubSubtaskEntity | None:
        item = self.get_subsubtask(task_id, subtask_id, subsubtask_id)
        if item is None:
            return None
        item.completed = not item.completed
        self._commit()
        return item

    def toggle_subsubtask_pin(
        self, task_id: str, subtask_id: str, subsubtask_id: str
    ) -> SubSubtaskEntity | None:
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        item = subtask.find_subsubtask(subsubtask_id) if subtask else None
        if item is None:
            return None
        item.pinned = not item.pinned
        if item.pinned:
            subtask.pinned = True
            task.pinned = True
        self._commit()
        return item

    def delete_subsubtask(
        self, task_id: str, subtask_id: str, subsubtask_id: str
    ) -> SubSubtaskEntity | None:
        subtask = self.get_subtask(task_id, subtask_id)
        item = subtask.find_subsubtask(subsubtask_id) if subtask else None
        if item is None:
            return None
        subtask.subsubtasks.remove(item)
        self._commit()
        return item

    # ---- internals ----

    def _apply_status(self, task: TaskEntity, status: TaskStatus) -> None:
        was_completed = task.completed
        task.status = status
        task.completed = status == TaskStatus.COMPLETED
        if task.completed and not was_completed:
            task.completed_at = self._clock()
        elif not task.completed:
            task.completed_at = None

    def _reject(self, exc: ValidationError) -> None:
        logger.info("Rejected input: %s", exc)
        self._notifier.notify(str(exc), Severity.ERROR)
        return None

    def _commit(self) -> None:
        # the in-memory change stays applied even if the write fails
        try:
            self._repo.save(self._tasks)
        except StorageQuotaExceeded:
            logger.warning("Storage quota exceeded while saving %s tasks", len(self._tasks))
            self._notifier.notify(MSG_QUOTA, Severity.ERROR)
        except StorageError:
            logger.exception("Error saving to storage")
            self._notifier.notify(MSG_SAVE_FAILED, Severity.ERROR)
        self._refresh()

    def _refresh(self) -> None:
        for listener in list(self._listeners):
            listener()
