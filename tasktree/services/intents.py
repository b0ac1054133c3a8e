from __future__ import annotations

import logging

from tasktree.domain.entities import SubSubtaskEntity, SubtaskEntity, TaskEntity

from .notifications import Interaction
from .task_service import TaskService

logger = logging.getLogger(__name__)

CONFIRM_DELETE_TASK = "Are you sure you want to delete this task?"
PROMPT_EDIT_SUBTASK = "Edit subtask:"
PROMPT_EDIT_SUBSUBTASK = "Edit sub-subtask:"

Entity = TaskEntity | SubtaskEntity | SubSubtaskEntity


class TaskIntents:
    """Maps presentation events onto ``TaskService`` calls.

    Holds the view-only state the service never persists: which tasks and
    subtasks currently show their "add child" form.
    """

    def __init__(self, service: TaskService, interaction: Interaction) -> None:
        self._service = service
        self._interaction = interaction
        self._expanded: set[str] = set()

    @property
    def expanded(self) -> frozenset[str]:
        return frozenset(self._expanded)

    def is_expanded(self, entity_id: str) -> bool:
        return entity_id in self._expanded

    def toggle_form(self, entity_id: str) -> bool:
        if entity_id in self._expanded:
            self._expanded.discard(entity_id)
            return False
        self._expanded.add(entity_id)
        return True

    def toggle(
        self, task_id: str, subtask_id: str | None = None, subsubtask_id: str | None = None
    ) -> Entity | None:
        if subsubtask_id and subtask_id:
            return self._service.toggle_subsubtask(task_id, subtask_id, subsubtask_id)
        if subtask_id:
            return self._service.toggle_subtask(task_id, subtask_id)
        return self._service.toggle_task(task_id)

    def pin(
        self, task_id: str, subtask_id: str | None = None, subsubtask_id: str | None = None
    ) -> Entity | None:
        if subsubtask_id and subtask_id:
            return self._service.toggle_subsubtask_pin(task_id, subtask_id, subsubtask_id)
        if subtask_id:
            return self._service.toggle_subtask_pin(task_id, subtask_id)
        return self._service.toggle_task_pin(task_id)

    def delete(
        self, task_id: str, subtask_id: str | None = None, subsubtask_id: str | None = None
    ) -> Entity | None:
        if subsubtask_id and subtask_id:
            removed = self._service.delete_subsubtask(task_id, subtask_id, subsubtask_id)
        elif subtask_id:
            removed = self._service.delete_subtask(task_id, subtask_id)
        else:
            if not self._interaction.confirm(CONFIRM_DELETE_TASK):
                return None
            removed = self._service.delete_task(task_id)
        if removed is not None:
            self._forget(removed)
        return removed

    def add_subtask_from_form(self, task_id: str, text: str, notes: str = "") -> SubtaskEntity | None:
        if not (text or "").strip():
            return None
        subtask = self._service.add_subtask(task_id, text, notes)
        if subtask is not None:
            self._expanded.discard(task_id)
        return subtask

    def add_subsubtask_from_form(
        self, task_id: str, subtask_id: str, text: str, notes: str = ""
    ) -> SubSubtaskEntity | None:
        if not (text or "").strip():
            return None
        item = self._service.add_subsubtask(task_id, subtask_id, text, notes)
        if item is not None:
            self._expanded.discard(subtask_id)
        return item

    def edit_subtask_inline(self, task_id: str, subtask_id: str) -> SubtaskEntity | None:
        subtask = self._service.get_subtask(task_id, subtask_id)
        if subtask is None:
            return None
        answer = self._interaction.prompt(PROMPT_EDIT_SUBTASK, subtask.text)
        if answer is None or not answer.strip():
            return None
        return self._service.edit_subtask(task_id, subtask_id, answer)

    def edit_subsubtask_inline(
        self, task_id: str, subtask_id: str, subsubtask_id: str
    ) -> SubSubtaskEntity | None:
        item = self._service.get_subsubtask(task_id, subtask_id, subsubtask_id)
        if item is None:
            return None
        answer = self._interaction.prompt(PROMPT_EDIT_SUBSUBTASK, item.text)
        if answer is None or not answer.strip():
            return None
        return self._service.edit_subsubtask(task_id, subtask_id, subsubtask_id, answer)

    def _forget(self, removed: Entity) -> None:
        self._expanded.discard(removed.id)
        for subtask in getattr(removed, "subtasks", []):
            self._expanded.discard(subtask.id)
        logger.debug("Dropped view state for id=%s", removed.id)
