# src/smart_tasks/tasks/task_api.py

"""
Small high-level helpers on top of TaskStore.

Sub-tasks have no storage of their own: every helper rebuilds the parent's
sub-task list and hands it to TaskStore.update as a whole-list replacement.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.ports import SuggestionClient
from .task_models import Priority, SubTask, Task, new_id
from .task_store import TaskStore

logger = logging.getLogger(__name__)

_UNSET = object()


def _clean_text(text: str) -> str:
    clean = (text or "").strip()
    if not clean:
        raise ValueError("sub-task text is required")
    return clean


def edit_task(
    store: TaskStore,
    task_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    priority: Priority | str | None = None,
    due_at: float | None | object = _UNSET,
) -> Task | None:
    """
    Apply an edit-form save: only the given fields change.

    Title/description are trimmed; due_at=None clears the due date.
    """
    fields: dict[str, object] = {}
    if title is not None:
        fields["title"] = title.strip()
    if description is not None:
        fields["description"] = description.strip()
    if priority is not None:
        fields["priority"] = priority
    if due_at is not _UNSET:
        fields["due_at"] = due_at

    if not store.update(task_id, **fields):
        return None
    return store.get(task_id)


def add_subtask(
    store: TaskStore,
    task_id: str,
    text: str,
    *,
    priority: Priority | None = Priority.MEDIUM,
    due_at: float | None = None,
) -> SubTask | None:
    clean = _clean_text(text)
    task = store.get(task_id)
    if task is None:
        return None

    sub = SubTask(id=new_id(), text=clean, completed=False, priority=priority, due_at=due_at)
    store.update(task_id, sub_tasks=[*task.sub_tasks, sub])
    return sub


async def add_subtask_suggested(
    store: TaskStore,
    suggester: SuggestionClient,
    task_id: str,
    text: str,
    *,
    due_at: float | None = None,
) -> SubTask | None:
    """Add a sub-task whose priority comes from the suggestion client (medium on failure)."""
    clean = _clean_text(text)
    if store.get(task_id) is None:
        return None

    try:
        priority = await suggester.suggest_subtask_priority(clean)
    except Exception:
        logger.exception("Sub-task priority suggestion raised; using medium")
        priority = Priority.MEDIUM

    # The task may have been deleted while we were waiting.
    return add_subtask(store, task_id, clean, priority=priority, due_at=due_at)


def toggle_subtask(store: TaskStore, task_id: str, subtask_id: str) -> bool:
    task = store.get(task_id)
    if task is None or not any(st.id == subtask_id for st in task.sub_tasks):
        return False
    subs = [replace(st, completed=not st.completed) if st.id == subtask_id else st for st in task.sub_tasks]
    return store.update(task_id, sub_tasks=subs)


def edit_subtask(
    store: TaskStore,
    task_id: str,
    subtask_id: str,
    *,
    text: str,
    priority: Priority | None,
    due_at: float | None,
) -> bool:
    clean = _clean_text(text)
    task = store.get(task_id)
    if task is None or not any(st.id == subtask_id for st in task.sub_tasks):
        return False
    subs = [
        replace(st, text=clean, priority=priority, due_at=due_at) if st.id == subtask_id else st
        for st in task.sub_tasks
    ]
    return store.update(task_id, sub_tasks=subs)


def delete_subtask(store: TaskStore, task_id: str, subtask_id: str) -> bool:
    task = store.get(task_id)
    if task is None:
        return False
    subs = [st for st in task.sub_tasks if st.id != subtask_id]
    if len(subs) == len(task.sub_tasks):
        return False
    return store.update(task_id, sub_tasks=subs)
