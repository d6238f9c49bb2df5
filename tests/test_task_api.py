# tests/test_task_api.py

from __future__ import annotations

import pytest

from smart_tasks.tasks.task_api import (
    add_subtask,
    add_subtask_suggested,
    delete_subtask,
    edit_subtask,
    edit_task,
    toggle_subtask,
)
from smart_tasks.tasks.task_models import Priority
from smart_tasks.tasks.task_store import TaskStore

from .fakes import FakeSuggestionClient


def test_subtask_lifecycle_is_whole_list_replacement(store: TaskStore) -> None:
    task = store.create("Move house")
    original_list = store.get(task.id).sub_tasks

    a = add_subtask(store, task.id, "  Rent van ", priority=Priority.HIGH)
    b = add_subtask(store, task.id, "Pack books", due_at=1_717_200_000.0)
    assert a is not None and b is not None
    assert a.text == "Rent van"
    assert b.priority == Priority.MEDIUM

    current = store.get(task.id).sub_tasks
    assert current is not original_list
    assert [st.text for st in current] == ["Rent van", "Pack books"]

    assert toggle_subtask(store, task.id, a.id) is True
    assert [st.completed for st in store.get(task.id).sub_tasks] == [True, False]
    # parent completion untouched
    assert store.get(task.id).completed is False

    assert edit_subtask(store, task.id, b.id, text="Pack all books", priority=Priority.LOW, due_at=None)
    edited = store.get(task.id).sub_tasks[1]
    assert (edited.text, edited.priority, edited.due_at) == ("Pack all books", Priority.LOW, None)

    assert delete_subtask(store, task.id, a.id) is True
    assert delete_subtask(store, task.id, a.id) is False
    assert [st.id for st in store.get(task.id).sub_tasks] == [b.id]


def test_subtask_helpers_on_missing_task_or_subtask(store: TaskStore) -> None:
    task = store.create("x")
    assert add_subtask(store, "missing", "text") is None
    assert toggle_subtask(store, task.id, "missing") is False
    assert edit_subtask(store, task.id, "missing", text="t", priority=None, due_at=None) is False
    with pytest.raises(ValueError):
        add_subtask(store, task.id, "   ")


@pytest.mark.asyncio
async def test_add_subtask_suggested_uses_priority_suggestion(store: TaskStore) -> None:
    task = store.create("Garden")
    await store.wait_for_suggestions()

    suggester = FakeSuggestionClient(subtask_priority=Priority.HIGH)
    sub = await add_subtask_suggested(store, suggester, task.id, "Water plants")

    assert sub is not None and sub.priority == Priority.HIGH
    assert suggester.priority_calls == ["Water plants"]

    failing = FakeSuggestionClient(error=RuntimeError("down"))
    sub2 = await add_subtask_suggested(store, failing, task.id, "Mow lawn")
    assert sub2 is not None and sub2.priority == Priority.MEDIUM

    assert await add_subtask_suggested(store, suggester, "missing", "x") is None


def test_edit_task_applies_only_given_fields(store: TaskStore) -> None:
    task = store.create("Report", due_at=1_717_200_000.0)

    edited = edit_task(store, task.id, title="  Final report ", description="  numbers  ", priority="high")
    assert edited is not None
    assert (edited.title, edited.description, edited.priority) == ("Final report", "numbers", Priority.HIGH)
    assert edited.due_at == 1_717_200_000.0

    cleared = edit_task(store, task.id, due_at=None)
    assert cleared.due_at is None

    with pytest.raises(ValueError):
        edit_task(store, task.id, title="   ")
    assert edit_task(store, "missing", title="x") is None
