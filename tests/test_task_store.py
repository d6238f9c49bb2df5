# tests/test_task_store.py

from __future__ import annotations

import asyncio
import json

import pytest

from smart_tasks.llm.schemas import SubTaskSuggestion, TaskSuggestion
from smart_tasks.storage.task_persistence import TaskPersistence
from smart_tasks.tasks.deadlines import parse_due_date
from smart_tasks.tasks.task_models import Priority, SubTask
from smart_tasks.tasks.task_store import SuggestionState, TaskStore

from .fakes import FakeSuggestionClient, MemoryKeyValueStore


def _stored_ids(kv: MemoryKeyValueStore) -> list[str]:
    return [t["id"] for t in json.loads(kv.data["gemini-tasks-ai-data"])]


@pytest.mark.asyncio
async def test_create_returns_fallback_task_immediately(store: TaskStore, kv: MemoryKeyValueStore) -> None:
    task = store.create("  Buy milk  ")

    assert task.id
    assert task.title == "Buy milk"
    assert task.completed is False
    assert task.priority == Priority.MEDIUM
    assert task.category == "General"
    assert task.sub_tasks == []
    assert store.suggestion_state(task.id) == SuggestionState.AWAITING
    assert _stored_ids(kv) == [task.id]

    await store.wait_for_suggestions()


@pytest.mark.asyncio
async def test_new_tasks_go_to_the_front(store: TaskStore) -> None:
    first = store.create("first")
    second = store.create("second")
    await store.wait_for_suggestions()

    assert [t.id for t in store.all()] == [second.id, first.id]
    assert second.created_at > first.created_at


@pytest.mark.asyncio
async def test_service_failure_falls_back(kv: MemoryKeyValueStore, clock) -> None:
    suggester = FakeSuggestionClient(error=RuntimeError("network down"))
    store = TaskStore(TaskPersistence(kv), suggester, clock=clock)

    task = store.create("Buy milk")
    await store.wait_for_suggestions()

    stored = store.get(task.id)
    assert stored is not None
    assert stored.id and stored.title == "Buy milk"
    assert stored.priority == Priority.MEDIUM
    assert stored.category == "General"
    assert stored.sub_tasks == []
    assert store.suggestion_state(task.id) == SuggestionState.FALLBACK
    assert suggester.breakdown_calls == ["Buy milk"]


@pytest.mark.asyncio
async def test_plan_trip_enriched_from_suggestion(kv: MemoryKeyValueStore, clock) -> None:
    suggester = FakeSuggestionClient(
        TaskSuggestion(
            description="Plan a trip",
            sub_tasks=[SubTaskSuggestion(text="Book flight", priority=Priority.HIGH)],
            priority=Priority.HIGH,
            category="Travel",
        )
    )
    store = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    due = parse_due_date("2024-06-01")

    task = store.create("Plan trip", due_at=due)
    await store.wait_for_suggestions()

    t = store.get(task.id)
    assert t is not None
    assert t.priority == Priority.HIGH
    assert t.category == "Travel"
    assert t.description == "Plan a trip"
    assert t.completed is False
    assert t.due_at == due
    assert [(st.text, st.priority, st.completed) for st in t.sub_tasks] == [("Book flight", Priority.HIGH, False)]
    assert t.sub_tasks[0].id
    assert store.suggestion_state(task.id) == SuggestionState.ENRICHED

    # the enrichment is persisted as well
    saved = json.loads(kv.data["gemini-tasks-ai-data"])[0]
    assert saved["category"] == "Travel"
    assert saved["sub_tasks"][0]["text"] == "Book flight"


@pytest.mark.asyncio
async def test_late_suggestion_for_deleted_task_is_a_noop(kv: MemoryKeyValueStore, clock) -> None:
    suggester = FakeSuggestionClient(
        TaskSuggestion(description="d", sub_tasks=[], priority=Priority.HIGH, category="Work")
    )
    suggester.gate = asyncio.Event()
    store = TaskStore(TaskPersistence(kv), suggester, clock=clock)

    doomed = store.create("doomed")
    keeper = store.create("keeper")
    await asyncio.sleep(0)
    assert store.delete(doomed.id) is True

    suggester.gate.set()
    await store.wait_for_suggestions()

    assert [t.id for t in store.all()] == [keeper.id]
    assert store.get(doomed.id) is None
    assert store.suggestion_state(doomed.id) is None
    assert store.get(keeper.id).category == "Work"


def test_create_without_event_loop_keeps_fallback(store: TaskStore, suggester: FakeSuggestionClient) -> None:
    task = store.create("offline task")
    assert store.suggestion_state(task.id) == SuggestionState.FALLBACK
    assert suggester.breakdown_calls == []
    assert store.get(task.id).priority == Priority.MEDIUM


def test_create_rejects_blank_title(store: TaskStore) -> None:
    with pytest.raises(ValueError):
        store.create("   ")
    assert len(store) == 0


def test_update_merges_fields_and_replaces_subtasks(store: TaskStore) -> None:
    task = store.create("Write report")
    store.update(task.id, sub_tasks=[SubTask(id="s1", text="outline"), SubTask(id="s2", text="draft")])

    assert store.update(task.id, title=" Write Q3 report ", priority="high", sub_tasks=[SubTask(id="s3", text="send")])

    t = store.get(task.id)
    assert t.title == "Write Q3 report"
    assert t.priority == Priority.HIGH
    assert [st.id for st in t.sub_tasks] == ["s3"]
    assert t.category == "General"


def test_update_rejects_id_change_and_unknown_fields(store: TaskStore) -> None:
    task = store.create("x")
    with pytest.raises(ValueError):
        store.update(task.id, id="other")
    with pytest.raises(ValueError):
        store.update(task.id, colour="red")
    with pytest.raises(ValueError):
        store.update(task.id, priority="urgent")
    assert store.get(task.id).id == task.id


def test_update_unknown_id_is_noop(store: TaskStore, kv: MemoryKeyValueStore) -> None:
    store.create("x")
    writes = kv.writes
    assert store.update("missing", title="y") is False
    assert kv.writes == writes


def test_toggle_does_not_cascade_to_subtasks(store: TaskStore) -> None:
    task = store.create("Pack")
    subs = [
        SubTask(id="1", text="shirts", completed=True),
        SubTask(id="2", text="shoes", completed=True),
        SubTask(id="3", text="charger"),
    ]
    store.update(task.id, sub_tasks=subs)

    assert store.toggle_completion(task.id) is True
    t = store.get(task.id)
    assert t.completed is True
    assert [st.completed for st in t.sub_tasks] == [True, True, False]

    store.toggle_completion(task.id)
    assert store.get(task.id).completed is False
    assert store.toggle_completion("missing") is False


def test_delete_unknown_id_leaves_collection_unchanged(store: TaskStore) -> None:
    a = store.create("a")
    b = store.create("b")
    before = [t.id for t in store.all()]

    assert store.delete("does-not-exist") is False
    assert [t.id for t in store.all()] == before

    assert store.delete(a.id) is True
    assert store.delete(a.id) is False
    assert [t.id for t in store.all()] == [b.id]


def test_persistence_failure_keeps_in_memory_state(kv: MemoryKeyValueStore, suggester, clock) -> None:
    store = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    kv.fail_writes = True

    task = store.create("still here")
    store.toggle_completion(task.id)

    assert store.get(task.id).completed is True
    assert "gemini-tasks-ai-data" not in kv.data


def test_store_loads_existing_collection(kv: MemoryKeyValueStore, suggester, clock) -> None:
    first = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    t = first.create("persisted")
    first.update(t.id, category="Home")

    reloaded = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    assert [x.to_dict() for x in reloaded.all()] == [x.to_dict() for x in first.all()]


def test_update_trims_subtask_text_and_rejects_blank(kv: MemoryKeyValueStore, suggester, clock) -> None:
    store = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    task = store.create("Prepare talk")

    with pytest.raises(ValueError):
        store.update(task.id, sub_tasks=[SubTask(id="s1", text="   ")])
    assert store.get(task.id).sub_tasks == []

    assert store.update(task.id, sub_tasks=[SubTask(id="s2", text=" slides ")])
    assert [st.text for st in store.get(task.id).sub_tasks] == ["slides"]

    reloaded = TaskStore(TaskPersistence(kv), suggester, clock=clock)
    assert reloaded.all() == store.all()


@pytest.mark.asyncio
async def test_suggestion_states_do_not_outlive_deleted_tasks(store: TaskStore) -> None:
    tasks = [store.create(f"task {i}") for i in range(3)]
    await store.wait_for_suggestions()
    assert all(store.suggestion_state(t.id) == SuggestionState.FALLBACK for t in tasks)

    for t in tasks:
        store.delete(t.id)

    assert all(store.suggestion_state(t.id) is None for t in tasks)
    assert store._suggestion_states == {}
