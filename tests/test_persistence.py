# tests/test_persistence.py

from __future__ import annotations

import json
from pathlib import Path

from smart_tasks.storage.kv_store import JsonFileKeyValueStore
from smart_tasks.storage.task_persistence import TaskPersistence
from smart_tasks.tasks.task_models import Priority, SubTask, Task

from .fakes import MemoryKeyValueStore

KEY = "gemini-tasks-ai-data"


def _sample_tasks() -> list[Task]:
    return [
        Task(
            id="t2",
            title="Plan trip",
            description="Plan a trip",
            completed=False,
            priority=Priority.HIGH,
            category="Travel",
            created_at=1_717_000_000.123456,
            due_at=1_717_200_000.0,
            sub_tasks=[
                SubTask(id="s1", text="Book flight", completed=True, priority=Priority.HIGH),
                SubTask(id="s2", text="Pack", completed=False, priority=None, due_at=1_717_100_000.5),
            ],
        ),
        Task(id="t1", title="Buy milk", created_at=1_716_000_000.0),
    ]


def test_round_trip_through_json_file(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "storage.json"
    tasks = _sample_tasks()

    TaskPersistence(JsonFileKeyValueStore(path)).save(tasks)
    loaded = TaskPersistence(JsonFileKeyValueStore(path)).load()

    assert loaded == tasks
    assert json.loads(path.read_text("utf-8")).keys() == {KEY}


def test_absent_key_loads_empty() -> None:
    assert TaskPersistence(MemoryKeyValueStore()).load() == []


def test_unparsable_blob_loads_empty() -> None:
    kv = MemoryKeyValueStore(data={KEY: "{not json"})
    assert TaskPersistence(kv).load() == []

    kv.data[KEY] = json.dumps({"tasks": []})
    assert TaskPersistence(kv).load() == []


def test_malformed_records_are_skipped() -> None:
    good = _sample_tasks()[1].to_dict()
    kv = MemoryKeyValueStore(
        data={
            KEY: json.dumps(
                [
                    good,
                    {"id": "no-title", "created_at": 1.0},
                    {"id": "bad-ts", "title": "x", "created_at": "yesterday"},
                    "not an object",
                    dict(good),  # duplicate id
                ]
            )
        }
    )
    loaded = TaskPersistence(kv).load()
    assert [t.id for t in loaded] == ["t1"]


def test_malformed_subtask_is_dropped_but_parent_survives() -> None:
    raw = _sample_tasks()[0].to_dict()
    raw["sub_tasks"].insert(1, {"id": "blank", "text": "   "})
    raw["sub_tasks"].append({"id": "bad-due", "text": "x", "due_at": "soon"})
    kv = MemoryKeyValueStore(data={KEY: json.dumps([raw])})

    loaded = TaskPersistence(kv).load()

    assert [t.id for t in loaded] == ["t2"]
    assert [st.id for st in loaded[0].sub_tasks] == ["s1", "s2"]


def test_unknown_priority_degrades_to_medium() -> None:
    raw = _sample_tasks()[1].to_dict()
    raw["priority"] = "urgent"
    kv = MemoryKeyValueStore(data={KEY: json.dumps([raw])})
    assert TaskPersistence(kv).load()[0].priority == Priority.MEDIUM


def test_custom_key_is_used() -> None:
    kv = MemoryKeyValueStore()
    TaskPersistence(kv, key="other").save(_sample_tasks())
    assert list(kv.data) == ["other"]
    assert TaskPersistence(kv).load() == []


def test_kv_store_survives_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("garbage", "utf-8")
    kv = JsonFileKeyValueStore(path)

    assert kv.get(KEY) is None
    kv.set(KEY, "[]")
    assert kv.get(KEY) == "[]"

    kv.remove(KEY)
    assert kv.get(KEY) is None
    assert json.loads(path.read_text("utf-8")) == {}
