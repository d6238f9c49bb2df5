# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from smart_tasks.core.state import AppState
from smart_tasks.storage.task_persistence import TaskPersistence
from smart_tasks.tasks.task_store import TaskStore

from .fakes import FakeSuggestionClient, MemoryKeyValueStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="smart-tasks-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        storage_path=tmp_path / "data" / "storage.json",
        storage_key="gemini-tasks-ai-data",
        suggestions_enabled=True,
        llm_api_key=None,
        llm_base_url="https://example.invalid/v1",
        llm_model="test-model",
        llm_connect_timeout=1.0,
        llm_read_timeout=1.0,
    )


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def suggester() -> FakeSuggestionClient:
    return FakeSuggestionClient()


@pytest.fixture()
def clock():
    """Manual clock: advances one second per call so creation order is explicit."""
    now = {"t": 1_700_000_000.0}

    def tick() -> float:
        now["t"] += 1.0
        return now["t"]

    return tick


@pytest.fixture()
def store(kv: MemoryKeyValueStore, suggester: FakeSuggestionClient, clock) -> TaskStore:
    return TaskStore(TaskPersistence(kv), suggester, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, suggester: FakeSuggestionClient) -> AppState:
    return AppState(settings=settings, store=store, suggester=suggester)
