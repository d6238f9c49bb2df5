# src/smart_tasks/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from enum import StrEnum
from typing import Any

from ..core.ports import SuggestionClient
from ..llm.schemas import TaskSuggestion
from ..storage.task_persistence import TaskPersistence
from .task_models import DEFAULT_CATEGORY, Priority, SubTask, Task, new_id

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "completed", "priority", "category", "due_at", "sub_tasks"}
)


class SuggestionState(StrEnum):
    """Client-visible enrichment state of a freshly created task (not persisted)."""

    IDLE = "idle"
    AWAITING = "awaiting_suggestion"
    ENRICHED = "enriched"
    FALLBACK = "fallback"


class TaskStore:
    """
    In-memory task collection, the single source of truth.

    - raw order is most-recent-first (new tasks go to the front)
    - every mutation writes the whole collection through TaskPersistence
    - a failed write is logged; the in-memory mutation stands

    Single writer: all calls are expected on the event-loop thread.
    """

    def __init__(
        self,
        persistence: TaskPersistence,
        suggester: SuggestionClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._persistence = persistence
        self._suggester = suggester
        self._clock = clock
        self._pending: dict[str, asyncio.Task[None]] = {}
        # One entry per live task: delete() and the late-suggestion path drop it,
        # so the map never outgrows the collection.
        self._suggestion_states: dict[str, SuggestionState] = {}

        try:
            self._tasks: list[Task] = persistence.load()
        except Exception:
            logger.exception("Failed to load tasks; starting with an empty collection")
            self._tasks = []

        self._last_created_at = max((t.created_at for t in self._tasks), default=0.0)
        logger.info("TaskStore ready key=%s total=%d", persistence.key, len(self._tasks))

    # ---- low-level helpers ----

    def _find(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def _sync(self) -> None:
        try:
            self._persistence.save(self._tasks)
        except Exception:
            logger.exception("Failed to persist %d tasks; keeping in-memory state", len(self._tasks))

    def _next_created_at(self) -> float:
        now = self._clock()
        # Creation instants stay strictly increasing even if the clock stalls or steps back.
        if now <= self._last_created_at:
            now = self._last_created_at + 0.001
        self._last_created_at = now
        return now

    @staticmethod
    def _normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
        if "id" in fields:
            raise ValueError("task id is immutable")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"unknown task fields: {', '.join(sorted(unknown))}")

        out = dict(fields)
        if "title" in out:
            title = str(out["title"] or "").strip()
            if not title:
                raise ValueError("title is required")
            out["title"] = title
        if "priority" in out:
            p = Priority.parse(out["priority"])
            if p is None:
                raise ValueError(f"unknown priority: {out['priority']!r}")
            out["priority"] = p
        if "category" in out:
            out["category"] = str(out["category"] or "").strip() or DEFAULT_CATEGORY
        if "completed" in out:
            out["completed"] = bool(out["completed"])
        if "due_at" in out and out["due_at"] is not None:
            out["due_at"] = float(out["due_at"])
        if "sub_tasks" in out:
            subs = list(out["sub_tasks"] or [])
            if not all(isinstance(st, SubTask) for st in subs):
                raise ValueError("sub_tasks must be SubTask items")
            trimmed = [replace(st, text=str(st.text or "").strip()) for st in subs]
            if any(not st.text for st in trimmed):
                raise ValueError("sub-task text is required")
            out["sub_tasks"] = trimmed
        return out

    # ---- public API ----

    def __len__(self) -> int:
        return len(self._tasks)

    def all(self) -> list[Task]:
        """Raw collection order (newest-created first)."""
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        return self._find(task_id)

    def suggestion_state(self, task_id: str) -> SuggestionState | None:
        return self._suggestion_states.get(task_id)

    def create(self, title: str, *, due_at: float | None = None) -> Task:
        """
        Add a task and return it right away with fallback metadata.

        If an event loop is running, one suggestion call is scheduled; its
        result replaces description/priority/category/sub-tasks on arrival.
        """
        clean = (title or "").strip()
        if not clean:
            raise ValueError("title is required")

        task = Task(
            id=new_id(),
            title=clean,
            created_at=self._next_created_at(),
            due_at=None if due_at is None else float(due_at),
        )
        self._tasks.insert(0, task)
        self._suggestion_states[task.id] = SuggestionState.IDLE
        self._sync()
        logger.debug("Task created id=%s due_at=%s", task.id, task.due_at)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; task %s keeps fallback metadata", task.id)
            self._suggestion_states[task.id] = SuggestionState.FALLBACK
            return task

        self._suggestion_states[task.id] = SuggestionState.AWAITING
        pending = loop.create_task(self._enrich(task.id, clean), name=f"suggest-{task.id}")
        self._pending[task.id] = pending
        pending.add_done_callback(lambda _f, tid=task.id: self._pending.pop(tid, None))
        return task

    async def _enrich(self, task_id: str, title: str) -> None:
        suggestion: TaskSuggestion | None
        try:
            suggestion = await self._suggester.suggest_task_breakdown(title)
        except Exception:
            logger.exception("Suggestion client raised for task %s; keeping fallback", task_id)
            suggestion = None

        if self._find(task_id) is None:
            logger.debug("Late suggestion for deleted task %s dropped", task_id)
            self._suggestion_states.pop(task_id, None)
            return

        if suggestion is None or suggestion == TaskSuggestion.fallback():
            self._suggestion_states[task_id] = SuggestionState.FALLBACK
            return

        self.update(
            task_id,
            description=suggestion.description,
            priority=suggestion.priority,
            category=suggestion.category,
            sub_tasks=[
                SubTask(id=new_id(), text=st.text, completed=False, priority=st.priority)
                for st in suggestion.sub_tasks
            ],
        )
        self._suggestion_states[task_id] = SuggestionState.ENRICHED
        logger.info("Task %s enriched (priority=%s category=%s)", task_id, suggestion.priority.value, suggestion.category)

    async def wait_for_suggestions(self) -> None:
        """Await every in-flight enrichment (shutdown / tests)."""
        while True:
            in_flight = [t for t in self._pending.values() if not t.done()]
            if not in_flight:
                return
            await asyncio.gather(*in_flight, return_exceptions=True)

    def update(self, task_id: str, **fields: Any) -> bool:
        """
        Merge fields into the task. sub_tasks replaces the whole list.

        Returns False (no error) when the id is unknown.
        """
        normalized = self._normalize_fields(fields)
        task = self._find(task_id)
        if task is None:
            logger.debug("update: task %s not found", task_id)
            return False
        if not normalized:
            return True

        for name, value in normalized.items():
            setattr(task, name, value)
        self._sync()
        return True

    def toggle_completion(self, task_id: str) -> bool:
        """Flip the completion flag; sub-tasks are left alone."""
        task = self._find(task_id)
        if task is None:
            logger.debug("toggle: task %s not found", task_id)
            return False
        task.completed = not task.completed
        self._sync()
        return True

    def delete(self, task_id: str) -> bool:
        """Remove permanently. Unknown ids are a no-op."""
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._suggestion_states.pop(task_id, None)
        if len(self._tasks) == before:
            logger.debug("delete: task %s not found", task_id)
            return False
        self._sync()
        return True
