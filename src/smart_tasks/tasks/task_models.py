# src/smart_tasks/tasks/task_models.py

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> Priority | None:
        """Lenient parse ("High ", "LOW") -> Priority, None if unknown."""
        if isinstance(raw, Priority):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def priority_rank(priority: Any) -> int:
    """Rank used for sorting; anything unrecognized ranks below low."""
    p = Priority.parse(priority)
    return PRIORITY_RANK[p] if p is not None else 0


def new_id() -> str:
    return uuid.uuid4().hex


def _opt_float(raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"not a timestamp: {raw!r}")
    return float(raw)


@dataclass(slots=True)
class SubTask:
    id: str
    text: str
    completed: bool = False
    priority: Priority | None = None
    due_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority.value if self.priority is not None else None,
            "due_at": self.due_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubTask:
        text = str(data.get("text") or "").strip()
        if not text:
            raise ValueError("sub-task text is required")
        return cls(
            id=str(data.get("id") or new_id()),
            text=text,
            completed=bool(data.get("completed", False)),
            priority=Priority.parse(data.get("priority")),
            due_at=_opt_float(data.get("due_at")),
        )


@dataclass(slots=True)
class Task:
    id: str
    title: str
    created_at: float
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY
    description: str | None = None
    due_at: float | None = None
    sub_tasks: list[SubTask] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value,
            "category": self.category,
            "created_at": self.created_at,
            "due_at": self.due_at,
            "sub_tasks": [st.to_dict() for st in self.sub_tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from its serialized form.

        Raises ValueError/TypeError on records that cannot be a Task
        (missing id/title, bad timestamps). Unknown priorities degrade to medium.
        A malformed sub-task is dropped on its own; the parent survives.
        """
        task_id = str(data.get("id") or "").strip()
        title = str(data.get("title") or "").strip()
        if not task_id:
            raise ValueError("task id is required")
        if not title:
            raise ValueError("task title is required")

        raw_subs = data.get("sub_tasks") or []
        if not isinstance(raw_subs, list):
            raise ValueError("sub_tasks must be a list")

        sub_tasks: list[SubTask] = []
        for i, raw in enumerate(raw_subs):
            if not isinstance(raw, dict):
                continue
            try:
                sub_tasks.append(SubTask.from_dict(raw))
            except (TypeError, ValueError) as e:
                logger.warning("Dropping sub-task #%d of task %s: %s", i, task_id, e)

        description = data.get("description")
        return cls(
            id=task_id,
            title=title,
            description=None if description is None else str(description),
            completed=bool(data.get("completed", False)),
            priority=Priority.parse(data.get("priority")) or Priority.MEDIUM,
            category=str(data.get("category") or DEFAULT_CATEGORY),
            created_at=float(data["created_at"]),
            due_at=_opt_float(data.get("due_at")),
            sub_tasks=sub_tasks,
        )


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    high_priority: int

    @property
    def completion_rate(self) -> int:
        """Completed share as a rounded percentage (0 for an empty collection)."""
        return percent(self.completed, self.total)


def percent(part: int, whole: int) -> int:
    """Half-up rounded percentage; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)
