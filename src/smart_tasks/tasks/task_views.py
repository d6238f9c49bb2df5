# src/smart_tasks/tasks/task_views.py

"""
Derived projections over the task collection.

Everything here is pure: stats, the category list and the filtered/sorted
view are recomputed from the collection on every read and never stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from .task_models import Priority, Task, TaskStats, percent, priority_rank

ALL_CATEGORIES = "All"


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class SortKey(StrEnum):
    CREATED_AT = "created_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"

    @classmethod
    def parse(cls, raw: str) -> SortKey:
        """Accepts both created_at/due_date and the camelCase createdAt/dueDate spellings."""
        s = (raw or "").strip()
        aliases = {
            "createdat": cls.CREATED_AT,
            "created_at": cls.CREATED_AT,
            "created": cls.CREATED_AT,
            "duedate": cls.DUE_DATE,
            "due_date": cls.DUE_DATE,
            "due": cls.DUE_DATE,
            "priority": cls.PRIORITY,
        }
        key = aliases.get(s.lower())
        if key is None:
            raise ValueError(f"unknown sort key: {raw!r}")
        return key


@dataclass(slots=True, frozen=True)
class ViewOptions:
    status: StatusFilter = StatusFilter.ALL
    search: str = ""
    category: str = ALL_CATEGORIES
    sort_by: SortKey = SortKey.CREATED_AT


def extract_categories(tasks: Iterable[Task]) -> list[str]:
    """"All" first, then every distinct category in first-seen order."""
    out = [ALL_CATEGORIES]
    seen: set[str] = set()
    for t in tasks:
        if t.category in seen:
            continue
        seen.add(t.category)
        if t.category != ALL_CATEGORIES:
            out.append(t.category)
    return out


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    total = 0
    completed = 0
    high_priority = 0
    for t in tasks:
        total += 1
        if t.completed:
            completed += 1
        elif t.priority == Priority.HIGH:
            high_priority += 1
    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        high_priority=high_priority,
    )


def _matches_status(task: Task, status: StatusFilter) -> bool:
    if status == StatusFilter.COMPLETED:
        return task.completed
    if status == StatusFilter.PENDING:
        return not task.completed
    return True


def _matches_search(task: Task, query: str) -> bool:
    q = query.lower()
    if not q:
        return True
    if q in task.title.lower():
        return True
    return task.description is not None and q in task.description.lower()


def _matches_category(task: Task, category: str) -> bool:
    return category == ALL_CATEGORIES or task.category == category


def matches(task: Task, options: ViewOptions) -> bool:
    return (
        _matches_status(task, options.status)
        and _matches_search(task, options.search)
        and _matches_category(task, options.category)
    )


def filter_tasks(tasks: Iterable[Task], options: ViewOptions) -> list[Task]:
    return [t for t in tasks if matches(t, options)]


def sort_tasks(tasks: Iterable[Task], sort_by: SortKey) -> list[Task]:
    """
    Stable sort of a (filtered) task list.

    - created_at: newest first
    - due_date: soonest first, undated last, undated pairs newest-created first
    - priority: high -> medium -> low (unknown last), ties newest-created first
    """
    if sort_by == SortKey.DUE_DATE:
        return sorted(
            tasks,
            key=lambda t: (
                (0, t.due_at, 0.0) if t.due_at is not None else (1, 0.0, -t.created_at)
            ),
        )
    if sort_by == SortKey.PRIORITY:
        return sorted(tasks, key=lambda t: (-priority_rank(t.priority), -t.created_at))
    return sorted(tasks, key=lambda t: -t.created_at)


def visible_tasks(tasks: Sequence[Task], options: ViewOptions) -> list[Task]:
    """Filter then sort: what the task list shows for the given options."""
    return sort_tasks(filter_tasks(tasks, options), options.sort_by)


def subtask_progress(task: Task) -> tuple[int, int, int]:
    """(done, total, percent) over the task's sub-tasks."""
    total = len(task.sub_tasks)
    done = sum(1 for st in task.sub_tasks if st.completed)
    return done, total, percent(done, total)
