# src/smart_tasks/tasks/deadlines.py

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Protocol

DAY_SECONDS = 24 * 60 * 60


class HasDeadline(Protocol):
    """Anything with an optional due instant and a completion flag (Task, SubTask)."""

    due_at: float | None
    completed: bool


def parse_due_date(raw: str | None) -> float | None:
    """
    "YYYY-MM-DD" -> epoch seconds at UTC midnight.

    Blank input means "no due date". Anything else that does not parse raises ValueError.
    """
    s = (raw or "").strip()
    if not s:
        return None
    try:
        d = datetime.strptime(s, "%Y-%m-%d")
    except ValueError:
        raise ValueError(f"expected a date like 2024-06-01, got {raw!r}") from None
    return d.replace(tzinfo=UTC).timestamp()


def format_date(ts: float | None) -> str:
    if ts is None:
        return ""
    return datetime.fromtimestamp(ts, tz=UTC).strftime("%Y-%m-%d")


def is_overdue(item: HasDeadline, now: float) -> bool:
    return item.due_at is not None and not item.completed and item.due_at < now


def is_approaching(item: HasDeadline, now: float) -> bool:
    """Pending, not overdue, and due within the next 24 hours."""
    if item.due_at is None or item.completed or is_overdue(item, now):
        return False
    return item.due_at - now < DAY_SECONDS


def deadline_flag(item: HasDeadline, now: float) -> str:
    """Short marker for list rendering: "!overdue", "!soon" or ""."""
    if is_overdue(item, now):
        return "!overdue"
    if is_approaching(item, now):
        return "!soon"
    return ""


def relative_due_label(due_at: float, completed: bool, now: float) -> str:
    # The 24h/48h buckets overlap with is_approaching near the edges; both are kept as-is.
    if completed:
        return ""
    diff = due_at - now
    days = math.floor(abs(diff) / DAY_SECONDS)

    if diff < 0:
        if abs(diff) < DAY_SECONDS:
            return "Overdue today"
        return f"Overdue by {days} day{'' if days == 1 else 's'}"
    if diff < DAY_SECONDS:
        return "Due today"
    if diff < 2 * DAY_SECONDS:
        return "Due tomorrow"
    return f"In {days} days"
