# src/smart_tasks/llm/offline.py

from __future__ import annotations

from ..tasks.task_models import Priority
from .schemas import TaskSuggestion


class OfflineSuggestionClient:
    """
    Offline deterministic suggestion client used when no external API is configured.

    Behavior:
    - breakdown -> the fallback suggestion (no description, no sub-tasks, medium, "General")
    - sub-task priority -> medium
    """

    async def suggest_task_breakdown(self, title: str) -> TaskSuggestion:
        return TaskSuggestion.fallback()

    async def suggest_subtask_priority(self, text: str) -> Priority:
        return Priority.MEDIUM
