# src/smart_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..llm.schemas import TaskSuggestion
    from ..tasks.task_models import Priority


class KeyValueStore(Protocol):
    """Flat string key -> string value store (local-storage style)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class SuggestionClient(Protocol):
    """
    Generative suggestions for new tasks.

    Implementations fail closed: on any error they return the documented
    fallback instead of raising.
    """

    async def suggest_task_breakdown(self, title: str) -> TaskSuggestion: ...
    async def suggest_subtask_priority(self, text: str) -> Priority: ...
