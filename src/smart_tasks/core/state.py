# src/smart_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from ..tasks.task_views import ViewOptions, visible_tasks
from .ports import SuggestionClient


@dataclass
class AppState:
    # Settings object (config.Settings in the app, SimpleNamespace in tests).
    settings: Any

    store: TaskStore
    suggester: SuggestionClient

    # Current filter/search/category/sort selections of the task list.
    view: ViewOptions = field(default_factory=ViewOptions)

    def visible(self) -> list[Task]:
        return visible_tasks(self.store.all(), self.view)
