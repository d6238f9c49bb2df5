# src/smart_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/suggestions/store).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import SuggestionClient
from ..core.state import AppState
from ..llm.client import OpenAISuggestionClient
from ..llm.offline import OfflineSuggestionClient
from ..storage.kv_store import JsonFileKeyValueStore
from ..storage.task_persistence import TaskPersistence
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_path.parent.mkdir(parents=True, exist_ok=True)


def build_suggester(settings) -> SuggestionClient:
    if not getattr(settings, "suggestions_enabled", True):
        logger.info("Suggestions disabled; using offline client")
        return OfflineSuggestionClient()
    try:
        return OpenAISuggestionClient(settings)
    except RuntimeError as e:
        # Demos / local runs without an API key still work, just without enrichment.
        logger.warning("Suggestions unavailable (%s); using offline client", e)
        return OfflineSuggestionClient()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    suggester = build_suggester(settings)
    persistence = TaskPersistence(JsonFileKeyValueStore(settings.storage_path), key=settings.storage_key)

    return AppState(
        settings=settings,
        store=TaskStore(persistence, suggester),
        suggester=suggester,
    )
