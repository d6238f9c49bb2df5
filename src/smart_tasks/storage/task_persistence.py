# src/smart_tasks/storage/task_persistence.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from ..config import DEFAULT_STORAGE_KEY
from ..core.ports import KeyValueStore
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class TaskPersistence:
    """
    Saves/loads the whole task collection as one JSON blob under a fixed key.

    No versioning, no migrations, no partial writes.
    """

    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._kv = kv
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[Task]:
        """
        Read the collection.

        Absent key -> []. Unparsable blob -> [] (logged). Individual records
        that are not valid tasks are skipped with a warning.
        """
        raw = self._kv.get(self._key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.exception("Error loading tasks: stored value under %r is not JSON", self._key)
            return []

        if not isinstance(data, list):
            logger.error("Error loading tasks: expected a JSON array under %r", self._key)
            return []

        tasks: list[Task] = []
        seen: set[str] = set()
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                logger.warning("Skipping stored task #%d: not an object", i)
                continue
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping stored task #%d: %s", i, e)
                continue
            if task.id in seen:
                logger.warning("Skipping stored task #%d: duplicate id %s", i, task.id)
                continue
            seen.add(task.id)
            tasks.append(task)

        logger.info("Loaded %d tasks from key=%r", len(tasks), self._key)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Serialize and write the full collection. Errors propagate to the caller."""
        payload = [t.to_dict() for t in tasks]
        self._kv.set(self._key, json.dumps(payload, ensure_ascii=False))
        logger.debug("Saved %d tasks under key=%r", len(payload), self._key)
