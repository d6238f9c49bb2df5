# src/smart_tasks/llm/schemas.py

"""
Structured-output contract for task suggestions.

Two views of the same shape:
- JSON schema descriptors sent with the request (response_format),
- pydantic models that validate what comes back.

Validation is lenient where the intent is obvious (priority casing, bare
string sub-tasks, blank category) and strict everywhere else. Callers turn
a ValidationError into the fallback suggestion.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..tasks.task_models import DEFAULT_CATEGORY, Priority

_PRIORITY_SCHEMA: dict[str, Any] = {
    "type": "string",
    "enum": [p.value for p in Priority],
    "description": "One of: low, medium, high",
}

TASK_BREAKDOWN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "subTasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "text": {"type": "string"},
                    "priority": _PRIORITY_SCHEMA,
                },
                "required": ["text", "priority"],
                "additionalProperties": False,
            },
        },
        "priority": _PRIORITY_SCHEMA,
        "category": {"type": "string"},
    },
    "required": ["description", "subTasks", "priority", "category"],
    "additionalProperties": False,
}

SUBTASK_PRIORITY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"priority": _PRIORITY_SCHEMA},
    "required": ["priority"],
    "additionalProperties": False,
}


def _coerce_priority(v: Any) -> Any:
    p = Priority.parse(v)
    return p if p is not None else v


class SubTaskSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    priority: Priority = Priority.MEDIUM

    @field_validator("text")
    @classmethod
    def _strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Any:
        return _coerce_priority(v)


class TaskSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str
    sub_tasks: list[SubTaskSuggestion] = Field(alias="subTasks")
    priority: Priority
    category: str

    @field_validator("sub_tasks", mode="before")
    @classmethod
    def _bare_strings(cls, v: Any) -> Any:
        # Some models answer with ["step one", "step two"].
        if isinstance(v, list):
            return [{"text": item, "priority": Priority.MEDIUM} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("sub_tasks")
    @classmethod
    def _drop_blank(cls, v: list[SubTaskSuggestion]) -> list[SubTaskSuggestion]:
        return [st for st in v if st.text]

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Any:
        return _coerce_priority(v)

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        return v.strip() or DEFAULT_CATEGORY

    @classmethod
    def fallback(cls) -> TaskSuggestion:
        """Deterministic defaults applied whenever a suggestion cannot be obtained."""
        return cls(description="", sub_tasks=[], priority=Priority.MEDIUM, category=DEFAULT_CATEGORY)


class SubTaskPrioritySuggestion(BaseModel):
    priority: Priority

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Any:
        return _coerce_priority(v)


def extract_json_object(raw: str) -> str:
    """Cut the outermost {...} out of a reply that may carry prose or code fences."""
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def parse_task_suggestion(raw: str | None) -> TaskSuggestion:
    """Raises ValueError (pydantic ValidationError included) on anything unusable."""
    if not raw or not raw.strip():
        raise ValueError("empty response")
    data = json.loads(extract_json_object(raw))
    return TaskSuggestion.model_validate(data)


def parse_subtask_priority(raw: str | None) -> Priority:
    if not raw or not raw.strip():
        raise ValueError("empty response")
    data = json.loads(extract_json_object(raw))
    return SubTaskPrioritySuggestion.model_validate(data).priority
