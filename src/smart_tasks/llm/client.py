# src/smart_tasks/llm/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..config import Settings
from ..tasks.task_models import Priority
from .schemas import (
    SUBTASK_PRIORITY_SCHEMA,
    TASK_BREAKDOWN_SCHEMA,
    TaskSuggestion,
    parse_subtask_priority,
    parse_task_suggestion,
)

logger = logging.getLogger(__name__)

BREAKDOWN_PROMPT = (
    'Analyze the task: "{title}". Suggest a brief description, a few logical sub-steps '
    "with individual priority levels, an appropriate overall priority level, "
    "and a single word category."
)

SUBTASK_PRIORITY_PROMPT = (
    'Analyze this specific sub-task: "{text}". Suggest a priority level: low, medium, or high.'
)


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _describe_failure(exc: Exception) -> str:
    if _is_auth_error(exc):
        return "authentication failed (check SMART_TASKS_API_KEY)"
    if _is_rate_limit_error(exc):
        return "rate-limited"
    if _is_connection_error(exc):
        return "network/timeout error"
    if isinstance(exc, openai.NotFoundError):
        return "model not available (404)"
    if isinstance(exc, ValueError):
        return f"unusable response ({exc.__class__.__name__})"
    return f"error ({exc.__class__.__name__})"


def _response_text(completion: Any) -> str | None:
    """Pull the first choice's message content out of a chat completion."""
    try:
        return completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return None


class OpenAISuggestionClient:
    """
    Task suggestions over any OpenAI-compatible chat completions endpoint
    (Gemini's OpenAI endpoint by default).

    One request per call, no retries, structured output via response_format.
    Every failure is logged and mapped to the fallback; nothing is raised to
    the caller once the client is constructed.
    """

    def __init__(self, settings: Settings, *, client: Any | None = None) -> None:
        self._model = settings.llm_model
        if client is not None:
            self._client = client
            return

        api_key = (settings.llm_api_key or "").strip()
        base_url = (settings.llm_base_url or "").strip()
        if not api_key:
            raise RuntimeError("LLM API key is not set. Set SMART_TASKS_API_KEY in your .env.")
        if not base_url:
            raise RuntimeError("LLM base URL is not set. Set SMART_TASKS_BASE_URL in your .env.")

        timeout = httpx.Timeout(
            connect=settings.llm_connect_timeout,
            read=settings.llm_read_timeout,
            write=10.0,
            pool=settings.llm_connect_timeout,
        )
        # max_retries=0: a suggestion gets exactly one attempt.
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    @property
    def model(self) -> str:
        return self._model

    async def _complete_json(self, prompt: str, *, schema_name: str, schema: dict[str, Any]) -> str | None:
        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema, "strict": True},
            },
        )
        return _response_text(completion)

    async def suggest_task_breakdown(self, title: str) -> TaskSuggestion:
        """
        Description, sub-steps with priorities, overall priority and a one-word
        category for a task title. Falls back to TaskSuggestion.fallback().
        """
        logger.info("Suggestion: breakdown requested model=%s", self._model)
        try:
            raw = await self._complete_json(
                BREAKDOWN_PROMPT.format(title=title.strip()),
                schema_name="task_breakdown",
                schema=TASK_BREAKDOWN_SCHEMA,
            )
            suggestion = parse_task_suggestion(raw)
        except Exception as e:
            logger.warning("Suggestion: breakdown failed, using fallback: %s", _describe_failure(e))
            logger.debug("Suggestion failure detail", exc_info=True)
            return TaskSuggestion.fallback()

        logger.info(
            "Suggestion: breakdown ok priority=%s category=%s sub_tasks=%d",
            suggestion.priority.value,
            suggestion.category,
            len(suggestion.sub_tasks),
        )
        return suggestion

    async def suggest_subtask_priority(self, text: str) -> Priority:
        """Priority for a single ad-hoc sub-task; medium on any failure."""
        try:
            raw = await self._complete_json(
                SUBTASK_PRIORITY_PROMPT.format(text=text.strip()),
                schema_name="subtask_priority",
                schema=SUBTASK_PRIORITY_SCHEMA,
            )
            return parse_subtask_priority(raw)
        except Exception as e:
            logger.warning("Suggestion: sub-task priority failed, using medium: %s", _describe_failure(e))
            logger.debug("Suggestion failure detail", exc_info=True)
            return Priority.MEDIUM
