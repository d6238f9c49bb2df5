# src/smart_tasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace

from ..core.state import AppState
from ..tasks.deadlines import (
    deadline_flag,
    format_date,
    is_approaching,
    is_overdue,
    parse_due_date,
    relative_due_label,
)
from ..tasks.task_api import (
    add_subtask,
    add_subtask_suggested,
    delete_subtask,
    edit_subtask,
    edit_task,
    toggle_subtask,
)
from ..tasks.task_models import Priority, SubTask, Task
from ..tasks.task_store import SuggestionState
from ..tasks.task_views import (
    ALL_CATEGORIES,
    SortKey,
    StatusFilter,
    compute_stats,
    extract_categories,
    subtask_progress,
)

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str | Awaitable[str]]

logger = logging.getLogger(__name__)

_EDIT_PAIR = re.compile(r"(\w+)=(.*?)(?=\s+\w+=|$)")


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            result = handler(state, args, emit)
            if inspect.isawaitable(result):
                result = await result
        except ValueError as e:
            return f"Error: {e}"
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering helpers ----


def _pop_option(args: list[str], prefix: str) -> tuple[list[str], str | None]:
    """Split "prefix:value" tokens out of args (last one wins)."""
    rest: list[str] = []
    value: str | None = None
    for a in args:
        if a.lower().startswith(prefix + ":"):
            value = a[len(prefix) + 1 :]
        else:
            rest.append(a)
    return rest, value


def _parse_priority(raw: str) -> Priority:
    p = Priority.parse(raw)
    if p is None:
        raise ValueError(f"priority must be low, medium or high (got {raw!r})")
    return p


def _resolve(state: AppState, ref: str) -> Task | None:
    """1-based index into the current view, else a unique id prefix (ids may be all digits)."""
    if ref.isdigit():
        idx = int(ref) - 1
        visible = state.visible()
        if 0 <= idx < len(visible):
            return visible[idx]

    matches = [t for t in state.store.all() if t.id.startswith(ref.lower())]
    return matches[0] if len(matches) == 1 else None


def _resolve_subtask(task: Task, ref: str) -> SubTask | None:
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(task.sub_tasks):
            return task.sub_tasks[idx]
    matches = [st for st in task.sub_tasks if st.id.startswith(ref.lower())]
    return matches[0] if len(matches) == 1 else None


def format_task_line(state: AppState, task: Task, index: int, now: float) -> str:
    box = "[x]" if task.completed else "[ ]"
    meta = [task.priority.value, task.category]

    if task.due_at is not None:
        due = f"due {format_date(task.due_at)}"
        label = relative_due_label(task.due_at, task.completed, now)
        if label:
            due += f" ({label})"
        meta.append(due)

    done, total, _pct = subtask_progress(task)
    if total:
        meta.append(f"{done}/{total} sub-tasks")

    flag = deadline_flag(task, now)
    flags = f" {flag}" if flag else ""
    if state.store.suggestion_state(task.id) == SuggestionState.AWAITING:
        flags += " (analyzing...)"

    return f"{index}. {box} {task.title} [{' | '.join(meta)}]{flags}  #{task.id[:6]}"


def format_task_details(state: AppState, task: Task, now: float) -> str:
    lines = [f"{task.title}  #{task.id}"]
    lines.append(f"  Status: {'completed' if task.completed else 'pending'}")
    lines.append(f"  Priority: {task.priority.value}")
    lines.append(f"  Category: {task.category}")
    lines.append(f"  Created: {format_date(task.created_at)}")
    if task.due_at is not None:
        label = relative_due_label(task.due_at, task.completed, now)
        lines.append(f"  Due: {format_date(task.due_at)}" + (f" ({label})" if label else ""))
    if task.description:
        lines.append(f"  Description: {task.description}")

    if is_overdue(task, now):
        lines.append(
            f"  Immediate Action Required: this task was due {format_date(task.due_at)}. "
            "Complete it as soon as possible."
        )
    elif is_approaching(task, now):
        lines.append("  Upcoming Deadline: this task is approaching its deadline within the next 24 hours.")

    done, total, pct = subtask_progress(task)
    if total:
        lines.append(f"  Sub-tasks ({done}/{total}, {pct}% complete):")
        for i, st in enumerate(task.sub_tasks, start=1):
            box = "[x]" if st.completed else "[ ]"
            extra = []
            if st.priority is not None:
                extra.append(st.priority.value)
            if st.due_at is not None:
                due = f"due {format_date(st.due_at)}"
                label = relative_due_label(st.due_at, st.completed, now)
                if label:
                    due += f", {label}"
                extra.append(due)
            suffix = f" ({', '.join(extra)})" if extra else ""
            flag = deadline_flag(st, now)
            lines.append(f"    {i}. {box} {st.text}{suffix}" + (f" {flag}" if flag else ""))
    else:
        lines.append("  No sub-tasks.")

    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    settings = state.settings
    return (
        "Status:\n"
        f"  Storage: {getattr(settings, 'storage_path', '?')} (key={getattr(settings, 'storage_key', '?')})\n"
        f"  Suggestions: {state.suggester.__class__.__name__} model={getattr(settings, 'llm_model', '?')}\n"
        f"  View: status={state.view.status.value} search={state.view.search!r} "
        f"category={state.view.category} sort={state.view.sort_by.value}"
    )


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <title> [due:YYYY-MM-DD]
    """
    rest, due_raw = _pop_option(args, "due")
    title = " ".join(rest).strip()
    if not title:
        return "Usage: /add <title> [due:YYYY-MM-DD]"

    task = state.store.create(title, due_at=parse_due_date(due_raw))
    if state.store.suggestion_state(task.id) == SuggestionState.AWAITING:
        return f"Added: {task.title} #{task.id[:6]} (analyzing for sub-tasks, priority and category...)"
    return f"Added: {task.title} #{task.id[:6]}"


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    visible = state.visible()
    header = f"Tasks ({len(visible)})"
    notes = []
    if state.view.category != ALL_CATEGORIES:
        notes.append(f"Category: {state.view.category}")
    if state.view.status != StatusFilter.ALL:
        notes.append(f"Showing: {state.view.status.value}")
    if state.view.search:
        notes.append(f"Search: {state.view.search!r}")
    if notes:
        header += "  " + "  ".join(notes)

    if not visible:
        return header + "\nNo tasks found. Try adjusting your filters or add a new task with /add."

    now = time.time()
    lines = [header]
    lines.extend(format_task_line(state, t, i, now) for i, t in enumerate(visible, start=1))
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /show <n|id>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    return format_task_details(state, task, time.time())


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /done <n|id>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    state.store.toggle_completion(task.id)
    return f"{'Completed' if task.completed else 'Reopened'}: {task.title}"


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /del <n|id>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    state.store.delete(task.id)
    return f"Deleted: {task.title}"


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit <n|id> title=... desc=... priority=high due=2024-06-01 category=Home
    (due= with no value clears the due date)
    """
    if len(args) < 2:
        return "Usage: /edit <n|id> title=... desc=... priority=low|medium|high due=YYYY-MM-DD category=..."
    task = _resolve(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    pairs = {m.group(1).lower(): m.group(2).strip() for m in _EDIT_PAIR.finditer(" ".join(args[1:]))}
    if not pairs:
        return "Nothing to change. Use key=value pairs (title, desc, priority, due, category)."

    unknown = set(pairs) - {"title", "desc", "description", "priority", "due", "category"}
    if unknown:
        return f"Unknown field(s): {', '.join(sorted(unknown))}"

    kwargs: dict = {}
    if "title" in pairs:
        kwargs["title"] = pairs["title"]
    if "desc" in pairs or "description" in pairs:
        kwargs["description"] = pairs.get("desc", pairs.get("description", ""))
    if "priority" in pairs:
        kwargs["priority"] = _parse_priority(pairs["priority"])
    if "due" in pairs:
        kwargs["due_at"] = parse_due_date(pairs["due"])

    if kwargs:
        edit_task(state.store, task.id, **kwargs)
    if "category" in pairs:
        state.store.update(task.id, category=pairs["category"])
    return f"Updated: {task.title}"


async def cmd_sub(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /sub add <task> <text> [priority:high] [due:YYYY-MM-DD]
    /sub done <task> <n>
    /sub del <task> <n>
    /sub edit <task> <n> <text> [priority:...] [due:...]
    """
    usage = (
        "Usage:\n"
        "  /sub add <task> <text> [priority:low|medium|high] [due:YYYY-MM-DD]\n"
        "  /sub done <task> <n>\n"
        "  /sub del <task> <n>\n"
        "  /sub edit <task> <n> <text> [priority:...] [due:...]"
    )
    if len(args) < 2:
        return usage

    action = args[0].lower()
    task = _resolve(state, args[1])
    if task is None:
        return f"No task matches {args[1]!r}."
    rest = args[2:]

    if action == "add":
        rest, due_raw = _pop_option(rest, "due")
        rest, prio_raw = _pop_option(rest, "priority")
        text = " ".join(rest).strip()
        if not text:
            return usage
        due_at = parse_due_date(due_raw)
        if prio_raw is None:
            if emit:
                emit("Suggesting a priority for the new sub-task...")
            sub = await add_subtask_suggested(state.store, state.suggester, task.id, text, due_at=due_at)
        else:
            sub = add_subtask(state.store, task.id, text, priority=_parse_priority(prio_raw), due_at=due_at)
        if sub is None:
            return "Task no longer exists."
        return f"Added sub-task: {sub.text} ({sub.priority.value if sub.priority else 'no priority'})"

    if not rest:
        return usage
    sub = _resolve_subtask(task, rest[0])
    if sub is None:
        return f"No sub-task matches {rest[0]!r}."

    if action == "done":
        toggle_subtask(state.store, task.id, sub.id)
        return f"{'Reopened' if sub.completed else 'Completed'} sub-task: {sub.text}"

    if action in ("del", "delete"):
        delete_subtask(state.store, task.id, sub.id)
        return f"Deleted sub-task: {sub.text}"

    if action == "edit":
        edit_rest, due_raw = _pop_option(rest[1:], "due")
        edit_rest, prio_raw = _pop_option(edit_rest, "priority")
        text = " ".join(edit_rest).strip() or sub.text
        edited = replace(
            sub,
            text=text,
            priority=_parse_priority(prio_raw) if prio_raw is not None else sub.priority,
            due_at=parse_due_date(due_raw) if due_raw is not None else sub.due_at,
        )
        edit_subtask(
            state.store,
            task.id,
            sub.id,
            text=edited.text,
            priority=edited.priority,
            due_at=edited.due_at,
        )
        return f"Updated sub-task: {edited.text}"

    return usage


def cmd_filter(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Filter is {state.view.status.value}. Use /filter all|pending|completed."
    try:
        status = StatusFilter(args[0].lower())
    except ValueError:
        return "Usage: /filter all|pending|completed"
    state.view = replace(state.view, status=status)
    return f"Showing {status.value} tasks."


def cmd_search(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    query = " ".join(args).strip()
    state.view = replace(state.view, search=query)
    return f"Search: {query!r}" if query else "Search cleared."


def cmd_category(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    name = " ".join(args).strip()
    if not name:
        return f"Category is {state.view.category}. Use /categories to list them."
    known = extract_categories(state.store.all())
    # Case-insensitive pick of an existing category; exact text otherwise.
    picked = next((c for c in known if c.lower() == name.lower()), name)
    state.view = replace(state.view, category=picked)
    return f"Category: {picked}"


def cmd_categories(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    cats = extract_categories(state.store.all())
    return "Categories: " + ", ".join(f"*{c}*" if c == state.view.category else c for c in cats)


def cmd_sort(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Sorted by {state.view.sort_by.value}. Use /sort createdAt|dueDate|priority."
    key = SortKey.parse(args[0])
    state.view = replace(state.view, sort_by=key)
    return f"Sorted by {key.value}."


def cmd_stats(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    stats = compute_stats(state.store.all())
    return (
        "Stats:\n"
        f"  Total: {stats.total}\n"
        f"  Completed: {stats.completed}\n"
        f"  Pending: {stats.pending}\n"
        f"  High priority (open): {stats.high_priority}\n"
        f"  Completion rate: {stats.completion_rate}%"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show storage/suggestion settings and the current view.")
registry.register("add", cmd_add, help_text="Smart add: /add <title> [due:YYYY-MM-DD].", aliases=["new"])
registry.register("list", cmd_list, help_text="List tasks for the current filter/search/category/sort.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Task details: /show <n|id>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n|id>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <n|id>.", aliases=["delete", "rm"])
registry.register("edit", cmd_edit, help_text="Edit: /edit <n|id> title=... desc=... priority=... due=... category=...")
registry.register("sub", cmd_sub, help_text="Sub-tasks: /sub add|done|del|edit <task> ...")
registry.register("filter", cmd_filter, help_text="Status filter: /filter all|pending|completed.")
registry.register("search", cmd_search, help_text="Search title/description: /search [text] (empty clears).")
registry.register("category", cmd_category, help_text="Category filter: /category <name|All>.", aliases=["cat"])
registry.register("categories", cmd_categories, help_text="List categories.", aliases=["cats"])
registry.register("sort", cmd_sort, help_text="Sort: /sort createdAt|dueDate|priority.")
registry.register("stats", cmd_stats, help_text="Totals, pending, open high-priority and completion rate.")
