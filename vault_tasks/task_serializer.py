"""Render tasks back into microformat lines."""

from __future__ import annotations

from vault_tasks.task_grammar import (
    DATE_FIELD_SYMBOLS,
    PRIORITY_SYMBOLS,
    RECURRENCE_MARKER,
    TRAILING_DATE_FIELD_REGEXES,
    TRAILING_PRIORITY_REGEX,
    TRAILING_RECURRENCE_REGEX,
    TRAILING_TAG_REGEX,
)
from vault_tasks.task_model import Task

MAX_STRIP_PASSES = 20

_STRIPPED_DATE_FIELDS = (
    "done_date",
    "due_date",
    "scheduled_date",
    "start_date",
    "created_date",
)


def extract_clean_description(description: str) -> str:
    """Strip metadata tokens from the end of ``description``.

    Trailing tags are removed while stripping so that metadata hidden behind
    them is reached, then appended again in their original order.
    """
    clean = description.strip()
    trailing_tags: list[str] = []

    for _ in range(MAX_STRIP_PASSES):
        matched = False

        tag_match = TRAILING_TAG_REGEX.search(clean)
        if tag_match is not None:
            trailing_tags.insert(0, tag_match.group(0).strip())
            clean = clean[: tag_match.start()].rstrip()
            matched = True

        priority_match = TRAILING_PRIORITY_REGEX.search(clean)
        if priority_match is not None:
            clean = clean[: priority_match.start()].rstrip()
            matched = True

        for field in _STRIPPED_DATE_FIELDS:
            date_match = TRAILING_DATE_FIELD_REGEXES[field].search(clean)
            if date_match is not None:
                clean = clean[: date_match.start()].rstrip()
                matched = True

        recurrence_match = TRAILING_RECURRENCE_REGEX.search(clean)
        if recurrence_match is not None:
            clean = clean[: recurrence_match.start()].rstrip()
            matched = True

        if not matched:
            break

    return " ".join(part for part in [clean, *trailing_tags] if part)


def serialize(task: Task) -> str:
    """Return the task body: clean description followed by its fields."""
    parts = [extract_clean_description(task.description)]

    if task.priority in PRIORITY_SYMBOLS:
        parts.append(PRIORITY_SYMBOLS[task.priority])
    if task.recurrence:
        parts.append(f"{RECURRENCE_MARKER} {task.recurrence}")
    for field in ("created_date", "start_date", "scheduled_date", "due_date", "done_date"):
        value = getattr(task, field)
        if value:
            parts.append(f"{DATE_FIELD_SYMBOLS[field]} {value}")

    return " ".join(part for part in parts if part)


def build_line(task: Task) -> str:
    return f"{task.list_marker} [{task.status_symbol}] {serialize(task)}"
