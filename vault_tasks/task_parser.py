"""Parse microformat task lines into ``Task`` entities."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from vault_tasks.task_grammar import (
    DATE_FIELD_REGEXES,
    PRIORITY_REGEX,
    RECURRENCE_REGEX,
    TAG_REGEX,
    TASK_LINE_REGEX,
    priority_for_symbol,
)
from vault_tasks.task_model import Task, status_for_symbol
from vault_tasks.task_serializer import extract_clean_description
from vault_tasks.urgency import score


def parse_line(
    line: str,
    file_path: str = "",
    line_number: int = 0,
    *,
    today: date,
) -> Task | None:
    """Parse one line, returning ``None`` when it is not shaped like a task."""
    match = TASK_LINE_REGEX.match(line)
    if match is None:
        return None

    status_symbol = match.group("status")
    body = match.group("body").strip()

    dates: dict[str, str | None] = {}
    for field, pattern in DATE_FIELD_REGEXES.items():
        date_match = pattern.search(body)
        dates[field] = date_match.group(1) if date_match else None

    priority_match = PRIORITY_REGEX.search(body)
    recurrence_match = RECURRENCE_REGEX.search(body)

    task = Task(
        file_path=file_path,
        line_number=line_number,
        description=extract_clean_description(body),
        status=status_for_symbol(status_symbol),
        status_symbol=status_symbol,
        list_marker=match.group("marker"),
        tags=tuple(tag.strip() for tag in TAG_REGEX.findall(body)),
        priority=priority_for_symbol(priority_match.group(0)) if priority_match else None,
        recurrence=recurrence_match.group("rule").strip() if recurrence_match else None,
        original_markdown=line,
        **dates,
    )
    return replace(task, urgency=score(task, today))


def parse_document(text: str, file_path: str = "", *, today: date) -> list[Task]:
    """Parse every task line of a document; line numbers are 1-based."""
    tasks: list[Task] = []
    for line_number, line in enumerate(text.split("\n"), start=1):
        task = parse_line(line, file_path, line_number, today=today)
        if task is not None:
            tasks.append(task)
    return tasks
