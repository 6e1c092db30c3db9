"""Complete a task line inside a document and spawn its successor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from vault_tasks.errors import (
    ALREADY_COMPLETE,
    LINE_OUT_OF_RANGE,
    MALFORMED_IDENTIFIER,
    NOT_A_TASK,
    UNPARSEABLE_RECURRENCE,
    ErrorResponse,
    McpError,
)
from vault_tasks.recurrence import next_occurrence
from vault_tasks.task_dates import format_task_date
from vault_tasks.task_grammar import (
    DATE_FIELD_REGEXES,
    DONE_MARKERS,
    INDENTATION_REGEX,
    TASK_LINE_REGEX,
)
from vault_tasks.task_model import STATUS_COMPLETE, Task
from vault_tasks.task_parser import parse_line

logger = logging.getLogger(__name__)

COMPLETED_SYMBOL = "x"

OUTCOME_FAILED = "failed"
OUTCOME_COMPLETED = "completed"
OUTCOME_COMPLETED_WITH_SUCCESSOR = "completed_with_successor"


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of ``complete_task_line``.

    ``updated_lines`` is always a new list. On failure it equals the input and
    ``error`` is set; ``successor_error`` reports a recurring task whose next
    occurrence could not be created while the completion itself went through.
    """

    updated_lines: list[str]
    task: Task | None = None
    completed_line: str | None = None
    successor: Task | None = None
    successor_line: str | None = None
    successor_error: ErrorResponse | None = None
    error: ErrorResponse | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> str:
        if self.error is not None:
            return OUTCOME_FAILED
        if self.successor_line is not None:
            return OUTCOME_COMPLETED_WITH_SUCCESSOR
        return OUTCOME_COMPLETED


def parse_task_id(task_id: str) -> tuple[str, int]:
    """Split ``"<path>:<line>"`` on its last colon."""
    if not isinstance(task_id, str) or ":" not in task_id:
        raise McpError(
            MALFORMED_IDENTIFIER,
            "Task id must have the form filePath:lineNumber.",
            {"id": str(task_id)},
        )
    file_path, _, raw_line = task_id.rpartition(":")
    if not file_path or not raw_line.isdigit():
        raise McpError(
            MALFORMED_IDENTIFIER,
            "Task id must end with a line number.",
            {"id": task_id},
        )
    return file_path, int(raw_line)


def mark_line_complete(line: str, completion_date: date) -> str:
    match = TASK_LINE_REGEX.match(line)
    if match is None:
        return line
    updated = line[: match.start("status")] + COMPLETED_SYMBOL + line[match.end("status") :]
    if DATE_FIELD_REGEXES["done_date"].search(updated) is None:
        updated = f"{updated.rstrip()} {DONE_MARKERS} {format_task_date(completion_date)}"
    return updated


def complete_task_line(
    lines: list[str],
    line_number: int,
    completion_date: date,
    *,
    file_path: str = "",
    today: date | None = None,
) -> CompletionResult:
    """Mark the 1-based ``line_number`` complete and insert its successor below."""
    today = today or completion_date
    if not 1 <= line_number <= len(lines):
        return CompletionResult(
            updated_lines=list(lines),
            error=ErrorResponse(
                code=LINE_OUT_OF_RANGE,
                message=f"Line {line_number} is outside the document.",
                details={"line": line_number, "lineCount": len(lines)},
            ),
        )

    original_line = lines[line_number - 1]
    task = parse_line(original_line, file_path, line_number, today=today)
    if task is None:
        return CompletionResult(
            updated_lines=list(lines),
            error=ErrorResponse(
                code=NOT_A_TASK,
                message=f"Line {line_number} is not a task.",
                details={"line": line_number, "text": original_line},
            ),
        )
    if task.status == STATUS_COMPLETE:
        return CompletionResult(
            updated_lines=list(lines),
            task=task,
            error=ErrorResponse(
                code=ALREADY_COMPLETE,
                message="Task is already completed.",
                details={"id": task.id, "text": original_line},
            ),
        )

    completed_line = mark_line_complete(original_line, completion_date)
    updated_lines = list(lines)
    updated_lines[line_number - 1] = completed_line

    if not task.recurrence:
        return CompletionResult(
            updated_lines=updated_lines, task=task, completed_line=completed_line
        )

    try:
        successor = next_occurrence(task, today, completion_date)
    except (ValueError, OverflowError) as exc:
        logger.exception("Recurrence failed for %s", task.id)
        successor = None
        reason = str(exc)
    else:
        reason = "No next occurrence could be computed from the recurrence rule."

    if successor is None:
        return CompletionResult(
            updated_lines=updated_lines,
            task=task,
            completed_line=completed_line,
            successor_error=ErrorResponse(
                code=UNPARSEABLE_RECURRENCE,
                message=reason,
                details={"id": task.id, "recurrence": task.recurrence},
            ),
        )

    indentation = INDENTATION_REGEX.match(original_line).group(0)
    successor_line = successor.original_markdown
    if indentation and not successor_line.startswith(indentation):
        successor_line = indentation + INDENTATION_REGEX.sub("", successor_line, count=1)
    updated_lines.insert(line_number, successor_line)
    logger.debug("Inserted successor for %s: %s", task.id, successor_line)

    return CompletionResult(
        updated_lines=updated_lines,
        task=task,
        completed_line=completed_line,
        successor=successor,
        successor_line=successor_line,
    )
