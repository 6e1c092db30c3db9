"""Task entity and its vocabularies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

STATUS_INCOMPLETE = "incomplete"
STATUS_COMPLETE = "complete"
STATUS_CANCELLED = "cancelled"
STATUS_IN_PROGRESS = "in_progress"
STATUS_NON_TASK = "non_task"

STATUS_BY_SYMBOL = {
    "x": STATUS_COMPLETE,
    "X": STATUS_COMPLETE,
    "-": STATUS_CANCELLED,
    "/": STATUS_IN_PROGRESS,
    " ": STATUS_INCOMPLETE,
    ">": STATUS_INCOMPLETE,
    "<": STATUS_INCOMPLETE,
}

PRIORITY_LEVELS = ("highest", "high", "medium", "low", "lowest")

DATE_FIELDS = (
    "due_date",
    "scheduled_date",
    "start_date",
    "created_date",
    "done_date",
)
# Fields a recurrence moves forward, in primary-field order.
RECURRING_DATE_FIELDS = ("due_date", "scheduled_date", "start_date")


def status_for_symbol(symbol: str) -> str:
    return STATUS_BY_SYMBOL.get(symbol, STATUS_NON_TASK)


@dataclass(frozen=True)
class Task:
    """One checklist line parsed out of a Markdown document.

    Instances are snapshots: every parse creates new ones and changes go
    through ``dataclasses.replace``. ``urgency`` is filled in by whoever builds
    the task (parser or recurrence engine) from the other fields.
    """

    file_path: str
    line_number: int
    description: str
    status: str
    status_symbol: str
    list_marker: str = "-"
    tags: tuple[str, ...] = ()
    due_date: str | None = None
    scheduled_date: str | None = None
    start_date: str | None = None
    created_date: str | None = None
    done_date: str | None = None
    priority: str | None = None
    recurrence: str | None = None
    urgency: float = 0.0
    original_markdown: str = ""

    @property
    def id(self) -> str:
        return f"{self.file_path}:{self.line_number}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status,
            "statusSymbol": self.status_symbol,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "tags": list(self.tags),
            "dueDate": self.due_date,
            "scheduledDate": self.scheduled_date,
            "startDate": self.start_date,
            "createdDate": self.created_date,
            "doneDate": self.done_date,
            "priority": self.priority,
            "recurrence": self.recurrence,
            "urgency": self.urgency,
            "originalMarkdown": self.original_markdown,
        }
