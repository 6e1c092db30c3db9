"""Task tool endpoints: list, query and complete tasks in the vault."""

from __future__ import annotations

import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Any

from fastapi import Request

from vault_tasks.errors import McpError, success_response
from vault_tasks.mcp_payload import (
    _ensure_payload_dict,
    _optional_string,
    _reject_unknown_fields,
    _require_string,
)
from vault_tasks.mcp_router import mcp_router
from vault_tasks.paths import get_request_vault_root, to_vault_relative, validate_path
from vault_tasks.task_completion import complete_task_line, parse_task_id
from vault_tasks.task_model import Task
from vault_tasks.task_query import evaluate
from vault_tasks.vault_files import (
    _atomic_write,
    read_markdown,
    resolve_scan_files,
    scan_tasks,
)

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 3.5
DEFAULT_MAX_RESPONSE_TOKENS = 15000
TRUNCATION_NOTICE = (
    "Showing {returned} of {total} matching tasks to stay within the response "
    "size limit. Use more specific filters to see all results."
)


def _today() -> date:
    return date.today()


def _max_response_tokens(request: Request) -> int:
    config = getattr(request.app.state, "config", None)
    return getattr(config, "max_response_tokens", DEFAULT_MAX_RESPONSE_TOKENS)


def _estimate_tokens(tasks: list[dict[str, Any]]) -> int:
    return math.ceil(len(json.dumps(tasks, ensure_ascii=False)) / CHARS_PER_TOKEN)


def _collect_tasks(request: Request, raw_path: str) -> list[Task]:
    vault_root = get_request_vault_root(request)
    resolved_path = validate_path(vault_root, raw_path) if raw_path else vault_root
    relative_files = resolve_scan_files(vault_root, resolved_path, raw_path)
    logger.debug("Scanning %s (%d files)", raw_path or ".", len(relative_files))
    return scan_tasks(vault_root, relative_files, _today())


def _truncate(
    tasks: list[dict[str, Any]], max_tokens: int
) -> tuple[list[dict[str, Any]], bool]:
    token_count = _estimate_tokens(tasks)
    if token_count <= max_tokens:
        return tasks, False
    keep = math.floor(len(tasks) * max_tokens / token_count)
    logger.info(
        "Truncating response from %d to %d tasks (~%d tokens)",
        len(tasks),
        keep,
        token_count,
    )
    return tasks[:keep], True


@mcp_router.post("/tool:list_all_tasks")
def list_all_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List every task found in Markdown files under the vault or a sub-path."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"path"})

    raw_path = _optional_string(payload, "path")
    tasks = _collect_tasks(request, raw_path)
    return success_response({"tasks": [task.to_dict() for task in tasks]})


@mcp_router.post("/tool:query_tasks")
def query_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Filter and sort tasks with the line-based query language."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"query", "path"})

    query = _require_string(payload, "query")
    raw_path = _optional_string(payload, "path")

    tasks = _collect_tasks(request, raw_path)
    matched = evaluate(tasks, query, _today())
    logger.debug("Query matched %d of %d tasks", len(matched), len(tasks))

    serialized = [task.to_dict() for task in matched]
    returned, truncated = _truncate(serialized, _max_response_tokens(request))
    notice = (
        TRUNCATION_NOTICE.format(returned=len(returned), total=len(serialized))
        if truncated
        else None
    )
    return success_response(
        {
            "tasks": returned,
            "total": len(serialized),
            "returned": len(returned),
            "truncated": truncated,
            "notice": notice,
        }
    )


@mcp_router.post("/tool:complete_task")
def complete_task(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Mark a task complete by id and insert the next occurrence when it recurs."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"id"})

    task_id = _require_string(payload, "id")
    raw_path, line_number = parse_task_id(task_id)

    vault_root = get_request_vault_root(request)
    relative_path = to_vault_relative(vault_root, raw_path)
    resolved_path = validate_path(vault_root, relative_path)
    content = read_markdown(resolved_path, raw_path)

    newline = "\r\n" if "\r\n" in content else "\n"
    today = _today()
    result = complete_task_line(
        content.split(newline),
        line_number,
        today,
        file_path=Path(relative_path).as_posix(),
        today=today,
    )
    if result.error is not None:
        raise McpError.from_error(result.error)

    _atomic_write(resolved_path, newline.join(result.updated_lines))
    logger.info("Completed task %s (%s)", task_id, result.outcome)

    warning = None
    message = f"Task completed: {result.completed_line.strip()}"
    if result.successor_line is not None:
        message += f"\nNext occurrence created: {result.successor_line.strip()}"
    elif result.successor_error is not None:
        warning = result.successor_error.to_dict()
        logger.warning(
            "No successor created for %s: %s", task_id, result.successor_error.message
        )

    return success_response(
        {
            "task": result.task.to_dict(),
            "completedLine": result.completed_line,
            "successorLine": result.successor_line,
            "successorCreated": result.successor_line is not None,
            "warning": warning,
            "message": message,
        }
    )
