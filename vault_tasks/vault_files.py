"""File access helpers for the vault: discovery, reading and atomic writes."""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date
from pathlib import Path

from vault_tasks.errors import McpError
from vault_tasks.task_model import Task
from vault_tasks.task_parser import parse_document

logger = logging.getLogger(__name__)

ALLOWED_MARKDOWN_EXTENSIONS = {".md", ".markdown"}


def _atomic_write(target_path: Path, content: str) -> None:
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", newline="", dir=target_path.parent, delete=False
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning("Could not remove temporary file %s", temp_path)


def _collect_markdown_files(vault_root: Path, start_path: Path) -> list[str]:
    """Vault-relative POSIX paths of the Markdown files under ``start_path``."""
    files: list[str] = []
    for root, dirnames, filenames in os.walk(start_path, followlinks=False):
        dir_path = Path(root)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not (dir_path / name).is_symlink() and not name.startswith(".")
        )

        for filename in sorted(filenames):
            file_path = dir_path / filename
            if file_path.is_symlink():
                continue
            if file_path.suffix.lower() not in ALLOWED_MARKDOWN_EXTENSIONS:
                continue
            files.append(file_path.relative_to(vault_root).as_posix())

    return sorted(files)


def read_markdown(resolved_path: Path, raw_path: str) -> str:
    """Read a single Markdown file, raising ``McpError`` on any problem."""
    if resolved_path.suffix.lower() not in ALLOWED_MARKDOWN_EXTENSIONS:
        raise McpError(
            "NOT_MARKDOWN",
            "Only markdown files are allowed.",
            {"path": raw_path},
        )

    if not resolved_path.exists():
        raise McpError(
            "FILE_NOT_FOUND",
            "Markdown file does not exist.",
            {"path": raw_path},
        )

    if not resolved_path.is_file():
        raise McpError(
            "INVALID_PATH",
            "Path must reference a file.",
            {"path": raw_path},
        )

    try:
        with resolved_path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except UnicodeDecodeError as exc:
        raise McpError(
            "INVALID_ENCODING",
            "Markdown file must be UTF-8 encoded.",
            {"path": raw_path},
        ) from exc


def resolve_scan_files(vault_root: Path, resolved_path: Path, raw_path: str) -> list[str]:
    """Markdown files to scan for ``resolved_path`` (a directory or one file)."""
    if not resolved_path.exists():
        raise McpError(
            "FILE_NOT_FOUND",
            "Path does not exist.",
            {"path": raw_path},
        )

    if resolved_path.is_file():
        if resolved_path.suffix.lower() not in ALLOWED_MARKDOWN_EXTENSIONS:
            raise McpError(
                "NOT_MARKDOWN",
                "Only markdown files are allowed.",
                {"path": raw_path},
            )
        return [resolved_path.relative_to(vault_root).as_posix()]

    if not resolved_path.is_dir():
        raise McpError(
            "INVALID_PATH",
            "Path must reference a file or directory.",
            {"path": raw_path},
        )

    return _collect_markdown_files(vault_root, resolved_path)


def scan_tasks(vault_root: Path, relative_files: list[str], today: date) -> list[Task]:
    """Parse every task out of the given files in order.

    Files that cannot be read are logged and skipped.
    """
    tasks: list[Task] = []
    for relative_path in relative_files:
        file_path = vault_root / relative_path
        try:
            with file_path.open("r", encoding="utf-8", newline="") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable file %s: %s", relative_path, exc)
            continue
        tasks.extend(parse_document(content, relative_path, today=today))
    logger.debug("Scanned %d files, found %d tasks", len(relative_files), len(tasks))
    return tasks
