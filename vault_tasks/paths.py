"""Path validation utilities for keeping every file access inside the vault."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from fastapi import Request

from vault_tasks.errors import McpError


def get_request_vault_root(request: Request) -> Path:
    config = getattr(request.app.state, "config", None)
    if config is not None and hasattr(config, "vault_path"):
        return Path(config.vault_path)
    return Path(request.app.state.vault_path)


def validate_path(vault_root: Path, raw_path: str) -> Path:
    """Validate a vault-relative path and return the absolute path it names."""
    if not isinstance(raw_path, str):
        raise McpError(
            "INVALID_TYPE",
            "Path must be a string.",
            {"path": str(raw_path), "type": type(raw_path).__name__},
        )

    candidate = PurePosixPath(raw_path.replace("\\", "/"))

    if candidate.is_absolute():
        raise McpError(
            "ABSOLUTE_PATH",
            "Absolute paths are not allowed.",
            {"path": raw_path},
        )

    if ".." in candidate.parts:
        raise McpError(
            "PATH_TRAVERSAL",
            "Path traversal is not allowed.",
            {"path": raw_path},
        )

    if _contains_symlink(vault_root, candidate):
        raise McpError(
            "PATH_SYMLINK",
            "Symlinked paths are not allowed.",
            {"path": raw_path},
        )

    return vault_root.joinpath(*candidate.parts)


def to_vault_relative(vault_root: Path, raw_path: str) -> str:
    """Turn an absolute path inside the vault into a vault-relative one.

    Relative input is returned unchanged so ``validate_path`` can check it.
    """
    candidate = PurePosixPath(raw_path.replace("\\", "/"))
    if not candidate.is_absolute():
        return raw_path

    root = PurePosixPath(vault_root.as_posix())
    try:
        relative = candidate.relative_to(root)
    except ValueError as exc:
        raise McpError(
            "PATH_OUTSIDE_VAULT",
            "Path is outside the vault.",
            {"path": raw_path},
        ) from exc
    return relative.as_posix()


def _contains_symlink(vault_root: Path, relative_path: PurePosixPath) -> bool:
    current = vault_root
    for segment in relative_path.parts:
        current = current / segment
        if current.is_symlink():
            return True
    return False
