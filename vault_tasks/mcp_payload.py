"""Payload validation helpers for tool endpoints."""

from __future__ import annotations

from typing import Any

from vault_tasks.errors import McpError


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise McpError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise McpError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_string(payload: dict[str, Any], field: str) -> str:
    if field not in payload:
        raise McpError(
            "MISSING_FIELDS",
            f"{field} is required.",
            {"fields": [field]},
        )
    value = payload[field]
    if not isinstance(value, str):
        raise McpError(
            "INVALID_TYPE",
            f"{field} must be a string.",
            {"field": field, "type": type(value).__name__},
        )
    return value


def _optional_string(payload: dict[str, Any], field: str, default: str = "") -> str:
    if payload.get(field) is None:
        return default
    return _require_string(payload, field)
