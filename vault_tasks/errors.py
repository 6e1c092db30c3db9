"""Structured error types shared by the task engine and the tool routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

NOT_A_TASK = "NOT_A_TASK"
ALREADY_COMPLETE = "ALREADY_COMPLETE"
LINE_OUT_OF_RANGE = "LINE_OUT_OF_RANGE"
MALFORMED_IDENTIFIER = "MALFORMED_IDENTIFIER"
UNPARSEABLE_RECURRENCE = "UNPARSEABLE_RECURRENCE"


@dataclass(frozen=True)
class ErrorResponse:
    """Serializable error payload.

    The completion engine returns these as values; routes raise them wrapped
    in ``McpError``.
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class McpError(RuntimeError):
    """Exception carrying a structured error response."""

    def __init__(
        self, code: str, message: str, details: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.error = ErrorResponse(
            code=code, message=message, details=dict(details or {})
        )

    @classmethod
    def from_error(cls, error: ErrorResponse) -> "McpError":
        return cls(error.code, error.message, error.details)


def success_response(payload: dict[str, Any]) -> dict[str, Any]:
    return {"ok": True, "data": payload}


def error_response(error: ErrorResponse) -> dict[str, Any]:
    return {"ok": False, "error": error.to_dict()}
