"""Response envelopes for the Chaos Matrix tool endpoints.

Every ``/tool:`` call answers with one of two shapes::

    {"ok": true, "data": {...}}
    {"ok": false, "error": {"code": "TASK_NOT_FOUND", "message": "...", "details": {...}}}

Handlers raise ``ToolError``; the app turns it into the second shape with a
400 status, and the identity middleware reuses it for 401/403 answers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class ErrorResponse:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ToolError(RuntimeError):
    """A rejected tool call; ``code`` is one of the documented error codes."""

    def __init__(
        self, code: str, message: str, details: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(f"{code}: {message}")
        self.error = ErrorResponse(code, message, dict(details or {}))

    @property
    def code(self) -> str:
        return self.error.code


def success_response(payload: dict[str, Any]) -> dict[str, Any]:
    return {"ok": True, "data": payload}


def error_response(error: ErrorResponse) -> dict[str, Any]:
    return {"ok": False, "error": error.to_dict()}
