"""Error taxonomy for script parsing and evaluation."""
from __future__ import annotations

from dataclasses import dataclass

PARSE_ERROR = "PARSE_ERROR"
EXECUTION_ERROR = "EXECUTION_ERROR"
MALFORMED_CONTROL_FLOW = "MALFORMED_CONTROL_FLOW"
UNKNOWN_VARIABLE = "UNKNOWN_VARIABLE"
READ_ONLY_VARIABLE = "READ_ONLY_VARIABLE"
UNKNOWN_RESET_NAME = "UNKNOWN_RESET_NAME"


class ScriptError(Exception):
    """Base exception for the script layer."""

    code = EXECUTION_ERROR


class ParseError(ScriptError):
    """Raised when expression text is not syntactically valid."""

    code = PARSE_ERROR

    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


class ExecutionError(ScriptError):
    """Raised when a well-formed expression fails at runtime."""

    code = EXECUTION_ERROR


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A reported, non-fatal problem found while running a script."""

    severity: str
    code: str
    message: str
    line: int | None = None
    source_id: str | None = None


def format_diagnostic(diagnostic: Diagnostic) -> str:
    location = []
    if diagnostic.source_id:
        location.append(f"source={diagnostic.source_id}")
    if diagnostic.line is not None:
        location.append(f"line={diagnostic.line}")
    suffix = f" ({' '.join(location)})" if location else ""
    return f"[{diagnostic.severity}] {diagnostic.code}: {diagnostic.message}{suffix}"
