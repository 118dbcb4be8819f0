"""Shared type aliases for the core and domain layers."""
from typing import Literal

GraphKind = Literal["element", "connection", "branch", "condition", "jumper"]
Severity = Literal["ERROR", "WARN", "INFO"]

__all__ = ["GraphKind", "Severity"]
