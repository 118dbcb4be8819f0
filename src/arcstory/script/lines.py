"""Line classification for Arcscript bodies.

Scanning is purely textual: nothing here evaluates an expression.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

IF = "if"
ELSEIF = "elseif"
ELSE = "else"
ENDIF = "endif"
ASSIGNMENT = "assignment"
SHOW = "show"
CALL = "call"
BLANK = "blank"
TEXT = "text"

ASSIGNMENT_OPERATORS = ("+=", "-=", "*=", "/=", "=")
STATEMENT_FUNCTIONS = ("reset", "resetAll", "resetVisits")

_IF = re.compile(r"^if\b\s*(.*)$")
_ELSEIF = re.compile(r"^elseif\b\s*(.*)$")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CALL_HEAD = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*\(")


@dataclass(frozen=True, slots=True)
class ShowArgument:
    """One show() argument: either a string literal or expression text."""

    literal: str | None = None
    expression: str | None = None


@dataclass(frozen=True, slots=True)
class ScriptLine:
    kind: str
    text: str
    number: int
    expression: str = ""
    target: str = ""
    operator: str = ""
    arguments: Tuple[ShowArgument, ...] = field(default_factory=tuple)


def scan_script(script: str) -> List[ScriptLine]:
    """Split a script into classified lines (1-based line numbers)."""
    return [classify_line(text, number) for number, text in enumerate(script.splitlines(), start=1)]


def classify_line(text: str, number: int = 1) -> ScriptLine:
    """Classify a single line of script text."""
    stripped = text.strip()
    if not stripped or stripped.startswith("//"):
        return ScriptLine(BLANK, text, number)
    if stripped == ELSE:
        return ScriptLine(ELSE, text, number)
    if stripped == ENDIF:
        return ScriptLine(ENDIF, text, number)
    match = _ELSEIF.match(stripped)
    if match:
        return ScriptLine(ELSEIF, text, number, expression=match.group(1).strip())
    match = _IF.match(stripped)
    if match:
        return ScriptLine(IF, text, number, expression=match.group(1).strip())

    call = _match_call(stripped)
    if call is not None:
        name, inner = call
        if name == "show":
            return ScriptLine(
                SHOW,
                text,
                number,
                expression=inner,
                arguments=tuple(_parse_show_argument(arg) for arg in split_arguments(inner)),
            )
        if name in STATEMENT_FUNCTIONS:
            return ScriptLine(CALL, text, number, expression=stripped)

    assignment = split_assignment(stripped)
    if assignment is not None:
        target, operator, expression = assignment
        return ScriptLine(
            ASSIGNMENT, text, number, expression=expression, target=target, operator=operator
        )
    return ScriptLine(TEXT, text, number)


def split_assignment(text: str) -> Tuple[str, str, str] | None:
    """Return ``(target, operator, expression)`` if the line is an assignment.

    Exactly one assignment operator may appear outside string literals;
    ``==``, ``!=``, ``<=`` and ``>=`` are comparisons and do not count.
    """
    found: List[Tuple[int, str]] = []
    quote: str | None = None
    index = 0
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "=":
            previous = text[index - 1] if index > 0 else ""
            following = text[index + 1] if index + 1 < len(text) else ""
            if following == "=":
                index += 2
                continue
            if previous in ("=", "!", "<", ">"):
                pass
            elif previous in ("+", "-", "*", "/"):
                found.append((index - 1, previous + "="))
            else:
                found.append((index, "="))
        index += 1
    if len(found) != 1:
        return None
    position, operator = found[0]
    target = text[:position].strip()
    expression = text[position + len(operator):].strip()
    if not target or not expression or target.startswith("<") or not _IDENTIFIER.match(target):
        return None
    return target, operator, expression


def find_closing_paren(text: str, open_index: int) -> int:
    """Return the index of the parenthesis closing ``text[open_index]``, or -1."""
    depth = 0
    quote: str | None = None
    index = open_index
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def split_arguments(text: str) -> List[str]:
    """Split a call's argument text on top-level commas."""
    args: List[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            args.append(text[start:index])
            start = index + 1
        index += 1
    tail = text[start:]
    if tail.strip() or args:
        args.append(tail)
    return [arg.strip() for arg in args]


def _match_call(stripped: str) -> Tuple[str, str] | None:
    match = _CALL_HEAD.match(stripped)
    if not match:
        return None
    open_index = match.end() - 1
    if find_closing_paren(stripped, open_index) != len(stripped) - 1:
        return None
    return match.group(1), stripped[open_index + 1:-1]


def _parse_show_argument(arg: str) -> ShowArgument:
    if len(arg) >= 2 and arg[0] in ("'", '"') and _closing_quote(arg) == len(arg) - 1:
        return ShowArgument(literal=_unescape(arg[1:-1], arg[0]))
    return ShowArgument(expression=arg)


def _closing_quote(arg: str) -> int:
    quote = arg[0]
    index = 1
    while index < len(arg):
        if arg[index] == "\\":
            index += 2
            continue
        if arg[index] == quote:
            return index
        index += 1
    return -1


def _unescape(body: str, quote: str) -> str:
    return body.replace("\\" + quote, quote).replace("\\\\", "\\")
