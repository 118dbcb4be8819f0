"""Line-oriented Arcscript interpreter.

Runs ``if/elseif/else/endif`` blocks, assignments, ``show(...)`` calls and
``{expr}`` interpolation over a shared StoryState. Every failure is reported
on the state and replaced by a safe default; nothing here raises to the host.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from arcstory.core.values import Value, binary_op, is_zero, to_display
from arcstory.domain.state import StoryState
from arcstory.script.errors import (
    MALFORMED_CONTROL_FLOW,
    UNKNOWN_VARIABLE,
    Diagnostic,
    ExecutionError,
    ParseError,
    ScriptError,
)
from arcstory.script.evaluator import ExpressionEvaluator
from arcstory.script.functions import CallContext, FunctionRegistry, default_registry
from arcstory.script.lines import (
    ASSIGNMENT,
    CALL,
    ELSE,
    ELSEIF,
    ENDIF,
    IF,
    SHOW,
    TEXT,
    ScriptLine,
    scan_script,
)
from arcstory.script.parser import parse_expression

logger = logging.getLogger(__name__)

INTERPOLATION = re.compile(r"\{([^{}]*)\}")
PARAGRAPH_SEPARATOR = "\n\n"


@dataclass(frozen=True, slots=True)
class Fragment:
    """A piece of rendered output; inline fragments come from show()."""

    text: str
    inline: bool = False


class ScriptInterpreter:
    """Evaluates Arcscript text against one StoryState."""

    def __init__(self, state: StoryState, functions: FunctionRegistry | None = None) -> None:
        self.state = state
        self.functions = functions or default_registry()
        self._evaluator = ExpressionEvaluator(self.functions)

    # Public API ----------------------------------------------------------

    def evaluate(self, script: str, suppress_assignments: bool = False) -> str:
        """Run a script and return its rendered text.

        With ``suppress_assignments`` the script is rendered for display only:
        assignments and state-changing calls are skipped.
        """
        lines = scan_script(script or "")
        context = CallContext(self.state, suppress_assignments=suppress_assignments)
        fragments, _ = self._run_block(lines, 0, context, nested=False)
        return join_fragments(fragments)

    def evaluate_condition(self, expression: str) -> bool:
        """Evaluate a condition; failures report and count as false."""
        context = CallContext(self.state, suppress_assignments=True)
        try:
            return self._evaluator.evaluate_condition(expression, context)
        except ScriptError as exc:
            self._report(exc)
            return False

    def evaluate_expression(self, expression: str, suppress_assignments: bool = False) -> Value:
        """Evaluate an expression; failures report and yield null."""
        context = CallContext(self.state, suppress_assignments=suppress_assignments)
        return self._safe_value(expression, context)

    def register_function(self, name: str, callback, *, mutates: bool = False) -> None:
        """Expose a host callback to scripts under ``name``."""
        self.functions.register_callback(name, callback, mutates=mutates)

    # Block execution -----------------------------------------------------

    def _run_block(
        self,
        lines: Sequence[ScriptLine],
        cursor: int,
        context: CallContext,
        *,
        nested: bool,
    ) -> Tuple[List[Fragment], int]:
        """Execute lines from ``cursor`` and return ``(fragments, next_cursor)``.

        A nested block stops at the first ``elseif``, ``else`` or ``endif`` of
        its own depth and leaves the cursor on it.
        """
        fragments: List[Fragment] = []
        while cursor < len(lines):
            line = lines[cursor]
            if line.kind == IF:
                branch_fragments, cursor = self._run_conditional(lines, cursor, context)
                fragments.extend(branch_fragments)
                continue
            if line.kind in (ELSEIF, ELSE, ENDIF):
                if nested:
                    return fragments, cursor
                self.state.report(
                    "WARN",
                    MALFORMED_CONTROL_FLOW,
                    f"'{line.kind}' without a matching 'if'; ignored.",
                    line=line.number,
                )
            elif line.kind == ASSIGNMENT:
                self._assign(line, context)
            elif line.kind == CALL:
                self._call_statement(line, context)
            elif line.kind == SHOW:
                fragments.append(Fragment(self._show(line, context), inline=True))
            elif line.kind == TEXT:
                text = self._interpolate(line.text.strip(), context, line)
                if text:
                    fragments.append(Fragment(text))
            cursor += 1
        return fragments, cursor

    def _run_conditional(
        self,
        lines: Sequence[ScriptLine],
        cursor: int,
        context: CallContext,
    ) -> Tuple[List[Fragment], int]:
        """Run the ``if`` at ``cursor`` through its matching ``endif``."""
        fragments: List[Fragment] = []
        taken = False
        opening = lines[cursor]
        while True:
            line = lines[cursor]
            if taken:
                live = False
            elif line.kind == ELSE:
                live = True
            else:
                live = self._condition(line, context)
            if live:
                taken = True
                fragments, cursor = self._run_block(lines, cursor + 1, context, nested=True)
            else:
                cursor = skip_branch(lines, cursor + 1)
            if cursor >= len(lines):
                self.state.report(
                    "WARN",
                    MALFORMED_CONTROL_FLOW,
                    "'if' without a matching 'endif'; ran to end of script.",
                    line=opening.number,
                )
                return fragments, cursor
            if lines[cursor].kind == ENDIF:
                return fragments, cursor + 1

    def _condition(self, line: ScriptLine, context: CallContext) -> bool:
        try:
            return self._evaluator.evaluate_condition(line.expression, context)
        except ScriptError as exc:
            self._report(exc, line)
            return False

    # Statements ----------------------------------------------------------

    def _assign(self, line: ScriptLine, context: CallContext) -> None:
        if context.suppress_assignments:
            return
        state = self.state
        try:
            value = self._evaluator.evaluate(line.expression, context)
            if line.operator != "=":
                operator = line.operator[0]
                if operator == "/" and is_zero(value):
                    raise ExecutionError(
                        f"Division by zero in '{line.target} /= {line.expression}'; "
                        f"'{line.target}' left unchanged."
                    )
                if not state.has_variable(line.target):
                    state.report(
                        "WARN",
                        UNKNOWN_VARIABLE,
                        f"Unknown variable '{line.target}' read as null.",
                        line=line.number,
                    )
                current = state.read_variable(line.target)
                value = binary_op(operator, current, value)
        except ScriptError as exc:
            self._report(exc, line)
            return
        if not state.has_variable(line.target):
            logger.debug("Creating undeclared variable '%s'", line.target)
        state.write_variable(line.target, value)

    def _call_statement(self, line: ScriptLine, context: CallContext) -> None:
        try:
            self._evaluator.evaluate(line.expression, context)
        except ScriptError as exc:
            self._report(exc, line)

    def _show(self, line: ScriptLine, context: CallContext) -> str:
        parts: List[str] = []
        for argument in line.arguments:
            if argument.literal is not None:
                parts.append(argument.literal)
            else:
                parts.append(self._safe_text(argument.expression or "", context, line))
        return "".join(parts) + " "

    def _interpolate(self, text: str, context: CallContext, line: ScriptLine | None = None) -> str:
        """Replace each ``{expr}`` marker with the expression's value."""

        def substitute(match: re.Match) -> str:
            return self._safe_text(match.group(1), context, line)

        return INTERPOLATION.sub(substitute, text)

    def _safe_value(self, expression: str, context: CallContext, line: ScriptLine | None = None) -> Value:
        try:
            return self._evaluator.evaluate(expression, context)
        except ScriptError as exc:
            self._report(exc, line)
            return None

    def _safe_text(self, expression: str, context: CallContext, line: ScriptLine | None = None) -> str:
        try:
            return to_display(self._evaluator.evaluate(expression, context))
        except ScriptError as exc:
            self._report(exc, line)
            return ""

    def _report(self, exc: ScriptError, line: ScriptLine | None = None) -> None:
        self.state.report("WARN", exc.code, str(exc), line=line.number if line else None)


def skip_branch(lines: Sequence[ScriptLine], cursor: int) -> int:
    """Advance past a dead branch to the next same-depth elseif/else/endif."""
    depth = 0
    while cursor < len(lines):
        kind = lines[cursor].kind
        if kind == IF:
            depth += 1
        elif kind == ENDIF:
            if depth == 0:
                return cursor
            depth -= 1
        elif kind in (ELSEIF, ELSE) and depth == 0:
            return cursor
        cursor += 1
    return cursor


def join_fragments(fragments: Sequence[Fragment]) -> str:
    """Join rendered fragments.

    Text segments are separated by a blank line. A show() fragment continues
    the current paragraph after a single space.
    """
    output = ""
    for fragment in fragments:
        if fragment.inline:
            if output and not output[-1].isspace():
                output += " "
            output += fragment.text
        elif output:
            output = output.rstrip(" ") + PARAGRAPH_SEPARATOR + fragment.text
        else:
            output = fragment.text
    return output


def check_script(script: str, source_id: str | None = None) -> List[Diagnostic]:
    """Statically check a script: expression syntax and if/endif balance."""
    problems: List[Diagnostic] = []

    def problem(code: str, message: str, number: int | None) -> None:
        problems.append(Diagnostic("WARN", code, message, line=number, source_id=source_id))

    depth = 0
    for line in scan_script(script or ""):
        expressions: List[str] = []
        if line.kind in (IF, ELSEIF, ASSIGNMENT, CALL):
            expressions.append(line.expression)
        elif line.kind == SHOW:
            expressions.extend(arg.expression for arg in line.arguments if arg.expression is not None)
        elif line.kind == TEXT:
            expressions.extend(match.group(1) for match in INTERPOLATION.finditer(line.text))
        if line.kind == IF:
            depth += 1
        elif line.kind in (ELSEIF, ELSE, ENDIF):
            if depth == 0:
                problem(MALFORMED_CONTROL_FLOW, f"'{line.kind}' without a matching 'if'.", line.number)
            elif line.kind == ENDIF:
                depth -= 1
        for expression in expressions:
            try:
                parse_expression(expression)
            except ParseError as exc:
                problem(exc.code, f"{exc} in {expression!r}", line.number)
    if depth > 0:
        problem(MALFORMED_CONTROL_FLOW, "Missing 'endif'.", None)
    return problems
