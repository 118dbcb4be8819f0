"""Value coercion rules shared by the expression evaluator and assignments.

Script values are plain Python objects restricted to ``int``, ``float``,
``bool``, ``str`` and ``None``. Every conversion between them lives here so
the evaluator never does its own ad-hoc type checks.
"""
from __future__ import annotations

import math
from typing import Union

from arcstory.script.errors import ExecutionError

Value = Union[int, float, bool, str, None]

ARITHMETIC_OPERATORS = ("+", "-", "*", "/", "%")
COMPARISON_OPERATORS = ("==", "!=", "<", ">", "<=", ">=")


def is_numeric(value: Value) -> bool:
    """Return True for ints, floats and bools (bools count as 0/1)."""
    return isinstance(value, (int, float))


def is_truthy(value: Value) -> bool:
    """Return the boolean interpretation used by conditions and logic operators."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def to_number(value: Value, context: str = "operand") -> int | float:
    """Coerce a value for arithmetic; null reads as 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    raise ExecutionError(f"{context} must be numeric, got string {value!r}.")


def to_display(value: Value) -> str:
    """Return the text substituted for a value in rendered output."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError as exc:
            raise ExecutionError(f"Integer is too large to display: {exc}.") from exc
    return value


def normalize_number(value: int | float) -> int | float:
    """Collapse integral floats produced by division back to ints."""
    if isinstance(value, float) and value.is_integer() and not math.isinf(value):
        return int(value)
    return value


def binary_op(operator: str, left: Value, right: Value) -> Value:
    """Apply an arithmetic or comparison operator to two values."""
    if operator in COMPARISON_OPERATORS:
        return compare(operator, left, right)
    if operator == "+" and (isinstance(left, str) or isinstance(right, str)):
        return to_display(left) + to_display(right)
    if operator not in ARITHMETIC_OPERATORS:
        raise ExecutionError(f"Unknown operator {operator!r}.")
    lhs = to_number(left, f"left operand of '{operator}'")
    rhs = to_number(right, f"right operand of '{operator}'")
    try:
        return _arithmetic(operator, lhs, rhs)
    except OverflowError as exc:
        raise ExecutionError(f"Numeric overflow in '{operator}': {exc}.") from exc


def _arithmetic(operator: str, lhs: int | float, rhs: int | float) -> int | float:
    if operator == "+":
        return lhs + rhs
    if operator == "-":
        return lhs - rhs
    if operator == "*":
        return lhs * rhs
    if rhs == 0:
        raise ExecutionError(f"Division by zero in '{operator}'.")
    if operator == "/":
        if isinstance(lhs, int) and isinstance(rhs, int):
            return normalize_number(lhs / rhs)
        return lhs / rhs
    # Truncated modulo: the result keeps the sign of the dividend.
    if isinstance(lhs, float) or isinstance(rhs, float):
        return math.fmod(lhs, rhs)
    remainder = abs(lhs) % abs(rhs)
    return -remainder if lhs < 0 else remainder


def unary_op(operator: str, operand: Value) -> Value:
    """Apply a prefix operator."""
    if operator in ("!", "not"):
        return not is_truthy(operand)
    number = to_number(operand, f"operand of unary '{operator}'")
    if operator == "-":
        return -number
    if operator == "+":
        return number
    raise ExecutionError(f"Unknown unary operator {operator!r}.")


def values_equal(left: Value, right: Value) -> bool:
    """Equality with numeric widening; strings only equal strings."""
    if left is None or right is None:
        return left is None and right is None
    if is_numeric(left) and is_numeric(right):
        return to_number(left) == to_number(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return False


def compare(operator: str, left: Value, right: Value) -> bool:
    """Evaluate a comparison operator."""
    if operator == "==":
        return values_equal(left, right)
    if operator == "!=":
        return not values_equal(left, right)
    if isinstance(left, str) and isinstance(right, str):
        lhs: object = left
        rhs: object = right
    elif isinstance(left, str) or isinstance(right, str):
        raise ExecutionError(
            f"Cannot order {to_display(left)!r} and {to_display(right)!r} with '{operator}'."
        )
    else:
        lhs = to_number(left)
        rhs = to_number(right)
    if operator == "<":
        return lhs < rhs  # type: ignore[operator]
    if operator == ">":
        return lhs > rhs  # type: ignore[operator]
    if operator == "<=":
        return lhs <= rhs  # type: ignore[operator]
    if operator == ">=":
        return lhs >= rhs  # type: ignore[operator]
    raise ExecutionError(f"Unknown comparison {operator!r}.")


def is_zero(value: Value) -> bool:
    """Return True when a value counts as a zero divisor."""
    if value is None:
        return True
    if is_numeric(value):
        return to_number(value) == 0
    return False


def coerce_literal(value: object, context: str) -> Value:
    """Validate a value arriving from JSON or a host callback."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise ValueError(f"{context} must be an int, float, bool, string or null.")


__all__ = [
    "Value",
    "binary_op",
    "coerce_literal",
    "compare",
    "is_numeric",
    "is_truthy",
    "is_zero",
    "normalize_number",
    "to_display",
    "to_number",
    "unary_op",
    "values_equal",
]
