"""Evaluates parsed expressions against a StoryState."""
from __future__ import annotations

from typing import List

from arcstory.core.values import Value, binary_op, compare, is_truthy, to_number, unary_op
from arcstory.script.errors import UNKNOWN_VARIABLE, ExecutionError
from arcstory.script.functions import CallContext, FunctionRegistry
from arcstory.script.parser import (
    Binary,
    Call,
    Expression,
    Literal,
    Logical,
    Name,
    Unary,
    parse_expression,
)


class ExpressionEvaluator:
    """Walks an expression tree and produces a Value.

    Raises ParseError for bad syntax and ExecutionError for runtime failures;
    callers decide how to report them.
    """

    def __init__(self, functions: FunctionRegistry) -> None:
        self.functions = functions

    def evaluate(self, source: str, context: CallContext) -> Value:
        """Parse and evaluate expression text."""
        return self._evaluate_tree(parse_expression(source), context)

    def evaluate_condition(self, source: str, context: CallContext) -> bool:
        """Evaluate text as a condition.

        A bare function call such as ``visits(x)`` is treated as ``visits(x) > 0``.
        """
        node = parse_expression(source)
        value = self._evaluate_tree(node, context)
        if isinstance(node, Call) and not isinstance(value, (bool, str)) and value is not None:
            return compare(">", to_number(value), 0)
        return is_truthy(value)

    def _evaluate_tree(self, node: Expression, context: CallContext) -> Value:
        try:
            return self.evaluate_node(node, context)
        except RecursionError as exc:
            raise ExecutionError("Expression is nested too deeply to evaluate.") from exc

    def evaluate_node(self, node: Expression, context: CallContext) -> Value:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            return self._lookup(node.name, context)
        if isinstance(node, Unary):
            return unary_op(node.operator, self.evaluate_node(node.operand, context))
        if isinstance(node, Logical):
            left = self.evaluate_node(node.left, context)
            if node.operator == "&&":
                if not is_truthy(left):
                    return False
            elif is_truthy(left):
                return True
            return is_truthy(self.evaluate_node(node.right, context))
        if isinstance(node, Binary):
            left = self.evaluate_node(node.left, context)
            right = self.evaluate_node(node.right, context)
            return binary_op(node.operator, left, right)
        if isinstance(node, Call):
            return self._call(node, context)
        raise ExecutionError(f"Unsupported expression node {type(node).__name__}.")

    def _lookup(self, name: str, context: CallContext) -> Value:
        state = context.state
        if not state.has_variable(name):
            state.report("WARN", UNKNOWN_VARIABLE, f"Unknown variable '{name}' read as null.")
            return None
        return state.read_variable(name)

    def _call(self, node: Call, context: CallContext) -> Value:
        function = self.functions.get(node.name)
        if function is None:
            raise ExecutionError(f"Unknown function '{node.name}'.")
        args: List[Value] = []
        for arg in node.args:
            if function.takes_names and isinstance(arg, Name):
                args.append(arg.name)
            else:
                args.append(self.evaluate_node(arg, context))
        return function.call(context, args)
