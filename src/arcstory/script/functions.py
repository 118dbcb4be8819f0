"""Built-in and host-registered script functions.

Functions are looked up by name in a ``FunctionRegistry``. Anything with a
``call(context, args)`` method and the two capability flags can be
registered, so hosts extend the language without touching the evaluator.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Protocol, Sequence

from arcstory.core.values import Value, coerce_literal, normalize_number, to_display, to_number
from arcstory.domain.state import StoryState
from arcstory.script.errors import ExecutionError


@dataclass(slots=True)
class CallContext:
    """What a function may see while it runs."""

    state: StoryState
    suppress_assignments: bool = False


class ScriptFunction(Protocol):
    name: str
    # Bare identifier arguments are passed as their names instead of values.
    takes_names: bool
    # Skipped (returns null) when assignments are suppressed.
    mutates: bool

    def call(self, context: CallContext, args: Sequence[Value]) -> Value:
        ...


BuiltinImpl = Callable[[CallContext, Sequence[Value]], Value]


class BuiltinFunction:
    """A function implemented by the runtime with arity checking."""

    def __init__(
        self,
        name: str,
        impl: BuiltinImpl,
        *,
        min_args: int = 0,
        max_args: int | None = None,
        takes_names: bool = False,
        mutates: bool = False,
    ) -> None:
        self.name = name
        self._impl = impl
        self._min_args = min_args
        self._max_args = max_args
        self.takes_names = takes_names
        self.mutates = mutates

    def call(self, context: CallContext, args: Sequence[Value]) -> Value:
        if len(args) < self._min_args or (self._max_args is not None and len(args) > self._max_args):
            expected = (
                str(self._min_args)
                if self._min_args == self._max_args
                else f"{self._min_args}..{self._max_args if self._max_args is not None else 'n'}"
            )
            raise ExecutionError(f"{self.name}() takes {expected} argument(s), got {len(args)}.")
        if self.mutates and context.suppress_assignments:
            return None
        try:
            return self._impl(context, args)
        except (OverflowError, ValueError) as exc:
            raise ExecutionError(f"{self.name}() failed: {exc}.") from exc


class HostFunction:
    """Adapter for a plain callback registered by the host application."""

    takes_names = False

    def __init__(self, name: str, callback: Callable[..., object], *, mutates: bool = False) -> None:
        self.name = name
        self._callback = callback
        self.mutates = mutates

    def call(self, context: CallContext, args: Sequence[Value]) -> Value:
        if self.mutates and context.suppress_assignments:
            return None
        try:
            result = self._callback(*args)
        except ExecutionError:
            raise
        except Exception as exc:
            raise ExecutionError(f"{self.name}() failed: {exc}") from exc
        try:
            return coerce_literal(result, f"{self.name}() result")
        except ValueError as exc:
            raise ExecutionError(str(exc)) from exc


class FunctionRegistry:
    """Name to ScriptFunction lookup."""

    def __init__(self) -> None:
        self._functions: Dict[str, ScriptFunction] = {}

    def register(self, function: ScriptFunction) -> None:
        self._functions[function.name] = function

    def register_callback(self, name: str, callback: Callable[..., object], *, mutates: bool = False) -> None:
        """Wrap a plain callable and register it under ``name``."""
        self.register(HostFunction(name, callback, mutates=mutates))

    def get(self, name: str) -> ScriptFunction | None:
        return self._functions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)


def _integer_arg(value: Value, context: str) -> int:
    number = normalize_number(to_number(value, context))
    if not isinstance(number, int):
        raise ExecutionError(f"{context} must be an integer, got {to_display(value)}.")
    return number


def _sqr(context: CallContext, args: Sequence[Value]) -> Value:
    number = to_number(args[0], "sqr() argument")
    return number * number


def _sqrt(context: CallContext, args: Sequence[Value]) -> Value:
    number = to_number(args[0], "sqrt() argument")
    if number < 0:
        raise ExecutionError("sqrt() of a negative number.")
    return normalize_number(math.sqrt(number))


def _abs(context: CallContext, args: Sequence[Value]) -> Value:
    return abs(to_number(args[0], "abs() argument"))


def _round(context: CallContext, args: Sequence[Value]) -> Value:
    number = to_number(args[0], "round() argument")
    # Halves round away from zero.
    return int(math.copysign(math.floor(abs(number) + 0.5), number))


def _min(context: CallContext, args: Sequence[Value]) -> Value:
    return min((to_number(arg, "min() argument") for arg in args))


def _max(context: CallContext, args: Sequence[Value]) -> Value:
    return max((to_number(arg, "max() argument") for arg in args))


def _random(context: CallContext, args: Sequence[Value]) -> Value:
    return context.state.rng.random()


def _roll(context: CallContext, args: Sequence[Value]) -> Value:
    maximum = _integer_arg(args[0], "roll() max")
    multiplier = _integer_arg(args[1], "roll() multiplier") if len(args) > 1 else 1
    if maximum < 1 or multiplier < 1:
        raise ExecutionError("roll() arguments must be positive integers.")
    return context.state.rng.randint(multiplier, maximum * multiplier)


def _visits(context: CallContext, args: Sequence[Value]) -> Value:
    if not args or args[0] in (None, ""):
        key = context.state.current_element_id
        if key is None:
            return 0
    else:
        key = to_display(args[0])
    return context.state.get_visits(key)


def _reset(context: CallContext, args: Sequence[Value]) -> Value:
    context.state.reset_variables([to_display(arg) for arg in args])
    return None


def _reset_all(context: CallContext, args: Sequence[Value]) -> Value:
    context.state.reset_all_variables([to_display(arg) for arg in args])
    return None


def _reset_visits(context: CallContext, args: Sequence[Value]) -> Value:
    context.state.reset_visits()
    return None


def default_registry() -> FunctionRegistry:
    """Return a registry holding every built-in function."""
    registry = FunctionRegistry()
    for function in (
        BuiltinFunction("sqr", _sqr, min_args=1, max_args=1),
        BuiltinFunction("sqrt", _sqrt, min_args=1, max_args=1),
        BuiltinFunction("abs", _abs, min_args=1, max_args=1),
        BuiltinFunction("round", _round, min_args=1, max_args=1),
        BuiltinFunction("min", _min, min_args=1),
        BuiltinFunction("max", _max, min_args=1),
        BuiltinFunction("random", _random, max_args=0),
        BuiltinFunction("roll", _roll, min_args=1, max_args=2),
        BuiltinFunction("visits", _visits, max_args=1, takes_names=True),
        BuiltinFunction("reset", _reset, takes_names=True, mutates=True),
        BuiltinFunction("resetAll", _reset_all, takes_names=True, mutates=True),
        BuiltinFunction("resetVisits", _reset_visits, max_args=0, mutates=True),
    ):
        registry.register(function)
    return registry
