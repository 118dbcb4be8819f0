"""Mutable runtime state shared by the interpreter, resolver and host."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping

from arcstory.core.rng import RNG
from arcstory.core.types import Severity
from arcstory.core.values import Value, coerce_literal
from arcstory.script.errors import (
    READ_ONLY_VARIABLE,
    UNKNOWN_RESET_NAME,
    Diagnostic,
    ExecutionError,
)

logger = logging.getLogger(__name__)

VariableObserver = Callable[[str, Value], None]

_WHITESPACE = re.compile(r"\s+")


def clean_title(title: str) -> str:
    """Return the visit key derived from an element title."""
    return _WHITESPACE.sub(" ", title).strip()


class ShadowVariable:
    """Read-only variable whose value comes from a host callback."""

    def __init__(self, name: str, callback: Callable[[], Value]) -> None:
        self.name = name
        self._callback = callback

    def read(self) -> Value:
        try:
            value = self._callback()
        except ExecutionError:
            raise
        except Exception as exc:
            raise ExecutionError(f"Shadow variable '{self.name}' failed: {exc}") from exc
        try:
            return coerce_literal(value, f"shadow variable '{self.name}'")
        except ValueError as exc:
            raise ExecutionError(str(exc)) from exc


@dataclass
class StoryState:
    """Variable store, shadow registry and visit counters for one play session.

    A single instance is passed by reference everywhere; nothing keeps a
    private copy, so writes made while rendering are visible to the resolver.
    """

    initial_values: Dict[str, Value] = field(default_factory=dict)
    variables: Dict[str, Value] = field(default_factory=dict)
    shadow_variables: Dict[str, ShadowVariable] = field(default_factory=dict)
    visits: Dict[str, int] = field(default_factory=dict)
    rng: RNG = field(default_factory=RNG)
    current_element_id: str | None = None
    history: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    on_variable_changed: VariableObserver | None = None

    @classmethod
    def from_initial_values(cls, initial_values: Mapping[str, Value], *, seed: int | None = None) -> "StoryState":
        """Create a state whose store starts at the given initial values."""
        return cls(
            initial_values=dict(initial_values),
            variables=dict(initial_values),
            rng=RNG(seed),
        )

    # Variables -----------------------------------------------------------

    def has_variable(self, name: str) -> bool:
        return name in self.variables or name in self.shadow_variables

    def read_variable(self, name: str) -> Value:
        """Return a variable's value, routing shadowed names to their callback."""
        shadow = self.shadow_variables.get(name)
        if shadow is not None:
            return shadow.read()
        return self.variables.get(name)

    def write_variable(self, name: str, value: Value) -> bool:
        """Store a value and notify the observer; shadowed names are rejected."""
        if name in self.shadow_variables:
            self.report(
                "WARN",
                READ_ONLY_VARIABLE,
                f"Variable '{name}' is provided by the host and cannot be assigned.",
            )
            return False
        self.variables[name] = value
        if self.on_variable_changed is not None:
            self.on_variable_changed(name, value)
        return True

    def register_shadow_variable(self, name: str, callback: Callable[[], Value]) -> None:
        """Route reads of ``name`` to ``callback`` and block writes to it."""
        self.shadow_variables[name] = ShadowVariable(name, callback)
        # The placeholder keeps the name resolvable for reset and validation.
        self.variables.setdefault(name, None)

    def unregister_shadow_variable(self, name: str) -> None:
        self.shadow_variables.pop(name, None)

    def reset_variables(self, names: str | Iterable[str]) -> None:
        """Restore the named variables to their initial values."""
        if isinstance(names, str):
            names = [names]
        for name in names:
            if name not in self.initial_values:
                self.report("WARN", UNKNOWN_RESET_NAME, f"Cannot reset unknown variable '{name}'.")
                continue
            self.write_variable(name, self.initial_values[name])

    def reset_all_variables(self, exclude: str | Iterable[str] = ()) -> None:
        """Restore every variable except those in ``exclude``.

        Variables created at runtime without an initial value are dropped.
        Shadow placeholders stay so the host bindings remain resolvable.
        """
        excluded = {exclude} if isinstance(exclude, str) else set(exclude)
        for name in list(self.variables):
            if name in excluded or name in self.shadow_variables or name in self.initial_values:
                continue
            del self.variables[name]
        for name, value in self.initial_values.items():
            if name in excluded or name in self.shadow_variables:
                continue
            self.write_variable(name, value)

    # Visits --------------------------------------------------------------

    def get_visits(self, key: str) -> int:
        return self.visits.get(key, 0)

    def record_visit(self, element_id: str, title: str | None = None) -> None:
        """Count one arrival under the element id and its cleaned title."""
        self.visits[element_id] = self.visits.get(element_id, 0) + 1
        if title:
            title_key = clean_title(title)
            if title_key and title_key != element_id:
                self.visits[title_key] = self.visits.get(title_key, 0) + 1

    def reset_visits(self) -> None:
        self.visits.clear()

    # Diagnostics ---------------------------------------------------------

    def report(
        self,
        severity: Severity,
        code: str,
        message: str,
        *,
        line: int | None = None,
        source_id: str | None = None,
    ) -> Diagnostic:
        """Record a non-fatal problem and log it."""
        diagnostic = Diagnostic(
            severity=severity,
            code=code,
            message=message,
            line=line,
            source_id=source_id if source_id is not None else self.current_element_id,
        )
        self.diagnostics.append(diagnostic)
        logger.warning("%s: %s", code, message)
        return diagnostic
