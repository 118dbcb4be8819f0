"""Story graph definition structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from arcstory.core.types import GraphKind
from arcstory.core.values import Value


@dataclass(frozen=True, slots=True)
class ElementDef:
    """A narrative node: script content plus ordered outgoing connections."""

    id: str
    title: str = ""
    content: str = ""
    output_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ConnectionDef:
    id: str
    source_id: str
    target_id: str
    label: str = ""


@dataclass(frozen=True, slots=True)
class ConditionDef:
    """Guarded edge inside a branch; an empty script acts as ``else``."""

    id: str
    output_id: str
    script: str | None = None

    @property
    def is_unconditional(self) -> bool:
        return not (self.script or "").strip()


@dataclass(frozen=True, slots=True)
class BranchDef:
    """Ordered conditions: if, any elseifs, then an optional else last."""

    id: str
    condition_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class JumperDef:
    id: str
    target_id: str


@dataclass(frozen=True, slots=True)
class VariableDef:
    id: str
    name: str
    type: str
    value: Value


@dataclass(slots=True)
class ProjectDef:
    """A fully parsed project.

    Acts as graph provider (lookups by id), localization provider (texts
    already resolved for one locale) and initial-value provider.
    """

    name: str
    starting_element_id: str | None
    elements: Dict[str, ElementDef] = field(default_factory=dict)
    connections: Dict[str, ConnectionDef] = field(default_factory=dict)
    branches: Dict[str, BranchDef] = field(default_factory=dict)
    conditions: Dict[str, ConditionDef] = field(default_factory=dict)
    jumpers: Dict[str, JumperDef] = field(default_factory=dict)
    variables: Dict[str, VariableDef] = field(default_factory=dict)

    def kind_of(self, object_id: str) -> GraphKind | None:
        """Return which collection holds ``object_id``."""
        if object_id in self.elements:
            return "element"
        if object_id in self.branches:
            return "branch"
        if object_id in self.jumpers:
            return "jumper"
        if object_id in self.connections:
            return "connection"
        if object_id in self.conditions:
            return "condition"
        return None

    def get_element(self, element_id: str) -> ElementDef:
        try:
            return self.elements[element_id]
        except KeyError as exc:
            raise KeyError(f"Unknown element '{element_id}'.") from exc

    def outgoing(self, element_id: str) -> List[str]:
        return list(self.get_element(element_id).output_ids)

    def content_text(self, element_id: str) -> str:
        return self.get_element(element_id).content

    def link_label(self, connection_id: str) -> str:
        connection = self.connections.get(connection_id)
        return connection.label if connection is not None else ""

    def initial_values(self) -> Dict[str, Value]:
        """Return the initial value of every variable, keyed by name."""
        return {variable.name: variable.value for variable in self.variables.values()}
