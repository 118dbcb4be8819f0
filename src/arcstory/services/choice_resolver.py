"""Resolves an element's outgoing connections into playable choices."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from arcstory.domain.defs import BranchDef, ConditionDef, ConnectionDef, ProjectDef
from arcstory.script.interpreter import ScriptInterpreter
from arcstory.services.errors import CyclicGraphError

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Continue"
DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True, slots=True)
class Choice:
    """A resolved option at a decision point."""

    label: str
    raw_label: str
    target_node_id: str
    branch_id: str | None
    connection_id: str


class ChoiceResolver:
    """Walks connections through branches and jumpers to concrete elements.

    Label precedence: the label of the connection leaving the matched
    condition, then the label of the connection that entered the branch,
    then ``default_label``. Nested branches apply the same rule at each hop.
    """

    def __init__(
        self,
        project: ProjectDef,
        interpreter: ScriptInterpreter,
        *,
        default_label: str = DEFAULT_LABEL,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._project = project
        self._interpreter = interpreter
        self._default_label = default_label
        self._max_depth = max_depth

    def resolve_choices(self, element_id: str) -> List[Choice]:
        """Return the currently valid choices for an element, in output order.

        Raises CyclicGraphError when a branch chain loops.
        """
        state = self._interpreter.state
        previous_element = state.current_element_id
        state.current_element_id = element_id
        try:
            choices: List[Choice] = []
            for connection_id in self._project.outgoing(element_id):
                choice = self._resolve(connection_id, connection_id, "", None, ())
                if choice is not None:
                    choices.append(choice)
            return choices
        finally:
            state.current_element_id = previous_element

    def _resolve(
        self,
        connection_id: str,
        origin_id: str,
        fallback_label: str,
        branch_id: str | None,
        chain: Tuple[str, ...],
    ) -> Choice | None:
        if len(chain) > self._max_depth:
            raise CyclicGraphError(
                f"Resolving connection '{origin_id}' exceeded {self._max_depth} hops.", chain
            )
        connection = self._project.connections.get(connection_id)
        if connection is None:
            logger.warning("Connection '%s' does not exist; no choice emitted.", connection_id)
            return None
        raw_label = self._raw_label(connection) or fallback_label
        target_id = connection.target_id
        kind = self._project.kind_of(target_id)
        if kind == "element":
            return self._make_choice(raw_label, target_id, branch_id, origin_id)
        if kind == "jumper":
            jumper = self._project.jumpers[target_id]
            if jumper.target_id not in self._project.elements:
                logger.warning("Jumper '%s' targets unknown element '%s'.", jumper.id, jumper.target_id)
                return None
            return self._make_choice(raw_label, jumper.target_id, branch_id, origin_id)
        if kind == "branch":
            branch = self._project.branches[target_id]
            if branch.id in chain:
                path = " -> ".join(chain + (branch.id,))
                raise CyclicGraphError(f"Branch cycle detected: {path}.", chain + (branch.id,))
            condition = self._select_condition(branch)
            if condition is None:
                logger.debug("Branch '%s' has no true condition; no choice emitted.", branch.id)
                return None
            return self._resolve(
                condition.output_id,
                origin_id,
                raw_label,
                branch_id or branch.id,
                chain + (branch.id,),
            )
        logger.warning(
            "Connection '%s' targets unknown object '%s'; no choice emitted.", connection.id, target_id
        )
        return None

    def _select_condition(self, branch: BranchDef) -> ConditionDef | None:
        for condition_id in branch.condition_ids:
            condition = self._project.conditions.get(condition_id)
            if condition is None:
                logger.warning("Branch '%s' lists unknown condition '%s'.", branch.id, condition_id)
                continue
            if condition.is_unconditional:
                return condition
            if self._interpreter.evaluate_condition(condition.script or ""):
                return condition
        return None

    def _raw_label(self, connection: ConnectionDef) -> str:
        label = self._project.link_label(connection.id)
        return label if label.strip() else ""

    def _make_choice(
        self, raw_label: str, target_id: str, branch_id: str | None, origin_id: str
    ) -> Choice:
        label = ""
        if raw_label:
            label = self._interpreter.evaluate(raw_label, suppress_assignments=True).strip()
        return Choice(
            label=label or self._default_label,
            raw_label=raw_label,
            target_node_id=target_id,
            branch_id=branch_id,
            connection_id=origin_id,
        )
