"""Story progression services."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

from arcstory.core.config import RuntimeConfig
from arcstory.core.values import Value, coerce_literal
from arcstory.domain.defs import ProjectDef
from arcstory.domain.state import StoryState, VariableObserver
from arcstory.script.functions import FunctionRegistry
from arcstory.script.interpreter import ScriptInterpreter
from arcstory.services.choice_resolver import Choice, ChoiceResolver


@dataclass(slots=True)
class StoryNodeView:
    """Data returned to the presentation layer for rendering."""

    element_id: str
    title: str
    text: str
    choices: List[Choice] = field(default_factory=list)

    @property
    def is_end(self) -> bool:
        return not self.choices


class StoryService:
    """Application service that drives play through a project graph.

    Arrival at an element counts one visit, renders its content with
    assignments applied, then resolves choices for display only. Choosing
    re-runs the choice label with assignments applied before moving on.
    """

    def __init__(
        self,
        project: ProjectDef,
        *,
        config: RuntimeConfig | None = None,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self._project = project
        self._config = config or RuntimeConfig()
        self.state = StoryState.from_initial_values(project.initial_values(), seed=self._config.seed)
        self.interpreter = ScriptInterpreter(self.state, functions)
        self.resolver = ChoiceResolver(
            project,
            self.interpreter,
            default_label=self._config.default_label,
            max_depth=self._config.max_resolve_depth,
        )
        self._view: StoryNodeView | None = None

    @property
    def project(self) -> ProjectDef:
        return self._project

    @property
    def is_finished(self) -> bool:
        return self._view is not None and self._view.is_end

    def start(self, element_id: str | None = None) -> StoryNodeView:
        """Reset variables, visits and history, then enter the start element."""
        start_id = element_id or self._project.starting_element_id
        if not start_id:
            raise ValueError(f"Project '{self._project.name}' has no starting element.")
        self.state.reset_all_variables()
        self.state.reset_visits()
        self.state.history.clear()
        return self._enter(start_id)

    def restart(self) -> StoryNodeView:
        return self.start()

    def current_view(self) -> StoryNodeView:
        """Return the view model for the currently active element."""
        if self._view is None:
            raise ValueError("Story has not been started.")
        return self._view

    def choose(self, choice_index: int) -> StoryNodeView:
        """Apply the selected choice and advance the story."""
        view = self.current_view()
        if not view.choices:
            raise ValueError(f"Element '{view.element_id}' has no choices to select.")
        if choice_index < 0:
            raise IndexError(f"Choice index {choice_index} is invalid for element '{view.element_id}'.")
        try:
            selected = view.choices[choice_index]
        except IndexError as exc:
            raise IndexError(
                f"Choice index {choice_index} is invalid for element '{view.element_id}'."
            ) from exc
        self.state.diagnostics.clear()
        if selected.raw_label:
            self.interpreter.evaluate(selected.raw_label, suppress_assignments=False)
        self.state.history.append(view.element_id)
        return self._enter(selected.target_node_id, clear_diagnostics=False)

    def jump_to(self, element_id: str) -> StoryNodeView:
        """Force-enter an element, recording the current one in history."""
        if self._view is not None:
            self.state.history.append(self._view.element_id)
        return self._enter(element_id)

    def go_back(self) -> StoryNodeView:
        """Return to the previous element without counting a visit.

        The content is rendered for display only, so its assignments are not
        applied a second time.
        """
        if not self.state.history:
            raise ValueError("There is no previous element to go back to.")
        previous_id = self.state.history.pop()
        return self._enter(previous_id, count_visit=False, suppress_assignments=True)

    def refresh(self) -> StoryNodeView:
        """Rebuild the current view without side effects (used after restore)."""
        element_id = self.state.current_element_id
        if element_id is None:
            raise ValueError("Story has not been started.")
        return self._enter(element_id, count_visit=False, suppress_assignments=True)

    def _enter(
        self,
        element_id: str,
        *,
        count_visit: bool = True,
        suppress_assignments: bool = False,
        clear_diagnostics: bool = True,
    ) -> StoryNodeView:
        """Render an element; diagnostics only cover the step that produced this view."""
        element = self._project.get_element(element_id)
        if clear_diagnostics:
            self.state.diagnostics.clear()
        self.state.current_element_id = element.id
        if count_visit:
            self.state.record_visit(element.id, element.title)
        text = self.interpreter.evaluate(
            self._project.content_text(element.id), suppress_assignments=suppress_assignments
        )
        choices = self.resolver.resolve_choices(element.id)
        self._view = StoryNodeView(
            element_id=element.id,
            title=element.title,
            text=text,
            choices=choices,
        )
        return self._view

    # Host-facing scripting API ------------------------------------------

    def evaluate(self, script: str, suppress_assignments: bool = False) -> str:
        return self.interpreter.evaluate(script, suppress_assignments)

    def evaluate_condition(self, script: str) -> bool:
        if not (script or "").strip():
            return True
        return self.interpreter.evaluate_condition(script)

    def resolve_choices(self, element_id: str) -> List[Choice]:
        return self.resolver.resolve_choices(element_id)

    def register_function(self, name: str, callback: Callable[..., object], *, mutates: bool = False) -> None:
        self.interpreter.register_function(name, callback, mutates=mutates)

    def register_shadow_variable(self, name: str, callback: Callable[[], Value]) -> None:
        self.state.register_shadow_variable(name, callback)

    def set_variable_observer(self, observer: VariableObserver | None) -> None:
        """Install the single variable-changed callback (None clears it)."""
        self.state.on_variable_changed = observer

    def get_variable(self, name: str) -> Value:
        if not self.state.has_variable(name):
            raise KeyError(name)
        return self.state.read_variable(name)

    def set_variable(self, name: str, value: object) -> bool:
        """Write a variable directly; returns False for shadowed names."""
        return self.state.write_variable(name, coerce_literal(value, f"variable '{name}'"))

    def get_visits(self, key: str) -> int:
        return self.state.get_visits(key)
