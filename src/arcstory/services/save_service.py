"""Serialization helpers for saving and restoring a play session."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from arcstory.core.rng import RNG
from arcstory.core.values import Value, coerce_literal
from arcstory.services.errors import SaveLoadError
from arcstory.services.story_service import StoryNodeView, StoryService

SavePayload = Dict[str, Any]


class SaveService:
    """Converts runtime state to/from a validated, versioned payload."""

    SAVE_VERSION = 1

    def serialize(self, service: StoryService) -> SavePayload:
        """Return a JSON-serializable payload for disk persistence."""
        state = service.state
        if state.current_element_id is None:
            raise SaveLoadError("Cannot save a story that has not been started.")
        variables = {
            name: value
            for name, value in state.variables.items()
            if name not in state.shadow_variables
        }
        return {
            "save_version": self.SAVE_VERSION,
            "metadata": {
                "project": service.project.name,
                "saved_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            },
            "rng": state.rng.export_state(),
            "state": {
                "current_element_id": state.current_element_id,
                "variables": variables,
                "visits": dict(state.visits),
                "history": list(state.history),
            },
        }

    def restore(self, service: StoryService, payload: Mapping[str, Any]) -> StoryNodeView:
        """Load a payload into the service's existing state and rebuild the view.

        The StoryState instance is updated in place so callbacks and
        registrations made by the host stay attached.
        """
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        if payload.get("save_version") != self.SAVE_VERSION:
            raise SaveLoadError("Save format is not supported by this version.")
        metadata = payload.get("metadata")
        if isinstance(metadata, Mapping) and metadata.get("project") not in (None, service.project.name):
            raise SaveLoadError(
                f"Save belongs to project '{metadata.get('project')}', not '{service.project.name}'."
            )
        rng_payload = payload.get("rng")
        state_payload = payload.get("state")
        if not isinstance(rng_payload, Mapping) or not isinstance(state_payload, Mapping):
            raise SaveLoadError("Save data is missing required sections.")

        current_element_id = state_payload.get("current_element_id")
        if not isinstance(current_element_id, str) or current_element_id not in service.project.elements:
            raise SaveLoadError("Save references an unknown current element.")
        variables = self._parse_variables(state_payload.get("variables"))
        visits = self._parse_visits(state_payload.get("visits"))
        history = self._parse_history(state_payload.get("history"), service)
        try:
            rng = RNG.from_state(dict(rng_payload))
        except (TypeError, ValueError) as exc:
            raise SaveLoadError(f"Invalid RNG state: {exc}") from exc

        state = service.state
        # Runtime-created names absent from the save must not survive the load.
        for name in [name for name in state.variables if name not in state.shadow_variables]:
            del state.variables[name]
        for name, value in variables.items():
            if name in state.shadow_variables:
                continue
            state.variables[name] = value
        state.visits.clear()
        state.visits.update(visits)
        state.history[:] = history
        state.rng = rng
        state.current_element_id = current_element_id
        return service.refresh()

    @staticmethod
    def _parse_variables(raw: object) -> Dict[str, Value]:
        if not isinstance(raw, Mapping):
            raise SaveLoadError("state.variables must be an object.")
        variables: Dict[str, Value] = {}
        for name, value in raw.items():
            try:
                variables[str(name)] = coerce_literal(value, f"state.variables.{name}")
            except ValueError as exc:
                raise SaveLoadError(str(exc)) from exc
        return variables

    @staticmethod
    def _parse_visits(raw: object) -> Dict[str, int]:
        if not isinstance(raw, Mapping):
            raise SaveLoadError("state.visits must be an object.")
        visits: Dict[str, int] = {}
        for key, count in raw.items():
            if not isinstance(count, int) or isinstance(count, bool) or count < 0:
                raise SaveLoadError(f"state.visits.{key} must be a non-negative integer.")
            visits[str(key)] = count
        return visits

    @staticmethod
    def _parse_history(raw: object, service: StoryService) -> List[str]:
        if not isinstance(raw, list):
            raise SaveLoadError("state.history must be a list.")
        for entry in raw:
            if not isinstance(entry, str) or entry not in service.project.elements:
                raise SaveLoadError(f"state.history references unknown element {entry!r}.")
        return list(raw)
