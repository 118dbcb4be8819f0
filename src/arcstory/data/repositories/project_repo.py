"""Repository for Arcweave-style project exports."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from arcstory.core.values import Value
from arcstory.data.errors import DataReferenceError, DataValidationError
from arcstory.data.repositories.base import RepositoryBase
from arcstory.domain.defs import (
    BranchDef,
    ConditionDef,
    ConnectionDef,
    ElementDef,
    JumperDef,
    ProjectDef,
    VariableDef,
)

_VARIABLE_TYPES = {
    "integer": int,
    "float": float,
    "boolean": bool,
    "string": str,
}


class ProjectRepository(RepositoryBase[ProjectDef]):
    """Loads a project export and validates its structure.

    Text fields may be plain strings or ``{locale: text}`` maps; maps are
    resolved for ``locale`` (or their first entry when no locale is set).
    """

    def __init__(self, path: Path | str, locale: str | None = None) -> None:
        super().__init__(path)
        self._locale = locale

    def _build(self, raw: dict[str, object]) -> ProjectDef:
        name = self._optional_str(raw.get("name"), "project name") or self.path.stem
        starting_element_id = self._optional_str(raw.get("startingElement"), "startingElement")
        project = ProjectDef(
            name=name,
            starting_element_id=starting_element_id,
            elements=self._parse_elements(raw.get("elements")),
            connections=self._parse_connections(raw.get("connections")),
            branches=self._parse_branches(raw.get("branches")),
            conditions=self._parse_conditions(raw.get("conditions")),
            jumpers=self._parse_jumpers(raw.get("jumpers")),
            variables=self._parse_variables(raw.get("variables")),
        )
        if starting_element_id is not None and starting_element_id not in project.elements:
            raise DataReferenceError(
                f"startingElement '{starting_element_id}' does not match any element."
            )
        return project

    def _parse_elements(self, raw_elements: object) -> Dict[str, ElementDef]:
        elements: Dict[str, ElementDef] = {}
        for element_id, payload in self._optional_mapping(raw_elements, "elements").items():
            context = f"element '{element_id}'"
            data = self._require_mapping(payload, context)
            elements[element_id] = ElementDef(
                id=element_id,
                title=self._localized(data.get("title"), f"{context} title"),
                content=self._localized(data.get("content"), f"{context} content"),
                output_ids=self._str_list(data.get("outputs"), f"{context} outputs"),
            )
        return elements

    def _parse_connections(self, raw_connections: object) -> Dict[str, ConnectionDef]:
        connections: Dict[str, ConnectionDef] = {}
        for connection_id, payload in self._optional_mapping(raw_connections, "connections").items():
            context = f"connection '{connection_id}'"
            data = self._require_mapping(payload, context)
            connections[connection_id] = ConnectionDef(
                id=connection_id,
                source_id=self._require_str(data.get("sourceid"), f"{context} sourceid"),
                target_id=self._require_str(data.get("targetid"), f"{context} targetid"),
                label=self._localized(data.get("label"), f"{context} label"),
            )
        return connections

    def _parse_branches(self, raw_branches: object) -> Dict[str, BranchDef]:
        branches: Dict[str, BranchDef] = {}
        for branch_id, payload in self._optional_mapping(raw_branches, "branches").items():
            context = f"branch '{branch_id}'"
            data = self._require_mapping(payload, context)
            conditions = self._require_mapping(data.get("conditions"), f"{context} conditions")
            ordered: List[str] = []
            if_condition = self._optional_str(conditions.get("ifCondition"), f"{context} ifCondition")
            if if_condition:
                ordered.append(if_condition)
            ordered.extend(
                self._str_list(conditions.get("elseIfConditions"), f"{context} elseIfConditions")
            )
            else_condition = self._optional_str(
                conditions.get("elseCondition"), f"{context} elseCondition"
            )
            if else_condition:
                ordered.append(else_condition)
            branches[branch_id] = BranchDef(id=branch_id, condition_ids=ordered)
        return branches

    def _parse_conditions(self, raw_conditions: object) -> Dict[str, ConditionDef]:
        conditions: Dict[str, ConditionDef] = {}
        for condition_id, payload in self._optional_mapping(raw_conditions, "conditions").items():
            context = f"condition '{condition_id}'"
            data = self._require_mapping(payload, context)
            conditions[condition_id] = ConditionDef(
                id=condition_id,
                output_id=self._require_str(data.get("output"), f"{context} output"),
                script=self._optional_str(data.get("script"), f"{context} script"),
            )
        return conditions

    def _parse_jumpers(self, raw_jumpers: object) -> Dict[str, JumperDef]:
        jumpers: Dict[str, JumperDef] = {}
        for jumper_id, payload in self._optional_mapping(raw_jumpers, "jumpers").items():
            context = f"jumper '{jumper_id}'"
            data = self._require_mapping(payload, context)
            jumpers[jumper_id] = JumperDef(
                id=jumper_id,
                target_id=self._require_str(data.get("elementId"), f"{context} elementId"),
            )
        return jumpers

    def _parse_variables(self, raw_variables: object) -> Dict[str, VariableDef]:
        variables: Dict[str, VariableDef] = {}
        seen_names: set[str] = set()
        for variable_id, payload in self._optional_mapping(raw_variables, "variables").items():
            context = f"variable '{variable_id}'"
            data = self._require_mapping(payload, context)
            name = self._optional_str(data.get("name"), f"{context} name") or variable_id
            if name in seen_names:
                raise DataValidationError(f"Duplicate variable name '{name}'.")
            seen_names.add(name)
            var_type = self._require_str(data.get("type"), f"{context} type")
            variables[variable_id] = VariableDef(
                id=variable_id,
                name=name,
                type=var_type,
                value=self._typed_value(data.get("value"), var_type, context),
            )
        return variables

    @staticmethod
    def _typed_value(value: object, var_type: str, context: str) -> Value:
        expected = _VARIABLE_TYPES.get(var_type)
        if expected is None:
            raise DataValidationError(f"{context} has unknown type '{var_type}'.")
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if expected is int and isinstance(value, bool):
            raise DataValidationError(f"{context} value must be an integer.")
        if not isinstance(value, expected):
            raise DataValidationError(f"{context} value must be of type {var_type}.")
        return value  # type: ignore[return-value]

    def _localized(self, value: object, context: str) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be a string or a locale map.")
        if self._locale is not None:
            text = value.get(self._locale, "")
        else:
            text = next(iter(value.values()), "")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise DataValidationError(f"{context} entries must be strings.")
        return text

    @staticmethod
    def _str_list(value: object, context: str) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
            raise DataValidationError(f"{context} must be a list of strings if provided.")
        return list(value)
