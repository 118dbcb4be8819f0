"""Static project graph validation utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from arcstory.core.types import Severity
from arcstory.domain.defs import BranchDef, ProjectDef
from arcstory.script.errors import ParseError
from arcstory.script.interpreter import check_script
from arcstory.script.parser import parse_expression


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str]


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def validate_project(project: ProjectDef, *, check_scripts: bool = True) -> list[Issue]:
    """Return every structural problem found in a project."""
    issues: list[Issue] = []
    if not project.starting_element_id or project.starting_element_id not in project.elements:
        issues.append(
            Issue(
                severity="ERROR",
                code="MISSING_START",
                message="Project has no valid starting element.",
                context={"referenced_id": project.starting_element_id or ""},
            )
        )
    _validate_element_outputs(project, issues)
    _validate_connections(project, issues)
    for branch in project.branches.values():
        _validate_branch(project, branch, issues)
    for jumper in project.jumpers.values():
        if jumper.target_id not in project.elements:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_JUMPER_TARGET",
                    message="Jumper targets a missing element.",
                    context={"jumper_id": jumper.id, "referenced_id": jumper.target_id},
                )
            )
    _validate_branch_cycles(project, issues)
    _validate_reachability(project, issues)
    if check_scripts:
        _validate_scripts(project, issues)
    return issues


def _validate_element_outputs(project: ProjectDef, issues: list[Issue]) -> None:
    for element in project.elements.values():
        for index, connection_id in enumerate(element.output_ids):
            connection = project.connections.get(connection_id)
            if connection is None:
                issues.append(
                    Issue(
                        severity="ERROR",
                        code="MISSING_CONNECTION_REF",
                        message="Element output references missing connection.",
                        context={
                            "element_id": element.id,
                            "field_path": f"outputs[{index}]",
                            "referenced_id": connection_id,
                        },
                    )
                )
            elif connection.source_id != element.id:
                issues.append(
                    Issue(
                        severity="WARN",
                        code="CONNECTION_SOURCE_MISMATCH",
                        message="Connection is listed as an output of an element it does not leave.",
                        context={"element_id": element.id, "connection_id": connection_id},
                    )
                )


def _validate_connections(project: ProjectDef, issues: list[Issue]) -> None:
    for connection in project.connections.values():
        if project.kind_of(connection.target_id) not in ("element", "branch", "jumper"):
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_TARGET",
                    message="Connection targets a missing element, branch or jumper.",
                    context={"connection_id": connection.id, "referenced_id": connection.target_id},
                )
            )


def _validate_branch(project: ProjectDef, branch: BranchDef, issues: list[Issue]) -> None:
    if not branch.condition_ids:
        issues.append(
            Issue(
                severity="WARN",
                code="EMPTY_BRANCH",
                message="Branch has no conditions and never produces a choice.",
                context={"branch_id": branch.id},
            )
        )
        return
    last_index = len(branch.condition_ids) - 1
    for index, condition_id in enumerate(branch.condition_ids):
        condition = project.conditions.get(condition_id)
        if condition is None:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_CONDITION_REF",
                    message="Branch references missing condition.",
                    context={"branch_id": branch.id, "referenced_id": condition_id},
                )
            )
            continue
        if condition.output_id not in project.connections:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_CONDITION_OUTPUT",
                    message="Condition output references missing connection.",
                    context={"condition_id": condition.id, "referenced_id": condition.output_id},
                )
            )
        if condition.is_unconditional and index != last_index:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="ELSE_NOT_LAST",
                    message="Unconditional condition must be the last entry of its branch.",
                    context={"branch_id": branch.id, "condition_id": condition.id},
                )
            )


def _branch_successors(project: ProjectDef) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {}
    for branch in project.branches.values():
        targets: List[str] = []
        for condition_id in branch.condition_ids:
            condition = project.conditions.get(condition_id)
            if condition is None:
                continue
            connection = project.connections.get(condition.output_id)
            if connection is not None and connection.target_id in project.branches:
                targets.append(connection.target_id)
        adjacency[branch.id] = targets
    return adjacency


def _validate_branch_cycles(project: ProjectDef, issues: list[Issue]) -> None:
    adjacency = _branch_successors(project)
    visited: set[str] = set()
    stack: list[str] = []
    stack_set: set[str] = set()
    cycles: list[list[str]] = []

    def dfs(current: str) -> None:
        visited.add(current)
        stack.append(current)
        stack_set.add(current)
        for next_branch in adjacency.get(current, []):
            if next_branch not in visited:
                dfs(next_branch)
            elif next_branch in stack_set:
                cycles.append(stack[stack.index(next_branch) :])
        stack.pop()
        stack_set.remove(current)

    for branch_id in sorted(adjacency):
        if branch_id not in visited:
            dfs(branch_id)

    for cycle in cycles:
        issues.append(
            Issue(
                severity="ERROR",
                code="BRANCH_CYCLE",
                message="Branch conditions loop back without reaching an element.",
                context={"cycle": " -> ".join(cycle + [cycle[0]])},
            )
        )


def _connection_targets(project: ProjectDef, connection_ids: Sequence[str]) -> list[str]:
    return [
        project.connections[connection_id].target_id
        for connection_id in connection_ids
        if connection_id in project.connections
    ]


def _validate_reachability(project: ProjectDef, issues: list[Issue]) -> None:
    reachable: set[str] = set()
    stack: list[str] = []
    if project.starting_element_id in project.elements:
        stack.append(project.starting_element_id)  # type: ignore[arg-type]
    while stack:
        object_id = stack.pop()
        if object_id in reachable:
            continue
        reachable.add(object_id)
        kind = project.kind_of(object_id)
        if kind == "element":
            stack.extend(_connection_targets(project, project.elements[object_id].output_ids))
        elif kind == "jumper":
            stack.append(project.jumpers[object_id].target_id)
        elif kind == "branch":
            outputs = [
                project.conditions[condition_id].output_id
                for condition_id in project.branches[object_id].condition_ids
                if condition_id in project.conditions
            ]
            stack.extend(_connection_targets(project, outputs))
    for element_id in sorted(set(project.elements) - reachable):
        issues.append(
            Issue(
                severity="WARN",
                code="UNREACHABLE_NODE",
                message="Element is unreachable from the starting element.",
                context={"element_id": element_id},
            )
        )


def _validate_scripts(project: ProjectDef, issues: list[Issue]) -> None:
    sources: Mapping[str, str] = {
        **{element.id: element.content for element in project.elements.values()},
        **{connection.id: connection.label for connection in project.connections.values()},
    }
    for source_id, script in sources.items():
        for diagnostic in check_script(script, source_id):
            context = {"source_id": source_id}
            if diagnostic.line is not None:
                context["line"] = str(diagnostic.line)
            issues.append(
                Issue(severity="WARN", code=diagnostic.code, message=diagnostic.message, context=context)
            )
    for condition in project.conditions.values():
        if condition.is_unconditional:
            continue
        try:
            parse_expression(condition.script or "")
        except ParseError as exc:
            issues.append(
                Issue(
                    severity="WARN",
                    code=exc.code,
                    message=str(exc),
                    context={"condition_id": condition.id},
                )
            )
