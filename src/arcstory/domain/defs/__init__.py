"""Domain definition exports."""

from .project_def import (
    BranchDef,
    ConditionDef,
    ConnectionDef,
    ElementDef,
    JumperDef,
    ProjectDef,
    VariableDef,
)

__all__ = [
    "BranchDef",
    "ConditionDef",
    "ConnectionDef",
    "ElementDef",
    "JumperDef",
    "ProjectDef",
    "VariableDef",
]
