"""Service layer exports."""

from .choice_resolver import Choice, ChoiceResolver
from .errors import CyclicGraphError, SaveLoadError
from .save_service import SaveService
from .story_graph_validator import Issue, format_issue, validate_project
from .story_service import StoryNodeView, StoryService

__all__ = [
    "Choice",
    "ChoiceResolver",
    "CyclicGraphError",
    "Issue",
    "SaveLoadError",
    "SaveService",
    "StoryNodeView",
    "StoryService",
    "format_issue",
    "validate_project",
]
