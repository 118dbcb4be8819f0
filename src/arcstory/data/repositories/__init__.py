"""Repository exports."""

from .project_repo import ProjectRepository

__all__ = ["ProjectRepository"]
