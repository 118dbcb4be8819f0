"""Data layer utilities for loading project exports."""

from .errors import DataLoadError, DataReferenceError, DataValidationError
from .paths import get_projects_path, get_repo_root, get_sample_project_path

__all__ = [
    "DataLoadError",
    "DataReferenceError",
    "DataValidationError",
    "get_projects_path",
    "get_repo_root",
    "get_sample_project_path",
]
