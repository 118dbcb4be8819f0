"""Helpers for resolving project file locations."""
from __future__ import annotations

from pathlib import Path

SAMPLE_PROJECT_NAME = "sample.json"


def get_repo_root() -> Path:
    """Return the repository root."""
    return Path(__file__).resolve().parents[3]


def get_projects_path(base_path: Path | str | None = None) -> Path:
    """Return the directory containing bundled project exports."""
    if base_path is not None:
        return Path(base_path)
    return get_repo_root() / "data" / "projects"


def get_sample_project_path() -> Path:
    return get_projects_path() / SAMPLE_PROJECT_NAME
