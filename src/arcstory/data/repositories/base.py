"""Base repository implementation for JSON project data."""
from __future__ import annotations

from pathlib import Path
from typing import Generic, TypeVar

from arcstory.data.errors import DataValidationError
from arcstory.data.json_loader import load_json

T = TypeVar("T")


class RepositoryBase(Generic[T]):
    """Common caching and loading behavior for repositories."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._loaded: T | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, object]:
        raw = load_json(self._path)
        if not isinstance(raw, dict):
            raise DataValidationError(f"Expected top-level object in {self._path}")
        return raw

    def _build(self, raw: dict[str, object]) -> T:
        """Convert a raw dict into typed definitions."""
        raise NotImplementedError

    def load(self) -> T:
        """Return the parsed definitions, loading them on first use."""
        if self._loaded is None:
            self._loaded = self._build(self._load_raw())
        return self._loaded

    @staticmethod
    def _require_mapping(value: object, context: str) -> dict[str, object]:
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object/dict.")
        return value

    @staticmethod
    def _optional_mapping(value: object, context: str) -> dict[str, object]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object/dict if provided.")
        return value

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string.")
        return value

    @staticmethod
    def _optional_str(value: object, context: str) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string if provided.")
        return value
