"""JSON reading for project exports."""
from __future__ import annotations

import json
from pathlib import Path

from .errors import DataLoadError


def _reject_constant(name: str) -> object:
    raise ValueError(f"non-standard JSON constant {name}")


def load_json(path: Path | str) -> object:
    """Read a JSON document, accepting a leading byte-order mark.

    ``NaN`` and ``Infinity`` are rejected since no script value can hold them.
    Any failure surfaces as DataLoadError.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise DataLoadError(f"Project file not found: {source}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Unable to read project file {source}: {exc}") from exc

    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DataLoadError(f"Invalid JSON in {source}: {exc}") from exc
