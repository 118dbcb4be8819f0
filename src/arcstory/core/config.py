"""Runtime configuration loading."""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path

CONFIG_ENV_VAR = "ARCSTORY_CONFIG"
_DEFAULT_LABEL = "Continue"
_DEFAULT_MAX_RESOLVE_DEPTH = 32
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True)
class RuntimeConfig:
    """Settings shared by the interpreter, resolver and CLI."""

    default_label: str = _DEFAULT_LABEL
    max_resolve_depth: int = _DEFAULT_MAX_RESOLVE_DEPTH
    seed: int | None = None
    locale: str | None = None
    log_level: str = "WARNING"


def get_default_config_path() -> Path:
    """Return the config path, honoring the ARCSTORY_CONFIG override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path.home() / ".config" / "arcstory" / "config.json"


def load_config(path: Path | str | None = None) -> RuntimeConfig:
    """Load config from disk or return defaults."""
    config_path = Path(path) if path is not None else get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return RuntimeConfig()
    if not isinstance(raw, dict):
        return RuntimeConfig()
    return normalize_config(raw)


def normalize_config(raw: dict[str, object]) -> RuntimeConfig:
    """Build a RuntimeConfig, replacing invalid fields with defaults."""
    label = raw.get("default_label")
    depth = raw.get("max_resolve_depth")
    seed = raw.get("seed")
    locale = raw.get("locale")
    level = raw.get("log_level")
    return RuntimeConfig(
        default_label=label if isinstance(label, str) and label else _DEFAULT_LABEL,
        max_resolve_depth=depth
        if isinstance(depth, int) and not isinstance(depth, bool) and depth > 0
        else _DEFAULT_MAX_RESOLVE_DEPTH,
        seed=seed if isinstance(seed, int) and not isinstance(seed, bool) else None,
        locale=locale if isinstance(locale, str) and locale else None,
        log_level=level.upper()
        if isinstance(level, str) and level.upper() in _VALID_LOG_LEVELS
        else "WARNING",
    )


def save_config(config: RuntimeConfig, path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(asdict(config), indent=2, sort_keys=True), encoding="utf-8")
