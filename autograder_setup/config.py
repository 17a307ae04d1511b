"""Run configuration for autograder-setup (CLI flags plus .autograder.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".autograder.yml"

DEFAULT_POINTS = 1
DEFAULT_TIMEOUT = 10


@dataclass
class RunConfig:
    """Settings for one ``init`` run; read-only once the pipeline starts."""

    root: Path = field(default_factory=lambda: Path("."))
    tests_dir: Optional[Path] = None
    points: int = DEFAULT_POINTS
    timeout: int = DEFAULT_TIMEOUT
    style_check: bool = True
    commit_counts: bool = True
    require_commits: List[int] = field(default_factory=list)
    num_commit_checks: Optional[int] = None
    require_branches: List[int] = field(default_factory=list)
    require_tests: int = 0
    extractor: str = "tree_sitter"

    def with_overrides(self, overrides: Mapping[str, Any]) -> "RunConfig":
        """Return a copy with every non-``None`` override applied."""
        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def load_config(root: Path) -> RunConfig:
    """Load ``.autograder.yml`` from ``root``; defaults when it is absent."""
    root_path = Path(root).expanduser()
    config_file = root_path / CONFIG_FILENAME
    base = RunConfig(root=root_path)
    if not config_file.exists():
        return base

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    overrides: Dict[str, Any] = {}
    tests_dir = _as_str(data.get("tests_dir"))
    if tests_dir is not None:
        overrides["tests_dir"] = Path(tests_dir)
    overrides["points"] = _as_non_negative_int(data.get("points"), "points")
    overrides["timeout"] = _as_non_negative_int(data.get("timeout"), "timeout")
    overrides["style_check"] = _as_bool(data.get("style_check"))
    overrides["commit_counts"] = _as_bool(data.get("commit_counts"))
    overrides["num_commit_checks"] = _as_non_negative_int(
        data.get("num_commit_checks"), "num_commit_checks"
    )
    overrides["require_tests"] = _as_non_negative_int(data.get("require_tests"), "require_tests")
    overrides["extractor"] = _as_str(data.get("extractor"))
    if "require_commits" in data:
        overrides["require_commits"] = _as_int_list(data.get("require_commits"), "require_commits")
    if "require_branches" in data:
        overrides["require_branches"] = _as_int_list(data.get("require_branches"), "require_branches")

    return base.with_overrides(overrides)


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_non_negative_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"'{key}' must be a non-negative integer")
    try:
        number = int(value)
    except ValueError as exc:
        raise ConfigError(f"'{key}' must be a non-negative integer") from exc
    if number < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer")
    return number


def _as_int_list(value: Any, key: str) -> List[int]:
    if value is None:
        return []
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        value = [value]
    if not isinstance(value, Sequence):
        raise ConfigError(f"'{key}' must be a list of non-negative integers")
    result: List[int] = []
    for item in value:
        number = _as_non_negative_int(item, key)
        if number is not None:
            result.append(number)
    return result


__all__ = ["CONFIG_FILENAME", "ConfigError", "RunConfig", "load_config"]
