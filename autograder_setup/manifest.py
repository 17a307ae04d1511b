"""Persisted JSON manifest of checks (``.autograder/autograder.json``)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .errors import ManifestIOError, NotFoundError, ValidationError
from .logging import get_logger
from .models import (
    CHECK_KINDS,
    BranchCount,
    CargoTest,
    Check,
    CheckKind,
    Clippy,
    CommitCount,
    TestCount,
)
from .scripts import AUTOGRADER_DIR

MANIFEST_FILENAME = "autograder.json"

_COMMON_FIELDS = ("name", "description", "points", "timeout", "type")

# Kind-specific fields each record type may carry, and which of them are required.
_KIND_FIELDS: Dict[str, Dict[str, bool]] = {
    CargoTest.type_name: {"build_unit": False},
    Clippy.type_name: {"build_unit": False},
    CommitCount.type_name: {"min_commits": True},
    BranchCount.type_name: {"min_branches": True},
    TestCount.type_name: {"min_tests": True, "build_unit": False},
}
_THRESHOLD_FIELDS = ("min_commits", "min_branches", "min_tests")

logger = get_logger("manifest")


def manifest_path(root: Path | str) -> Path:
    return Path(root) / AUTOGRADER_DIR / MANIFEST_FILENAME


def check_to_record(check: Check) -> Dict[str, Any]:
    """Return the JSON record for ``check``; absent build units are omitted."""
    record: Dict[str, Any] = {
        "name": check.name,
        "description": check.description,
        "points": check.points,
        "timeout": check.timeout,
        "type": check.type_name,
    }
    kind = check.kind
    if isinstance(kind, CommitCount):
        record["min_commits"] = kind.min_commits
    elif isinstance(kind, BranchCount):
        record["min_branches"] = kind.min_branches
    elif isinstance(kind, TestCount):
        record["min_tests"] = kind.min_tests
    if check.build_unit is not None:
        record["build_unit"] = check.build_unit
    return record


def checks_to_records(checks: Iterable[Check]) -> List[Dict[str, Any]]:
    return [check_to_record(check) for check in checks]


def dump_manifest(checks: Iterable[Check]) -> str:
    return json.dumps(checks_to_records(checks), indent=2) + "\n"


def write_manifest(root: Path | str, checks: Iterable[Check]) -> Path:
    """Write ``checks`` to ``<root>/.autograder/autograder.json`` and return the path."""
    target = manifest_path(root)
    content = dump_manifest(checks)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ManifestIOError(target, str(exc)) from exc
    logger.info("Wrote manifest to %s", target)
    return target


def check_from_record(record: Any, index: int = 0) -> Check:
    """Validate one JSON record and return the typed check it describes."""
    if not isinstance(record, Mapping):
        raise ValidationError(f"Record {index}: expected an object")

    type_name = record.get("type")
    if not isinstance(type_name, str) or type_name not in CHECK_KINDS:
        raise ValidationError(f"Record {index}: unknown check type {type_name!r}")

    allowed = _KIND_FIELDS[type_name]
    for key in record:
        if key in _COMMON_FIELDS or key in allowed:
            continue
        if key in _THRESHOLD_FIELDS:
            raise ValidationError(f"Record {index}: '{key}' is not valid for {type_name} checks")
        raise ValidationError(f"Record {index}: unexpected field '{key}'")

    name = _require_str(record, "name", index)
    description = _require_str(record, "description", index)
    points = _require_int(record, "points", index)
    timeout = _require_int(record, "timeout", index)

    values: Dict[str, Any] = {}
    for key, required in allowed.items():
        if key not in record:
            if required:
                raise ValidationError(f"Record {index}: missing field '{key}'")
            continue
        if key == "build_unit":
            values[key] = _optional_str(record, key, index)
        else:
            values[key] = _require_int(record, key, index)

    kind: CheckKind = CHECK_KINDS[type_name](**values)
    return Check(name=name, description=description, points=points, timeout=timeout, kind=kind)


def checks_from_records(records: Any) -> List[Check]:
    if not isinstance(records, list):
        raise ValidationError("Manifest must be a JSON array of check records")
    return [check_from_record(record, index) for index, record in enumerate(records)]


def load_manifest(root: Path | str) -> List[Check]:
    """Read and validate the manifest under ``root``."""
    path = manifest_path(root)
    if not path.is_file():
        raise NotFoundError(path, f"No manifest found at {path}; run `autograder-setup init` first")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(f"{path} is not valid UTF-8: {exc.reason}") from exc
    except OSError as exc:
        raise ManifestIOError(path, str(exc), action="read") from exc
    try:
        records = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc
    checks = checks_from_records(records)
    logger.debug("Loaded %d checks from %s", len(checks), path)
    return checks


def _require_str(record: Mapping[str, Any], key: str, index: int) -> str:
    if key not in record:
        raise ValidationError(f"Record {index}: missing field '{key}'")
    value = record[key]
    if not isinstance(value, str):
        raise ValidationError(f"Record {index}: '{key}' must be a string")
    return value


def _optional_str(record: Mapping[str, Any], key: str, index: int) -> str | None:
    value = record.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Record {index}: '{key}' must be a string")
    return value


def _require_int(record: Mapping[str, Any], key: str, index: int) -> int:
    if key not in record:
        raise ValidationError(f"Record {index}: missing field '{key}'")
    value = record[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"Record {index}: '{key}' must be a non-negative integer")
    return value


__all__ = [
    "MANIFEST_FILENAME",
    "check_from_record",
    "check_to_record",
    "checks_from_records",
    "checks_to_records",
    "dump_manifest",
    "load_manifest",
    "manifest_path",
    "write_manifest",
]
