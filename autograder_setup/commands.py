"""Command lines and descriptions rendered from checks."""

from __future__ import annotations

import re
from typing import Optional

from .build_units import is_root_unit
from .models import (
    DESCRIPTION_PLACEHOLDER,
    BranchCount,
    CargoTest,
    Check,
    Clippy,
    CommitCount,
    TestCount,
)
from .scripts import BRANCH_COUNT_SCRIPT, COMMIT_COUNT_SCRIPT, script_path

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def manifest_flag(build_unit: Optional[str]) -> Optional[str]:
    if is_root_unit(build_unit):
        return None
    return f"--manifest-path {build_unit.strip()}"  # type: ignore[union-attr]


def cargo_test_command(name: str, build_unit: Optional[str] = None) -> str:
    flag = manifest_flag(build_unit)
    if flag is None:
        return f"cargo test {name.strip()}"
    return f"cargo test {name.strip()} {flag}"


def clippy_command(build_unit: Optional[str] = None) -> str:
    flag = manifest_flag(build_unit)
    if flag is None:
        return "cargo clippy -- -D warnings"
    return f"cargo clippy {flag} -- -D warnings"


def commit_count_command(min_commits: int) -> str:
    return f"bash {script_path(COMMIT_COUNT_SCRIPT)} {min_commits}"


def branch_count_command(min_branches: int) -> str:
    return f"bash {script_path(BRANCH_COUNT_SCRIPT)} {min_branches}"


def required_tests_command(min_tests: int, build_unit: Optional[str] = None) -> str:
    """Return a pipeline counting listed tests and failing below ``min_tests``."""
    flag = manifest_flag(build_unit)
    listing = "cargo test -- --list" if flag is None else f"cargo test {flag} -- --list"
    return (
        f"COUNT=$({listing} 2>/dev/null | grep -c ': test$'); "
        f'if [ "$COUNT" -lt {min_tests} ]; then '
        f'echo "Too few tests ($COUNT) expected {min_tests}"; exit 1; fi'
    )


def command(check: Check) -> str:
    """Return the literal shell command that grades ``check``."""
    kind = check.kind
    if isinstance(kind, CargoTest):
        return cargo_test_command(check.name, kind.build_unit)
    if isinstance(kind, Clippy):
        return clippy_command(kind.build_unit)
    if isinstance(kind, CommitCount):
        return commit_count_command(kind.min_commits)
    if isinstance(kind, BranchCount):
        return branch_count_command(kind.min_branches)
    if isinstance(kind, TestCount):
        return required_tests_command(kind.min_tests, kind.build_unit)
    raise TypeError(f"Unsupported check kind: {type(kind).__name__}")


def description(check: Check) -> str:
    """Return the description with the threshold placeholder filled in."""
    threshold = check.threshold
    if threshold is None:
        return check.description
    return check.description.replace(DESCRIPTION_PLACEHOLDER, str(threshold))


def slug(name: str) -> str:
    """Lowercase ``name`` and collapse non-alphanumeric runs to single hyphens.

    Only ASCII letters and digits survive; everything else is a separator.
    """
    return _NON_ALNUM.sub("-", name).lower().strip("-")


__all__ = [
    "branch_count_command",
    "cargo_test_command",
    "clippy_command",
    "command",
    "commit_count_command",
    "description",
    "manifest_flag",
    "slug",
    "required_tests_command",
]
