"""Derivation of the typed check set from discovered tests and run configuration."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Optional, Sequence

from .build_units import is_root_unit, label, resolve_build_unit, sorted_build_units
from .config import RunConfig
from .logging import get_logger
from .models import (
    DESCRIPTION_PLACEHOLDER,
    BranchCount,
    CargoTest,
    Check,
    Clippy,
    CommitCount,
    DiscoveredTest,
    TestCount,
)

CLIPPY_NAME = "CLIPPY_STYLE_CHECK"
COMMIT_COUNT_PREFIX = "COMMIT_COUNT"
BRANCH_COUNT_PREFIX = "BRANCH_COUNT"
TEST_COUNT_NAME = "TEST_COUNT"

COMMIT_COUNT_DESCRIPTION = f"Ensures at least {DESCRIPTION_PLACEHOLDER} commits."
BRANCH_COUNT_DESCRIPTION = f"Ensures at least {DESCRIPTION_PLACEHOLDER} branches with commits."

logger = get_logger("synthesis")


@dataclass(frozen=True)
class CommitInputs:
    enabled: bool
    explicit: Sequence[int]
    legacy: Optional[int]


@dataclass(frozen=True)
class ThresholdRule:
    """One row of the commit-threshold decision table."""

    name: str
    applies: Callable[[CommitInputs], bool]
    resolve: Callable[[CommitInputs], List[int]]


# Evaluated top to bottom; the first rule that applies decides.
COMMIT_THRESHOLD_RULES: Sequence[ThresholdRule] = (
    ThresholdRule("disabled", lambda inputs: not inputs.enabled, lambda inputs: []),
    ThresholdRule("explicit", lambda inputs: bool(inputs.explicit), lambda inputs: list(inputs.explicit)),
    ThresholdRule(
        "legacy",
        lambda inputs: inputs.legacy is not None,
        lambda inputs: list(range(1, (inputs.legacy or 0) + 1)),
    ),
    ThresholdRule("default", lambda inputs: True, lambda inputs: [1]),
)


def resolve_commit_thresholds(
    *, enabled: bool, explicit: Sequence[int] = (), legacy: Optional[int] = None
) -> List[int]:
    """Return commit thresholds following ``COMMIT_THRESHOLD_RULES``."""
    inputs = CommitInputs(enabled=enabled, explicit=tuple(explicit), legacy=legacy)
    for rule in COMMIT_THRESHOLD_RULES:
        if rule.applies(inputs):
            thresholds = _unique(rule.resolve(inputs))
            logger.debug("Commit thresholds resolved by '%s' rule: %s", rule.name, thresholds)
            return thresholds
    return []


def _unique(values: Iterable[int]) -> List[int]:
    seen: set[int] = set()
    ordered: List[int] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def cargo_test_checks(
    tests: Iterable[DiscoveredTest], root: Path | str, *, points: int, timeout: int
) -> List[Check]:
    return [
        Check(
            name=test.name,
            description=test.documentation,
            points=points,
            timeout=timeout,
            kind=CargoTest(build_unit=resolve_build_unit(test, root)),
        )
        for test in tests
    ]


def _unit_suffixes(units: Sequence[str]) -> dict[str, str]:
    """Map non-root units to an uppercase name suffix, unique across ``units``."""
    member_units = [unit for unit in units if not is_root_unit(unit)]
    label_counts = Counter(label(unit) for unit in member_units)
    suffixes: dict[str, str] = {}
    for unit in member_units:
        unit_label = label(unit)
        if label_counts[unit_label] > 1:
            unit_label = PurePosixPath(unit).parent.as_posix()
        suffixes[unit] = unit_label.upper()
    return suffixes


def clippy_checks(units: Sequence[str], *, points: int, timeout: int) -> List[Check]:
    """Return one clippy check per distinct build unit."""
    suffixes = _unit_suffixes(units)
    checks: List[Check] = []
    for unit in units:
        if is_root_unit(unit):
            checks.append(
                Check(
                    name=CLIPPY_NAME,
                    description="`cargo clippy` style check",
                    points=points,
                    timeout=timeout,
                    kind=Clippy(),
                )
            )
            continue
        checks.append(
            Check(
                name=f"{CLIPPY_NAME}_{suffixes[unit]}",
                description=f"`cargo clippy` style check for `{label(unit)}`",
                points=points,
                timeout=timeout,
                kind=Clippy(build_unit=unit),
            )
        )
    return checks


def commit_count_checks(thresholds: Sequence[int], *, points: int, timeout: int) -> List[Check]:
    return [
        Check(
            name=f"{COMMIT_COUNT_PREFIX}_{value}",
            description=COMMIT_COUNT_DESCRIPTION,
            points=points,
            timeout=timeout,
            kind=CommitCount(min_commits=value),
        )
        for value in thresholds
    ]


def branch_count_checks(thresholds: Sequence[int], *, points: int, timeout: int) -> List[Check]:
    return [
        Check(
            name=f"{BRANCH_COUNT_PREFIX}_{value}",
            description=BRANCH_COUNT_DESCRIPTION,
            points=points,
            timeout=timeout,
            kind=BranchCount(min_branches=value),
        )
        for value in thresholds
    ]


def required_test_checks(
    units: Sequence[str], required: int, *, points: int, timeout: int
) -> List[Check]:
    """Return one test-count check per build unit; none when ``required`` is 0."""
    if required <= 0:
        return []
    checks: List[Check] = []
    for unit in units:
        if is_root_unit(unit):
            checks.append(
                Check(
                    name=TEST_COUNT_NAME,
                    description=f"Submission has at least {DESCRIPTION_PLACEHOLDER} tests",
                    points=points,
                    timeout=timeout,
                    kind=TestCount(min_tests=required),
                )
            )
            continue
        checks.append(
            Check(
                name=f"{TEST_COUNT_NAME}_{unit.upper()}",
                description=f"{label(unit)} submission has at least {DESCRIPTION_PLACEHOLDER} tests",
                points=points,
                timeout=timeout,
                kind=TestCount(min_tests=required, build_unit=unit),
            )
        )
    return checks


def synthesize(tests: Sequence[DiscoveredTest], config: RunConfig) -> List[Check]:
    """Return the full check list for ``tests``.

    Order is part of the contract: per-test cargo checks, clippy, commit-count,
    branch-count, then test-count checks.
    """
    points = config.points
    timeout = config.timeout
    units = sorted_build_units(tests, config.root)

    checks = cargo_test_checks(tests, config.root, points=points, timeout=timeout)
    if config.style_check:
        checks.extend(clippy_checks(units, points=points, timeout=timeout))

    commit_thresholds = resolve_commit_thresholds(
        enabled=config.commit_counts,
        explicit=config.require_commits,
        legacy=config.num_commit_checks,
    )
    checks.extend(commit_count_checks(commit_thresholds, points=points, timeout=timeout))
    checks.extend(
        branch_count_checks(_unique(config.require_branches), points=points, timeout=timeout)
    )
    checks.extend(
        required_test_checks(units, config.require_tests, points=points, timeout=timeout)
    )

    logger.debug(
        "Synthesized %d checks from %d tests across %d build units",
        len(checks),
        len(tests),
        len(units),
    )
    return checks


__all__ = [
    "COMMIT_THRESHOLD_RULES",
    "branch_count_checks",
    "cargo_test_checks",
    "clippy_checks",
    "commit_count_checks",
    "resolve_commit_thresholds",
    "synthesize",
    "required_test_checks",
]
