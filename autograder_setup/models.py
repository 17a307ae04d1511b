"""Core data models shared across autograder-setup components."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

ROOT_MANIFEST = "Cargo.toml"
DESCRIPTION_PLACEHOLDER = "##"


@dataclass(frozen=True)
class SourceFile:
    """A Rust source file and the nearest enclosing Cargo manifest."""

    path: Path
    manifest_path: Optional[Path] = None


@dataclass(frozen=True)
class DiscoveredTest:
    """A test function found by an extractor."""

    name: str
    documentation: str = ""
    manifest_path: Optional[Path] = None


@dataclass(frozen=True)
class CargoTest:
    build_unit: Optional[str] = None

    type_name = "cargo_test"


@dataclass(frozen=True)
class Clippy:
    build_unit: Optional[str] = None

    type_name = "clippy"


@dataclass(frozen=True)
class CommitCount:
    min_commits: int

    type_name = "commit_count"


@dataclass(frozen=True)
class BranchCount:
    min_branches: int

    type_name = "branch_count"


@dataclass(frozen=True)
class TestCount:
    min_tests: int
    build_unit: Optional[str] = None

    type_name = "test_count"
    __test__ = False


CheckKind = Union[CargoTest, Clippy, CommitCount, BranchCount, TestCount]

CHECK_KINDS: dict[str, type] = {
    kind.type_name: kind for kind in (CargoTest, Clippy, CommitCount, BranchCount, TestCount)
}


@dataclass(frozen=True)
class Check:
    """One gradable unit of the manifest: a test run, a lint pass or a threshold."""

    name: str
    description: str
    points: int
    timeout: int
    kind: CheckKind

    @property
    def type_name(self) -> str:
        return self.kind.type_name

    @property
    def build_unit(self) -> Optional[str]:
        return getattr(self.kind, "build_unit", None)

    @property
    def threshold(self) -> Optional[int]:
        """Return the typed threshold of commit, branch and test-count checks."""
        if isinstance(self.kind, CommitCount):
            return self.kind.min_commits
        if isinstance(self.kind, BranchCount):
            return self.kind.min_branches
        if isinstance(self.kind, TestCount):
            return self.kind.min_tests
        return None


__all__ = [
    "BranchCount",
    "CHECK_KINDS",
    "CargoTest",
    "Check",
    "CheckKind",
    "Clippy",
    "CommitCount",
    "DESCRIPTION_PLACEHOLDER",
    "DiscoveredTest",
    "ROOT_MANIFEST",
    "SourceFile",
    "TestCount",
]
