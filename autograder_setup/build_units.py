"""Resolution of discovered tests to root-relative Cargo manifest identifiers."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Set

from .models import ROOT_MANIFEST, DiscoveredTest


def to_rel_unix_path(root: Path | str, path: Path | str) -> str:
    """Return ``path`` relative to ``root`` with forward slashes.

    Paths outside ``root`` are kept as given, only their separators change.
    """
    root_path = Path(root)
    candidate = Path(path)
    try:
        relative = candidate.relative_to(root_path)
    except ValueError:
        return str(path).replace("\\", "/")
    return relative.as_posix()


def is_root_unit(build_unit: Optional[str]) -> bool:
    return build_unit in (None, "", ".", ROOT_MANIFEST)


def unit_for_test(test: DiscoveredTest, root: Path | str) -> str:
    manifest = test.manifest_path if test.manifest_path is not None else Path(ROOT_MANIFEST)
    return to_rel_unix_path(root, manifest)


def resolve_build_unit(test: DiscoveredTest, root: Path | str) -> Optional[str]:
    """Return the test's build unit, or ``None`` when it belongs to the root."""
    unit = unit_for_test(test, root)
    return None if is_root_unit(unit) else unit


def distinct_build_units(tests: Iterable[DiscoveredTest], root: Path | str) -> Set[str]:
    """Return the deduplicated set of manifest paths the tests belong to.

    Tests without a manifest count as belonging to the root ``Cargo.toml``.
    """
    return {unit_for_test(test, root) for test in tests}


def sorted_build_units(tests: Iterable[DiscoveredTest], root: Path | str) -> List[str]:
    return sorted(distinct_build_units(tests, root))


def label(build_unit: str) -> str:
    """Return ``"."`` for the root manifest, else the manifest's directory name."""
    if build_unit == ROOT_MANIFEST:
        return "."
    parent = PurePosixPath(build_unit.replace("\\", "/")).parent
    return parent.name or "."


__all__ = [
    "distinct_build_units",
    "is_root_unit",
    "label",
    "resolve_build_unit",
    "sorted_build_units",
    "to_rel_unix_path",
    "unit_for_test",
]
