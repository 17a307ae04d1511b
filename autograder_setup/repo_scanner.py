"""Source tree walking with workspace-aware Cargo manifest tracking."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .errors import NotFoundError
from .logging import get_logger
from .models import ROOT_MANIFEST, SourceFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".autograder",
    "target",
    "node_modules",
}

_SOURCE_SUFFIX = ".rs"

logger = get_logger("repo_scanner")


def resolve_start_dir(root: Path, start_dir: Path | str | None) -> Path:
    """Return the directory to scan, never joining a degenerate path onto root."""
    if start_dir is None:
        return root
    start = Path(start_dir).expanduser()
    if str(start) in {"", "."}:
        return root
    if start.is_absolute():
        return root if _same_path(start, root) else start
    return root / start


def _same_path(left: Path, right: Path) -> bool:
    try:
        return left.resolve() == right.resolve()
    except OSError:
        return left == right


def _raise_walk_error(error: OSError) -> None:
    path = error.filename or "."
    raise NotFoundError(path, f"Cannot read directory {path}: {error.strerror or error}") from error


def _seed_manifest(root: Path, start: Path) -> Optional[Path]:
    """Return the innermost manifest between root and start (exclusive of start)."""
    try:
        relative = start.relative_to(root)
    except ValueError:
        return None

    current: Optional[Path] = None
    directory = root
    for part in relative.parts:
        candidate = directory / ROOT_MANIFEST
        if candidate.is_file():
            current = candidate
        directory = directory / part
    return current


def _iter_source_files(start: Path, seed: Optional[Path]) -> Iterator[SourceFile]:
    manifests: Dict[Path, Optional[Path]] = {}
    for dirpath, dirnames, filenames in os.walk(start, onerror=_raise_walk_error):
        current_dir = Path(dirpath)
        if current_dir == start:
            current = seed
        else:
            current = manifests.get(current_dir.parent, seed)

        if ROOT_MANIFEST in filenames:
            current = current_dir / ROOT_MANIFEST
        manifests[current_dir] = current

        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

        for filename in sorted(filenames):
            if not filename.endswith(_SOURCE_SUFFIX):
                continue
            yield SourceFile(path=current_dir / filename, manifest_path=current)


def walk(root: Path | str, start_dir: Path | str | None = None) -> List[SourceFile]:
    """Return every Rust source file under ``start_dir`` with its nearest manifest.

    ``start_dir`` is interpreted relative to ``root``; ``None`` or ``"."`` scans
    the root itself. Manifests found on the way down from ``root`` shadow their
    ancestors, so a workspace member's files carry the member's ``Cargo.toml``.
    """
    root_path = Path(root).expanduser()
    start = resolve_start_dir(root_path, start_dir)
    if not start.exists():
        raise NotFoundError(start)
    if not start.is_dir():
        raise NotFoundError(start, f"Expected a directory at {start}")

    seed = _seed_manifest(root_path, start)
    files = list(_iter_source_files(start, seed))
    logger.debug("Collected %d source files under %s", len(files), start)
    return files


__all__ = ["resolve_start_dir", "walk"]
