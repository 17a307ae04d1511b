"""Pipeline orchestration for init/build/table/reset flows."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .config import RunConfig, load_config
from .errors import ManifestIOError, NoTestsFoundError, NotFoundError, ParseError
from .extractors import TestExtractor, get_extractor
from .logging import get_logger
from .manifest import load_manifest, write_manifest
from .models import Check, DiscoveredTest, SourceFile
from .repo_scanner import walk
from .scripts import AUTOGRADER_DIR, write_helper_scripts
from .synthesis import synthesize
from .table import markdown_table
from .workflow import workflow_path, write_workflow


@dataclass
class InitOutcome:
    """Result of an init run."""

    manifest_path: Path
    tests: List[DiscoveredTest]
    checks: List[Check]


@dataclass
class BuildOutcome:
    """Result of a build run."""

    workflow_path: Path
    scripts: List[Path]
    steps: int


class Orchestrator:
    """Coordinates the scan, synthesis and workflow pipelines."""

    def __init__(self, extractor: TestExtractor | None = None) -> None:
        self._extractor_override = extractor
        self.logger = get_logger("orchestrator")

    def run_init(
        self, path: str | Path, overrides: Optional[Mapping[str, Any]] = None
    ) -> InitOutcome:
        """Scan ``path`` for tests and write the check manifest."""
        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            raise NotFoundError(root)
        self.logger.info("Starting init run for %s", root)

        config = load_config(root).with_overrides(dict(overrides or {}))
        extractor = self._resolve_extractor(config)

        files = sorted(walk(root, config.tests_dir), key=lambda item: item.path.as_posix())
        self.logger.debug("Scanner discovered %d Rust files", len(files))

        tests: List[DiscoveredTest] = []
        for source_file in files:
            tests.extend(self._extract_file(extractor, source_file))
        if not tests:
            raise NoTestsFoundError(f"No tests found under {root}")
        self.logger.info("Discovered %d tests in %d files", len(tests), len(files))

        checks = synthesize(tests, config)
        manifest = write_manifest(root, checks)
        return InitOutcome(manifest_path=manifest, tests=tests, checks=checks)

    def run_build(self, path: str | Path, *, on_push: bool = False) -> BuildOutcome:
        """Compile the manifest under ``path`` into a workflow file."""
        root = Path(path).expanduser().resolve()
        self.logger.info("Starting build run for %s", root)
        checks = load_manifest(root)
        if not checks:
            raise NoTestsFoundError(
                "The manifest contains no checks; add tests and run `autograder-setup init`"
            )
        graded = [check for check in checks if check.points > 0]
        scripts = write_helper_scripts(root, graded)
        target = write_workflow(root, checks, on_push=on_push)
        self.logger.debug("Emitted %d grading steps", len(graded))
        return BuildOutcome(workflow_path=target, scripts=scripts, steps=len(graded))

    def run_table(self, path: str | Path) -> str:
        root = Path(path).expanduser().resolve()
        return markdown_table(load_manifest(root))

    def run_reset(self, path: str | Path) -> List[Path]:
        """Delete generated files; returns what was removed."""
        root = Path(path).expanduser().resolve()
        removed: List[Path] = []
        autograder_dir = root / AUTOGRADER_DIR
        workflow = workflow_path(root)
        try:
            if autograder_dir.is_dir():
                shutil.rmtree(autograder_dir)
                removed.append(autograder_dir)
            if workflow.is_file():
                workflow.unlink()
                removed.append(workflow)
        except OSError as exc:
            raise ManifestIOError(exc.filename or root, str(exc), action="delete") from exc
        for item in removed:
            self.logger.info("Deleted %s", item)
        return removed

    def _resolve_extractor(self, config: RunConfig) -> TestExtractor:
        if self._extractor_override is not None:
            return self._extractor_override
        return get_extractor(config.extractor)

    def _extract_file(self, extractor: TestExtractor, source_file: SourceFile) -> List[DiscoveredTest]:
        try:
            source = source_file.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"file is not valid UTF-8 ({exc.reason})", source_file.path) from exc
        except OSError as exc:
            raise ParseError(f"file could not be read ({exc.strerror or exc})", source_file.path) from exc
        try:
            found = extractor.extract(source)
        except ParseError as exc:
            raise exc.with_path(source_file.path) from exc
        if found:
            self.logger.debug("Found %d tests in %s", len(found), source_file.path)
        return [
            DiscoveredTest(
                name=test.name,
                documentation=test.documentation,
                manifest_path=source_file.manifest_path,
            )
            for test in found
        ]


__all__ = ["BuildOutcome", "InitOutcome", "Orchestrator"]
