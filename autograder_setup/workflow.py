"""Compilation of checks into a GitHub Classroom workflow document."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

import yaml

from .build_units import is_root_unit, label
from .commands import command, slug
from .errors import ManifestIOError, NoTestsFoundError
from .logging import get_logger
from .models import Check

WORKFLOW_RELATIVE_PATH = Path(".github") / "workflows" / "classroom.yml"

YAML_INDENT = "  "
STEP_INDENT_LEVEL = 3

COMMAND_GRADER = "classroom-resources/autograding-command-grader@v1"
GRADING_REPORTER = "classroom-resources/autograding-grading-reporter@v1"
REPORTER_NAME = "Autograding Reporter"

_PREAMBLE_TEMPLATE = """name: Autograding Tests
on: [{triggers}]

permissions:
  checks: write
  actions: read
  contents: read

jobs:
  run-autograding-tests:
    runs-on: ubuntu-latest
    if: github.actor != 'github-classroom[bot]'
    steps:
      - name: Checkout code
        uses: actions/checkout@v4
        with:
          # Full history so commit and branch counts are accurate.
          fetch-depth: 0

      - name: Install Rust toolchain
        uses: dtolnay/rust-toolchain@stable
        with:
          components: clippy,rustfmt

"""

logger = get_logger("workflow")


@dataclass(frozen=True)
class GradingStep:
    """One command-grader step derived from a check."""

    id: str
    check: Check

    @property
    def env_key(self) -> str:
        return f"{self.id.upper()}_RESULTS"


def indent(lines: Iterable[str], level: int) -> List[str]:
    """Prefix every line with ``level`` YAML indentation units."""
    prefix = YAML_INDENT * level
    return [f"{prefix}{line}" for line in lines]


def yaml_quote(value: str) -> str:
    """Return ``value`` as a double-quoted YAML scalar."""
    dumped = yaml.safe_dump(value, default_style='"', width=float("inf"), allow_unicode=True)
    return dumped.removesuffix("\n...\n").rstrip("\n")


def preamble(on_push: bool = False) -> str:
    triggers = ["repository_dispatch"]
    if on_push:
        triggers.append("push")
    return _PREAMBLE_TEMPLATE.format(triggers=", ".join(triggers))


def grading_steps(checks: Iterable[Check]) -> List[GradingStep]:
    """Return one step per positive-point check with a unique id.

    Zero-point checks stay in the manifest but never become steps. Colliding
    ids take the build-unit label as a suffix, then a numeric counter.
    """
    steps: List[GradingStep] = []
    used: set[str] = set()
    for check in checks:
        if check.points <= 0:
            logger.debug("Skipping zero-point check %s", check.name)
            continue
        step_id = _unique_id(check, used)
        used.add(step_id)
        steps.append(GradingStep(id=step_id, check=check))
    return steps


def _unique_id(check: Check, used: set[str]) -> str:
    base = slug(check.name) or "check"
    if base not in used:
        return base
    if not is_root_unit(check.build_unit):
        labelled = f"{base}-{slug(label(check.build_unit or ''))}".rstrip("-")
        if labelled not in used:
            return labelled
        base = labelled
    counter = 2
    while f"{base}-{counter}" in used:
        counter += 1
    return f"{base}-{counter}"


def step_lines(step: GradingStep) -> List[str]:
    check = step.check
    name = check.name.strip()
    lines = [f"- name: {yaml_quote(name)}"]
    lines += indent(
        [
            f"id: {yaml_quote(step.id)}",
            f"uses: {yaml_quote(COMMAND_GRADER)}",
            "with:",
        ],
        1,
    )
    lines += indent(
        [
            f"test-name: {yaml_quote(name)}",
            f"setup-command: {yaml_quote('')}",
            f"command: {yaml_quote(command(check))}",
            f"timeout: {check.timeout}",
            f"max-score: {check.points}",
        ],
        2,
    )
    return lines


def reporter_lines(steps: Sequence[GradingStep]) -> List[str]:
    lines = [f"- name: {REPORTER_NAME}"]
    lines += indent([f"uses: {GRADING_REPORTER}", "env:"], 1)
    lines += indent(
        [f'{step.env_key}: "${{{{ steps.{step.id}.outputs.result }}}}"' for step in steps],
        2,
    )
    lines += indent(["with:"], 1)
    lines += indent([f"runners: {','.join(step.id for step in steps)}"], 2)
    return lines


def compile_workflow(checks: Iterable[Check], on_push: bool = False) -> str:
    """Return the complete workflow YAML for ``checks``."""
    steps = grading_steps(checks)
    body: List[str] = []
    for step in steps:
        body += indent(step_lines(step), STEP_INDENT_LEVEL)
        body.append("")
    body += indent(reporter_lines(steps), STEP_INDENT_LEVEL)
    return preamble(on_push) + "\n".join(body) + "\n"


def workflow_path(root: Path | str) -> Path:
    return Path(root) / WORKFLOW_RELATIVE_PATH


def write_workflow(root: Path | str, checks: Sequence[Check], on_push: bool = False) -> Path:
    """Compile ``checks`` and write the result to ``.github/workflows/classroom.yml``."""
    if not checks:
        raise NoTestsFoundError(
            "The manifest contains no checks; add tests and run `autograder-setup init`"
        )
    if not any(check.points > 0 for check in checks):
        raise NoTestsFoundError("Every check in the manifest is worth 0 points; nothing to grade")
    content = compile_workflow(checks, on_push=on_push)
    target = workflow_path(root)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ManifestIOError(target, str(exc)) from exc
    logger.info("Wrote workflow to %s", target)
    return target


__all__ = [
    "COMMAND_GRADER",
    "GRADING_REPORTER",
    "GradingStep",
    "WORKFLOW_RELATIVE_PATH",
    "compile_workflow",
    "grading_steps",
    "indent",
    "preamble",
    "write_workflow",
    "workflow_path",
    "yaml_quote",
]
