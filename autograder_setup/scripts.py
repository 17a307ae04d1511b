"""Helper shell scripts invoked by commit-count and branch-count checks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from .errors import ManifestIOError
from .logging import get_logger
from .models import BranchCount, Check, CommitCount

AUTOGRADER_DIR = ".autograder"

COMMIT_COUNT_SCRIPT = "commit_count.sh"
BRANCH_COUNT_SCRIPT = "branch_count.sh"

COMMIT_COUNT_SCRIPT_CONTENTS = r"""#!/usr/bin/env bash
# .autograder/commit_count.sh
set -euo pipefail

# Usage:
#   bash .autograder/commit_count.sh 3
#   MIN=3 bash .autograder/commit_count.sh

MIN="${1:-${MIN:-0}}"

if ! [[ "$MIN" =~ ^[0-9]+$ ]]; then
  echo "MIN must be a non-negative integer; got: '$MIN'" >&2
  exit 2
fi

if ! git rev-parse --git-dir >/dev/null 2>&1; then
  echo "Not a git repository (are you running inside the checkout?)" >&2
  exit 1
fi

# The workflow checks out with fetch-depth: 0; a shallow clone undercounts.
if [ -f "$(git rev-parse --git-dir)/shallow" ]; then
  echo "Warning: shallow clone detected; commit count may be incomplete." >&2
fi

COUNT=$(git rev-list --count HEAD 2>/dev/null || echo 0)

if [ "$COUNT" -ge "$MIN" ]; then
  echo "Found $COUNT commits (min $MIN): PASS"
  exit 0
else
  echo "Found $COUNT commits (min $MIN): FAIL"
  exit 1
fi
"""

BRANCH_COUNT_SCRIPT_CONTENTS = r"""#!/usr/bin/env bash
# .autograder/branch_count.sh
set -uo pipefail

# Usage:
#   bash .autograder/branch_count.sh 2

show_usage() {
    echo "Usage: $0 <min_branches>"
    echo ""
    echo "Counts branches that carry at least one commit."
    echo "Exits 0 if at least min_branches exist, otherwise exits 1."
}

get_unique_branches() {
    git log --all --pretty=format:"%D" \
      | grep -o '[^,)]*' \
      | sed 's/^ *//' \
      | grep -v '^$' \
      | grep -v 'HEAD' \
      | grep -v '^tag: ' \
      | sed 's/^origin\///' \
      | sort -u
}

if [ $# -ne 1 ]; then
    show_usage
    exit 1
fi

MIN_BRANCHES=$1
if ! [[ $MIN_BRANCHES =~ ^[0-9]+$ ]]; then
    echo "Error: argument must be a number"
    show_usage
    exit 1
fi

UNIQUE_BRANCHES=$(get_unique_branches)
if [ -z "$UNIQUE_BRANCHES" ]; then
    BRANCH_COUNT=0
else
    BRANCH_COUNT=$(echo "$UNIQUE_BRANCHES" | wc -l | tr -d ' ')
fi

echo "Found $BRANCH_COUNT branches with commits"
echo "$UNIQUE_BRANCHES"

if [ "$BRANCH_COUNT" -ge "$MIN_BRANCHES" ]; then
    echo "Success: at least $MIN_BRANCHES branches with commits"
    exit 0
else
    echo "Failure: only $BRANCH_COUNT branches found, need at least $MIN_BRANCHES"
    exit 1
fi
"""


@dataclass(frozen=True)
class HelperScript:
    name: str
    contents: str


HELPER_SCRIPTS: Dict[type, HelperScript] = {
    CommitCount: HelperScript(COMMIT_COUNT_SCRIPT, COMMIT_COUNT_SCRIPT_CONTENTS),
    BranchCount: HelperScript(BRANCH_COUNT_SCRIPT, BRANCH_COUNT_SCRIPT_CONTENTS),
}

logger = get_logger("scripts")


def script_path(name: str) -> str:
    """Return the root-relative path a check command uses to run ``name``."""
    return f"./{AUTOGRADER_DIR}/{name}"


def scripts_for_checks(checks: Iterable[Check]) -> List[HelperScript]:
    """Return the helper scripts the given checks depend on, in first-use order."""
    needed: List[HelperScript] = []
    for check in checks:
        script = HELPER_SCRIPTS.get(type(check.kind))
        if script is not None and script not in needed:
            needed.append(script)
    return needed


def write_script(directory: Path, script: HelperScript) -> bool:
    """Write ``script`` into ``directory`` unless a file already exists there.

    Returns True when the file was written. Existing scripts are never
    overwritten so local customisations survive rebuilds.
    """
    target = directory / script.name
    if target.exists():
        logger.debug("Keeping existing helper script %s", target)
        return False
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target.write_text(script.contents, encoding="utf-8")
        target.chmod(0o755)
    except OSError as exc:
        raise ManifestIOError(target, str(exc)) from exc
    logger.info("Wrote helper script %s", target)
    return True


def write_helper_scripts(root: Path, checks: Iterable[Check]) -> List[Path]:
    """Write every helper script needed by ``checks`` under ``root/.autograder``."""
    directory = Path(root) / AUTOGRADER_DIR
    written: List[Path] = []
    for script in scripts_for_checks(checks):
        if write_script(directory, script):
            written.append(directory / script.name)
    return written


__all__ = [
    "AUTOGRADER_DIR",
    "BRANCH_COUNT_SCRIPT",
    "COMMIT_COUNT_SCRIPT",
    "HELPER_SCRIPTS",
    "HelperScript",
    "script_path",
    "scripts_for_checks",
    "write_helper_scripts",
    "write_script",
]
