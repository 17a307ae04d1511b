"""CLI entrypoints for autograder-setup commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from .errors import AutograderError
from .extractors import available_extractors
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_root_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Path to the Rust project root (defaults to current directory).",
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got '{value}'") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got '{value}'")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autograder-setup",
        description="Generate GitHub Classroom autograding workflows for Rust projects.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a timestamped log of the run to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Scan the project for tests and write .autograder/autograder.json.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_root_option(init_parser)
    init_parser.add_argument(
        "--tests-dir",
        default=None,
        help="Directory to scan for tests, relative to the root (defaults to the root).",
    )
    init_parser.add_argument(
        "--default-points",
        type=_non_negative_int,
        default=None,
        help="Points assigned to every generated check (default: 1).",
    )
    init_parser.add_argument(
        "--timeout",
        type=_non_negative_int,
        default=None,
        help="Timeout in seconds for every generated check (default: 10).",
    )
    init_parser.add_argument(
        "--no-style-check",
        action="store_true",
        help="Do not add `cargo clippy` style checks.",
    )
    init_parser.add_argument(
        "--no-commit-count",
        action="store_true",
        help="Do not add commit-count checks.",
    )
    init_parser.add_argument(
        "--num-commit-checks",
        type=_non_negative_int,
        default=None,
        help="Legacy: add commit-count checks for thresholds 1..N.",
    )
    init_parser.add_argument(
        "--require-commits",
        type=_non_negative_int,
        nargs="+",
        default=None,
        metavar="N",
        help="Commit-count thresholds, one check per value, in the given order.",
    )
    init_parser.add_argument(
        "--require-branches",
        type=_non_negative_int,
        nargs="+",
        default=None,
        metavar="N",
        help="Branch-count thresholds, one check per value, in the given order.",
    )
    init_parser.add_argument(
        "--require-tests",
        type=_non_negative_int,
        nargs="?",
        const=1,
        default=None,
        metavar="N",
        help="Require at least N tests per build unit (N defaults to 1).",
    )
    init_parser.add_argument(
        "--extractor",
        choices=available_extractors(),
        default=None,
        help="Test extractor to use (default: tree_sitter).",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Compile the manifest into .github/workflows/classroom.yml.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_root_option(build_parser)
    build_parser.add_argument(
        "--on-push",
        action="store_true",
        help="Also trigger the workflow on push.",
    )

    table_parser = subparsers.add_parser(
        "table",
        help="Print a Markdown table of the manifest checks.",
    )
    _add_verbose_option(table_parser, suppress_default=True)
    _add_root_option(table_parser)

    reset_parser = subparsers.add_parser(
        "reset",
        help="Delete generated autograder files.",
    )
    _add_verbose_option(reset_parser, suppress_default=True)
    _add_root_option(reset_parser)

    return parser


def _init_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "tests_dir": Path(args.tests_dir) if args.tests_dir is not None else None,
        "points": args.default_points,
        "timeout": args.timeout,
        "num_commit_checks": args.num_commit_checks,
        "require_commits": args.require_commits,
        "require_branches": args.require_branches,
        "require_tests": args.require_tests,
        "extractor": args.extractor,
    }
    # Flags only switch checks off; leaving them out defers to the config file.
    if args.no_style_check:
        overrides["style_check"] = False
    if args.no_commit_count:
        overrides["commit_counts"] = False
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for autograder-setup commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    try:
        if args.command == "init":
            outcome = orchestrator.run_init(args.root, _init_overrides(args))
            print(
                f"Wrote {len(outcome.checks)} checks for {len(outcome.tests)} tests "
                f"to {_relativize(outcome.manifest_path)}"
            )
        elif args.command == "build":
            result = orchestrator.run_build(args.root, on_push=bool(args.on_push))
            print(f"Wrote autograder workflow to {_relativize(result.workflow_path)}")
        elif args.command == "table":
            print(orchestrator.run_table(args.root), end="")
        elif args.command == "reset":
            removed = orchestrator.run_reset(args.root)
            if not removed:
                print("Nothing to reset")
            for item in removed:
                print(f"Deleted {_relativize(item)}")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except AutograderError as exc:
        parser.exit(1, f"autograder-setup {args.command} failed: {exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
