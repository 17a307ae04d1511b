"""End-to-end tests for the orchestrator pipelines."""

from __future__ import annotations

import json

import pytest
import yaml

from autograder_setup.errors import NoTestsFoundError, NotFoundError, ParseError
from autograder_setup.extractors import RegexTestExtractor
from autograder_setup.orchestrator import Orchestrator
from tests._fixtures.repo_builder import RepoBuilder


def _workspace(repo_builder: RepoBuilder) -> None:
    repo_builder.crate(name="root")
    repo_builder.crate("member", name="member")
    repo_builder.write(
        {
            "src/lib.rs": """
            /// Root level test
            #[test]
            fn root_test() {}
            """,
            "member/src/lib.rs": """
            #[cfg(test)]
            mod tests {
                #[test]
                fn member_test() {}
            }
            """,
        }
    )


def test_init_writes_manifest_for_workspace(repo_builder: RepoBuilder) -> None:
    _workspace(repo_builder)

    outcome = Orchestrator().run_init(repo_builder.path(), {"require_tests": 5})

    records = json.loads(outcome.manifest_path.read_text(encoding="utf-8"))
    assert [record["name"] for record in records] == [
        "member_test",
        "root_test",
        "CLIPPY_STYLE_CHECK",
        "CLIPPY_STYLE_CHECK_MEMBER",
        "COMMIT_COUNT_1",
        "TEST_COUNT",
        "TEST_COUNT_MEMBER/CARGO.TOML",
    ]
    assert records[0]["build_unit"] == "member/Cargo.toml"
    assert "build_unit" not in records[1]
    assert records[1]["description"] == "Root level test"
    assert records[5] == {
        "name": "TEST_COUNT",
        "description": "Submission has at least ## tests",
        "points": 1,
        "timeout": 10,
        "type": "test_count",
        "min_tests": 5,
    }


def test_init_reads_config_file(repo_builder: RepoBuilder) -> None:
    _workspace(repo_builder)
    repo_builder.write({".autograder.yml": "style_check: false\ncommit_counts: false\npoints: 3\n"})

    outcome = Orchestrator().run_init(repo_builder.path())

    assert [check.name for check in outcome.checks] == ["member_test", "root_test"]
    assert {check.points for check in outcome.checks} == {3}


def test_init_without_tests_fails(repo_builder: RepoBuilder) -> None:
    repo_builder.crate()
    repo_builder.write({"src/main.rs": "fn main() {}\n"})

    with pytest.raises(NoTestsFoundError):
        Orchestrator().run_init(repo_builder.path())


def test_init_parse_error_names_the_file(repo_builder: RepoBuilder) -> None:
    repo_builder.crate()
    repo_builder.write({"src/lib.rs": "fn broken( {\n"})

    with pytest.raises(ParseError) as excinfo:
        Orchestrator().run_init(repo_builder.path())

    assert excinfo.value.path == repo_builder.path() / "src" / "lib.rs"
    assert "lib.rs" in str(excinfo.value)


def test_init_with_regex_extractor_tolerates_broken_files(repo_builder: RepoBuilder) -> None:
    repo_builder.crate()
    repo_builder.write({"src/lib.rs": "#[test]\nfn ok() {}\nfn broken( {\n"})

    outcome = Orchestrator(extractor=RegexTestExtractor()).run_init(repo_builder.path())

    assert [test.name for test in outcome.tests] == ["ok"]


def test_init_missing_tests_dir_is_not_found(repo_builder: RepoBuilder) -> None:
    repo_builder.crate()

    with pytest.raises(NotFoundError):
        Orchestrator().run_init(repo_builder.path(), {"tests_dir": "nope"})


def test_build_writes_workflow_and_helper_scripts(repo_builder: RepoBuilder) -> None:
    _workspace(repo_builder)
    orchestrator = Orchestrator()
    orchestrator.run_init(repo_builder.path(), {"require_branches": [2]})

    outcome = orchestrator.run_build(repo_builder.path(), on_push=True)

    root = repo_builder.path()
    assert outcome.workflow_path == root / ".github" / "workflows" / "classroom.yml"
    assert sorted(path.name for path in outcome.scripts) == ["branch_count.sh", "commit_count.sh"]
    steps = yaml.safe_load(outcome.workflow_path.read_text(encoding="utf-8"))["jobs"][
        "run-autograding-tests"
    ]["steps"]
    ids = [step.get("id") for step in steps if "id" in step]
    assert ids == [
        "member-test",
        "root-test",
        "clippy-style-check",
        "clippy-style-check-member",
        "commit-count-1",
        "branch-count-2",
    ]
    assert steps[-1]["with"]["runners"] == ",".join(ids)


def test_build_without_manifest_is_not_found(repo_builder: RepoBuilder) -> None:
    with pytest.raises(NotFoundError):
        Orchestrator().run_build(repo_builder.path())


def test_build_with_empty_manifest_fails(repo_builder: RepoBuilder) -> None:
    repo_builder.write({".autograder/autograder.json": "[]\n"})

    with pytest.raises(NoTestsFoundError):
        Orchestrator().run_build(repo_builder.path())


def test_table_renders_substituted_descriptions(repo_builder: RepoBuilder) -> None:
    _workspace(repo_builder)
    orchestrator = Orchestrator()
    orchestrator.run_init(repo_builder.path(), {"require_commits": [4]})

    table = orchestrator.run_table(repo_builder.path())

    lines = table.splitlines()
    assert lines[0] == "| Name | Points | Description |"
    assert "| COMMIT_COUNT_4 | 1 | Ensures at least 4 commits. |" in lines
    assert "| CLIPPY_STYLE_CHECK | 1 | \\`cargo clippy\\` style check |" in lines


def test_reset_removes_generated_files(repo_builder: RepoBuilder) -> None:
    _workspace(repo_builder)
    orchestrator = Orchestrator()
    orchestrator.run_init(repo_builder.path())
    orchestrator.run_build(repo_builder.path())

    removed = orchestrator.run_reset(repo_builder.path())

    root = repo_builder.path()
    assert removed == [root / ".autograder", root / ".github" / "workflows" / "classroom.yml"]
    assert not (root / ".autograder").exists()
    assert orchestrator.run_reset(root) == []


def test_init_unreadable_source_is_parse_error(repo_builder: RepoBuilder) -> None:
    repo_builder.crate()
    (repo_builder.path() / "src").mkdir()
    dangling = repo_builder.path() / "src" / "lib.rs"
    dangling.symlink_to(repo_builder.path() / "missing.rs")

    with pytest.raises(ParseError) as excinfo:
        Orchestrator().run_init(repo_builder.path())

    assert excinfo.value.path == dangling
    assert "could not be read" in str(excinfo.value)
