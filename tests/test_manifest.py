"""Tests for the persisted JSON manifest."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from autograder_setup.errors import (
    AutograderError,
    ManifestIOError,
    NotFoundError,
    ValidationError,
)
from autograder_setup.manifest import (
    check_to_record,
    checks_from_records,
    load_manifest,
    manifest_path,
    write_manifest,
)
from autograder_setup.models import (
    BranchCount,
    CargoTest,
    Check,
    Clippy,
    CommitCount,
    TestCount,
)

CHECKS = [
    Check("adds", "Adds numbers", 1, 10, CargoTest()),
    Check("member_adds", "", 2, 10, CargoTest(build_unit="member/Cargo.toml")),
    Check("CLIPPY_STYLE_CHECK", "`cargo clippy` style check", 1, 10, Clippy()),
    Check("COMMIT_COUNT_3", "Ensures at least ## commits.", 1, 10, CommitCount(3)),
    Check("BRANCH_COUNT_2", "Ensures at least ## branches with commits.", 1, 10, BranchCount(2)),
    Check("TEST_COUNT", "Submission has at least ## tests", 0, 10, TestCount(4)),
    Check(
        "TEST_COUNT_MEMBER/CARGO.TOML",
        "member submission has at least ## tests",
        1,
        10,
        TestCount(4, build_unit="member/Cargo.toml"),
    ),
    Check(
        "CLIPPY_STYLE_CHECK_MEMBER",
        "`cargo clippy` style check for `member`",
        1,
        10,
        Clippy(build_unit="member/Cargo.toml"),
    ),
]


def test_write_then_load_preserves_every_field(tmp_path: Path) -> None:
    target = write_manifest(tmp_path, CHECKS)

    assert target == tmp_path / ".autograder" / "autograder.json"
    assert load_manifest(tmp_path) == CHECKS


def test_absent_build_unit_is_omitted_not_null() -> None:
    record = check_to_record(CHECKS[0])
    assert record == {
        "name": "adds",
        "description": "Adds numbers",
        "points": 1,
        "timeout": 10,
        "type": "cargo_test",
    }
    assert check_to_record(CHECKS[1])["build_unit"] == "member/Cargo.toml"


def test_records_carry_typed_thresholds() -> None:
    assert check_to_record(CHECKS[3])["min_commits"] == 3
    assert check_to_record(CHECKS[4])["min_branches"] == 2
    record = check_to_record(CHECKS[6])
    assert record["type"] == "test_count"
    assert record["min_tests"] == 4
    assert record["description"] == "member submission has at least ## tests"


def _record(**extra):
    base = {"name": "x", "description": "", "points": 1, "timeout": 10}
    base.update(extra)
    return base


@pytest.mark.parametrize(
    "record",
    [
        _record(type="cargo_test", min_commits=3),
        _record(type="clippy", min_tests=1),
        _record(type="commit_count", min_commits=1, min_branches=2),
        _record(type="branch_count", min_branches=1, min_tests=2),
    ],
)
def test_threshold_on_wrong_kind_is_rejected(record) -> None:
    with pytest.raises(ValidationError) as excinfo:
        checks_from_records([record])
    assert "Record 0" in str(excinfo.value)


@pytest.mark.parametrize(
    "record",
    [
        _record(type="mystery"),
        _record(type=["clippy"]),
        _record(type={"kind": "clippy"}),
        _record(type="commit_count"),
        _record(type="cargo_test", points=-1),
        _record(type="cargo_test", points="1"),
        {"name": "x", "type": "clippy", "points": 1, "timeout": 10},
        "not an object",
    ],
)
def test_malformed_records_are_rejected(record) -> None:
    with pytest.raises(ValidationError):
        checks_from_records([_record(type="clippy"), record])


def test_load_missing_manifest_is_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        load_manifest(tmp_path)
    assert str(manifest_path(tmp_path)) in str(excinfo.value)


def test_load_invalid_json_is_validation_error(tmp_path: Path) -> None:
    target = manifest_path(tmp_path)
    target.parent.mkdir(parents=True)
    target.write_text("[{", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_manifest(tmp_path)


def test_load_rejects_non_array_manifest(tmp_path: Path) -> None:
    target = manifest_path(tmp_path)
    target.parent.mkdir(parents=True)
    target.write_text(json.dumps({"name": "x"}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_manifest(tmp_path)


def test_write_failure_is_manifest_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / ".autograder"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(ManifestIOError) as excinfo:
        write_manifest(tmp_path, CHECKS)
    assert "autograder.json" in str(excinfo.value)


def test_load_non_utf8_manifest_is_validation_error(tmp_path: Path) -> None:
    target = manifest_path(tmp_path)
    target.parent.mkdir(parents=True)
    target.write_bytes(b'[{"name": "\xff"}]')
    with pytest.raises(ValidationError) as excinfo:
        load_manifest(tmp_path)
    assert isinstance(excinfo.value, AutograderError)
    assert "UTF-8" in str(excinfo.value)


def test_round_trip_includes_member_clippy(tmp_path: Path) -> None:
    write_manifest(tmp_path, CHECKS)
    loaded = load_manifest(tmp_path)
    assert loaded[-1].kind == Clippy(build_unit="member/Cargo.toml")
    assert check_to_record(CHECKS[2]).get("build_unit") is None
