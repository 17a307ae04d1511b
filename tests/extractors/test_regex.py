"""Tests for the regex fallback extractor."""

from __future__ import annotations

from autograder_setup.extractors import RegexTestExtractor, get_extractor
from autograder_setup.extractors.regex import strip_comments


def test_strip_comments_removes_block_then_line_comments() -> None:
    source = "a /* one\n two */ b // tail\nc"
    assert strip_comments(source) == "a  b \nc"


def test_regex_extractor_matches_marked_functions() -> None:
    source = """
#[test]
fn plain() {}

#[tokio::test]
pub async fn spawned() {}

// #[test]
// fn commented_out() {}

/*
#[test]
fn also_commented() {}
*/

fn helper() {}
"""
    tests = RegexTestExtractor().extract(source)
    assert [test.name for test in tests] == ["plain", "spawned"]
    assert all(test.documentation == "" for test in tests)


def test_regex_extractor_is_available_by_name() -> None:
    assert isinstance(get_extractor("regex"), RegexTestExtractor)
