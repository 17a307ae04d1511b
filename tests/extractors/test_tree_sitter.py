"""Tests for the tree-sitter Rust test extractor."""

from __future__ import annotations

import textwrap

import pytest

from autograder_setup.errors import ParseError
from autograder_setup.extractors import TreeSitterTestExtractor


def _extract(source: str):
    return TreeSitterTestExtractor().extract(textwrap.dedent(source))


def _names(source: str) -> list[str]:
    return [test.name for test in _extract(source)]


def test_finds_bare_namespaced_and_conditional_markers_at_every_depth() -> None:
    source = """
    #[test]
    fn top_bare() {}

    #[tokio::test]
    async fn top_namespaced() {}

    fn helper() {}

    #[cfg(test)]
    mod tests {
        #[cfg_attr(test, test)]
        fn level_one_conditional() {}

        #[core::prelude::v1::test]
        fn level_one_qualified() {}

        mod deeper {
            #[test]
            fn level_two_bare() {}

            #[tokio::test(flavor = "multi_thread")]
            async fn level_two_list() {}

            #[inline]
            fn not_a_test() {}
        }
    }
    """
    assert _names(source) == [
        "top_bare",
        "top_namespaced",
        "level_one_conditional",
        "level_one_qualified",
        "level_two_bare",
        "level_two_list",
    ]


def test_conditional_marker_requires_test_after_the_predicate() -> None:
    source = """
    #[cfg_attr(test, allow(dead_code))]
    fn predicate_only() {}

    #[cfg_attr(not(test), ignore)]
    fn ignored_outside_tests() {}

    #[cfg_attr(all(unix, feature = "slow"), allow(unused), tokio::test)]
    async fn nested_conditional() {}

    #[cfg_attr(feature = "x", some::wrapper(tokio::test))]
    fn wrapped() {}
    """
    assert _names(source) == ["nested_conditional", "wrapped"]


def test_out_of_line_modules_are_not_followed() -> None:
    source = """
    mod outside;

    #[test]
    fn here() {}
    """
    assert _names(source) == ["here"]


def test_impl_blocks_and_function_bodies_are_not_searched() -> None:
    source = """
    struct S;

    impl S {
        #[test]
        fn method() {}
    }

    fn outer() {
        #[test]
        fn inner() {}
    }
    """
    assert _names(source) == []


def test_documentation_lines_are_joined_and_trimmed() -> None:
    source = """
    /// first
    /// second
    /// third
    #[test]
    fn documented() {}

    #[test]
    fn undocumented() {}
    """
    tests = _extract(source)
    assert [(test.name, test.documentation) for test in tests] == [
        ("documented", "first\nsecond\nthird"),
        ("undocumented", ""),
    ]


def test_doc_attributes_and_block_docs_are_collected_in_order() -> None:
    source = '''
    /** Block summary */
    #[doc = "from attribute"]
    #[test]
    /// after the marker
    fn mixed() {}
    '''
    (test,) = _extract(source)
    assert test.documentation == "Block summary \nfrom attribute\nafter the marker"


def test_plain_comments_do_not_count_as_documentation() -> None:
    source = """
    // regular comment
    //// four slashes
    /* block */
    #[test]
    fn quiet() {}
    """
    (test,) = _extract(source)
    assert test.documentation == ""


def test_doc_attribute_escapes_are_decoded() -> None:
    source = r'''
    #[doc = "tab\there \"quoted\""]
    #[test]
    fn escaped() {}
    '''
    (test,) = _extract(source)
    assert test.documentation == 'tab\there "quoted"'


def test_documentation_does_not_leak_across_items() -> None:
    source = """
    /// belongs to the struct
    struct Thing;

    #[test]
    fn after_struct() {}
    """
    (test,) = _extract(source)
    assert test.documentation == ""


def test_syntax_errors_raise_parse_error() -> None:
    with pytest.raises(ParseError) as excinfo:
        _extract("fn broken( {\n")
    assert "line" in excinfo.value.diagnostic
    assert excinfo.value.path is None


def test_parse_error_gains_path_context(tmp_path) -> None:
    error = ParseError("syntax error at line 1, column 1")
    located = error.with_path(tmp_path / "lib.rs")
    assert str(tmp_path / "lib.rs") in str(located)
    assert "syntax error at line 1, column 1" in str(located)
