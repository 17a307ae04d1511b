"""Tree-sitter powered Rust test extractor."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from .base import TestExtractor
from .markers import (
    ListMarker,
    Marker,
    NameValueMarker,
    PathMarker,
    Token,
    group,
    ident,
    literal,
    marks_test,
    punct,
)
from ..errors import ParseError
from ..models import DiscoveredTest

RUST_LANGUAGE = Language(tree_sitter_rust.language())

_COMMENT_TYPES = {"line_comment", "block_comment"}
_LITERAL_TYPES = {
    "string_literal",
    "raw_string_literal",
    "char_literal",
    "integer_literal",
    "float_literal",
    "boolean_literal",
}
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_PUNCT_RE = re.compile(r"::|=>|->|==|!=|<=|>=|&&|\|\||\.\.=|\.\.\.|\.\.|<<|>>|\S")
_ESCAPE_RE = re.compile(r"\\(u\{[0-9A-Fa-f_]+\}|x[0-9A-Fa-f]{2}|\r?\n\s*|.)")
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", "0": "\0", "'": "'", '"': '"'}


class TreeSitterTestExtractor(TestExtractor):
    """Finds test functions by walking a tree-sitter syntax tree.

    Free functions at file level and inside inline ``mod name { ... }`` blocks
    are visited. Out-of-line ``mod name;`` declarations are skipped; their files
    are extracted on their own when the walker reaches them.
    """

    name = "tree_sitter"

    def __init__(self) -> None:
        self._parser: Optional[Parser] = None

    def extract(self, source: str) -> List[DiscoveredTest]:
        source_bytes = source.encode("utf-8")
        tree = self._get_parser().parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            raise ParseError(_describe_error(root))
        tests: List[DiscoveredTest] = []
        self._collect(root, source_bytes, tests)
        return tests

    def _get_parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(RUST_LANGUAGE)
        return self._parser

    def _collect(self, container: Node, source_bytes: bytes, tests: List[DiscoveredTest]) -> None:
        # Outer attributes and doc comments are siblings preceding their item.
        pending: List[Node] = []
        for child in container.named_children:
            if child.type == "attribute_item":
                pending.append(child)
                continue
            if child.type in _COMMENT_TYPES:
                if _doc_comment_text(child, source_bytes) is not None:
                    pending.append(child)
                continue

            if child.type == "function_item":
                test = self._test_from_function(child, pending, source_bytes)
                if test is not None:
                    tests.append(test)
            elif child.type == "mod_item":
                body = child.child_by_field_name("body")
                if body is not None:
                    self._collect(body, source_bytes, tests)
            pending = []

    def _test_from_function(
        self, function: Node, decorations: List[Node], source_bytes: bytes
    ) -> Optional[DiscoveredTest]:
        markers = [
            marker
            for marker in (
                _attribute_marker(node, source_bytes)
                for node in decorations
                if node.type == "attribute_item"
            )
            if marker is not None
        ]
        if not any(marks_test(marker) for marker in markers):
            return None
        name_node = function.child_by_field_name("name")
        if name_node is None:
            return None
        return DiscoveredTest(
            name=_node_text(name_node, source_bytes),
            documentation=_collect_documentation(decorations, source_bytes),
        )


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _describe_error(root: Node) -> str:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point[0], node.start_point[1]
            what = f"missing {node.type}" if node.is_missing else "syntax error"
            return f"{what} at line {row + 1}, column {column + 1}"
        # Children are pushed in reverse so the earliest error is reported first.
        stack.extend(reversed([child for child in node.children if child.has_error or child.is_missing]))
    return "syntax error"


def _attribute_node(attribute_item: Node) -> Optional[Node]:
    for child in attribute_item.named_children:
        if child.type == "attribute":
            return child
    return None


def _path_segments(node: Node, source_bytes: bytes) -> List[str]:
    if node.type == "scoped_identifier":
        segments: List[str] = []
        prefix = node.child_by_field_name("path")
        if prefix is not None:
            segments.extend(_path_segments(prefix, source_bytes))
        name = node.child_by_field_name("name")
        if name is not None:
            segments.append(_node_text(name, source_bytes))
        return segments
    return [_node_text(node, source_bytes)]


def _attribute_marker(attribute_item: Node, source_bytes: bytes) -> Optional[Marker]:
    attribute = _attribute_node(attribute_item)
    if attribute is None or not attribute.named_children:
        return None
    path_node = attribute.named_children[0]
    segments = tuple(_path_segments(path_node, source_bytes))
    if not segments:
        return None

    rest = [
        child
        for child in attribute.children
        if child.start_byte >= path_node.end_byte and child.type not in _COMMENT_TYPES
    ]
    if rest and rest[0].type == "token_tree":
        return ListMarker(segments, tuple(_group_contents(rest[0], source_bytes)))
    if len(rest) >= 2 and rest[0].type == "=":
        return NameValueMarker(segments, (literal(_node_text(rest[1], source_bytes)),))
    return PathMarker(segments)


def _group_contents(token_tree: Node, source_bytes: bytes) -> List[Token]:
    children = [child for child in token_tree.children if child.type not in _COMMENT_TYPES]
    # Drop the opening and closing delimiters.
    return list(_tokens(children[1:-1], source_bytes))


def _tokens(nodes: Iterable[Node], source_bytes: bytes) -> Iterable[Token]:
    for node in nodes:
        if node.type in _COMMENT_TYPES:
            continue
        text = _node_text(node, source_bytes)
        if node.type == "token_tree":
            yield group(text[:1], _group_contents(node, source_bytes))
        elif node.type in _LITERAL_TYPES:
            yield literal(text)
        elif node.is_named:
            yield ident(text) if _IDENT_RE.match(text) else literal(text)
        elif _IDENT_RE.match(text):
            # Keywords inside token trees arrive as anonymous nodes.
            yield ident(text)
        else:
            for piece in _PUNCT_RE.findall(text):
                yield punct(piece)


def _doc_comment_text(comment: Node, source_bytes: bytes) -> Optional[str]:
    """Return the doc text of an outer doc comment, ``None`` for other comments."""
    text = _node_text(comment, source_bytes).rstrip("\r\n")
    if comment.type == "line_comment":
        if text.startswith("///") and not text.startswith("////"):
            return text[3:]
        return None
    if text.startswith("/**") and not text.startswith("/***") and text != "/**/":
        return text[3:-2] if text.endswith("*/") else text[3:]
    return None


def _doc_attribute_text(attribute_item: Node, source_bytes: bytes) -> Optional[str]:
    marker = _attribute_marker(attribute_item, source_bytes)
    if not isinstance(marker, NameValueMarker) or marker.segments != ("doc",):
        return None
    return _string_literal_value(marker.value[0].text)


def _collect_documentation(decorations: Iterable[Node], source_bytes: bytes) -> str:
    parts: List[str] = []
    for node in decorations:
        if node.type == "attribute_item":
            text = _doc_attribute_text(node, source_bytes)
        else:
            text = _doc_comment_text(node, source_bytes)
        if text is None:
            continue
        # `/// x` desugars to " x"; drop that one separating space.
        parts.append(text[1:] if text.startswith(" ") else text)
    return "\n".join(parts).strip()


def _string_literal_value(text: str) -> Optional[str]:
    raw = re.match(r'^(?:b|c)?r(#*)"(.*)"\1$', text, re.DOTALL)
    if raw:
        return raw.group(2)
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return _ESCAPE_RE.sub(_unescape, text[1:-1])
    return None


def _unescape(match: "re.Match[str]") -> str:
    escape = match.group(1)
    if escape.startswith(("\n", "\r")):
        return ""
    if escape.startswith("u{"):
        return chr(int(escape[2:-1].replace("_", ""), 16))
    if escape.startswith("x"):
        return chr(int(escape[1:], 16))
    return _SIMPLE_ESCAPES.get(escape, "\\" + escape)


__all__ = ["RUST_LANGUAGE", "TreeSitterTestExtractor"]
