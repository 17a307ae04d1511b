"""Attribute marker model and the predicate deciding whether a marker means "test".

Attributes reach this module as flat token streams so the same grammar can be
applied to the arguments of ``cfg_attr(...)`` and, recursively, to any nested
argument list inside it::

    marker := path                  PathMarker       #[test], #[tokio::test]
            | path group            ListMarker       #[tokio::test(flavor = "x")]
            | path "=" tokens...    NameValueMarker  #[doc = "text"]
    path   := ["::"] ident ("::" ident)*
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

TEST_SEGMENT = "test"
CONDITIONAL_MARKER = "cfg_attr"


@dataclass(frozen=True)
class Token:
    """A lexical token of an attribute body.

    ``kind`` is one of ``ident``, ``punct``, ``literal`` or ``group``; a group
    keeps its opening delimiter in ``text`` and its contents in ``children``.
    """

    kind: str
    text: str
    children: Tuple["Token", ...] = ()


@dataclass(frozen=True)
class PathMarker:
    segments: Tuple[str, ...]


@dataclass(frozen=True)
class ListMarker:
    segments: Tuple[str, ...]
    arguments: Tuple[Token, ...] = ()


@dataclass(frozen=True)
class NameValueMarker:
    segments: Tuple[str, ...]
    value: Tuple[Token, ...] = ()


Marker = Union[PathMarker, ListMarker, NameValueMarker]


def ident(text: str) -> Token:
    return Token("ident", text)


def punct(text: str) -> Token:
    return Token("punct", text)


def literal(text: str) -> Token:
    return Token("literal", text)


def group(delimiter: str, children: Sequence[Token]) -> Token:
    return Token("group", delimiter, tuple(children))


def _is_punct(token: Token, text: str) -> bool:
    return token.kind == "punct" and token.text == text


def split_arguments(tokens: Sequence[Token]) -> Optional[List[Tuple[Token, ...]]]:
    """Split a comma separated token stream; ``None`` when a chunk is empty."""
    if not tokens:
        return []
    chunks: List[Tuple[Token, ...]] = []
    current: List[Token] = []
    for token in tokens:
        if _is_punct(token, ","):
            if not current:
                return None
            chunks.append(tuple(current))
            current = []
            continue
        current.append(token)
    # A trailing comma leaves ``current`` empty, which is allowed.
    if current:
        chunks.append(tuple(current))
    return chunks


def parse_marker(tokens: Sequence[Token]) -> Optional[Marker]:
    """Parse one marker from ``tokens``; ``None`` when they are not a marker."""
    index = 0
    if index < len(tokens) and _is_punct(tokens[index], "::"):
        index += 1
    if index >= len(tokens) or tokens[index].kind != "ident":
        return None

    segments = [tokens[index].text]
    index += 1
    while (
        index + 1 < len(tokens)
        and _is_punct(tokens[index], "::")
        and tokens[index + 1].kind == "ident"
    ):
        segments.append(tokens[index + 1].text)
        index += 2

    if index == len(tokens):
        return PathMarker(tuple(segments))

    current = tokens[index]
    if current.kind == "group" and index == len(tokens) - 1:
        return ListMarker(tuple(segments), current.children)
    if _is_punct(current, "=") and index + 1 < len(tokens):
        return NameValueMarker(tuple(segments), tuple(tokens[index + 1 :]))
    return None


def parse_markers(tokens: Sequence[Token]) -> Optional[List[Marker]]:
    """Parse a comma separated marker list; any unreadable entry voids the list."""
    chunks = split_arguments(tokens)
    if chunks is None:
        return None
    markers: List[Marker] = []
    for chunk in chunks:
        marker = parse_marker(chunk)
        if marker is None:
            return None
        markers.append(marker)
    return markers


def terminal_segment_is(marker: Marker, name: str = TEST_SEGMENT) -> bool:
    """Return True when the marker, or any marker nested in its arguments, ends in ``name``."""
    if marker.segments[-1] == name:
        return True
    if isinstance(marker, ListMarker):
        nested = parse_markers(marker.arguments)
        if nested is None:
            return False
        return any(terminal_segment_is(item, name) for item in nested)
    return False


def marks_test(marker: Marker) -> bool:
    """Decide whether an attribute marks its function as a test.

    ``#[test]`` and ``#[tokio::test(...)]`` qualify through their own path. A
    ``#[cfg_attr(predicate, attr, ...)]`` qualifies when any applied attribute
    after the predicate resolves to a ``test`` path.
    """
    if marker.segments[-1] == TEST_SEGMENT:
        return True
    if marker.segments != (CONDITIONAL_MARKER,) or not isinstance(marker, ListMarker):
        return False
    arguments = parse_markers(marker.arguments)
    if not arguments or len(arguments) < 2:
        return False
    return any(terminal_segment_is(applied) for applied in arguments[1:])


__all__ = [
    "ListMarker",
    "Marker",
    "NameValueMarker",
    "PathMarker",
    "Token",
    "group",
    "ident",
    "literal",
    "marks_test",
    "parse_marker",
    "parse_markers",
    "punct",
    "split_arguments",
    "terminal_segment_is",
]
