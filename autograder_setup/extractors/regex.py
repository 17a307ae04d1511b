"""Regex based test extractor used when a full parse is not wanted."""

from __future__ import annotations

import re
from typing import List

from .base import TestExtractor
from ..models import DiscoveredTest

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//.*")

# An attribute containing "test", then optional pub/async, then `fn <ident>`.
_TEST_FN = re.compile(
    r"#\s*\[[^\]]*test[^\]]*\]\s*(?:pub\s+)?(?:async\s+)?fn\s+([A-Za-z_][A-Za-z0-9_]*)"
)


def strip_comments(source: str) -> str:
    """Remove block comments, then line comments.

    Comment-like text inside string literals is removed as well.
    """
    without_blocks = _BLOCK_COMMENT.sub("", source)
    return _LINE_COMMENT.sub("", without_blocks)


class RegexTestExtractor(TestExtractor):
    """Matches test attributes textually; may over- and under-match."""

    name = "regex"

    def extract(self, source: str) -> List[DiscoveredTest]:
        cleaned = strip_comments(source)
        return [DiscoveredTest(name=match.group(1)) for match in _TEST_FN.finditer(cleaned)]


__all__ = ["RegexTestExtractor", "strip_comments"]
