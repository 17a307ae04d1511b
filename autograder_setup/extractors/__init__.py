"""Test extractor implementations and lookup by name."""

from __future__ import annotations

from typing import Callable, Dict, List

from .base import TestExtractor
from .regex import RegexTestExtractor
from .tree_sitter import TreeSitterTestExtractor
from ..errors import ConfigError

DEFAULT_EXTRACTOR = "tree_sitter"

_BUILTIN_FACTORIES: Dict[str, Callable[[], TestExtractor]] = {
    "tree_sitter": TreeSitterTestExtractor,
    "regex": RegexTestExtractor,
}


def available_extractors() -> List[str]:
    return sorted(_BUILTIN_FACTORIES)


def get_extractor(name: str | None = None) -> TestExtractor:
    """Return a fresh extractor instance for ``name`` (default: tree_sitter)."""
    key = (name or DEFAULT_EXTRACTOR).strip().lower().replace("-", "_")
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is None:
        known = ", ".join(available_extractors())
        raise ConfigError(f"Unknown extractor '{name}' (expected one of: {known})")
    return factory()


__all__ = [
    "DEFAULT_EXTRACTOR",
    "RegexTestExtractor",
    "TestExtractor",
    "TreeSitterTestExtractor",
    "available_extractors",
    "get_extractor",
]
