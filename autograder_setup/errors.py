"""Exception hierarchy shared by the scan, synthesis and build pipelines."""

from __future__ import annotations

from pathlib import Path


class AutograderError(Exception):
    """Base class for every fatal autograder-setup error."""


class NotFoundError(AutograderError, FileNotFoundError):
    """Raised when a scan root, test directory or manifest does not exist."""

    def __init__(self, path: Path | str, message: str | None = None) -> None:
        self.path = Path(path)
        super().__init__(message or f"Nothing found at {self.path}")

    def __str__(self) -> str:
        return str(self.args[0])


class ParseError(AutograderError):
    """Raised when a source file cannot be parsed into a syntax tree."""

    def __init__(self, diagnostic: str, path: Path | str | None = None) -> None:
        self.diagnostic = diagnostic
        self.path = Path(path) if path is not None else None
        super().__init__(diagnostic)

    def with_path(self, path: Path | str) -> "ParseError":
        return ParseError(self.diagnostic, path)

    def __str__(self) -> str:
        if self.path is None:
            return f"Failed to parse Rust source: {self.diagnostic}"
        return f"Failed to parse {self.path}: {self.diagnostic}"


class NoTestsFoundError(AutograderError):
    """Raised when a scan completes without discovering a single test."""


class ManifestIOError(AutograderError):
    """Raised when the manifest, its directory or a generated file cannot be read or written."""

    def __init__(self, path: Path | str, reason: str, action: str = "write") -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to {action} {self.path}: {reason}")


class ValidationError(AutograderError):
    """Raised when a persisted manifest record fails integrity checks."""


class ConfigError(AutograderError):
    """Raised when run configuration cannot be parsed or is inconsistent."""


__all__ = [
    "AutograderError",
    "ConfigError",
    "ManifestIOError",
    "NoTestsFoundError",
    "NotFoundError",
    "ParseError",
    "ValidationError",
]
