"""Markdown summary table of manifest checks, for pasting into a README."""

from __future__ import annotations

from typing import Iterable, List

from .commands import description
from .models import Check

HEADERS = ("Name", "Points", "Description")


def escape_cell(value: str) -> str:
    """Escape characters that would break a Markdown table cell."""
    escaped = value.replace("\\", "\\\\").replace("|", "\\|").replace("`", "\\`")
    return " ".join(escaped.split())


def markdown_table(checks: Iterable[Check]) -> str:
    rows: List[List[str]] = [
        [escape_cell(check.name), str(check.points), escape_cell(description(check))]
        for check in checks
    ]
    lines = [
        "| " + " | ".join(HEADERS) + " |",
        "| " + " | ".join("---" for _ in HEADERS) + " |",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines) + "\n"


__all__ = ["HEADERS", "escape_cell", "markdown_table"]
