"""Source locations and source file access for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Location:
    """A point within a source file.

    Lines are 1-indexed, columns are 0-indexed.
    """

    file: str
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


class SourceFile:
    """A loaded source file with line access for diagnostics."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.content = path.read_text()
        # Only \n ends a line, matching the lexer's line count
        self.lines = self.content.split("\n")

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def text_at(self, location: Location, length: int) -> str:
        """Extract up to `length` characters starting at a location."""
        line = self.line_at(location.line)
        return line[location.col : location.col + length]
