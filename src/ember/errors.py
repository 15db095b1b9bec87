"""Parse errors and their terminal rendering."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from ember.source import SourceFile

if TYPE_CHECKING:
    from ember.source import Location
    from ember.tokens import Lexeme, Token


class ErrorLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


# ANSI color codes
_COLORS = {
    ErrorLevel.ERROR: "\033[1;31m",    # bold red
    ErrorLevel.WARNING: "\033[1;33m",  # bold yellow
    ErrorLevel.INFO: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


class ParseError(Exception):
    """A lexing or parsing failure at a specific source location.

    Codes in the E1xx range come from the lexer, E2xx from the parser.
    """

    def __init__(
        self,
        location: Location,
        message: str,
        *,
        level: ErrorLevel = ErrorLevel.ERROR,
        code: str = "E204",
    ) -> None:
        self.location = location
        self.level = level
        self.message = message
        self.code = code
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.location}: {self.level}: {self.message}"

    @classmethod
    def error(cls, location: Location, message: str, code: str = "E204") -> ParseError:
        return cls(location, message, code=code)

    @classmethod
    def not_impl(cls, location: Location) -> ParseError:
        return cls(location, "parsing this is not implemented", code="E203")

    @classmethod
    def unexpected(cls, token: Token, expected: Lexeme | str) -> ParseError:
        return cls(
            token.location,
            f"unexpected token ({token}) found. expected {expected}",
            code="E200",
        )

    @classmethod
    def not_started(cls, location: Location) -> ParseError:
        return cls(location, "lexer was not started", code="E202")

    @classmethod
    def eof(cls, location: Location, expected: Lexeme | str) -> ParseError:
        return cls(location, f"hit EOF but expected {expected}", code="E201")


class DiagnosticRenderer:
    """Renders parse errors with the offending source line and a caret."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._file_cache: dict[str, SourceFile | None] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _get_source(self, filename: str) -> SourceFile | None:
        """Load and cache a source file; None if it cannot be read."""
        if filename not in self._file_cache:
            path = Path(filename)
            try:
                self._file_cache[filename] = SourceFile(path) if path.is_file() else None
            except (OSError, UnicodeDecodeError):
                self._file_cache[filename] = None
        return self._file_cache[filename]

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Return the 1-indexed line of a source file, if it exists."""
        source = self._get_source(filename)
        if source is None or not 1 <= line_num <= len(source.lines):
            return None
        return source.line_at(line_num)

    def render(self, err: ParseError) -> str:
        color = _COLORS[err.level]
        loc = err.location
        lines = [
            f"{self._c(_BOLD)}{loc}:{self._c(_RESET)} "
            f"{self._c(color)}{err.level}[{err.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {err.message}{self._c(_RESET)}"
        ]

        source_line = self._get_source_line(loc.file, loc.line)
        if source_line is not None:
            gutter = f"{loc.line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")
            lines.append(f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}")
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                f"{' ' * loc.col}{self._c(color)}^{self._c(_RESET)}"
            )

        return "\n".join(lines)
