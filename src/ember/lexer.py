"""Lexer for the Ember language.

Scans source text one token at a time on demand: the parser pulls the next
token with `advance()` and inspects it with `peek()`. A newline separates
statements only when no bracket is open.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from ember.errors import ParseError
from ember.source import Location
from ember.tokens import (
    CLOSERS,
    OPENERS,
    OPERATOR_CHARS,
    PUNCTUATION,
    SEMICOLON,
    Lexeme,
    NestingKind,
    Token,
)

logger = logging.getLogger(__name__)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class LexerState(Enum):
    STARTED = auto()
    READ = auto()
    EOF = auto()


@dataclass(frozen=True)
class NestingFrame:
    """An open bracket; `parent` indexes the enclosing frame in the arena."""

    location: Location
    kind: NestingKind
    parent: int | None


@dataclass(frozen=True)
class LexerMark:
    """A snapshot of the lexer, restorable with `Lexer.reset`."""

    pos: int
    line: int
    col: int
    nesting: int | None
    state: LexerState
    token: Token | None


class Lexer:
    """Tokenizes Ember source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 0
        self.state = LexerState.STARTED
        self.token: Token | None = None
        # Frames are never removed, so marks taken earlier stay valid.
        self.frames: list[NestingFrame] = []
        self.nesting: int | None = None

    @property
    def location(self) -> Location:
        return Location(self.filename, self.line, self.col)

    # ── Token stream ─────────────────────────────────────────────

    def peek(self) -> Token | None:
        """Return the buffered token; None before the first advance and at EOF."""
        if self.state is LexerState.READ:
            return self.token
        return None

    def peek_matches(self, lexeme: Lexeme) -> bool:
        tok = self.peek()
        return tok is not None and tok.lexeme == lexeme

    def advance(self) -> Location:
        """Scan the next token into the buffer and return where it starts.

        At end of input the lexer moves to the EOF state and the current
        location is returned; advancing again is a no-op.
        """
        if self.state is LexerState.EOF:
            return self.location

        tok = self._scan()
        if tok is None:
            self.state = LexerState.EOF
            self.token = None
            logger.debug("%s: end of input", self.location)
            return self.location

        self.state = LexerState.READ
        self.token = tok
        return tok.location

    def chomp(self, expected: Lexeme) -> None:
        """Consume the buffered token, which must equal `expected`."""
        if self.state is LexerState.STARTED:
            raise ParseError.not_started(self.location)
        tok = self.peek()
        if tok is None:
            raise ParseError.eof(self.location, expected)
        if tok.lexeme != expected:
            raise ParseError.unexpected(tok, expected)
        self.advance()

    def skip_semicolon(self) -> None:
        while self.peek_matches(SEMICOLON):
            self.advance()

    def mark(self) -> LexerMark:
        return LexerMark(
            self.pos, self.line, self.col,
            self.nesting, self.state, self.token,
        )

    def reset(self, mark: LexerMark) -> None:
        self.pos = mark.pos
        self.line = mark.line
        self.col = mark.col
        self.nesting = mark.nesting
        self.state = mark.state
        self.token = mark.token

    def open_brackets(self) -> list[NestingFrame]:
        """Return the open brackets, innermost first."""
        frames: list[NestingFrame] = []
        idx = self.nesting
        while idx is not None:
            frame = self.frames[idx]
            frames.append(frame)
            idx = frame.parent
        return frames

    def __iter__(self) -> Iterator[Token]:
        if self.state is LexerState.STARTED:
            self.advance()
        while True:
            tok = self.peek()
            if tok is None:
                return
            yield tok
            self.advance()

    def lex(self) -> list[Token]:
        """Tokenize the rest of the source and return the token list."""
        return list(self)

    # ── Helpers ──────────────────────────────────────────────────

    def _peek_char(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _advance_char(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 0
        else:
            self.col += 1
        return ch

    def _emit(self, lexeme: Lexeme, start: Location, start_pos: int) -> Token:
        return Token(start, lexeme, self.source[start_pos:self.pos])

    # ── Scanning ─────────────────────────────────────────────────

    def _scan(self) -> Token | None:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '\n' and self.nesting is None:
                start, start_pos = self.location, self.pos
                self._advance_char()
                return self._emit(SEMICOLON, start, start_pos)
            if not ch.isspace():
                break
            self._advance_char()
        else:
            return None

        start = self.location
        start_pos = self.pos
        ch = self.source[self.pos]

        if ch.isdecimal() or (ch == '-' and self._peek_char(1).isdecimal()):
            return self._lex_number(start, start_pos)
        if ch.isalpha() or ch == '_':
            return self._lex_identifier(start, start_pos)
        if ch in OPERATOR_CHARS:
            return self._lex_operator(start, start_pos)
        if ch == '"':
            return self._lex_string(start, start_pos)
        if ch in PUNCTUATION:
            return self._lex_punctuation(start, start_pos)
        raise ParseError.error(start, f"unrecognized character {ch!r}", code="E100")

    def _lex_number(self, start: Location, start_pos: int) -> Token:
        if self._peek_char() == '-':
            self._advance_char()
        while self._peek_char().isdecimal():
            self._advance_char()

        if self._peek_char() == '.' and self._peek_char(1).isdecimal():
            self._advance_char()  # .
            while self._peek_char().isdecimal():
                self._advance_char()
            text = self.source[start_pos:self.pos]
            return self._emit(Lexeme.float_(float(text)), start, start_pos)

        text = self.source[start_pos:self.pos]
        significant = text.lstrip('-').lstrip('0')
        if len(significant) > 19 or not _I64_MIN <= int(text) <= _I64_MAX:
            raise ParseError.error(
                start, f"integer literal {text} does not fit in 64 bits", code="E101",
            )
        return self._emit(Lexeme.signed(int(text)), start, start_pos)

    def _lex_identifier(self, start: Location, start_pos: int) -> Token:
        while self._peek_char().isalnum() or self._peek_char() == '_':
            self._advance_char()
        name = self.source[start_pos:self.pos]
        return self._emit(Lexeme.identifier(name), start, start_pos)

    def _lex_operator(self, start: Location, start_pos: int) -> Token:
        while self._peek_char() in OPERATOR_CHARS:
            self._advance_char()
        op = self.source[start_pos:self.pos]
        return self._emit(Lexeme.operator(op), start, start_pos)

    def _lex_string(self, start: Location, start_pos: int) -> Token:
        self._advance_char()  # opening "
        while self.pos < len(self.source) and self.source[self.pos] != '"':
            self._advance_char()
        if self.pos >= len(self.source):
            raise ParseError.error(start, "unterminated string literal", code="E104")
        self._advance_char()  # closing "
        text = self.source[start_pos:self.pos]
        return self._emit(Lexeme.quoted_string(text), start, start_pos)

    def _lex_punctuation(self, start: Location, start_pos: int) -> Token:
        ch = self._advance_char()
        if ch in OPENERS:
            self._push(OPENERS[ch], start)
        elif ch in CLOSERS:
            self._pop(CLOSERS[ch], start)
        return self._emit(PUNCTUATION[ch], start, start_pos)

    # ── Nesting ──────────────────────────────────────────────────

    def _push(self, kind: NestingKind, location: Location) -> None:
        self.frames.append(NestingFrame(location, kind, self.nesting))
        self.nesting = len(self.frames) - 1
        logger.debug("%s: opened %r", location, kind.opener)

    def _pop(self, kind: NestingKind, location: Location) -> None:
        if self.nesting is None:
            raise ParseError.error(
                location, f"unexpected '{kind.closer}' with no open bracket", code="E102",
            )
        top = self.frames[self.nesting]
        if top.kind is not kind:
            raise ParseError.error(
                location,
                f"mismatched '{kind.closer}': '{top.kind.opener}' opened at "
                f"{top.location} expects '{top.kind.closer}'",
                code="E102",
            )
        self.nesting = top.parent
        logger.debug("%s: closed %r", location, kind.closer)

