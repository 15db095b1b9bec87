"""Lexemes and tokens produced by the Ember lexer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ember.source import Location


class LexemeKind(Enum):
    # Literals
    SIGNED = auto()
    FLOAT = auto()
    QUOTED_STRING = auto()

    # Names
    IDENTIFIER = auto()
    OPERATOR = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LSQUARE = auto()
    RSQUARE = auto()
    LCURLY = auto()
    RCURLY = auto()
    SEMICOLON = auto()
    COMMA = auto()


_DISPLAY_NAMES: dict[LexemeKind, str] = {
    LexemeKind.SIGNED: "Signed",
    LexemeKind.FLOAT: "Float",
    LexemeKind.QUOTED_STRING: "QuotedString",
    LexemeKind.IDENTIFIER: "Identifier",
    LexemeKind.OPERATOR: "Operator",
    LexemeKind.LPAREN: "LParen",
    LexemeKind.RPAREN: "RParen",
    LexemeKind.LSQUARE: "LSquare",
    LexemeKind.RSQUARE: "RSquare",
    LexemeKind.LCURLY: "LCurly",
    LexemeKind.RCURLY: "RCurly",
    LexemeKind.SEMICOLON: "Semicolon",
    LexemeKind.COMMA: "Comma",
}


@dataclass(frozen=True)
class Lexeme:
    """The classified content of one token, independent of its position."""

    kind: LexemeKind
    value: Union[int, float, str, None] = None

    @classmethod
    def signed(cls, value: int) -> Lexeme:
        return cls(LexemeKind.SIGNED, value)

    @classmethod
    def float_(cls, value: float) -> Lexeme:
        return cls(LexemeKind.FLOAT, value)

    @classmethod
    def identifier(cls, name: str) -> Lexeme:
        return cls(LexemeKind.IDENTIFIER, name)

    @classmethod
    def operator(cls, op: str) -> Lexeme:
        return cls(LexemeKind.OPERATOR, op)

    @classmethod
    def quoted_string(cls, text: str) -> Lexeme:
        return cls(LexemeKind.QUOTED_STRING, text)

    def __str__(self) -> str:
        name = _DISPLAY_NAMES[self.kind]
        if self.value is None:
            return name
        # Quoted strings already carry their quotes
        if self.kind in (LexemeKind.IDENTIFIER, LexemeKind.OPERATOR):
            return f'{name}("{self.value}")'
        return f"{name}({self.value})"


LPAREN = Lexeme(LexemeKind.LPAREN)
RPAREN = Lexeme(LexemeKind.RPAREN)
LSQUARE = Lexeme(LexemeKind.LSQUARE)
RSQUARE = Lexeme(LexemeKind.RSQUARE)
LCURLY = Lexeme(LexemeKind.LCURLY)
RCURLY = Lexeme(LexemeKind.RCURLY)
SEMICOLON = Lexeme(LexemeKind.SEMICOLON)
COMMA = Lexeme(LexemeKind.COMMA)

ASSIGN = Lexeme.operator("=")
FAT_ARROW = Lexeme.operator("=>")


@dataclass(frozen=True)
class Token:
    location: Location
    lexeme: Lexeme
    text: str = field(default="", compare=False)

    def __str__(self) -> str:
        return str(self.lexeme)


class NestingKind(Enum):
    PAREN = ("(", ")")
    SQUARE = ("[", "]")
    CURLY = ("{", "}")

    @property
    def opener(self) -> str:
        return self.value[0]

    @property
    def closer(self) -> str:
        return self.value[1]


OPERATOR_CHARS: frozenset[str] = frozenset(".=><-+!@:$%^&*/?~")

PUNCTUATION: dict[str, Lexeme] = {
    "(": LPAREN,
    ")": RPAREN,
    "[": LSQUARE,
    "]": RSQUARE,
    "{": LCURLY,
    "}": RCURLY,
    ";": SEMICOLON,
    ",": COMMA,
}

OPENERS: dict[str, NestingKind] = {kind.opener: kind for kind in NestingKind}
CLOSERS: dict[str, NestingKind] = {kind.closer: kind for kind in NestingKind}

KEYWORDS: frozenset[str] = frozenset({
    "if",
    "then",
    "else",
    "do",
    "let",
    "in",
    "match",
})
