"""Parser for the Ember language.

Recursive descent over the lexer's token stream with one token of
lookahead. A rule returns None to mean "nothing of mine starts here" and
in that case leaves the lexer where it found it. Any structural problem
raises ParseError, which aborts the whole parse.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from ember.ast_nodes import (
    Callsite,
    CtorPredicate,
    Decl,
    Expr,
    Identifier,
    IntegerPredicate,
    IrrefutablePredicate,
    Let,
    LiteralFloat,
    LiteralInteger,
    LiteralString,
    Match,
    PatternExpr,
    Predicate,
    StringPredicate,
    Symbol,
    TupleCtor,
    TuplePredicate,
)
from ember.errors import ParseError
from ember.lexer import Lexer, LexerState
from ember.source import Location
from ember.tokens import (
    ASSIGN,
    COMMA,
    FAT_ARROW,
    KEYWORDS,
    RPAREN,
    Lexeme,
    LexemeKind,
    Token,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IN = Lexeme.identifier("in")


def _is_name(tok: Token | None) -> bool:
    """True for an identifier token that is not a reserved keyword."""
    return (
        tok is not None
        and tok.lexeme.kind == LexemeKind.IDENTIFIER
        and tok.lexeme.value not in KEYWORDS
    )


def _unquote(text: str) -> str:
    return text[1:-1]


class Parser:
    """Parses an Ember token stream into a list of declarations."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer

    # ── Error helpers ────────────────────────────────────────────

    def _here(self) -> Location:
        tok = self.lexer.peek()
        return tok.location if tok is not None else self.lexer.location

    def _expected(self, what: str) -> ParseError:
        tok = self.lexer.peek()
        if tok is not None:
            return ParseError.unexpected(tok, what)
        if self.lexer.state is LexerState.STARTED:
            return ParseError.not_started(self.lexer.location)
        return ParseError.eof(self.lexer.location, what)

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> list[Decl]:
        """Parse every declaration in the source.

        Nesting deeper than the interpreter stack allows is reported as a
        ParseError at the token where parsing stopped.
        """
        if self.lexer.state is LexerState.STARTED:
            self.lexer.advance()

        decls: list[Decl] = []
        while True:
            self.lexer.skip_semicolon()
            try:
                decl = self.parse_decl()
            except RecursionError:
                raise ParseError.error(
                    self._here(), "expression nested too deeply",
                ) from None
            if decl is None:
                break
            decls.append(decl)

        if self.lexer.peek() is not None:
            raise self._expected("a declaration")
        return decls

    def parse_decl(self) -> Decl | None:
        tok = self.lexer.peek()
        if not _is_name(tok):
            return None
        self.lexer.advance()
        decl_id = Identifier(tok.lexeme.value, tok.location)

        predicates = self.parse_predicates()
        self.lexer.chomp(ASSIGN)
        body = self.parse_callsite()

        decl = Decl(decl_id, predicates, body)
        logger.debug("%s: found decl %s", decl.location, decl_id.name)
        return decl

    def parse_many(self, rule: Callable[[], T | None]) -> list[T]:
        """Apply `rule` until it reports no match, collecting the results."""
        items: list[T] = []
        while True:
            mark = self.lexer.mark()
            item = rule()
            if item is None:
                self.lexer.reset(mark)
                return items
            items.append(item)

    # ── Predicates ───────────────────────────────────────────────

    def parse_predicates(self) -> list[Predicate]:
        return self.parse_many(self.parse_predicate)

    def parse_predicate(self) -> Predicate | None:
        tok = self.lexer.peek()
        if tok is None:
            return None

        lexeme = tok.lexeme
        match lexeme.kind:
            case LexemeKind.SIGNED:
                self.lexer.advance()
                return IntegerPredicate(tok.location, lexeme.value)
            case LexemeKind.QUOTED_STRING:
                self.lexer.advance()
                return StringPredicate(tok.location, _unquote(lexeme.value))
            case LexemeKind.IDENTIFIER:
                if lexeme.value in KEYWORDS:
                    return None
                self.lexer.advance()
                ident = Identifier(lexeme.value, tok.location)
                if ident.name[0].isupper():
                    return CtorPredicate(ident, self.parse_predicates())
                return IrrefutablePredicate(ident)
            case LexemeKind.LPAREN:
                self.lexer.advance()
                return self._parse_tuple_predicate(tok.location)
            case _:
                return None

    def _parse_tuple_predicate(self, location: Location) -> Predicate:
        """Parse the rest of a parenthesized predicate group.

        `(x)` is just `x`; `(a, b)` and `(a,)` are tuples; `()` is the
        empty tuple.
        """
        dims: list[Predicate] = []
        saw_comma = False
        while not self.lexer.peek_matches(RPAREN):
            predicate = self.parse_predicate()
            if predicate is None:
                raise self._expected("a predicate")
            dims.append(predicate)
            if not self.lexer.peek_matches(COMMA):
                break
            self.lexer.advance()
            saw_comma = True
        self.lexer.chomp(RPAREN)

        if len(dims) == 1 and not saw_comma:
            return dims[0]
        return TuplePredicate(location, dims)

    # ── Call-site expressions ────────────────────────────────────

    def parse_callsite(self) -> Expr:
        """Parse a function term followed by any number of argument terms."""
        self.lexer.skip_semicolon()
        function = self.parse_callsite_term()
        if function is None:
            raise ParseError.error(self._here(), "missing function callsite expression")

        arguments = self.parse_many(self.parse_callsite_term)
        if not arguments:
            return function
        return Callsite(function, arguments)

    def parse_callsite_term(self) -> Expr | None:
        tok = self.lexer.peek()
        if tok is None:
            return None

        lexeme = tok.lexeme
        match lexeme.kind:
            case LexemeKind.IDENTIFIER:
                if lexeme.value == "let":
                    self.lexer.advance()
                    return self.parse_let_expr(tok.location)
                if lexeme.value == "match":
                    self.lexer.advance()
                    return self.parse_match_expr(tok.location)
                if lexeme.value in KEYWORDS:
                    return None
                self.lexer.advance()
                return Symbol(Identifier(lexeme.value, tok.location))
            case LexemeKind.OPERATOR:
                # A bare `=` ends the term sequence (declaration heads, let)
                if lexeme == ASSIGN:
                    return None
                self.lexer.advance()
                return Symbol(Identifier(lexeme.value, tok.location))
            case LexemeKind.LPAREN:
                self.lexer.advance()
                return self._parse_parenthesized(tok.location)
            case LexemeKind.QUOTED_STRING:
                self.lexer.advance()
                return LiteralString(tok.location, _unquote(lexeme.value))
            case LexemeKind.SIGNED:
                self.lexer.advance()
                return LiteralInteger(tok.location, lexeme.value)
            case LexemeKind.FLOAT:
                self.lexer.advance()
                return LiteralFloat(tok.location, lexeme.value)
            case LexemeKind.SEMICOLON | LexemeKind.RPAREN | LexemeKind.COMMA:
                return None
            case _:
                raise ParseError.not_impl(tok.location)

    def _parse_parenthesized(self, location: Location) -> Expr:
        """Parse a grouped expression or a tuple after its `(`."""
        if self.lexer.peek_matches(RPAREN):
            self.lexer.advance()
            return TupleCtor(location, [])

        dims = [self.parse_callsite()]
        saw_comma = False
        while self.lexer.peek_matches(COMMA):
            self.lexer.advance()
            saw_comma = True
            if self.lexer.peek_matches(RPAREN):
                break
            dims.append(self.parse_callsite())
        self.lexer.chomp(RPAREN)

        if not saw_comma:
            return dims[0]
        return TupleCtor(location, dims)

    # ── let / match ──────────────────────────────────────────────

    def _parse_identifier(self) -> Identifier:
        tok = self.lexer.peek()
        if not _is_name(tok):
            raise ParseError.error(self._here(), "expected an identifier here")
        self.lexer.advance()
        return Identifier(tok.lexeme.value, tok.location)

    def parse_let_expr(self, location: Location) -> Let:
        """Parse `<id> = <value> in <body>`; the caller consumed `let`."""
        binding = self._parse_identifier()
        self.lexer.chomp(ASSIGN)
        value = self.parse_callsite()
        self.lexer.skip_semicolon()
        self.lexer.chomp(_IN)
        body = self.parse_callsite()
        return Let(location, binding, value, body)

    def parse_match_expr(self, location: Location) -> Match:
        """Parse a subject and its `<predicate> => <expr>` arms.

        The caller consumed `match`. Arms are separated by semicolons or
        top-level newlines. The match ends at the first position where no
        predicate followed by `=>` can be read; the lexer is rolled back
        to just after the last arm.
        """
        subject = self.parse_callsite()

        pattern_exprs: list[PatternExpr] = []
        while True:
            mark = self.lexer.mark()
            self.lexer.skip_semicolon()
            predicate = self.parse_predicate()
            if predicate is None or not self.lexer.peek_matches(FAT_ARROW):
                self.lexer.reset(mark)
                break
            self.lexer.advance()
            pattern_exprs.append(PatternExpr(predicate, self.parse_callsite()))

        if not pattern_exprs:
            raise ParseError.error(location, "match expression has no arms")
        return Match(location, subject, pattern_exprs)


def parse(source: str, filename: str = "<stdin>") -> list[Decl]:
    """Lex and parse a complete source text."""
    return Parser(Lexer(source, filename)).parse()
