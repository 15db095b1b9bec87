"""Tests for the Ember parser."""

from __future__ import annotations

import pytest

from ember.ast_nodes import (
    Callsite,
    CtorPredicate,
    Decl,
    Identifier,
    IntegerPredicate,
    IrrefutablePredicate,
    Let,
    LiteralFloat,
    LiteralInteger,
    LiteralString,
    Match,
    PatternExpr,
    StringPredicate,
    Symbol,
    TupleCtor,
    TuplePredicate,
)
from ember.errors import ParseError
from ember.lexer import Lexer
from ember.parser import Parser, parse
from ember.source import Location
from ember.tokens import ASSIGN, SEMICOLON


def loc(line: int, col: int) -> Location:
    return Location("test.emb", line, col)


def ident(name: str, line: int, col: int) -> Identifier:
    return Identifier(name, loc(line, col))


def sym(name: str, line: int, col: int) -> Symbol:
    return Symbol(ident(name, line, col))


def parse_decls(source: str) -> list[Decl]:
    return parse(source, "test.emb")


def parse_decl(source: str) -> Decl:
    """Helper: parse a source holding exactly one declaration."""
    decls = parse_decls(source)
    assert len(decls) == 1
    return decls[0]


def parse_fails(source: str) -> ParseError:
    with pytest.raises(ParseError) as exc_info:
        parse_decls(source)
    return exc_info.value


def started_parser(source: str) -> Parser:
    lexer = Lexer(source, "test.emb")
    lexer.advance()
    return Parser(lexer)


class TestParserDecls:
    def test_simple_decl(self):
        decl = parse_decl("f x = x")
        assert decl.id == ident("f", 1, 0)
        assert decl.predicates == [IrrefutablePredicate(ident("x", 1, 2))]
        assert decl.body == sym("x", 1, 6)
        assert decl.location == loc(1, 0)

    def test_decl_without_predicates(self):
        decl = parse_decl("answer = 42")
        assert decl.predicates == []
        assert decl.body == LiteralInteger(loc(1, 9), 42)

    def test_multiple_decls(self):
        decls = parse_decls("a = 1\nb = 2\n\n\nc = 3\n")
        assert [d.id.name for d in decls] == ["a", "b", "c"]
        assert decls[2].location == loc(5, 0)

    def test_semicolon_separated_decls(self):
        decls = parse_decls("a = 1; b = 2")
        assert [d.id.name for d in decls] == ["a", "b"]

    def test_empty_source(self):
        assert parse_decls("") == []

    def test_only_newlines(self):
        assert parse_decls("\n\n;\n") == []

    def test_body_on_next_line(self):
        decl = parse_decl("f =\n  x")
        assert decl.body == sym("x", 2, 2)

    def test_keyword_cannot_name_decl(self):
        err = parse_fails("let = 1")
        assert err.code == "E200"
        assert err.message == 'unexpected token (Identifier("let")) found. expected a declaration'

    def test_missing_equals(self):
        err = parse_fails("f x y")
        assert err.code == "E201"
        assert err.message == 'hit EOF but expected Operator("=")'

    def test_wrong_token_instead_of_equals(self):
        err = parse_fails("f x ; y")
        assert err.code == "E200"
        assert err.location == loc(1, 4)

    def test_missing_body(self):
        err = parse_fails("f =")
        assert err.code == "E204"
        assert err.message == "missing function callsite expression"

    def test_unbalanced_closer(self):
        assert parse_fails("f = x )").code == "E102"

    def test_unclosed_paren(self):
        err = parse_fails("f = (x")
        assert err.code == "E201"
        assert err.message == "hit EOF but expected RParen"
        assert err.location == loc(1, 6)

    def test_unparsed_leftover(self):
        err = parse_fails("main = f x, y")
        assert err.code == "E200"
        assert "expected a declaration" in err.message
        assert err.location == loc(1, 10)

    def test_deep_nesting_is_a_parse_error(self):
        depth = 2000
        err = parse_fails("f = " + "(" * depth + "x" + ")" * depth)
        assert err.code == "E204"
        assert err.message == "expression nested too deeply"
        assert err.location.line == 1

    def test_deep_predicate_nesting_is_a_parse_error(self):
        depth = 2000
        err = parse_fails("f " + "(" * depth + "x" + ")" * depth + " = x")
        assert err.message == "expression nested too deeply"

    def test_moderate_nesting_parses(self):
        depth = 50
        decl = parse_decl("f = " + "(" * depth + "x" + ")" * depth)
        assert decl.body == sym("x", 1, 4 + depth)

    def test_error_string_has_location(self):
        err = parse_fails("f =")
        assert str(err) == "test.emb:1:3: error: missing function callsite expression"


class TestParserPredicates:
    def test_integer_predicate(self):
        decl = parse_decl("f 0 = 1")
        assert decl.predicates == [IntegerPredicate(loc(1, 2), 0)]

    def test_negative_integer_predicate(self):
        decl = parse_decl("f -1 = 1")
        assert decl.predicates == [IntegerPredicate(loc(1, 2), -1)]

    def test_string_predicate_drops_quotes(self):
        decl = parse_decl('f "a" = 1')
        assert decl.predicates == [StringPredicate(loc(1, 2), "a")]

    def test_wildcard_is_irrefutable(self):
        decl = parse_decl("f _ = 0")
        assert decl.predicates == [IrrefutablePredicate(ident("_", 1, 2))]

    def test_parenthesized_single_degenerates(self):
        decl = parse_decl("f (x) = x")
        assert decl.predicates == [IrrefutablePredicate(ident("x", 1, 3))]

    def test_double_parens_degenerate(self):
        decl = parse_decl("f ((x)) = x")
        assert decl.predicates == [IrrefutablePredicate(ident("x", 1, 4))]

    def test_tuple_predicate(self):
        decl = parse_decl("f (a, b) = a")
        assert decl.predicates == [
            TuplePredicate(loc(1, 2), [
                IrrefutablePredicate(ident("a", 1, 3)),
                IrrefutablePredicate(ident("b", 1, 6)),
            ])
        ]

    def test_single_element_tuple(self):
        decl = parse_decl("f (a,) = a")
        assert decl.predicates == [
            TuplePredicate(loc(1, 2), [IrrefutablePredicate(ident("a", 1, 3))])
        ]

    def test_empty_tuple(self):
        decl = parse_decl("f () = 1")
        assert decl.predicates == [TuplePredicate(loc(1, 2), [])]

    def test_nested_tuple(self):
        [pred] = parse_decl("f (a, (b, c)) = a").predicates
        assert isinstance(pred, TuplePredicate)
        assert isinstance(pred.dims[1], TuplePredicate)
        assert [p.id.name for p in pred.dims[1].dims] == ["b", "c"]

    def test_ctor_without_args(self):
        decl = parse_decl("f Nil = 0")
        assert decl.predicates == [CtorPredicate(ident("Nil", 1, 2), [])]

    def test_parenthesized_ctor(self):
        decl = parse_decl("f (Cons x xs) = x")
        assert decl.predicates == [
            CtorPredicate(ident("Cons", 1, 3), [
                IrrefutablePredicate(ident("x", 1, 8)),
                IrrefutablePredicate(ident("xs", 1, 10)),
            ])
        ]

    def test_bare_ctor_takes_following_predicates(self):
        decl = parse_decl("f Cons x xs = x")
        assert len(decl.predicates) == 1
        assert [p.id.name for p in decl.predicates[0].dims] == ["x", "xs"]

    def test_mixed_predicates(self):
        decl = parse_decl('f 1 "s" (a, b) z = z')
        assert [type(p) for p in decl.predicates] == [
            IntegerPredicate,
            StringPredicate,
            TuplePredicate,
            IrrefutablePredicate,
        ]

    def test_juxtaposed_names_in_parens(self):
        err = parse_fails("f (a b) = a")
        assert err.code == "E200"
        assert err.location == loc(1, 5)

    def test_missing_predicate_after_comma(self):
        err = parse_fails("f (a, = 1)")
        assert err.code == "E200"
        assert "expected a predicate" in err.message


class TestParserCallsites:
    def test_callsite(self):
        decl = parse_decl("main = f x y")
        assert decl.body == Callsite(sym("f", 1, 7), [sym("x", 1, 9), sym("y", 1, 11)])

    def test_bare_function_is_not_a_callsite(self):
        assert parse_decl("g = f").body == sym("f", 1, 4)

    def test_callsite_location_is_function_location(self):
        assert parse_decl("main = f x").body.location == loc(1, 7)

    def test_nested_callsite(self):
        body = parse_decl("main = f (g x) y").body
        assert body == Callsite(sym("f", 1, 7), [
            Callsite(sym("g", 1, 10), [sym("x", 1, 12)]),
            sym("y", 1, 15),
        ])

    def test_grouped_symbol(self):
        assert parse_decl("main = (f)").body == sym("f", 1, 8)

    def test_operators_are_symbols(self):
        body = parse_decl("main = x + 1").body
        assert body == Callsite(sym("x", 1, 7), [
            sym("+", 1, 9),
            LiteralInteger(loc(1, 11), 1),
        ])

    def test_literals(self):
        body = parse_decl('main = f "hi" 3.5 -2').body
        assert body.arguments == [
            LiteralString(loc(1, 9), "hi"),
            LiteralFloat(loc(1, 14), 3.5),
            LiteralInteger(loc(1, 18), -2),
        ]

    def test_tuple_expression(self):
        body = parse_decl("main = (a, b)").body
        assert body == TupleCtor(loc(1, 7), [sym("a", 1, 8), sym("b", 1, 11)])

    def test_empty_tuple_expression(self):
        assert parse_decl("main = ()").body == TupleCtor(loc(1, 7), [])

    def test_single_element_tuple_expression(self):
        assert parse_decl("main = (a,)").body == TupleCtor(loc(1, 7), [sym("a", 1, 8)])

    def test_tuple_of_callsites(self):
        body = parse_decl("main = (f x, g y)").body
        assert isinstance(body, TupleCtor)
        assert all(isinstance(d, Callsite) for d in body.dims)

    def test_newlines_inside_parens(self):
        body = parse_decl("main = (f\n  x)").body
        assert body == Callsite(sym("f", 1, 8), [sym("x", 2, 2)])

    def test_square_bracket_not_implemented(self):
        err = parse_fails("main = f [x]")
        assert err.code == "E203"
        assert err.message == "parsing this is not implemented"
        assert err.location == loc(1, 9)

    def test_keyword_ends_callsite(self):
        assert parse_fails("main = f if").code == "E200"


class TestParserLet:
    def test_let(self):
        body = parse_decl("g = let x = 1 in x").body
        assert body == Let(
            loc(1, 4),
            ident("x", 1, 8),
            LiteralInteger(loc(1, 12), 1),
            sym("x", 1, 17),
        )

    def test_let_value_is_a_callsite(self):
        body = parse_decl("g = let y = f 1 in y").body
        assert isinstance(body.value, Callsite)

    def test_nested_let(self):
        body = parse_decl("g = let x = 1 in let y = 2 in x").body
        assert isinstance(body, Let)
        assert isinstance(body.body, Let)
        assert body.body.binding.name == "y"

    def test_in_on_next_line(self):
        body = parse_decl("g = let x = 1\n  in x").body
        assert isinstance(body, Let)
        assert body.body == sym("x", 2, 5)

    def test_let_as_argument(self):
        body = parse_decl("g = f let x = 1 in x").body
        assert isinstance(body, Callsite)
        assert isinstance(body.arguments[0], Let)

    def test_binding_must_be_identifier(self):
        err = parse_fails("g = let 1 = 2 in 3")
        assert err.code == "E204"
        assert err.message == "expected an identifier here"
        assert err.location == loc(1, 8)

    def test_binding_cannot_be_keyword(self):
        assert parse_fails("g = let in = 2 in 3").message == "expected an identifier here"

    def test_missing_in(self):
        err = parse_fails("g = let x = 1 x")
        assert err.code == "E201"
        assert err.message == 'hit EOF but expected Identifier("in")'

    def test_missing_equals(self):
        assert parse_fails("g = let x 1 in x").code == "E200"


class TestParserMatch:
    def test_match(self):
        decl = parse_decl('f n = match n\n  0 => "zero"\n  m => "many"\n')
        assert decl.body == Match(loc(1, 6), sym("n", 1, 12), [
            PatternExpr(IntegerPredicate(loc(2, 2), 0), LiteralString(loc(2, 7), "zero")),
            PatternExpr(IrrefutablePredicate(ident("m", 3, 2)), LiteralString(loc(3, 7), "many")),
        ])

    def test_match_followed_by_decl(self):
        decls = parse_decls("f n = match n\n  0 => 1\n  m => m\ng = 2\n")
        assert [d.id.name for d in decls] == ["f", "g"]
        assert len(decls[0].body.pattern_exprs) == 2
        assert decls[1].body == LiteralInteger(loc(4, 4), 2)

    def test_inline_match_in_parens(self):
        body = parse_decl("f n = (match n; 0 => 1; _ => 2) n").body
        assert isinstance(body, Callsite)
        assert isinstance(body.function, Match)
        assert len(body.function.pattern_exprs) == 2
        assert body.arguments == [sym("n", 1, 32)]

    def test_ctor_arms(self):
        body = parse_decl("f xs = match xs\n  Cons x rest => x\n  Nil => 0").body
        preds = [arm.predicate for arm in body.pattern_exprs]
        assert preds == [
            CtorPredicate(ident("Cons", 2, 2), [
                IrrefutablePredicate(ident("x", 2, 7)),
                IrrefutablePredicate(ident("rest", 2, 9)),
            ]),
            CtorPredicate(ident("Nil", 3, 2), []),
        ]

    def test_tuple_arm(self):
        body = parse_decl("f p = match p\n  (a, b) => a").body
        assert isinstance(body.pattern_exprs[0].predicate, TuplePredicate)
        assert body.pattern_exprs[0].location == loc(2, 2)

    def test_arm_with_let_body(self):
        body = parse_decl("f = match x\n  y => let z = y in z").body
        assert isinstance(body.pattern_exprs[0].expr, Let)

    def test_arm_body_is_callsite(self):
        body = parse_decl("f = match x\n  y => g y 1").body
        assert body.pattern_exprs[0].expr == Callsite(
            sym("g", 2, 7), [sym("y", 2, 9), LiteralInteger(loc(2, 11), 1)]
        )

    def test_match_without_arms(self):
        err = parse_fails("f = match x")
        assert err.code == "E204"
        assert err.message == "match expression has no arms"
        assert err.location == loc(1, 4)

    def test_arm_without_body(self):
        err = parse_fails("f = match x\n  0 =>")
        assert err.message == "missing function callsite expression"


class TestParserRules:
    def test_parse_many_collects_until_no_match(self):
        parser = started_parser("a b c = 1")
        preds = parser.parse_many(parser.parse_predicate)
        assert [p.id.name for p in preds] == ["a", "b", "c"]
        assert parser.lexer.peek().lexeme == ASSIGN

    def test_parse_many_with_no_match(self):
        parser = started_parser("= x")
        assert parser.parse_many(parser.parse_predicate) == []
        assert parser.lexer.peek().lexeme == ASSIGN

    def test_no_match_does_not_consume(self):
        parser = started_parser("; x")
        assert parser.parse_callsite_term() is None
        assert parser.parse_predicate() is None
        assert parser.parse_decl() is None
        assert parser.lexer.peek().lexeme == SEMICOLON

    def test_assign_ends_term_sequence(self):
        parser = started_parser("= x")
        assert parser.parse_callsite_term() is None

    def test_parse_decl_on_started_lexer(self):
        parser = started_parser("f x = x\n")
        decl = parser.parse_decl()
        assert decl.id.name == "f"
        assert parser.lexer.peek().lexeme == SEMICOLON
