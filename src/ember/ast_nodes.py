"""AST node definitions for the Ember language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ember.source import Location


@dataclass(frozen=True)
class Identifier:
    name: str
    location: Location


# ── Predicates ───────────────────────────────────────────────────


@dataclass(frozen=True)
class IrrefutablePredicate:
    """Binds the matched value to a name unconditionally."""

    id: Identifier

    @property
    def location(self) -> Location:
        return self.id.location


@dataclass(frozen=True)
class IntegerPredicate:
    location: Location
    value: int


@dataclass(frozen=True)
class StringPredicate:
    location: Location
    value: str


@dataclass(frozen=True)
class CtorPredicate:
    """A capitalized constructor applied to sub-patterns."""

    ctor_id: Identifier
    dims: list[Predicate]

    @property
    def location(self) -> Location:
        return self.ctor_id.location


@dataclass(frozen=True)
class TuplePredicate:
    location: Location
    dims: list[Predicate]


Predicate = Union[
    IrrefutablePredicate, IntegerPredicate, StringPredicate,
    CtorPredicate, TuplePredicate,
]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Lambda:
    location: Location
    param_names: list[Identifier]
    body: Expr


@dataclass(frozen=True)
class Let:
    location: Location
    binding: Identifier
    value: Expr
    body: Expr


@dataclass(frozen=True)
class LiteralInteger:
    location: Location
    value: int


@dataclass(frozen=True)
class LiteralFloat:
    location: Location
    value: float


@dataclass(frozen=True)
class LiteralString:
    location: Location
    value: str


@dataclass(frozen=True)
class Symbol:
    """A reference to a name; operators are names too."""

    id: Identifier

    @property
    def location(self) -> Location:
        return self.id.location


@dataclass(frozen=True)
class PatternExpr:
    predicate: Predicate
    expr: Expr

    @property
    def location(self) -> Location:
        return self.predicate.location


@dataclass(frozen=True)
class Match:
    location: Location
    subject: Expr
    pattern_exprs: list[PatternExpr]


@dataclass(frozen=True)
class Callsite:
    function: Expr
    arguments: list[Expr]

    @property
    def location(self) -> Location:
        return self.function.location


@dataclass(frozen=True)
class TupleCtor:
    location: Location
    dims: list[Expr]


Expr = Union[
    Lambda, Let, LiteralInteger, LiteralFloat, LiteralString,
    Symbol, Match, Callsite, TupleCtor,
]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Decl:
    id: Identifier
    predicates: list[Predicate]
    body: Expr

    @property
    def location(self) -> Location:
        return self.id.location
