"""Pygments lexer for the Ember language."""

from pygments.lexer import RegexLexer, words
from pygments.token import (
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)


class EmberLexer(RegexLexer):
    """Pygments lexer for the Ember language."""

    name = "Ember"
    aliases = ["ember"]
    filenames = ["*.emb"]
    mimetypes = ["text/x-ember"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Strings have no escapes; they run to the next quote
            (r'"[^"]*"', String),
            # Numbers (a leading - belongs to the literal)
            (r"-?[0-9]+\.[0-9]+", Number.Float),
            (r"-?[0-9]+", Number.Integer),
            # Binding and control keywords
            (
                words(
                    ("let", "in", "match", "if", "then", "else", "do"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword,
            ),
            # Match arm arrow
            (r"=>(?![.=><\-+!@:$%^&*/?~])", Punctuation),
            # Operators are greedy runs of operator characters
            (r"[.=><\-+!@:$%^&*/?~]+", Operator),
            # Constructors (capitalized identifiers)
            (r"[A-Z][A-Za-z0-9_]*", Name.Class),
            # Identifiers
            (r"[a-z_][A-Za-z0-9_]*", Name),
            # Punctuation
            (r"[()\[\]{};,]", Punctuation),
        ],
    }
