"""Ember language server: a pygls-based LSP for .emb files.

Provides parse diagnostics, hover, completion and document symbols via
stdio transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from ember import __version__
from ember.ast_nodes import (
    CtorPredicate,
    Decl,
    IntegerPredicate,
    IrrefutablePredicate,
    Predicate,
    StringPredicate,
    TuplePredicate,
)
from ember.errors import ErrorLevel, ParseError
from ember.lexer import Lexer
from ember.parser import Parser
from ember.source import Location
from ember.tokens import KEYWORDS

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    ErrorLevel.ERROR: lsp.DiagnosticSeverity.Error,
    ErrorLevel.WARNING: lsp.DiagnosticSeverity.Warning,
    ErrorLevel.INFO: lsp.DiagnosticSeverity.Information,
}

_KEYWORD_COMPLETIONS = sorted(KEYWORDS)


def location_to_range(location: Location, length: int = 1) -> lsp.Range:
    """Convert an Ember Location (1-indexed line) to a 0-indexed LSP Range."""
    line = location.line - 1
    return lsp.Range(
        start=lsp.Position(line=line, character=location.col),
        end=lsp.Position(line=line, character=location.col + length),
    )


def _predicate_display(predicate: Predicate, *, nested: bool = False) -> str:
    match predicate:
        case IrrefutablePredicate(id=ident):
            return ident.name
        case IntegerPredicate(value=value):
            return str(value)
        case StringPredicate(value=value):
            return f'"{value}"'
        case CtorPredicate(ctor_id=ctor_id, dims=dims):
            if not dims:
                return ctor_id.name
            inner = " ".join(_predicate_display(d, nested=True) for d in dims)
            text = f"{ctor_id.name} {inner}"
            return f"({text})" if nested else text
        case TuplePredicate(dims=dims):
            inner = ", ".join(_predicate_display(d) for d in dims)
            return f"({inner},)" if len(dims) == 1 else f"({inner})"
    return "?"


def decl_head(decl: Decl) -> str:
    """Format a declaration head, e.g. `map f (Cons x xs)`."""
    parts = [decl.id.name]
    parts.extend(_predicate_display(p, nested=True) for p in decl.predicates)
    return " ".join(parts)


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    decls: list[Decl] = field(default_factory=list)
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "ember-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _parse_diag(err: ParseError) -> lsp.Diagnostic:
    """Convert a ParseError to an LSP Diagnostic."""
    return lsp.Diagnostic(
        range=location_to_range(err.location),
        severity=_SEVERITY_MAP[err.level],
        source="ember",
        code=err.code,
        message=err.message,
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Lex and parse a document, cache the results, return the state."""
    ds = DocumentState(source=source)
    try:
        ds.decls = Parser(Lexer(source, uri)).parse()
    except ParseError as e:
        ds.diagnostics = [_parse_diag(e)]
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.split("\n")
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Try character-1 in case cursor is right after the word
        if character > 0 and character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1

    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1

    return text[start:end]


def _find_decls(ds: DocumentState, name: str) -> list[Decl]:
    return [d for d in ds.decls if d.id.name == name]


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole document
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None

    word = _get_word_at(ds.source, params.position.line, params.position.character)
    if not word:
        return None
    if word in KEYWORDS:
        return lsp.Hover(contents=lsp.MarkupContent(
            kind=lsp.MarkupKind.Markdown,
            value=f"**keyword** `{word}`",
        ))

    decls = _find_decls(ds, word)
    if not decls:
        return None
    heads = "\n".join(f"- `{decl_head(d)}`" for d in decls)
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=f"**decl** `{word}`\n\n{heads}",
    ))


@server.feature(lsp.TEXT_DOCUMENT_COMPLETION)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    items: list[lsp.CompletionItem] = []

    for kw in _KEYWORD_COMPLETIONS:
        items.append(lsp.CompletionItem(
            label=kw,
            kind=lsp.CompletionItemKind.Keyword,
        ))

    if ds is not None:
        seen: set[str] = set()
        for decl in ds.decls:
            if decl.id.name in seen:
                continue
            seen.add(decl.id.name)
            items.append(lsp.CompletionItem(
                label=decl.id.name,
                kind=lsp.CompletionItemKind.Function,
                detail=decl_head(decl),
            ))

    return lsp.CompletionList(is_incomplete=False, items=items)


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return []
    return [_decl_to_symbol(decl) for decl in ds.decls]


def _decl_to_symbol(decl: Decl) -> lsp.DocumentSymbol:
    """Convert a top-level declaration to an LSP DocumentSymbol."""
    name_range = location_to_range(decl.location, len(decl.id.name))
    return lsp.DocumentSymbol(
        name=decl.id.name,
        kind=lsp.SymbolKind.Function,
        range=name_range,
        selection_range=name_range,
        detail=decl_head(decl),
    )


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the Ember language server on stdio."""
    server.start_io()
