"""Ember command line driver."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ember import __version__
from ember.ast_nodes import Decl, Identifier
from ember.config import CONFIG_NAME, EmberConfig, find_config, load_config
from ember.errors import DiagnosticRenderer, ParseError
from ember.lexer import Lexer
from ember.parser import Parser
from ember.project import scaffold

logger = logging.getLogger(__name__)


def _parse_file(path: Path, renderer: DiagnosticRenderer) -> list[Decl] | None:
    """Parse one source file; render and return None on error."""
    filename = str(path)
    try:
        return Parser(Lexer(path.read_text(), filename)).parse()
    except ParseError as e:
        click.echo(renderer.render(e), err=True)
        return None


def _check_project(project_dir: Path, config: EmberConfig, *, color: bool) -> bool:
    """Parse every source file of a project. Returns True if OK."""
    src_dir = project_dir / config.source.dir
    if not src_dir.is_dir():
        src_dir = project_dir  # fallback to project root

    files = sorted(src_dir.rglob(f"*{config.source.extension}"))
    if not files:
        click.echo(f"warning: no {config.source.extension} files found", err=True)
        return True

    renderer = DiagnosticRenderer(color=color and config.diagnostics.color)
    had_errors = False
    for path in files:
        decls = _parse_file(path, renderer)
        if decls is None:
            had_errors = True
            continue
        logger.info("%s: %d declaration(s)", path, len(decls))

    return not had_errors


@click.group()
@click.version_option(__version__, prog_name="ember")
@click.option("-v", "--verbose", is_flag=True, help="Log lexer and parser tracing.")
@click.option("--color/--no-color", default=True, help="Colorize diagnostics.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, color: bool) -> None:
    """The Ember language front end."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"color": color}


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def lex(ctx: click.Context, file: str) -> None:
    """Print the tokens of an Ember source file."""
    path = Path(file)
    lexer = Lexer(path.read_text(), str(path))
    try:
        for token in lexer:
            click.echo(f"{token.location}: {token.lexeme}")
    except ParseError as e:
        click.echo(DiagnosticRenderer(color=ctx.obj["color"]).render(e), err=True)
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def view(ctx: click.Context, file: str) -> None:
    """View the AST of an Ember source file."""
    decls = _parse_file(Path(file), DiagnosticRenderer(color=ctx.obj["color"]))
    if decls is None:
        raise SystemExit(1)
    for decl in decls:
        _dump_ast(decl, 0)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.pass_context
def check(ctx: click.Context, path: str) -> None:
    """Parse every source file of an Ember project."""
    try:
        config_path = find_config(Path(path))
    except FileNotFoundError:
        click.echo(f"error: no {CONFIG_NAME} found", err=True)
        raise SystemExit(1)

    config = load_config(config_path)
    click.echo(f"checking {config.package.name}...")
    if not _check_project(config_path.parent, config, color=ctx.obj["color"]):
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: no errors")


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new Ember project."""
    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the Ember language server."""
    logging.getLogger("pygls").setLevel(logging.ERROR)

    from ember.lsp import main as lsp_main

    lsp_main()


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if isinstance(node, Identifier):
        click.echo(f"{indent}{name} {node.name!r}")
        return

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "location":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
