"""Project scaffolding for `ember new`."""

from __future__ import annotations

from pathlib import Path

_EMBER_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
authors = []

[source]
dir = "src"
extension = ".emb"

[diagnostics]
color = true
"""

_MAIN_EMB_TEMPLATE = """\
greeting = "Hello from Ember!"

main = print greeting
"""

_GITIGNORE = """\
build/
__pycache__/
"""

_README_TEMPLATE = """\
# {name}

An Ember project.

## Check

```bash
ember check
```
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new Ember project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    src_dir = project_dir / "src"
    src_dir.mkdir(parents=True)

    (project_dir / "ember.toml").write_text(_EMBER_TOML_TEMPLATE.format(name=name))
    (src_dir / "main.emb").write_text(_MAIN_EMB_TEMPLATE)
    (project_dir / ".gitignore").write_text(_GITIGNORE)
    (project_dir / "README.md").write_text(_README_TEMPLATE.format(name=name))

    return project_dir
