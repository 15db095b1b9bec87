"""TOML config loading for ember.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, TypeVar

CONFIG_NAME = "ember.toml"

T = TypeVar("T")


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"
    authors: list[str] = field(default_factory=list)


@dataclass
class SourceConfig:
    dir: str = "src"
    extension: str = ".emb"


@dataclass
class DiagnosticsConfig:
    color: bool = True


@dataclass
class EmberConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find ember.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _section(data: dict[str, Any], name: str, cls: type[T]) -> T:
    """Build one config section from its table; unknown keys are ignored."""
    table = data.get(name, {})
    known = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in table.items() if key in known})


def load_config(path: Path) -> EmberConfig:
    """Parse an ember.toml file into an EmberConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    return EmberConfig(
        package=_section(data, "package", PackageConfig),
        source=_section(data, "source", SourceConfig),
        diagnostics=_section(data, "diagnostics", DiagnosticsConfig),
    )
