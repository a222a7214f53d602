"""Dependency model.

A Dep is a named external package and where to get it from: a git
repository (optionally pinned to a tag) or a local directory.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from seastar.config import ConfigError, ProjectConfig


@dataclass(frozen=True)
class GitSource:
    """Clone `repo`, then check out `tag` if given."""

    repo: str
    tag: Optional[str] = None

    def describe(self) -> str:
        return f"{self.repo}@{self.tag}" if self.tag else self.repo


@dataclass(frozen=True)
class PathSource:
    """Copy a local directory."""

    path: Path

    def describe(self) -> str:
        return str(self.path)


DepSource = Union[GitSource, PathSource]


@dataclass(frozen=True)
class Dep:
    """A declared dependency.

    Attributes:
        name: Unique key within one config file; also the directory name
            under deps/ and the archive name (lib<name>.a)
        source: Where to fetch it from
    """

    name: str
    source: DepSource

    def describe(self) -> str:
        return f"{self.name} ({self.source.describe()})"


def parse_deps(config: ProjectConfig, base_dir: Optional[Path] = None) -> List[Dep]:
    """Turn a config's [dependencies] table into Dep records.

    A plain URL becomes a GitSource. A table with `git` becomes a GitSource
    with the optional tag; a table with `path` becomes a PathSource resolved
    against `base_dir` (the config's directory by default). A table with
    both yields both records in that order; the resolver keeps the first.

    Raises:
        ConfigError: If a table declares neither `git` nor `path`
    """
    if base_dir is None:
        base_dir = config.base_dir
    deps: List[Dep] = []
    for name, spec in config.dependencies.items():
        if spec.git is None and spec.path is None:
            raise ConfigError(f"Dependency '{name}' needs a 'git' or 'path' entry")
        if spec.git is not None:
            deps.append(Dep(name=name, source=GitSource(repo=spec.git, tag=spec.tag)))
        if spec.path is not None:
            path = Path(spec.path).expanduser()
            if not path.is_absolute():
                path = (Path(base_dir) / path).resolve()
            deps.append(Dep(name=name, source=PathSource(path=path)))
    return deps
