"""Dependency resolution.

Builds the transitive dependency graph of a project by fetching every
declared dependency, reading its own Seastar.toml and recursing into the
dependencies it declares.

Resolution is depth-first and keyed by dependency name:
    - each name is fetched at most once per resolution, no matter how many
      parents declare it; later declarations with a different source are
      ignored with a warning
    - a node is inserted only after all of its children, so a node's
      dependencies are always in the graph before the node itself
    - a name that reappears on the current resolution path is a cycle and
      raises CyclicDependencyError

Fetch failures are logged and do not stop resolution: the dependency is
kept as a leaf node and the build fails later, at compile or link time,
where the missing files are actually needed. Pass strict_fetch=True to
make them fatal instead.

Usage:
    resolver = DependencyResolver(DependencyFetcher(deps_dir, cache))
    graph = resolver.resolve_and_fetch(parse_deps(config))
    for node in graph.topological_order():
        build_static_library(node)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from seastar.config import CONFIG_FILE_NAME, ConfigError, ProjectConfig, load_config
from seastar.errors import SeastarError
from seastar.output import log_detail, log_warning

from .dependency import Dep, PathSource, parse_deps
from .fetcher import DependencyFetcher, FetchError

logger = logging.getLogger(__name__)


class CyclicDependencyError(SeastarError, ValueError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Cyclic dependency detected: {' -> '.join(cycle)}")


@dataclass
class DepNode:
    """One resolved dependency and the names of its direct dependencies."""

    dep: Dep
    dependencies: List[str] = field(default_factory=list)
    config: Optional[ProjectConfig] = None
    fetch_error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.dep.name

    @property
    def fetched(self) -> bool:
        return self.fetch_error is None


@dataclass
class DepGraph:
    """Resolved dependency graph keyed by dependency name."""

    nodes: Dict[str, DepNode] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, node: DepNode) -> None:
        self.nodes[node.name] = node

    def topological_order(self) -> List[DepNode]:
        """Return nodes with every dependency before its dependents.

        Walks depth-first from every key in insertion order, emitting a node
        after all the names it lists. Names without a node are skipped.

        Raises:
            CyclicDependencyError: If the graph contains a cycle
        """
        order: List[DepNode] = []
        done: set[str] = set()
        in_progress: List[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in in_progress:
                raise CyclicDependencyError(in_progress[in_progress.index(name):] + [name])
            node = self.nodes.get(name)
            if node is None:
                logger.debug(f"Dependency '{name}' has no node in the graph")
                return
            in_progress.append(name)
            for child in node.dependencies:
                visit(child)
            in_progress.pop()
            done.add(name)
            order.append(node)

        for name in self.nodes:
            visit(name)
        return order


ConfigLoader = Callable[[Path], ProjectConfig]


class DependencyResolver:
    """Fetches dependencies recursively and assembles the DepGraph."""

    def __init__(
        self,
        fetcher: DependencyFetcher,
        config_loader: ConfigLoader = load_config,
        strict_fetch: bool = False,
    ):
        """
        Args:
            fetcher: Fetches a single dependency into deps/<name>/
            config_loader: Loads a dependency's Seastar.toml
            strict_fetch: Raise on fetch failures instead of continuing
        """
        self.fetcher = fetcher
        self.config_loader = config_loader
        self.strict_fetch = strict_fetch

    def resolve_and_fetch(self, root_deps: List[Dep]) -> DepGraph:
        """Resolve the full transitive graph of `root_deps`.

        Raises:
            CyclicDependencyError: If a dependency (transitively) depends on itself
            ConfigError: If a fetched dependency has a malformed Seastar.toml
            FetchError: Only when strict_fetch is set
        """
        graph = DepGraph()
        visited: Dict[str, Dep] = {}
        for dep in root_deps:
            self._resolve(dep, graph, visited, [])
        return graph

    def _resolve(self, dep: Dep, graph: DepGraph, visited: Dict[str, Dep], path: List[str]) -> None:
        if dep.name in path:
            raise CyclicDependencyError(path[path.index(dep.name):] + [dep.name])

        if dep.name in visited:
            first = visited[dep.name]
            if first.source != dep.source:
                log_warning(f"Dependency '{dep.name}' is declared with different sources; using {first.source.describe()}, ignoring {dep.source.describe()}")
            return
        visited[dep.name] = dep

        log_detail(f"Resolving {dep.describe()}")
        try:
            self.fetcher.fetch(dep)
        except FetchError as e:
            if self.strict_fetch:
                raise
            logger.error(f"Failed to fetch dependency '{dep.name}': {e}")
            log_warning(f"Failed to fetch {dep.name}: {e}")
            graph.add(DepNode(dep=dep, fetch_error=str(e)))
            return

        path.append(dep.name)
        config = self._load_dep_config(dep)
        children = self._child_deps(dep, config) if config is not None else []
        for child in children:
            self._resolve(child, graph, visited, path)
        path.pop()

        names: List[str] = []
        for child in children:
            if child.name not in names:
                names.append(child.name)
        graph.add(DepNode(dep=dep, dependencies=names, config=config))

    def _load_dep_config(self, dep: Dep) -> Optional[ProjectConfig]:
        """Load a fetched dependency's Seastar.toml, or None if it has none."""
        config_path = self.fetcher.dep_dir(dep.name) / CONFIG_FILE_NAME
        if not config_path.is_file():
            logger.warning(f"{dep.name} has no {CONFIG_FILE_NAME}; treating it as having no dependencies")
            return None
        return self.config_loader(config_path)

    def _child_deps(self, dep: Dep, config: ProjectConfig) -> List[Dep]:
        """Dependencies declared by a fetched dependency."""
        # Relative paths in a local dependency point next to the original
        # directory, not next to its copy under deps/
        base_dir = dep.source.path if isinstance(dep.source, PathSource) else None
        try:
            return parse_deps(config, base_dir=base_dir)
        except ConfigError as e:
            raise ConfigError(f"{config.path}: {e}") from e


def resolve_and_fetch(root_deps: List[Dep], fetcher: DependencyFetcher, strict_fetch: bool = False) -> DepGraph:
    """Convenience wrapper around DependencyResolver.resolve_and_fetch()."""
    return DependencyResolver(fetcher, strict_fetch=strict_fetch).resolve_and_fetch(root_deps)
