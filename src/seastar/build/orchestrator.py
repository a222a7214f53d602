"""
Build orchestration for Seastar projects.

One build runs these phases in order:

    [1/4] Load Seastar.toml, resolve and fetch the dependency graph
    [2/4] Build every dependency into deps/<name>/lib<name>.a, leaves first
    [3/4] Compile the project's own sources into target/obj/
    [4/4] Archive (library) or link (executable) into target/

A library archive carries the objects of every dependency archive, so it
can be linked on its own. An executable links the dependency archives.

Everything runs sequentially in the calling thread. Configuration, compile
and link errors raise and abort the build; dependency fetch errors are
reported and surface later as compile or link errors (see
seastar.packages.resolver).
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from seastar.config import ProjectConfig, load_config
from seastar.output import TimedLogger, log, log_detail, log_warning, set_verbose
from seastar.packages import DepGraph, DependencyFetcher, DependencyResolver, DepNode, PackageCache, parse_deps
from seastar.subprocess_utils import format_command

from .build_context import BuildParams, ProjectLayout
from .build_utils import remove_dirs_best_effort
from .compiler import CompileStats, IncrementalCompiler
from .language import LanguageDescriptor, has_cpp_sources, languages_from_config, link_driver
from .linker import Linker, LinkError, LinkMode, archive_name, needs_rearchive
from .source_scanner import SourceScanner

logger = logging.getLogger(__name__)

TOTAL_PHASES = 4


@dataclass
class BuildResult:
    """Result of a successful build.

    Attributes:
        output_path: Final executable or static library
        link_mode: Whether output_path is an archive or an executable
        compiled: Translation units compiled in this run
        cached: Translation units reused from a previous run
        dependency_archives: Dependency libraries linked in, in build order
        build_time: Wall-clock seconds
    """

    output_path: Path
    link_mode: LinkMode
    compiled: int = 0
    cached: int = 0
    dependency_archives: List[Path] = field(default_factory=list)
    build_time: float = 0.0

    @property
    def is_library(self) -> bool:
        return self.link_mode is LinkMode.ARCHIVE


@dataclass
class _UnitResult:
    """Objects of one build unit (the project or one dependency)."""

    objects: List[Path]
    sources: List[Path]
    stats: CompileStats


@dataclass
class _DependencyOutput:
    """Static library of one dependency and the objects archived into it."""

    archive: Path
    objects: List[Path] = field(default_factory=list)
    fetched: bool = True


class BuildOrchestrator:
    """
    Orchestrates a complete build of one project and its dependencies.

    Example:
        orchestrator = BuildOrchestrator()
        result = orchestrator.build(BuildParams(project_dir=Path(".")))
        print(result.output_path)
    """

    def __init__(self, cache: Optional[PackageCache] = None, linker: Optional[Linker] = None):
        """
        Args:
            cache: Package cache for git dependencies (created from
                BuildParams.cache_root when omitted)
            linker: Linker instance (default uses `ar`)
        """
        self.cache = cache
        self.linker = linker or Linker()

    def build(self, params: BuildParams) -> BuildResult:
        """Execute the complete build.

        Args:
            params: Build parameters

        Returns:
            BuildResult describing the produced artifact

        Raises:
            ConfigError: If Seastar.toml is missing or malformed
            CyclicDependencyError: If the dependency graph has a cycle
            CompilerNotFoundError, CompilationError: If compilation fails
            LinkError: If archiving or linking fails
        """
        start_time = time.time()
        set_verbose(params.verbose)
        layout = params.layout

        config = load_config(layout.config_path)
        log(f"Building {config.project_name} ({'library' if config.is_library else 'binary'})")

        if params.clean:
            removed = remove_dirs_best_effort([layout.target_dir, layout.deps_dir])
            for path in removed:
                log_detail(f"Removed {path}")

        with TimedLogger("Resolving dependencies", phase=(1, TOTAL_PHASES)):
            graph = self.resolve_dependencies(config, layout, params)
            build_order = graph.topological_order()
            if build_order:
                log_detail("Build order: " + ", ".join(node.name for node in build_order))

        total = CompileStats()
        with TimedLogger("Building dependencies", phase=(2, TOTAL_PHASES)):
            dependencies, deps_have_cpp = self._build_dependencies(build_order, config, layout, params, total)
            dependency_archives = [dep.archive for dep in dependencies]

        with TimedLogger(f"Compiling {config.project_name}", phase=(3, TOTAL_PHASES)):
            languages = languages_from_config(config)
            unit = self._compile_unit(
                src_dir=layout.src_dir,
                obj_dir=layout.obj_dir,
                include_dirs=[layout.include_dir, layout.headers_dir],
                languages=languages,
                jobs=params.jobs,
            )
            total.compiled += unit.stats.compiled
            total.cached += unit.stats.cached
            log_detail(f"{unit.stats.compiled} compiled, {unit.stats.cached} cached")

        with TimedLogger("Linking", phase=(4, TOTAL_PHASES)) as timed:
            driver = link_driver(deps_have_cpp or has_cpp_sources(unit.sources), languages)
            if config.is_library:
                mode = LinkMode.ARCHIVE
                output_path = layout.target_dir / archive_name(config.project_name)
                inputs = unit.objects + self._dependency_members(unit.objects, dependencies, output_path)
            else:
                mode = LinkMode.EXECUTABLE
                output_path = layout.target_dir / config.project_name
                inputs = unit.objects + dependency_archives
            self.linker.run(mode, driver.compiler, inputs, output_path, driver.link_flags)
            timed.detail(f"Output: {output_path}")

        return BuildResult(
            output_path=output_path,
            link_mode=mode,
            compiled=total.compiled,
            cached=total.cached,
            dependency_archives=dependency_archives,
            build_time=time.time() - start_time,
        )

    def resolve_dependencies(self, config: ProjectConfig, layout: ProjectLayout, params: BuildParams) -> DepGraph:
        root_deps = parse_deps(config)
        if not root_deps:
            return DepGraph()

        cache = self.cache if self.cache is not None else PackageCache(params.cache_root)
        fetcher = DependencyFetcher(layout.deps_dir, cache, headers_dir=layout.headers_dir)
        resolver = DependencyResolver(fetcher, strict_fetch=params.strict_fetch)
        return resolver.resolve_and_fetch(root_deps)

    def _build_dependencies(
        self,
        build_order: Sequence[DepNode],
        root_config: ProjectConfig,
        layout: ProjectLayout,
        params: BuildParams,
        total: CompileStats,
    ) -> tuple[List[_DependencyOutput], bool]:
        """Build each dependency into a static library, leaves first.

        Returns:
            (built dependencies in build order, whether any dependency has C++ sources)
        """
        outputs: List[_DependencyOutput] = []
        any_cpp = False
        for node in build_order:
            dep_dir = layout.dep_dir(node.name)
            archive = dep_dir / archive_name(node.name)

            if not node.fetched:
                # Keep the expected archive on the link line so the failure names it
                log_warning(f"{node.name} was not fetched; {archive} will be missing")
                outputs.append(_DependencyOutput(archive, fetched=False))
                continue

            config = node.config if node.config is not None else root_config
            unit = self._compile_unit(
                src_dir=dep_dir / "src",
                obj_dir=dep_dir / "obj",
                include_dirs=[layout.headers_dir, dep_dir / "include"],
                languages=languages_from_config(config),
                jobs=params.jobs,
            )
            total.compiled += unit.stats.compiled
            total.cached += unit.stats.cached

            if not unit.objects:
                log_detail(f"{node.name}: no sources (header-only)")
                continue

            any_cpp = any_cpp or has_cpp_sources(unit.sources)
            if needs_rearchive(archive, unit.objects):
                self.linker.archive(unit.objects, archive)
            log_detail(f"{node.name}: {archive.name} ({unit.stats.compiled} compiled, {unit.stats.cached} cached)")
            outputs.append(_DependencyOutput(archive, unit.objects))
        return outputs, any_cpp

    def _dependency_members(
        self, own_objects: Sequence[Path], dependencies: Sequence[_DependencyOutput], output: Path
    ) -> List[Path]:
        """Objects of every dependency archive, for merging into a library.

        Raises:
            LinkError: If a dependency was not fetched or its archive is missing
        """
        members: List[Path] = []
        for dep in dependencies:
            if not dep.fetched or not dep.archive.exists():
                command = format_command(self.linker.build_archive_command([dep.archive], output))
                raise LinkError(f"Static library creation failed: {dep.archive} not found", command)
            members.extend(dep.objects)

        seen = {obj.name for obj in own_objects}
        for obj in members:
            if obj.name in seen:
                log_warning(f"{obj.name} appears more than once; ar keeps only the last copy in {output.name}")
            seen.add(obj.name)
        return members

    @staticmethod
    def _compile_unit(
        src_dir: Path,
        obj_dir: Path,
        include_dirs: List[Path],
        languages: Sequence[LanguageDescriptor],
        jobs: int,
    ) -> _UnitResult:
        collection = SourceScanner(src_dir, languages).scan()
        compiler = IncrementalCompiler(obj_dir, include_dirs=include_dirs, jobs=jobs)
        objects: List[Path] = []
        for lang in languages:
            sources = collection.for_language(lang.name)
            if sources:
                objects.extend(compiler.compile(lang, sources))
        return _UnitResult(objects=objects, sources=collection.all_sources(), stats=compiler.stats)
