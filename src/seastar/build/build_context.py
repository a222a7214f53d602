"""Build Context - project layout and build parameters.

This module defines:
- ProjectLayout: Where a project's sources, objects, outputs and
  dependencies live on disk
- BuildParams: Parameters for one build invocation (from the CLI)

On-disk layout of a project:

    Seastar.toml
    src/                  project sources
    include/              project public headers
    target/obj/           project objects
    target/<name>         executable (or target/lib<name>.a for libraries)
    deps/<dep>/           fetched dependency (its src/, obj/, lib<dep>.a)
    deps/headers/<dep>/   propagated public headers of <dep>
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from seastar.config import CONFIG_FILE_NAME


@dataclass(frozen=True)
class ProjectLayout:
    """Directory layout of one project.

    Attributes:
        project_dir: Project root containing Seastar.toml
        src_dir: Source directory
        include_dir: Public header directory
        target_dir: Output directory for the final artifact
        obj_dir: Object directory for the project's own sources
        deps_dir: Fetched dependencies
        headers_dir: Shared public headers of all dependencies
    """

    project_dir: Path
    src_dir: Path
    include_dir: Path
    target_dir: Path
    obj_dir: Path
    deps_dir: Path
    headers_dir: Path

    @classmethod
    def for_project(cls, project_dir: Path) -> "ProjectLayout":
        """Standard layout rooted at `project_dir`."""
        project_dir = Path(project_dir).resolve()
        target_dir = project_dir / "target"
        deps_dir = project_dir / "deps"
        return cls(
            project_dir=project_dir,
            src_dir=project_dir / "src",
            include_dir=project_dir / "include",
            target_dir=target_dir,
            obj_dir=target_dir / "obj",
            deps_dir=deps_dir,
            headers_dir=deps_dir / "headers",
        )

    @property
    def config_path(self) -> Path:
        return self.project_dir / CONFIG_FILE_NAME

    def dep_dir(self, name: str) -> Path:
        return self.deps_dir / name


@dataclass(frozen=True)
class BuildParams:
    """Parameters for one build invocation.

    Attributes:
        project_dir: Project root directory containing Seastar.toml
        clean: Remove target/ and deps/ before building
        verbose: Show per-file output
        jobs: Concurrent compiler processes per language batch
        strict_fetch: Treat dependency fetch failures as fatal
        cache_root: Package cache directory (None = default location)
    """

    project_dir: Path
    clean: bool = False
    verbose: bool = False
    jobs: int = 1
    strict_fetch: bool = False
    cache_root: Optional[Path] = None

    @property
    def layout(self) -> ProjectLayout:
        return ProjectLayout.for_project(self.project_dir)
