"""Dependency fetching.

Brings one dependency's files into the project:

    GitSource   clone into the package cache (once), then copy the cached
                clone to deps/<name>/
    PathSource  copy the local directory to deps/<name>/

After the copy, a dependency's public headers (deps/<name>/include/) are
copied to deps/headers/<name>/ so the main project and sibling
dependencies reach every dependency through one include path:

    #include <ring/ring.h>    // with -Ideps/headers

Every failure here raises FetchError. Whether a FetchError stops the build
is decided by the resolver.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from seastar.errors import SeastarError
from seastar.output import log_detail
from seastar.subprocess_utils import ToolNotFoundError, run_tool

from .cache import PackageCache
from .dependency import Dep, GitSource, PathSource

logger = logging.getLogger(__name__)

PUBLIC_HEADERS_DIR = "include"
TAG_BRANCH_PREFIX = "seastar/"
GIT = "git"


class FetchError(SeastarError):
    """Raised when a dependency cannot be cloned or copied."""

    pass


def copy_dir_recursive(src: Path, dst: Path) -> None:
    """Copy the contents of `src` into `dst`, merging with what is there.

    Files already in `dst` are overwritten. The `.git` directory of a clone
    is not copied.

    Raises:
        FetchError: If `src` is not a directory or a file cannot be copied
    """
    src = Path(src)
    dst = Path(dst)
    if not src.is_dir():
        raise FetchError(f"Source directory not found: {src}")
    try:
        shutil.copytree(src, dst, symlinks=False, dirs_exist_ok=True, ignore=shutil.ignore_patterns(".git"))
    except (shutil.Error, OSError) as e:
        raise FetchError(f"Failed to copy {src} to {dst}: {e}") from e


class GitFetcher:
    """Clones repositories into the package cache."""

    def __init__(self, cache: PackageCache, git: str = GIT):
        self.cache = cache
        self.git = git

    def fetch(self, repo: str, tag: Optional[str] = None) -> Path:
        """Return the cache entry for `repo`/`tag`, cloning it if needed.

        An existing entry is reused as-is. A fresh clone that cannot be
        completed (clone failure, unknown tag) is removed from the cache so
        the next build retries.

        Raises:
            FetchError: If cloning or tag checkout fails
        """
        entry = self.cache.entry_path(repo, tag)
        if entry.is_dir():
            log_detail(f"Using cached copy of {repo}")
            return entry

        log_detail(f"Cloning {repo} to cache...")
        try:
            self._git("clone", "--", repo, str(entry))
            if tag:
                self._checkout_tag(entry, tag)
        except FetchError:
            self.cache.discard(repo, tag)
            raise
        self.cache.write_manifest(repo, tag)
        return entry

    def _checkout_tag(self, entry: Path, tag: str) -> None:
        """Point a local branch at the tag's commit and switch to it."""
        try:
            commit = self._git("-C", str(entry), "rev-parse", "--verify", f"refs/tags/{tag}^{{commit}}").strip()
        except FetchError as e:
            raise FetchError(f"Failed to find tag {tag}: {e}") from e

        branch = f"{TAG_BRANCH_PREFIX}{tag}"
        self._git("-C", str(entry), "branch", "-f", branch, commit)
        self._git("-C", str(entry), "checkout", "-f", branch)
        logger.debug(f"Checked out {tag} ({commit[:12]}) as {branch}")

    def _git(self, *args: str) -> str:
        cmd = [self.git, *args]
        try:
            result = run_tool(cmd)
        except ToolNotFoundError as e:
            raise FetchError(str(e)) from e
        if not result.ok:
            raise FetchError(f"git command failed (exit {result.returncode}): {result.stderr.strip()}")
        return result.stdout


class DependencyFetcher:
    """Fetches dependencies into a project's deps/ directory."""

    def __init__(self, deps_dir: Path, cache: PackageCache, headers_dir: Optional[Path] = None, git: str = GIT):
        """
        Args:
            deps_dir: Per-project dependency directory (project/deps)
            cache: Package cache for git sources
            headers_dir: Shared public headers root (defaults to deps_dir/headers)
            git: git executable
        """
        self.deps_dir = Path(deps_dir)
        self.headers_dir = Path(headers_dir) if headers_dir is not None else self.deps_dir / "headers"
        self.git_fetcher = GitFetcher(cache, git=git)

    def dep_dir(self, name: str) -> Path:
        return self.deps_dir / name

    def fetch(self, dep: Dep) -> Path:
        """Fetch `dep` into deps/<name>/ and propagate its public headers.

        Raises:
            FetchError: If the clone or any copy fails
        """
        dst = self.dep_dir(dep.name)
        dst.mkdir(parents=True, exist_ok=True)

        source = dep.source
        if isinstance(source, GitSource):
            entry = self.git_fetcher.fetch(source.repo, source.tag)
            copy_dir_recursive(entry, dst)
        elif isinstance(source, PathSource):
            log_detail(f"Copying {source.path}")
            copy_dir_recursive(source.path, dst)
        else:
            raise FetchError(f"Unsupported source for dependency '{dep.name}': {source!r}")

        self.propagate_headers(dep.name)
        return dst

    def propagate_headers(self, name: str) -> Optional[Path]:
        """Copy deps/<name>/include/ to <headers_dir>/<name>/ if it exists."""
        public = self.dep_dir(name) / PUBLIC_HEADERS_DIR
        if not public.is_dir():
            logger.debug(f"{name} has no public headers directory")
            return None
        target = self.headers_dir / name
        copy_dir_recursive(public, target)
        return target
