"""Package cache for git clones.

Cloned repositories are kept in a machine-wide cache so every project that
depends on the same repository and tag reuses one clone. Entries are keyed
by the MD5 of the repository URL, with `-<tag>` appended when a tag is
requested:

    ~/.seastar/package_cache/git_clones/
        3f1c...e9/            # https://github.com/acme/ring.git
        3f1c...e9.json        # manifest: repo, tag, install date
        77ab...02-v1.2.0/     # https://github.com/acme/vec.git @ v1.2.0
        77ab...02-v1.2.0.json

An entry is never modified after a successful clone and lives until it is
removed with `seastar purge`. The cache does not check whether the remote
has moved on.

The cache root is passed in explicitly; `get_cache_root()` supplies the
default, honoring SEASTAR_CACHE_DIR.
"""

import hashlib
import json
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from seastar.file_utils import safe_rmtree

logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "SEASTAR_CACHE_DIR"
DEFAULT_CACHE_ROOT = Path("~/.seastar/package_cache/git_clones")


def get_cache_root() -> Path:
    """Get cache root directory respecting SEASTAR_CACHE_DIR.

    Returns:
        Path to the git clone cache root
    """
    cache_env = os.environ.get(CACHE_DIR_ENV)
    if cache_env:
        return Path(cache_env).expanduser().resolve()
    return DEFAULT_CACHE_ROOT.expanduser()


def cache_key(repo: str, tag: Optional[str] = None) -> str:
    """Directory name of the cache entry for a repository and tag."""
    key = hashlib.md5(repo.encode("utf-8")).hexdigest()
    if tag:
        key = f"{key}-{tag}"
    return key


@dataclass(frozen=True)
class CacheEntry:
    """A cached clone on disk.

    Attributes:
        key: Entry directory name
        path: Entry directory
        size_bytes: Total size of the clone
        repo: Repository URL ("unknown" for entries without a manifest)
        tag: Checked out tag, if any
        install_date: When the clone was made ("unknown" without a manifest)
    """

    key: str
    path: Path
    size_bytes: int
    repo: str = "unknown"
    tag: Optional[str] = None
    install_date: str = "unknown"


class PackageCache:
    """Git clone cache rooted at one directory."""

    def __init__(self, cache_root: Optional[Path] = None):
        """
        Args:
            cache_root: Cache directory; defaults to get_cache_root().
                Created if it does not exist.
        """
        self.cache_root = Path(cache_root) if cache_root is not None else get_cache_root()
        self.cache_root.mkdir(parents=True, exist_ok=True)

    def entry_path(self, repo: str, tag: Optional[str] = None) -> Path:
        return self.cache_root / cache_key(repo, tag)

    def manifest_path(self, key: str) -> Path:
        return self.cache_root / f"{key}.json"

    def has_entry(self, repo: str, tag: Optional[str] = None) -> bool:
        return self.entry_path(repo, tag).is_dir()

    def write_manifest(self, repo: str, tag: Optional[str] = None) -> None:
        """Record which repository and tag an entry holds."""
        key = cache_key(repo, tag)
        manifest = {
            "repo": repo,
            "tag": tag,
            "install_date": datetime.now().isoformat(timespec="seconds"),
        }
        try:
            with open(self.manifest_path(key), "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to write cache manifest for {repo}: {e}")

    def entries(self) -> List[CacheEntry]:
        """List cached clones sorted by key."""
        if not self.cache_root.exists():
            return []
        return [self._read_entry(child) for child in sorted(self.cache_root.iterdir()) if child.is_dir()]

    def find(self, target: str) -> List[CacheEntry]:
        """Entries whose key, key prefix or repository URL matches `target`."""
        return [e for e in self.entries() if e.key.startswith(target) or e.repo == target]

    def remove(self, key: str) -> bool:
        """Delete one entry and its manifest. Returns False if it did not exist.

        Raises:
            OSError: If the directory exists but cannot be removed
        """
        path = self.cache_root / key
        if not path.is_dir():
            return False
        safe_rmtree(path)
        self.manifest_path(key).unlink(missing_ok=True)
        logger.info(f"Removed cache entry {path}")
        return True

    def discard(self, repo: str, tag: Optional[str] = None) -> None:
        """Remove a partially written entry after a failed clone."""
        path = self.entry_path(repo, tag)
        if path.exists():
            shutil.rmtree(path, ignore_errors=True)
        self.manifest_path(path.name).unlink(missing_ok=True)

    def _read_entry(self, path: Path) -> CacheEntry:
        size_bytes = _dir_size(path)
        manifest_path = self.manifest_path(path.name)
        try:
            with open(manifest_path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
            return CacheEntry(
                key=path.name,
                path=path,
                size_bytes=size_bytes,
                repo=manifest.get("repo", "unknown"),
                tag=manifest.get("tag"),
                install_date=manifest.get("install_date", "unknown"),
            )
        except (json.JSONDecodeError, OSError, AttributeError):
            # Legacy entry without a readable manifest
            return CacheEntry(key=path.name, path=path, size_bytes=size_bytes)


def _dir_size(path: Path) -> int:
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.path.getsize(os.path.join(root, name))
            except OSError:
                continue
    return total
