"""Package management for Seastar.

This package resolves a project's external dependencies: parsing their
declarations, cloning git repositories into the shared package cache,
copying them into the project, and assembling the dependency graph.
"""

from .cache import CacheEntry, PackageCache, cache_key, get_cache_root
from .dependency import Dep, GitSource, PathSource, parse_deps
from .fetcher import DependencyFetcher, FetchError, GitFetcher, copy_dir_recursive
from .resolver import CyclicDependencyError, DepGraph, DependencyResolver, DepNode, resolve_and_fetch

__all__ = [
    "CacheEntry",
    "PackageCache",
    "cache_key",
    "get_cache_root",
    "Dep",
    "GitSource",
    "PathSource",
    "parse_deps",
    "DependencyFetcher",
    "FetchError",
    "GitFetcher",
    "copy_dir_recursive",
    "CyclicDependencyError",
    "DepGraph",
    "DependencyResolver",
    "DepNode",
    "resolve_and_fetch",
]
