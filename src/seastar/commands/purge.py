"""Purge command implementation for managing the git clone cache.

This module handles listing and deleting cached clones from the global
Seastar package cache.
"""

from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from seastar.output import log, log_error, log_success, log_warning
from seastar.packages import CacheEntry, PackageCache


def format_size(size_bytes: int) -> str:
    """Format bytes as KB/MB/GB.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "95.1 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def _describe(entry: CacheEntry) -> str:
    return f"{entry.repo}@{entry.tag}" if entry.tag else entry.repo


def purge_entries(cache: PackageCache, entries: List[CacheEntry], dry_run: bool) -> tuple[int, int]:
    """Delete cache entries, continuing past failures.

    Args:
        cache: Cache the entries belong to
        entries: Entries to delete
        dry_run: If True, only show what would be deleted

    Returns:
        Tuple of (deleted_count, failed_count)
    """
    deleted_count = 0
    failed_count = 0

    for entry in entries:
        size = format_size(entry.size_bytes)
        if dry_run:
            log(f"Would delete: {_describe(entry)} ({size})")
            continue
        try:
            if cache.remove(entry.key):
                log_success(f"Deleted: {_describe(entry)} ({size})")
                deleted_count += 1
            else:
                log_warning(f"Already deleted: {_describe(entry)}")
        except OSError as e:
            log_error(f"Failed to delete {_describe(entry)}: {e}")
            failed_count += 1

    return deleted_count, failed_count


def list_entries(entries: List[CacheEntry], cache_root: Path, console: Optional[Console] = None) -> None:
    """Print a table of cached clones."""
    if not entries:
        log(f"No packages cached at {cache_root}")
        return

    total_size = sum(e.size_bytes for e in entries)
    table = Table(title=f"Cached clones at {cache_root}", box=None, padding=(0, 1), expand=False)
    table.add_column("Key", style="bold", no_wrap=True)
    table.add_column("Repository")
    table.add_column("Tag", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Installed", no_wrap=True)
    for entry in entries:
        table.add_row(entry.key, entry.repo, entry.tag or "-", format_size(entry.size_bytes), entry.install_date)

    console = console if console is not None else Console()
    console.print(table)
    console.print(f"Total: {len(entries)} packages, {format_size(total_size)}")


def purge_packages(target: Optional[str], dry_run: bool = False, cache_root: Optional[Path] = None, console: Optional[Console] = None) -> bool:
    """Main entry point for purge command.

    Args:
        target: 'all', a cache key (or key prefix), a repository URL,
            or None to list the cache
        dry_run: If True, show what would be deleted without deleting
        cache_root: Cache directory (default: get_cache_root())
        console: Rich console for the listing

    Returns:
        True if successful, False otherwise
    """
    cache = PackageCache(cache_root)
    entries = cache.entries()

    if target is None:
        list_entries(entries, cache.cache_root, console)
        return True

    selected = entries if target == "all" else cache.find(target)
    if not selected:
        if target == "all":
            log(f"No packages to purge at {cache.cache_root}")
            return True
        log_error(f"No cached package matches '{target}'")
        return False

    if dry_run:
        log(f"Dry run: showing what would be deleted from {cache.cache_root}")
    else:
        log(f"Purging {len(selected)} packages at {cache.cache_root}")

    deleted_count, failed_count = purge_entries(cache, selected, dry_run)

    total_size = sum(e.size_bytes for e in selected)
    if dry_run:
        log(f"Total: {len(selected)} packages, {format_size(total_size)} would be freed")
    else:
        if deleted_count > 0:
            log_success(f"Purged {deleted_count} packages, freed {format_size(total_size)}")
        if failed_count > 0:
            log_error(f"Failed to delete {failed_count} packages")

    return failed_count == 0
