"""Filesystem helpers shared by the build and package layers."""

import os
import shutil
import stat
import sys
from pathlib import Path


def safe_rmtree(path: Path) -> None:
    """Remove a directory tree, clearing read-only bits when needed.

    git marks pack files read-only, which blocks deletion on Windows.

    Raises:
        OSError: If the tree cannot be removed
    """
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_clear_readonly)
    else:
        shutil.rmtree(path, onerror=_clear_readonly)


def _clear_readonly(func, path, _exc_info) -> None:  # type: ignore[no-untyped-def]
    os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    func(path)
