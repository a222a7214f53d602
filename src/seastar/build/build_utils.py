"""Filesystem helpers for build directories."""

import logging
from pathlib import Path
from typing import Iterable, List

from seastar.file_utils import safe_rmtree

logger = logging.getLogger(__name__)


def remove_dirs_best_effort(paths: Iterable[Path]) -> List[Path]:
    """Remove each directory that exists; log failures instead of raising.

    Returns:
        The directories that were removed
    """
    removed: List[Path] = []
    for path in paths:
        if not path.exists():
            continue
        try:
            safe_rmtree(path)
            removed.append(path)
        except OSError as e:
            logger.error(f"Failed to clean directory {path}: {e}")
    return removed
