"""Clean command: remove a project's build outputs and fetched dependencies."""

import logging
from pathlib import Path
from typing import List

from seastar.build.build_context import ProjectLayout
from seastar.build.build_utils import remove_dirs_best_effort
from seastar.output import log, log_detail, log_warning

logger = logging.getLogger(__name__)


def clean_project(project_dir: Path) -> List[Path]:
    """Remove target/ and deps/ from a project.

    Removal is best-effort: a directory that cannot be removed is logged
    and skipped, and the command still succeeds.

    Args:
        project_dir: Project root

    Returns:
        The directories that were removed
    """
    layout = ProjectLayout.for_project(project_dir)
    candidates = [layout.target_dir, layout.deps_dir]
    existing = [path for path in candidates if path.exists()]

    if not existing:
        log("Nothing to clean")
        return []

    removed = remove_dirs_best_effort(existing)
    for path in removed:
        log_detail(f"Removed {path}")
    for path in existing:
        if path not in removed:
            log_warning(f"Could not remove {path}")
    return removed
