"""Run command: build a project and execute the resulting binary."""

import logging
from typing import List, Optional, Sequence

from seastar.build import BuildOrchestrator, BuildParams, BuildResult
from seastar.errors import SeastarError
from seastar.output import log
from seastar.subprocess_utils import format_command, safe_run

from .build import build_project

logger = logging.getLogger(__name__)


class RunError(SeastarError):
    """Raised when the build output cannot be executed."""

    pass


def run_project(params: BuildParams, args: Optional[Sequence[str]] = None, orchestrator: Optional[BuildOrchestrator] = None) -> int:
    """Build the project, then run it with `args`.

    The program inherits the console (stdin, stdout, stderr).

    Returns:
        The program's exit code

    Raises:
        RunError: If the project is a library or the binary cannot start
        SeastarError: If the build fails
    """
    result = build_project(params, orchestrator)
    return execute(result, args)


def execute(result: BuildResult, args: Optional[Sequence[str]] = None) -> int:
    """Run a built executable and wait for it to exit."""
    if result.is_library:
        raise RunError(f"Cannot run a library: {result.output_path}")

    cmd: List[str] = [str(result.output_path), *(args or [])]
    log(f"Running {format_command(cmd)}")
    try:
        proc = safe_run(cmd, stdin=None, check=False)
    except OSError as e:
        raise RunError(f"Failed to start {cmd[0]}: {e}") from e
    logger.debug(f"{result.output_path.name} exited with {proc.returncode}")
    return proc.returncode
