"""Subprocess utilities for running external build tools.

Every compiler, archiver, linker and git invocation goes through this module.
Calls are synchronous: the caller blocks until the tool exits. Windows
console flags and stdin redirection are applied the same way for every tool.

Two failure kinds are kept apart:
    - ToolNotFoundError: the executable could not be started at all
    - non-zero exit: reported through ToolResult.returncode, the caller
      decides which error it maps to
"""

import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Optional

from seastar.errors import BuildError

logger = logging.getLogger(__name__)


class ToolNotFoundError(BuildError):
    """Raised when an external tool cannot be started."""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        self.reason = reason
        super().__init__(f"Failed to run '{tool}': {reason}")


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a finished tool invocation.

    Attributes:
        command: The full argument vector that was executed
        returncode: Process exit status
        stdout: Captured standard output (empty when not captured)
        stderr: Captured standard error (empty when not captured)
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        """The command as a copy-pasteable shell string."""
        return format_command(self.command)


def format_command(cmd: "list[str] | tuple[str, ...]") -> str:
    return " ".join(shlex.quote(str(part)) for part in cmd)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows (prevents console window)
    - stdin=DEVNULL (prevents console input handle inheritance)

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(cmd, **kwargs)


def run_tool(cmd: list[str], capture: bool = True, cwd: Optional[str] = None) -> ToolResult:
    """Run an external tool and wait for it to exit.

    Args:
        cmd: Command and arguments; cmd[0] is the tool
        capture: Capture stdout/stderr instead of inheriting the console
        cwd: Optional working directory

    Returns:
        ToolResult with the exit status and captured output

    Raises:
        ToolNotFoundError: If the tool executable cannot be started
    """
    cmd = [str(part) for part in cmd]
    logger.debug(f"Running: {format_command(cmd)}")

    kwargs: dict[str, Any] = {"check": False}
    if capture:
        kwargs.update(capture_output=True, text=True, encoding="utf-8", errors="replace")
    if cwd is not None:
        kwargs["cwd"] = cwd

    try:
        proc = safe_run(cmd, **kwargs)
    except FileNotFoundError as e:
        raise ToolNotFoundError(cmd[0], "executable not found") from e
    except PermissionError as e:
        raise ToolNotFoundError(cmd[0], f"permission denied ({e})") from e
    except OSError as e:
        raise ToolNotFoundError(cmd[0], str(e)) from e

    result = ToolResult(
        command=tuple(cmd),
        returncode=proc.returncode,
        stdout=(proc.stdout or "") if capture else "",
        stderr=(proc.stderr or "") if capture else "",
    )
    if not result.ok:
        logger.debug(f"{cmd[0]} exited with status {result.returncode}")
    return result
