"""Linker.

Turns object files (and dependency archives) into the final artifact:

    ARCHIVE     ar rcs <output> <objects...>   (any previous archive is deleted first)
    EXECUTABLE  <driver> <inputs...> <link flags...> -o <output>

Link group rule:
    When the executable inputs contain static archives, `-Wl,--start-group`
    is emitted immediately before the first archive and `-Wl,--end-group`
    after the last input. The linker then rescans the archives until no new
    symbols resolve, so archives that reference each other link regardless
    of order. Inputs without archives get no group markers.

Both modes are fatal on failure and report the full command line.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Sequence

from seastar.errors import BuildError
from seastar.subprocess_utils import ToolNotFoundError, format_command, run_tool

from .language import split_flags

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = frozenset({".a", ".lib"})
START_GROUP = "-Wl,--start-group"
END_GROUP = "-Wl,--end-group"
DEFAULT_ARCHIVER = "ar"


class LinkMode(Enum):
    """What the link step produces."""

    ARCHIVE = "archive"
    EXECUTABLE = "executable"

    def __str__(self) -> str:
        return self.value


class LinkError(BuildError):
    """Raised when archiving or linking fails."""

    def __init__(self, message: str, command: str, stderr: str = ""):
        self.command = command
        self.stderr = stderr
        full = f"{message}\nCommand: {command}"
        if stderr.strip():
            full += f"\n{stderr.rstrip()}"
        super().__init__(full)


def is_archive(path: Path) -> bool:
    return Path(path).suffix.lower() in ARCHIVE_EXTENSIONS


def archive_name(name: str) -> str:
    """File name of the static library built for `name` (lib<name>.a)."""
    return f"lib{name}.a"


def needs_rearchive(archive: Path, objects: Sequence[Path]) -> bool:
    """True when `archive` is missing or older than any of `objects`."""
    try:
        archive_mtime = Path(archive).stat().st_mtime
    except OSError:
        return True
    return any(Path(obj).stat().st_mtime > archive_mtime for obj in objects)


class Linker:
    """Creates static archives and links executables."""

    def __init__(self, archiver: str = DEFAULT_ARCHIVER):
        """
        Args:
            archiver: Archiver executable used for static libraries
        """
        self.archiver = archiver

    def build_archive_command(self, objects: Sequence[Path], output: Path) -> List[str]:
        return [self.archiver, "rcs", str(output)] + [str(obj) for obj in objects]

    def build_link_command(self, driver: str, inputs: Sequence[Path], output: Path, link_flags: str = "") -> List[str]:
        """Build the executable link command, applying the link group rule."""
        cmd = [driver]
        saw_archive = False
        for item in inputs:
            if not saw_archive and is_archive(item):
                cmd.append(START_GROUP)
                saw_archive = True
            cmd.append(str(item))
        if saw_archive:
            cmd.append(END_GROUP)
        cmd.extend(split_flags(link_flags))
        cmd.extend(["-o", str(output)])
        return cmd

    def archive(self, objects: Sequence[Path], output: Path) -> Path:
        """Create a static library from object files.

        An existing archive is deleted first so members of removed sources
        do not survive.

        Raises:
            LinkError: If the archiver cannot run or fails
        """
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.unlink(missing_ok=True)
        cmd = self.build_archive_command(objects, output)
        self._execute(cmd, "Static library creation failed")
        logger.debug(f"Archived {len(objects)} objects into {output}")
        return output

    def link(self, driver: str, inputs: Sequence[Path], output: Path, link_flags: str = "") -> Path:
        """Link inputs into an executable.

        Args:
            driver: Compiler used as the link driver (gcc, g++, clang++...)
            inputs: Object files followed by static archives
            output: Executable path
            link_flags: Link flag string (whitespace separated)

        Raises:
            LinkError: If the driver cannot run or fails
        """
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_link_command(driver, inputs, output, link_flags)
        logger.info(f"Link command: {format_command(cmd)}")
        self._execute(cmd, "Linking failed")
        return output

    def run(self, mode: LinkMode, driver: str, inputs: Sequence[Path], output: Path, link_flags: str = "") -> Path:
        """Dispatch to archive() or link() according to `mode`."""
        if mode is LinkMode.ARCHIVE:
            return self.archive(inputs, output)
        return self.link(driver, inputs, output, link_flags)

    def _execute(self, cmd: List[str], failure: str) -> None:
        command_line = format_command(cmd)
        try:
            result = run_tool(cmd)
        except ToolNotFoundError as e:
            raise LinkError(f"{failure}: {e}", command_line) from e
        if not result.ok:
            raise LinkError(f"{failure} (exit status {result.returncode})", command_line, result.stderr)
