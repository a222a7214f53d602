"""Incremental compiler.

Compiles the translation units of one language into object files, skipping
those whose object is newer than the source.

Staleness rule:
    An object is rebuilt when it does not exist, when either modification
    time cannot be read, or when the source's mtime is strictly greater than
    the object's. Headers are not tracked: editing a header without touching
    the .c/.cpp files that include it does NOT trigger a rebuild. Run
    `seastar clean` after header changes.

Any failure aborts the whole build: a missing compiler raises
CompilerNotFoundError, a non-zero compiler exit raises CompilationError
naming the file and exit status.
"""

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from seastar.errors import BuildError
from seastar.output import log_file
from seastar.subprocess_utils import ToolNotFoundError, ToolResult, run_tool

from .language import LanguageDescriptor

logger = logging.getLogger(__name__)


class CompilerNotFoundError(BuildError):
    """Raised when the compiler executable cannot be started."""

    def __init__(self, compiler: str, reason: str):
        self.compiler = compiler
        super().__init__(f"Compiler '{compiler}' could not be started: {reason}. Check the compiler settings in Seastar.toml.")


class CompilationError(BuildError):
    """Raised when the compiler exits with a non-zero status."""

    def __init__(self, source: Path, returncode: int, command: str, stderr: str = ""):
        self.source = source
        self.returncode = returncode
        self.command = command
        self.stderr = stderr
        message = f"Compilation failed for {source} (exit status {returncode})"
        if stderr.strip():
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)


def needs_rebuild(source: Path, obj: Path) -> bool:
    """Return True if `obj` must be regenerated from `source`."""
    if not obj.exists():
        return True
    try:
        source_mtime = source.stat().st_mtime
        obj_mtime = obj.stat().st_mtime
    except OSError:
        return True
    return source_mtime > obj_mtime


def object_path_for(source: Path, obj_dir: Path) -> Path:
    """Object path for a source: the full file name plus `.o`.

    Keeping the original extension means util.c and util.cpp map to
    util.c.o and util.cpp.o instead of colliding.
    """
    return obj_dir / f"{Path(source).name}.o"


@dataclass
class CompileStats:
    """Counters for one compiler instance."""

    compiled: int = 0
    cached: int = 0


class IncrementalCompiler:
    """Compiles sources into one object directory.

    Example:
        compiler = IncrementalCompiler(Path("target/obj"), [Path("include")])
        objects = compiler.compile(c_lang, sources)
    """

    def __init__(self, obj_dir: Path, include_dirs: Optional[Iterable[Path]] = None, jobs: int = 1):
        """
        Args:
            obj_dir: Directory that receives the object files
            include_dirs: Include directories passed to every compile
            jobs: Number of concurrent compiler processes per language batch
        """
        self.obj_dir = Path(obj_dir)
        self.include_dirs = [Path(d) for d in (include_dirs or [])]
        self.jobs = max(1, jobs)
        self.stats = CompileStats()
        self._stats_lock = threading.Lock()

    def build_command(self, lang: LanguageDescriptor, source: Path, obj: Path) -> List[str]:
        cmd = [lang.compiler]
        cmd.extend(lang.include_args(self.include_dirs))
        cmd.extend(lang.compile_flag_list())
        cmd.extend(["-c", str(source), "-o", str(obj)])
        return cmd

    def compile(self, lang: LanguageDescriptor, sources: Sequence[Path]) -> List[Path]:
        """Compile the sources that belong to `lang`.

        Sources with other extensions are ignored. Up-to-date objects are
        reused.

        Args:
            lang: Language descriptor to compile with
            sources: Candidate source files

        Returns:
            Object paths for every matching source, in input order

        Raises:
            CompilerNotFoundError: If the compiler cannot be started
            CompilationError: If any source fails to compile
        """
        matching = [Path(src) for src in sources if lang.matches(src)]
        if not matching:
            return []

        self.obj_dir.mkdir(parents=True, exist_ok=True)

        objects: List[Path] = []
        stale: List[tuple[Path, Path]] = []
        for source in matching:
            obj = object_path_for(source, self.obj_dir)
            objects.append(obj)
            if needs_rebuild(source, obj):
                stale.append((source, obj))
            else:
                self.stats.cached += 1
                log_file(lang.name, source.name, cached=True)

        if self.jobs > 1 and len(stale) > 1:
            self._compile_parallel(lang, stale)
        else:
            for source, obj in stale:
                self._compile_one(lang, source, obj)

        logger.debug(f"{lang.name}: {len(stale)} compiled, {len(matching) - len(stale)} cached")
        return objects

    def _compile_one(self, lang: LanguageDescriptor, source: Path, obj: Path) -> None:
        log_file(lang.name, source.name)
        cmd = self.build_command(lang, source, obj)
        try:
            result = run_tool(cmd)
        except ToolNotFoundError as e:
            raise CompilerNotFoundError(lang.compiler, e.reason) from e

        self._check_result(source, result)
        with self._stats_lock:
            self.stats.compiled += 1

    def _compile_parallel(self, lang: LanguageDescriptor, stale: List[tuple[Path, Path]]) -> None:
        with ThreadPoolExecutor(max_workers=self.jobs) as executor:
            futures: List[Future] = [executor.submit(self._compile_one, lang, source, obj) for source, obj in stale]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            # Surface the first failure in submission order
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()  # type: ignore[misc]

    @staticmethod
    def _check_result(source: Path, result: ToolResult) -> None:
        if not result.ok:
            raise CompilationError(source, result.returncode, result.command_line, result.stderr)
        if result.stderr.strip():
            # Compiler warnings
            logger.warning(f"{source.name}: {result.stderr.rstrip()}")
