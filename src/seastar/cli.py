"""
Command-line interface for Seastar.

This module provides the `seastar` CLI tool for building C and C++ projects.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from seastar import __version__
from seastar.build import BuildParams
from seastar.commands import build_project, clean_project, purge_packages, run_project
from seastar.config import ConfigError
from seastar.errors import SeastarError
from seastar.output import init_timer, log_error, log_header, set_verbose


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    clean: bool = False
    verbose: bool = False
    jobs: int = 1
    strict_fetch: bool = False
    cache_dir: Optional[Path] = None

    def to_params(self) -> BuildParams:
        return BuildParams(
            project_dir=self.project_dir,
            clean=self.clean,
            verbose=self.verbose,
            jobs=self.jobs,
            strict_fetch=self.strict_fetch,
            cache_root=self.cache_dir,
        )


@dataclass
class RunArgs(BuildArgs):
    """Arguments for the run command."""

    program_args: List[str] = field(default_factory=list)


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    project_dir: Path
    verbose: bool = False


@dataclass
class PurgeArgs:
    """Arguments for the purge command."""

    target: Optional[str] = None
    dry_run: bool = False
    cache_dir: Optional[Path] = None
    verbose: bool = False


def _report_failure(title: str, error: BaseException, verbose: bool) -> None:
    log_error(f"✗ {title}")
    log_error(str(error))
    if verbose:
        import traceback

        print()
        print("Traceback:")
        print(traceback.format_exc())


def build_command(args: BuildArgs) -> int:
    """Build a project.

    Examples:
        seastar build                  # Build the current directory
        seastar build examples/hello   # Build a specific project
        seastar build --clean          # Clean build
        seastar build -j 8             # Compile 8 files at a time
    """
    try:
        build_project(args.to_params())
        return 0
    except ConfigError as e:
        _report_failure("Invalid project configuration", e, args.verbose)
        log_error("Make sure you're in a Seastar project directory with a Seastar.toml file.")
        return 1
    except SeastarError as e:
        _report_failure("Build failed", e, args.verbose)
        return 1


def run_command(args: RunArgs) -> int:
    """Build a project and run the resulting binary.

    The exit code is the program's own exit code once the build succeeds.

    Examples:
        seastar run                    # Build and run
        seastar run -- --port 8080     # Pass arguments to the program
    """
    try:
        return run_project(args.to_params(), args.program_args)
    except ConfigError as e:
        _report_failure("Invalid project configuration", e, args.verbose)
        return 1
    except SeastarError as e:
        _report_failure("Run failed", e, args.verbose)
        return 1


def clean_command(args: CleanArgs) -> int:
    """Remove target/ and deps/ from a project."""
    clean_project(args.project_dir)
    return 0


def purge_command(args: PurgeArgs) -> int:
    """List or delete cached git clones.

    Examples:
        seastar purge                  # List the cache
        seastar purge all              # Delete every cached clone
        seastar purge https://github.com/acme/ring.git
        seastar purge all --dry-run    # Show what would be deleted
    """
    return 0 if purge_packages(args.target, dry_run=args.dry_run, cache_root=args.cache_dir) else 1


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Remove target/ and deps/ before building",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Number of files to compile concurrently (default: 1)",
    )
    parser.add_argument(
        "--strict-fetch",
        action="store_true",
        help="Fail the build as soon as a dependency cannot be fetched",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Package cache directory (default: $SEASTAR_CACHE_DIR or ~/.seastar/package_cache/git_clones)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seastar",
        description="Seastar - build tool for C and C++ projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"seastar {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser("build", help="Build the project")
    _add_build_arguments(build_parser)

    run_parser = subparsers.add_parser("run", help="Build the project and run the binary")
    _add_build_arguments(run_parser)

    clean_parser = subparsers.add_parser("clean", help="Remove build outputs and fetched dependencies")
    clean_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    clean_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    purge_parser = subparsers.add_parser("purge", help="List or delete cached git clones")
    purge_parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="'all', a cache key or a repository URL (default: list the cache)",
    )
    purge_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without deleting",
    )
    purge_parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Package cache directory",
    )
    purge_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    return parser


def split_program_args(argv: List[str]) -> tuple[List[str], List[str]]:
    """Split off everything after the first `--`, passed through by `run`."""
    if "--" not in argv:
        return argv, []
    index = argv.index("--")
    return argv[:index], argv[index + 1 :]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    set_verbose(verbose)


def main(argv: Optional[List[str]] = None) -> None:
    """Seastar - build tool for C and C++ projects."""
    parser = create_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    argv, program_args = split_program_args(argv)
    parsed_args = parser.parse_args(argv)
    if program_args and parsed_args.command != "run":
        parser.error(f"unrecognized arguments: -- {' '.join(program_args)}")

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    # Validate project directory exists
    if hasattr(parsed_args, "project_dir"):
        if not parsed_args.project_dir.exists():
            print(f"\033[1;31m✗ Error: Path does not exist: {parsed_args.project_dir}\033[0m")
            sys.exit(2)

    init_timer()
    _configure_logging(parsed_args.verbose)

    try:
        if parsed_args.command == "build":
            log_header("Seastar Build System", __version__)
            exit_code = build_command(
                BuildArgs(
                    project_dir=parsed_args.project_dir,
                    clean=parsed_args.clean,
                    verbose=parsed_args.verbose,
                    jobs=parsed_args.jobs,
                    strict_fetch=parsed_args.strict_fetch,
                    cache_dir=parsed_args.cache_dir,
                )
            )
        elif parsed_args.command == "run":
            exit_code = run_command(
                RunArgs(
                    project_dir=parsed_args.project_dir,
                    clean=parsed_args.clean,
                    verbose=parsed_args.verbose,
                    jobs=parsed_args.jobs,
                    strict_fetch=parsed_args.strict_fetch,
                    cache_dir=parsed_args.cache_dir,
                    program_args=program_args,
                )
            )
        elif parsed_args.command == "clean":
            exit_code = clean_command(CleanArgs(project_dir=parsed_args.project_dir, verbose=parsed_args.verbose))
        elif parsed_args.command == "purge":
            exit_code = purge_command(
                PurgeArgs(
                    target=parsed_args.target,
                    dry_run=parsed_args.dry_run,
                    cache_dir=parsed_args.cache_dir,
                    verbose=parsed_args.verbose,
                )
            )
        else:
            parser.print_help()
            exit_code = 1
    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Interrupted\033[0m")
        sys.exit(130)  # Standard exit code for SIGINT

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
