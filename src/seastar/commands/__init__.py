"""Top-level commands behind the `seastar` CLI."""

from .build import build_project
from .clean import clean_project
from .purge import format_size, purge_packages
from .run import RunError, run_project

__all__ = [
    "build_project",
    "clean_project",
    "format_size",
    "purge_packages",
    "RunError",
    "run_project",
]
