"""Seastar - incremental build tool for C/C++ projects.

Seastar compiles a project's sources per language, links them into an
executable or static library, and builds external package dependencies
(git repositories or local paths) as static libraries first.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
