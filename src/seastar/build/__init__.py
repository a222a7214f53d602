"""
Build system components for Seastar.

This package provides the build pipeline:
- Source file discovery
- Language descriptors (C, C++)
- Incremental compilation
- Archiving and linking
- Build orchestration
"""

from .build_context import BuildParams, ProjectLayout
from .compiler import CompilationError, CompilerNotFoundError, IncrementalCompiler, needs_rebuild
from .language import LanguageDescriptor, languages_from_config, route_source, select_link_driver
from .linker import Linker, LinkError, LinkMode
from .orchestrator import BuildOrchestrator, BuildResult
from .source_scanner import SourceCollection, SourceScanner, get_source_files

__all__ = [
    "BuildParams",
    "ProjectLayout",
    "CompilationError",
    "CompilerNotFoundError",
    "IncrementalCompiler",
    "needs_rebuild",
    "LanguageDescriptor",
    "languages_from_config",
    "route_source",
    "select_link_driver",
    "Linker",
    "LinkError",
    "LinkMode",
    "BuildOrchestrator",
    "BuildResult",
    "SourceCollection",
    "SourceScanner",
    "get_source_files",
]
