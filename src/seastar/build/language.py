"""Language descriptors.

A LanguageDescriptor says how to turn one language's sources into objects:
which extensions it owns, which compiler runs, how include directories are
passed and which flags apply. The supported set is closed (C and C++) and
selected by extension, so there is no plugin mechanism.

Extension sets are disjoint; a file belongs to the first descriptor whose
extensions match.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

if TYPE_CHECKING:
    from seastar.config import ProjectConfig

C_EXTENSIONS = frozenset({"c"})
CPP_EXTENSIONS = frozenset({"cpp", "cc", "cxx", "c++"})

DEFAULT_CPP_COMPILER = "g++"


def split_flags(flags: Optional[str]) -> List[str]:
    """Split a flag string on whitespace, dropping empty tokens."""
    if not flags:
        return []
    return [flag for flag in flags.split() if flag]


def extension_of(path: Path) -> str:
    return Path(path).suffix[1:].lower()


@dataclass(frozen=True)
class LanguageDescriptor:
    """How to compile one language.

    Attributes:
        name: Display name ("C", "C++")
        extensions: Lowercase extensions without leading dot
        compiler: Compiler executable
        include_flag: Prefix prepended to each include directory
        compile_flags: Compile flag string (whitespace separated)
        link_flags: Flags used when this language drives the link
    """

    name: str
    extensions: frozenset
    compiler: str
    include_flag: str = "-I"
    compile_flags: str = ""
    link_flags: str = ""

    def matches(self, path: Path) -> bool:
        return extension_of(path) in self.extensions

    def compile_flag_list(self) -> List[str]:
        return split_flags(self.compile_flags)

    def link_flag_list(self) -> List[str]:
        return split_flags(self.link_flags)

    def include_args(self, include_dirs: Iterable[Path]) -> List[str]:
        return [f"{self.include_flag}{d}" for d in include_dirs]


def c_language(compiler: str, compile_flags: str = "", link_flags: str = "") -> LanguageDescriptor:
    return LanguageDescriptor(
        name="C",
        extensions=C_EXTENSIONS,
        compiler=compiler,
        compile_flags=compile_flags,
        link_flags=link_flags,
    )


def cpp_language(compiler: Optional[str] = None, compile_flags: str = "", link_flags: str = "") -> LanguageDescriptor:
    return LanguageDescriptor(
        name="C++",
        extensions=CPP_EXTENSIONS,
        compiler=compiler or DEFAULT_CPP_COMPILER,
        compile_flags=compile_flags,
        link_flags=link_flags,
    )


def languages_from_config(config: "ProjectConfig") -> tuple[LanguageDescriptor, ...]:
    """Build the (C, C++) descriptors for one project configuration."""
    options = config.options
    return (
        c_language(config.compiler, options.c_flags, options.link_flags),
        cpp_language(config.cpp_compiler, options.cpp_flags or "", options.cpp_link_flags or ""),
    )


def route_source(path: Path, languages: Sequence[LanguageDescriptor]) -> Optional[LanguageDescriptor]:
    """Return the descriptor that owns `path`, or None if no language does."""
    for lang in languages:
        if lang.matches(path):
            return lang
    return None


def has_cpp_sources(sources: Iterable[Path]) -> bool:
    return any(extension_of(src) in CPP_EXTENSIONS for src in sources)


def select_link_driver(sources: Iterable[Path], languages: Sequence[LanguageDescriptor]) -> LanguageDescriptor:
    """Pick the descriptor whose compiler and link flags drive the link.

    Any C++ source in the build unit makes the C++ compiler the driver so the
    C++ runtime is linked; otherwise the C compiler links.

    Raises:
        ValueError: If the required descriptor is not in `languages`
    """
    return link_driver(has_cpp_sources(sources), languages)


def link_driver(cpp: bool, languages: Sequence[LanguageDescriptor]) -> LanguageDescriptor:
    """The C++ descriptor when `cpp` is set, otherwise the C descriptor."""
    wanted = "C++" if cpp else "C"
    for lang in languages:
        if lang.name == wanted:
            return lang
    raise ValueError(f"No {wanted} language descriptor configured")
