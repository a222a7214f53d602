"""
Project configuration (Seastar.toml) models and loader.

Example Seastar.toml:

    project_name = "hello"
    compiler = "gcc"
    cpp_compiler = "g++"
    is_library = false

    [options]
    c_flags = "-Wall -O2"
    link_flags = "-lm"
    cpp_flags = "-std=c++17"
    cpp_link_flags = "-lstdc++"

    [dependencies]
    ring = "https://github.com/acme/ring.git"
    vec = { git = "https://github.com/acme/vec.git", tag = "v1.2.0" }
    local_util = { path = "../util" }

A dependency is either a plain repository URL or a table with optional
`git`, `tag` and `path` keys.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from seastar.errors import SeastarError

CONFIG_FILE_NAME = "Seastar.toml"


class ConfigError(SeastarError):
    """Raised when a project configuration is missing or malformed."""

    pass


@dataclass(frozen=True)
class BuildOptions:
    """Per-language flag strings from the [options] table."""

    c_flags: str = ""
    link_flags: str = ""
    cpp_flags: Optional[str] = None
    cpp_link_flags: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildOptions":
        return cls(
            c_flags=_get_str(data, "c_flags", "options", default=""),
            link_flags=_get_str(data, "link_flags", "options", default=""),
            cpp_flags=_get_str(data, "cpp_flags", "options"),
            cpp_link_flags=_get_str(data, "cpp_link_flags", "options"),
        )


@dataclass(frozen=True)
class DepSpec:
    """One entry of the [dependencies] table.

    Attributes:
        git: Repository URL to clone
        tag: Optional tag to check out after cloning
        path: Local directory to copy instead of cloning
    """

    git: Optional[str] = None
    tag: Optional[str] = None
    path: Optional[str] = None

    @classmethod
    def from_value(cls, name: str, value: Union[str, Dict[str, Any]]) -> "DepSpec":
        """Parse either the plain-URL form or the detailed table form."""
        if isinstance(value, str):
            return cls(git=value)
        if not isinstance(value, dict):
            raise ConfigError(f"Dependency '{name}' must be a repository URL or a table, got {type(value).__name__}")

        unknown = set(value) - {"git", "tag", "path"}
        if unknown:
            raise ConfigError(f"Dependency '{name}' has unknown keys: {', '.join(sorted(unknown))}")

        where = f"dependencies.{name}"
        return cls(
            git=_get_str(value, "git", where),
            tag=_get_str(value, "tag", where),
            path=_get_str(value, "path", where),
        )


@dataclass(frozen=True)
class ProjectConfig:
    """
    Parsed Seastar.toml.

    Attributes:
        project_name: Name of the output binary or library
        compiler: C compiler (also the C link driver)
        is_library: Produce a static library instead of an executable
        cpp_compiler: C++ compiler (defaults to g++ when unset)
        options: Compile and link flag strings
        dependencies: Dependency name -> spec, in declaration order
        path: File this configuration was loaded from, if any
    """

    project_name: str
    compiler: str
    is_library: bool = False
    cpp_compiler: Optional[str] = None
    options: BuildOptions = field(default_factory=BuildOptions)
    dependencies: Dict[str, DepSpec] = field(default_factory=dict)
    path: Optional[Path] = None

    @property
    def base_dir(self) -> Path:
        """Directory relative dependency paths are resolved against."""
        if self.path is None:
            return Path.cwd()
        return self.path.parent

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: Optional[Path] = None) -> "ProjectConfig":
        """
        Build a ProjectConfig from parsed TOML data.

        Raises:
            ConfigError: If required fields are missing or have the wrong type
        """
        for key in ("project_name", "compiler"):
            if key not in data:
                raise ConfigError(f"Missing required field '{key}'")

        options_data = data.get("options", {})
        if not isinstance(options_data, dict):
            raise ConfigError("[options] must be a table")

        deps_data = data.get("dependencies", {})
        if not isinstance(deps_data, dict):
            raise ConfigError("[dependencies] must be a table")

        is_library = data.get("is_library", False)
        if not isinstance(is_library, bool):
            raise ConfigError(f"'is_library' must be a boolean, got {is_library!r}")

        return cls(
            project_name=_get_str(data, "project_name", "project"),
            compiler=_get_str(data, "compiler", "project"),
            is_library=is_library,
            cpp_compiler=_get_str(data, "cpp_compiler", "project"),
            options=BuildOptions.from_dict(options_data),
            dependencies={name: DepSpec.from_value(name, value) for name, value in deps_data.items()},
            path=path,
        )


def _get_str(data: Dict[str, Any], key: str, where: str, default: Optional[str] = None) -> Optional[str]:
    value = data.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"'{key}' in {where} must be a string, got {value!r}")
    return value


def load_config(path: Union[str, Path]) -> ProjectConfig:
    """Load and validate a Seastar.toml file.

    Args:
        path: Path to the configuration file

    Returns:
        Parsed ProjectConfig

    Raises:
        ConfigError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"{CONFIG_FILE_NAME} not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    try:
        return ProjectConfig.from_dict(data, path=path.resolve())
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
