"""Configuration parsing modules for Seastar."""

from .project_config import CONFIG_FILE_NAME, BuildOptions, ConfigError, DepSpec, ProjectConfig, load_config

__all__ = [
    "CONFIG_FILE_NAME",
    "BuildOptions",
    "ConfigError",
    "DepSpec",
    "ProjectConfig",
    "load_config",
]
