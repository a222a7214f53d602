"""Exception hierarchy shared across Seastar.

Each subsystem raises its own subclass (ConfigError, FetchError,
CompilationError, ...) from the module that owns it; this module only holds
the common bases so the CLI can catch everything Seastar raises at once.
"""


class SeastarError(Exception):
    """Base class for all errors raised by Seastar."""

    pass


class BuildError(SeastarError):
    """Raised when a build step fails and the build must abort."""

    pass
