"""Exception hierarchy for oasforge.

All exceptions inherit from :class:`OasforgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oasforge.exit_codes`.
The top-level error handler in :func:`oasforge.app.main` catches
``OasforgeError`` and exits with the appropriate code.

Type resolution misses are deliberately absent from this hierarchy: a token
no resolver handles is reported through the
:data:`~oasforge.resolvers.registry.UNRESOLVED` sentinel and degrades to a
string schema.

Subclass hierarchy::

    OasforgeError (exit 1)
    +-- ConfigurationError            (exit 2)
    |   +-- ExporterNotFoundError
    |   +-- InvalidStrategyError
    +-- CanonicalNameCollisionError   (exit 3)
    +-- DescriptorError               (exit 4)
    +-- ConfigError                   (exit 5)
"""

from oasforge.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_CONFIGURATION_ERROR,
    EXIT_DESCRIPTOR_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NAME_COLLISION,
)


class OasforgeError(Exception):
    """Base exception for all oasforge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`oasforge.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(OasforgeError):
    """Raised when the generator itself is set up wrongly."""

    exit_code = EXIT_CONFIGURATION_ERROR


class ExporterNotFoundError(ConfigurationError):
    """Raised when no exporter is registered for the requested version.

    Args:
        version: The version tag that was looked up.
        available: The version tags that are registered.
    """

    def __init__(self, version: str, available: list[str] | None = None):
        self.version = version
        self.available = list(available or [])
        message = f"No exporter registered for version '{version}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class InvalidStrategyError(ConfigurationError):
    """Raised when a resolver or introspector lacks its required methods."""


class CanonicalNameCollisionError(OasforgeError):
    """Raised when two distinct payload types would share one reference name.

    Args:
        name: The colliding (canonical or sanitized) name.
        first: Description of the type that claimed the name first.
        second: Description of the type that tried to claim it again.
    """

    exit_code = EXIT_NAME_COLLISION

    def __init__(self, name: str, first: str, second: str):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Reference name '{name}' is claimed by both {first} and {second}"
        )


class DescriptorError(OasforgeError):
    """Raised when a route descriptor file cannot be loaded or validated."""

    exit_code = EXIT_DESCRIPTOR_ERROR


class ConfigError(OasforgeError):
    """Raised for configuration problems (invalid JSON, unknown output format)."""

    exit_code = EXIT_CONFIG_ERROR
