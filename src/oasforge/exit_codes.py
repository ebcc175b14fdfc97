"""Numeric process exit codes for the ``oasforge`` command.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~oasforge.exceptions.OasforgeError` subclass.
Build scripts can inspect the exit code to tell a bad route file apart
from an ambiguous document without parsing stderr.

Example::

    $ oasforge generate routes.yaml --spec-version oas4
    $ echo $?
    2   # EXIT_CONFIGURATION_ERROR -- no exporter registered for oas4
"""

EXIT_SUCCESS = 0
"""The document was generated successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIGURATION_ERROR = 2
"""An unknown specification version was requested or a strategy registration was malformed."""

EXIT_NAME_COLLISION = 3
"""Two distinct payload types mapped to the same reference name."""

EXIT_DESCRIPTOR_ERROR = 4
"""The route descriptor file could not be read or parsed."""

EXIT_CONFIG_ERROR = 5
"""A configuration file or configuration value was invalid."""
