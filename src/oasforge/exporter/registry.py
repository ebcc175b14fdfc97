"""Version tag to exporter class lookup."""

from __future__ import annotations

import logging
from typing import Iterable, Union

from oasforge.exceptions import ExporterNotFoundError, InvalidStrategyError
from oasforge.exporter.base import BaseExporter

logger = logging.getLogger(__name__)


def normalize_version(version: str) -> str:
    return str(version).strip().lower()


class ExporterRegistry:
    """Maps version tags (``"oas2"``, ``"oas3"``, ...) to exporter classes.

    Tags are case-insensitive. Registering a tag that is already taken
    replaces its exporter; one class may serve several tags.

    Example::

        registry = ExporterRegistry()
        registry.register(OAS30Exporter, ["oas3", "oas30"])
        registry.for_version("OAS3")  # -> OAS30Exporter
    """

    def __init__(self) -> None:
        self._exporters: dict[str, type[BaseExporter]] = {}

    def register(
        self,
        exporter_cls: type[BaseExporter],
        versions: Union[str, Iterable[str]],
    ) -> type[BaseExporter]:
        """Register *exporter_cls* under one or more version tags.

        Raises:
            InvalidStrategyError: If *exporter_cls* is not a class with a
                ``generate`` method, or no tag is given.
        """
        if not isinstance(exporter_cls, type) or not callable(getattr(exporter_cls, "generate", None)):
            raise InvalidStrategyError(
                f"Exporter {exporter_cls!r} must be a class providing generate()"
            )
        tags = [versions] if isinstance(versions, str) else list(versions)
        if not tags:
            raise InvalidStrategyError(f"No version tag given for exporter {exporter_cls.__name__}")
        for tag in tags:
            key = normalize_version(tag)
            previous = self._exporters.get(key)
            if previous is not None and previous is not exporter_cls:
                logger.debug("Replacing exporter for %r: %s -> %s", key, previous.__name__, exporter_cls.__name__)
            self._exporters[key] = exporter_cls
        return exporter_cls

    def unregister(self, *versions: str) -> None:
        """Remove the given tags. Unknown tags are ignored."""
        for tag in versions:
            self._exporters.pop(normalize_version(tag), None)

    def for_version(self, version: str) -> type[BaseExporter]:
        """Exporter class for *version*.

        Raises:
            ExporterNotFoundError: If nothing is registered for *version*.
        """
        try:
            return self._exporters[normalize_version(version)]
        except KeyError:
            raise ExporterNotFoundError(version, self.versions()) from None

    def is_registered(self, version: str) -> bool:
        return normalize_version(version) in self._exporters

    def versions(self) -> list[str]:
        """Registered tags in registration order."""
        return list(self._exporters)

    def items(self) -> list[tuple[str, type[BaseExporter]]]:
        return list(self._exporters.items())

    def clear(self) -> None:
        self._exporters.clear()

    def __contains__(self, version: object) -> bool:
        return isinstance(version, str) and self.is_registered(version)

    def __len__(self) -> int:
        return len(self._exporters)


def default_exporters() -> ExporterRegistry:
    """A registry holding the built-in OpenAPI 2.0, 3.0 and 3.1 exporters."""
    from oasforge.exporter.oas2 import OAS2Exporter
    from oasforge.exporter.oas3 import OAS30Exporter
    from oasforge.exporter.oas31 import OAS31Exporter

    registry = ExporterRegistry()
    registry.register(OAS2Exporter, ["oas2"])
    registry.register(OAS30Exporter, ["oas3", "oas30"])
    registry.register(OAS31Exporter, ["oas31"])
    return registry
