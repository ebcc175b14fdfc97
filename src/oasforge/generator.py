"""Top-level orchestration: routes in, OpenAPI document out.

Each run builds a fresh IR with its own introspection context and hands it
to the exporter registered for the requested version. Nothing is shared
between runs except the registries, so independent runs may execute in
parallel.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

from oasforge.builders.api import ApiModelBuilder, as_route_set
from oasforge.exporter.registry import ExporterRegistry
from oasforge.introspectors.registry import IntrospectorRegistry
from oasforge.models import API, GeneratorConfig, RouteDescriptor, RouteSet, ServerInfo
from oasforge.resolvers.registry import TypeResolverRegistry

logger = logging.getLogger(__name__)

Routes = Union[RouteSet, Iterable[Union[RouteDescriptor, dict[str, Any]]]]


class Generator:
    """Builds the IR and exports it.

    Args:
        resolvers: Type resolver chain (default: process-wide).
        introspectors: Introspector chain (default: process-wide).
        exporters: Exporter registry (default: process-wide).
    """

    def __init__(
        self,
        resolvers: Optional[TypeResolverRegistry] = None,
        introspectors: Optional[IntrospectorRegistry] = None,
        exporters: Optional[ExporterRegistry] = None,
    ) -> None:
        if exporters is None:
            from oasforge import registries

            exporters = registries.EXPORTERS
        self.exporters = exporters
        self.builder = ApiModelBuilder(resolvers, introspectors)

    def build(
        self,
        routes: Routes,
        *,
        title: Optional[str] = None,
        api_version: Optional[str] = None,
        description: Optional[str] = None,
        servers: Optional[list[ServerInfo]] = None,
    ) -> API:
        """Build the version-agnostic IR for *routes*."""
        return self.builder.build(
            routes,
            title=title,
            version=api_version,
            description=description,
            servers=servers,
        )

    def export(self, api: API, version: str = "oas3") -> dict[str, Any]:
        """Export *api* with the exporter registered for *version*.

        Raises:
            ExporterNotFoundError: If *version* is not registered.
            CanonicalNameCollisionError: If two types share a reference name.
        """
        exporter_cls = self.exporters.for_version(version)
        logger.debug("Exporting with %s for %r", exporter_cls.__name__, version)
        return exporter_cls(api).generate()

    def generate(self, routes: Routes, version: str = "oas3", **info: Any) -> dict[str, Any]:
        """Build and export in one go. *info* is passed to :meth:`build`."""
        # Fail on an unknown version before doing any building.
        self.exporters.for_version(version)
        return self.export(self.build(routes, **info), version)

    def generate_all(
        self, routes: Routes, versions: Iterable[str], **info: Any
    ) -> dict[str, dict[str, Any]]:
        """One document per version, each from its own fresh build."""
        versions = list(versions)
        routes = as_route_set(routes)
        for version in versions:
            self.exporters.for_version(version)
        return {version: self.generate(routes, version, **info) for version in versions}

    def generate_from_config(self, routes: Routes, config: GeneratorConfig) -> dict[str, Any]:
        return self.generate(
            routes,
            config.spec_version,
            title=config.title,
            api_version=config.api_version,
            description=config.description,
            servers=config.servers or None,
        )


def generate(
    routes: Routes,
    version: str = "oas3",
    *,
    title: Optional[str] = None,
    api_version: Optional[str] = None,
    description: Optional[str] = None,
    servers: Optional[list[ServerInfo]] = None,
) -> dict[str, Any]:
    """Generate an OpenAPI document for *routes* using the process-wide registries.

    Args:
        routes: A :class:`~oasforge.models.RouteSet`, or route descriptors
            (models or plain dicts).
        version: Exporter version tag: ``oas2``, ``oas3``/``oas30`` or ``oas31``.
        title: Overrides the route set's title.
        api_version: Overrides the route set's API version.
        description: Overrides the route set's description.
        servers: Overrides the route set's servers.

    Returns:
        The document as a JSON-compatible dict.

    Raises:
        ExporterNotFoundError: If *version* is not registered.
        CanonicalNameCollisionError: If two distinct types would share a
            reference name.
    """
    return Generator().generate(
        routes,
        version,
        title=title,
        api_version=api_version,
        description=description,
        servers=servers,
    )


def generate_all(routes: Routes, versions: Iterable[str] = ("oas2", "oas3", "oas31"), **info: Any) -> dict[str, dict[str, Any]]:
    return Generator().generate_all(routes, versions, **info)
