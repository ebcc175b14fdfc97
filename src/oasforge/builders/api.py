"""Build the whole IR from a route set."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

from oasforge.builders.operation import OperationBuilder
from oasforge.introspectors.base import IntrospectionContext
from oasforge.introspectors.registry import IntrospectorRegistry
from oasforge.models import API, RouteDescriptor, RouteSet, ServerInfo
from oasforge.resolvers.registry import TypeResolverRegistry

logger = logging.getLogger(__name__)


class ApiModelBuilder:
    """Turns a :class:`~oasforge.models.RouteSet` into an :class:`~oasforge.models.API`.

    Every call to :meth:`build` uses a fresh
    :class:`~oasforge.introspectors.base.IntrospectionContext`, so builds
    never share visiting state or canonical names.

    Args:
        resolvers: Type resolver chain; defaults to the process-wide one.
        introspectors: Introspector chain; defaults to the process-wide one.
    """

    def __init__(
        self,
        resolvers: Optional[TypeResolverRegistry] = None,
        introspectors: Optional[IntrospectorRegistry] = None,
    ) -> None:
        self.resolvers = resolvers
        self.introspectors = introspectors

    def build(
        self,
        routes: Union[RouteSet, Iterable[Union[RouteDescriptor, dict[str, Any]]]],
        *,
        title: Optional[str] = None,
        version: Optional[str] = None,
        description: Optional[str] = None,
        servers: Optional[list[ServerInfo]] = None,
    ) -> API:
        route_set = as_route_set(routes)
        context = IntrospectionContext(self.resolvers, self.introspectors)

        api = API(
            title=title or route_set.info.title,
            version=version or route_set.info.version,
            description=description or route_set.info.description,
            servers=list(servers or route_set.servers),
            security_schemes=dict(route_set.security_schemes),
        )

        for route in route_set.routes:
            if route.hidden:
                logger.debug("Skipping hidden route %s %s", route.method.upper(), route.path)
                continue
            template, operation = OperationBuilder(route, context).build()
            api.path_for(template).add_operation(operation)

        api.schemas = context.definitions()
        logger.debug("Built %d paths and %d named schemas", len(api.paths), len(api.schemas))
        return api


def as_route_set(routes: Union[RouteSet, Iterable[Union[RouteDescriptor, dict[str, Any]]]]) -> RouteSet:
    if isinstance(routes, RouteSet):
        return routes
    return RouteSet(
        routes=[
            route if isinstance(route, RouteDescriptor) else RouteDescriptor.model_validate(route)
            for route in routes
        ]
    )
