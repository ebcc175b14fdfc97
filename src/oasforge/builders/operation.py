"""Build one :class:`~oasforge.models.Operation` from a route descriptor."""

from __future__ import annotations

import logging
import re

from oasforge.builders.request_params import RequestParamsBuilder
from oasforge.builders.response import ResponseBuilder
from oasforge.constants import (
    BODYLESS_HTTP_METHODS,
    DEFAULT_MIME_TYPE,
    ParameterLocations,
    SchemaTypes,
    extract_extensions,
)
from oasforge.introspectors.base import IntrospectionContext
from oasforge.models import MediaType, Operation, Parameter, RequestBody, RouteDescriptor, Schema

logger = logging.getLogger(__name__)

_FORMAT_SUFFIX_RE = re.compile(r"\(\.[^)]*\)")
_COLON_VAR_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
_BRACE_VAR_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9_]+")


def normalize_template(path: str, name_map: dict[str, str] | None = None) -> str:
    """Rewrite ``/items/:id(.:format)`` as ``/items/{id}``.

    Template variables are renamed through *name_map*
    (``{template_variable: declared_name}``).
    """
    name_map = name_map or {}
    template = _FORMAT_SUFFIX_RE.sub("", path.strip())

    def rename(match: re.Match) -> str:
        name = match.group(1)
        return "{" + name_map.get(name, name) + "}"

    template = _COLON_VAR_RE.sub(rename, template)
    template = _BRACE_VAR_RE.sub(rename, template)
    if not template.startswith("/"):
        template = "/" + template
    if len(template) > 1:
        template = template.rstrip("/")
    return template


def derive_operation_id(method: str, template: str) -> str:
    """``("get", "/items/{id}")`` -> ``"get_items_id"``."""
    parts = [_NON_IDENT_RE.sub("_", seg).strip("_") for seg in template.split("/")]
    parts = [part for part in parts if part]
    return "_".join([method.lower(), *parts])


def default_tags(template: str) -> list[str]:
    """The first static path segment, if any."""
    for segment in template.split("/"):
        if segment and not segment.startswith("{"):
            return [segment]
    return []


def flatten_to_query(schema: Schema, prefix: str = "", required: bool = True) -> list[Parameter]:
    """Spread an object schema over bracket-named query parameters.

    ``{"user": {"name": ...}}`` becomes ``user[name]``; array-of-object
    properties use ``items[][field]``. Nested fields are required only when
    every enclosing object is.
    """
    params: list[Parameter] = []
    for key, prop in schema.properties.items():
        name = f"{prefix}[{key}]" if prefix else key
        prop_required = required and key in schema.required
        if prop.type == SchemaTypes.OBJECT and prop.properties and not prop.canonical_name:
            params.extend(flatten_to_query(prop, name, prop_required))
        elif (
            prop.type == SchemaTypes.ARRAY
            and prop.items is not None
            and prop.items.properties
            and not prop.items.canonical_name
        ):
            params.extend(flatten_to_query(prop.items, f"{name}[]", prop_required))
        else:
            params.append(
                Parameter(
                    location=ParameterLocations.QUERY,
                    name=name,
                    required=prop_required,
                    schema=prop,
                    description=prop.description,
                )
            )
    return params


class OperationBuilder:
    """Builds the operation (and its normalized path template) for a route.

    Args:
        route: The route descriptor.
        context: Build context shared by every route of one build.
    """

    def __init__(self, route: RouteDescriptor, context: IntrospectionContext) -> None:
        self.route = route
        self.context = context

    def build(self) -> tuple[str, Operation]:
        route = self.route
        template = normalize_template(route.path, route.path_param_name_map)

        operation = Operation(
            http_method=route.method,
            operation_id=route.operation_id or derive_operation_id(route.method, template),
            summary=route.summary,
            description=route.description,
            deprecated=route.deprecated,
            tag_names=list(route.tags) or default_tags(template),
            security=list(route.security),
            consumes=list(route.consumes),
            produces=list(route.produces),
            extensions=extract_extensions(route.documentation),
        )

        body, parameters = RequestParamsBuilder(route, self.context).build()
        operation.parameters = parameters

        if body.properties:
            if route.method in BODYLESS_HTTP_METHODS and not route.request_body:
                logger.debug(
                    "%s %s declares body parameters; moving them to the query string",
                    route.method.upper(),
                    template,
                )
                self._merge_query_params(operation, flatten_to_query(body))
            else:
                operation.request_body = self._request_body(body)

        for response in ResponseBuilder(route, self.context).build():
            operation.add_response(response)
        return template, operation

    def _request_body(self, body: Schema) -> RequestBody:
        route = self.route
        return RequestBody(
            description=route.documentation.get("body_description"),
            required=bool(body.required),
            media_types=[
                MediaType(mime_type=mime_type, schema=body)
                for mime_type in route.consumes or [DEFAULT_MIME_TYPE]
            ],
            body_name=route.body_name,
        )

    @staticmethod
    def _merge_query_params(operation: Operation, flattened: list[Parameter]) -> None:
        """Add *flattened* to the operation's parameters.

        A flattened field replaces a declared parameter with the same
        location and name, in place.
        """
        merged = {(p.location, p.name): p for p in operation.parameters}
        for param in flattened:
            merged[(param.location, param.name)] = param
        operation.parameters = list(merged.values())
