"""Turn a route's declared parameters into a body schema and standalone parameters.

Two strategies, chosen per route:

* **Flat** (no bracketed names): each parameter gets a location. Body
  parameters become properties of one synthesized object schema; every
  other parameter becomes a :class:`~oasforge.models.Parameter`.
* **Nested** (any name like ``user[address][zip]`` or ``items[][id]``):
  path-bound and explicitly query/header parameters stay standalone, all
  others are folded into one object tree keyed by their bracket segments.
  An empty segment marks an array; so does a parent declared as an array.

Parameters are bucketed by ``(location, name)``. A later declaration
replaces an earlier one in the same bucket; declarations in different
locations are all kept.
A template variable with no declared parameter still gets a required
``string`` path parameter.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from oasforge.builders.location import is_explicit_non_body, is_hidden, resolve_location
from oasforge.builders.param_schema import ParamSchemaBuilder
from oasforge.constants import (
    VALID_COLLECTION_FORMATS,
    ParameterLocations,
    SchemaTypes,
    extract_extensions,
)
from oasforge.introspectors.base import IntrospectionContext
from oasforge.models import Parameter, ParamSpec, RouteDescriptor, Schema

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"\[([^\]]*)\]")


def split_param_name(name: str) -> list[str]:
    """``"user[address][zip]"`` -> ``["user", "address", "zip"]``; ``"a[]"`` -> ``["a", ""]``."""
    head, bracket, _ = name.partition("[")
    if not bracket:
        return [name]
    return [head] + _SEGMENT_RE.findall(name[len(head):])


def is_nested_name(name: str) -> bool:
    return "[" in name and name.endswith("]")


def path_variable_names(route: RouteDescriptor) -> list[str]:
    """Template variables of *route*, renamed through ``path_param_name_map``."""
    mapping = route.path_param_name_map
    return [mapping.get(var, var) for var in route.path_variables]


class RequestParamsBuilder:
    """Builds ``(body_schema, parameters)`` for one route.

    Args:
        route: The route whose ``params`` are processed.
        context: Build context used for type resolution and introspection.
    """

    def __init__(self, route: RouteDescriptor, context: IntrospectionContext) -> None:
        self.route = route
        self.context = context
        self.schema_builder = ParamSchemaBuilder(context)
        self.path_variables = path_variable_names(route)

    def build(self) -> tuple[Schema, list[Parameter]]:
        body = Schema(type=SchemaTypes.OBJECT)
        buckets: dict[tuple[str, str], Parameter] = {}

        visible: list[tuple[str, ParamSpec]] = []
        for name, spec in self.route.params.items():
            if is_hidden(spec):
                logger.debug("Skipping hidden parameter %r on %s", name, self.route.path)
                continue
            visible.append((name, spec))

        if any(is_nested_name(name) for name, _ in visible):
            self._build_nested(visible, body, buckets)
        else:
            self._build_flat(visible, body, buckets)
        self._add_undeclared_path_params(buckets)
        return body, list(buckets.values())

    def _add_undeclared_path_params(self, buckets: dict[tuple[str, str], Parameter]) -> None:
        for var in self.path_variables:
            if (ParameterLocations.PATH, var) in buckets:
                continue
            logger.debug(
                "Path variable %r of %s is not declared; assuming a string", var, self.route.path
            )
            buckets[(ParameterLocations.PATH, var)] = Parameter(
                location=ParameterLocations.PATH,
                name=var,
                required=True,
                schema=Schema(type=SchemaTypes.STRING),
            )

    # ------------------------------------------------------------------
    # Flat
    # ------------------------------------------------------------------

    def _build_flat(
        self,
        params: list[tuple[str, ParamSpec]],
        body: Schema,
        buckets: dict[tuple[str, str], Parameter],
    ) -> None:
        for name, spec in params:
            location = resolve_location(
                name,
                spec,
                self.path_variables,
                self.route,
                is_payload=self.context.can_introspect(spec.type),
            )
            schema = self.schema_builder.build(spec)
            if location == ParameterLocations.BODY:
                body.add_property(name, schema, required=spec.required)
            else:
                buckets[(location, name)] = self._parameter(name, location, spec, schema)

    # ------------------------------------------------------------------
    # Nested
    # ------------------------------------------------------------------

    def _build_nested(
        self,
        params: list[tuple[str, ParamSpec]],
        body: Schema,
        buckets: dict[tuple[str, str], Parameter],
    ) -> None:
        for name, spec in params:
            if name in self.path_variables or is_explicit_non_body(spec):
                location = resolve_location(name, spec, self.path_variables, self.route)
                schema = self.schema_builder.build(spec)
                buckets[(location, name)] = self._parameter(name, location, spec, schema)
                continue
            self._place(body, split_param_name(name), spec)

    def _place(self, parent: Schema, segments: list[str], spec: ParamSpec) -> None:
        head, rest = segments[0], segments[1:]

        if not rest:
            self._place_leaf(parent, head, spec)
            return

        if rest[0] == "":
            container = self._array_container(parent, head)
            if len(rest) == 1:
                container.items = self.schema_builder.build(spec)
                return
            self._place(_object_items(container), rest[1:], spec)
            return

        existing = parent.properties.get(head)
        if existing is not None and existing.type == SchemaTypes.ARRAY:
            self._place(_object_items(existing), rest, spec)
            return
        if existing is None or existing.type != SchemaTypes.OBJECT or existing.canonical_name:
            existing = parent.add_property(
                head,
                Schema(
                    type=SchemaTypes.OBJECT,
                    description=existing.description if existing is not None else None,
                ),
                required=head in parent.required,
            )
        self._place(existing, rest, spec)

    def _place_leaf(self, parent: Schema, name: str, spec: ParamSpec) -> None:
        schema = self.schema_builder.build(spec)
        existing = parent.properties.get(name)
        if existing is not None and (existing.properties or _has_object_items(existing)):
            # Children were declared before their parent: keep the tree.
            if existing.description is None:
                existing.description = schema.description
            if spec.required:
                parent.mark_required(name)
            return
        parent.add_property(name, schema, required=spec.required)

    def _array_container(self, parent: Schema, name: str) -> Schema:
        existing = parent.properties.get(name)
        if existing is not None and existing.type == SchemaTypes.ARRAY:
            return existing
        return parent.add_property(
            name,
            Schema(
                type=SchemaTypes.ARRAY,
                items=Schema(type=SchemaTypes.OBJECT),
                description=existing.description if existing is not None else None,
            ),
            required=name in parent.required,
        )

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _parameter(self, name: str, location: str, spec: ParamSpec, schema: Schema) -> Parameter:
        doc = spec.documentation
        return Parameter(
            location=location,
            name=name,
            required=True if location == ParameterLocations.PATH else spec.required,
            schema=schema,
            description=spec.desc,
            collection_format=_collection_format(doc),
            extensions=extract_extensions(doc),
        )


def _object_items(array: Schema) -> Schema:
    """The object item schema of *array*, replacing primitive items."""
    if array.items is None or array.items.type != SchemaTypes.OBJECT or array.items.canonical_name:
        array.items = Schema(type=SchemaTypes.OBJECT)
    return array.items


def _has_object_items(schema: Schema) -> bool:
    return schema.items is not None and bool(schema.items.properties)


def _collection_format(doc: dict) -> Optional[str]:
    value = doc.get("collection_format") or doc.get("collectionFormat")
    if value is None:
        return None
    value = str(value).lower()
    if value not in VALID_COLLECTION_FORMATS:
        logger.debug("Ignoring unknown collection format %r", value)
        return None
    return value
