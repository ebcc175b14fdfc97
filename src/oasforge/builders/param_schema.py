"""Build the schema of a single declared parameter."""

from __future__ import annotations

from typing import Any

from oasforge.constants import SchemaTypes
from oasforge.enhancer import enhance_schema
from oasforge.introspectors.base import IntrospectionContext
from oasforge.models import ParamSpec, Schema, coerce_flag

_ARRAY_NAMES = frozenset({"array", "list"})


class ParamSchemaBuilder:
    """Turns a :class:`~oasforge.models.ParamSpec` into a schema.

    Multi-type declarations (``types``, a type list longer than one, or
    ``"[A, B]"``) become one-of alternatives; a one-element type list means
    "array of". A bare ``Array`` type takes its element type from
    ``elements`` or from a payload type named in ``documentation.type``.
    Payload types go through the introspectors, everything else through
    the type resolvers, and a missing type means ``string``.
    """

    def __init__(self, context: IntrospectionContext) -> None:
        self.context = context

    def build(self, spec: ParamSpec) -> Schema:
        doc = spec.documentation
        schema = self._base_schema(spec)
        extra = spec.model_extra or {}
        nullable = coerce_flag(extra.get("allow_nil", False)) or coerce_flag(
            extra.get("nullable", False)
        )
        if schema.description is None and spec.description:
            schema.description = spec.description
        return enhance_schema(schema, doc, values=spec.values, default=spec.default, nullable=nullable)

    def _base_schema(self, spec: ParamSpec) -> Schema:
        context = self.context
        doc = spec.documentation
        if spec.types:
            return context.multi_type_schema(list(spec.types))

        token = spec.type if spec.type is not None else doc.get("type")
        doc_type = doc.get("type")

        if _is_plain_array(token):
            elements = (spec.model_extra or {}).get("elements")
            if elements is None and doc_type is not None and context.can_introspect(doc_type):
                elements = doc_type
            if elements is not None:
                return Schema(type=SchemaTypes.ARRAY, items=context.schema_for_type(elements))

        if coerce_flag(doc.get("is_array", False)):
            item_token = doc_type if doc_type is not None else token
            items = context.schema_for_type(item_token)
            if items.type == SchemaTypes.ARRAY:
                return items
            return Schema(type=SchemaTypes.ARRAY, items=items)

        return context.schema_for_type(token)


def _is_plain_array(token: Any) -> bool:
    if token is list:
        return True
    return isinstance(token, str) and token.strip().lower() in _ARRAY_NAMES
