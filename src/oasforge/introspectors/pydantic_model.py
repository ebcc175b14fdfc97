"""Introspector for pydantic ``BaseModel`` subclasses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from oasforge.constants import extract_extensions
from oasforge.enhancer import enhance_schema
from oasforge.introspectors.base import IntrospectionContext, Introspector, qualified_name
from oasforge.models import Schema

_SCALAR_DEFAULTS = (str, int, float, bool)


class PydanticIntrospector(Introspector):
    """Walks ``model_fields`` in declaration order.

    * The field alias (serialization alias first) is the property key.
    * ``Optional[X]`` becomes a nullable ``X``; ``list[X]`` an array.
    * Nested models become references to their own definitions.
    * ``json_schema_extra`` keys starting with ``x-`` become extensions;
      ``format`` and ``example`` keys there are applied too.
    * ``model_config["title"]`` overrides the canonical name.
    """

    name = "pydantic"

    def handles(self, token: Any) -> bool:
        return isinstance(token, type) and issubclass(token, BaseModel) and token is not BaseModel

    def canonical_name(self, token: Any) -> str:
        return token.model_config.get("title") or qualified_name(token)

    def populate(self, token: Any, schema: Schema, context: IntrospectionContext) -> None:
        doc = (vars(token).get("__doc__") or "").strip()
        if doc:
            schema.description = doc.splitlines()[0]

        for field_name, info in token.model_fields.items():
            key = info.serialization_alias or info.alias or field_name
            prop = context.schema_for_type(info.annotation)

            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            default = info.default if isinstance(info.default, _SCALAR_DEFAULTS) else None
            enhance_schema(
                prop,
                {"desc": info.description, **extra},
                default=default,
            )
            if info.examples:
                prop.example = info.examples[0]
            prop.extensions.update(extract_extensions(extra))
            schema.add_property(key, prop, required=info.is_required())
