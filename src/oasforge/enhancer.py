"""Apply documentation annotations (format, example, constraints, enums) to a schema."""

from __future__ import annotations

import inspect
from typing import Any, Optional

from oasforge.constants import SchemaTypes
from oasforge.models import Schema, coerce_flag

_CONSTRAINT_KEYS = ("minimum", "maximum", "min_length", "max_length", "pattern")

_VALUE_CHECKS = {
    SchemaTypes.STRING: lambda v: isinstance(v, str),
    SchemaTypes.INTEGER: lambda v: isinstance(v, int) and not isinstance(v, bool),
    SchemaTypes.NUMBER: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    SchemaTypes.BOOLEAN: lambda v: isinstance(v, bool),
}


def enhance_schema(
    schema: Schema,
    documentation: Optional[dict[str, Any]],
    *,
    values: Any = None,
    default: Any = None,
    nullable: bool = False,
) -> Schema:
    """Copy annotation keys from *documentation* onto *schema* in place.

    Args:
        schema: The schema to enrich.
        documentation: Annotation mapping (``desc``, ``format``, ``example``,
            ``minimum``, ``values``, ``nullable``, ...).
        values: Allowed values declared outside the documentation: a list
            becomes an ``enum``, a numeric ``range`` becomes bounds, a
            zero-argument callable is called first.
        default: Declared default value.
        nullable: Force the schema nullable.

    Returns:
        The same schema, for chaining.
    """
    doc = documentation or {}

    if schema.description is None:
        description = doc.get("desc") or doc.get("description")
        if description:
            schema.description = str(description)

    schema.nullable = schema.nullable or nullable or coerce_flag(doc.get("nullable", False))

    if doc.get("format"):
        schema.format = str(doc["format"])
    if doc.get("example") is not None:
        schema.example = doc["example"]
    if "additional_properties" in doc:
        schema.additional_properties = coerce_flag(doc["additional_properties"])
    for key in _CONSTRAINT_KEYS:
        if key in doc:
            setattr(schema, key, doc[key])

    if values is None:
        values = doc.get("values")
    _apply_values(schema, values)

    if default is None:
        default = doc.get("default")
    if default is not None:
        schema.default = default
    return schema


def _apply_values(schema: Schema, values: Any) -> None:
    if isinstance(values, dict) and "value" in values:
        values = values["value"]
    if callable(values) and not isinstance(values, range):
        # Validators take the value as an argument; only zero-arg callables list values.
        try:
            arity = len(inspect.signature(values).parameters)
        except (TypeError, ValueError):
            return
        if arity != 0:
            return
        values = values()

    if isinstance(values, range):
        if len(values) and values.step > 0:
            schema.minimum = values[0]
            schema.maximum = values[-1]
        return
    if isinstance(values, dict) and ("min" in values or "max" in values):
        if values.get("min") is not None:
            schema.minimum = values["min"]
        if values.get("max") is not None:
            schema.maximum = values["max"]
        return
    if isinstance(values, (set, frozenset)):
        # Sets iterate in hash order, which varies between runs.
        values = sorted(values, key=repr)
    if isinstance(values, (list, tuple)) and values:
        _apply_enum(schema, list(values))


def _apply_enum(schema: Schema, values: list[Any]) -> None:
    if schema.one_of:
        for variant in schema.one_of:
            check = _VALUE_CHECKS.get(variant.type or "")
            compatible = [v for v in values if check(v)] if check else values
            if compatible and variant.canonical_name is None:
                variant.enum = compatible
    elif schema.type == SchemaTypes.ARRAY and schema.items is not None:
        schema.items.enum = values
    else:
        schema.enum = values
