"""Primitive type resolver, the total fallback at the end of every chain."""

from __future__ import annotations

import datetime
import decimal
import logging
import uuid
from typing import TYPE_CHECKING, Any, Optional

from oasforge.constants import SchemaTypes
from oasforge.models import Schema
from oasforge.resolvers.base import TypeResolver, infer_format, last_segment, type_name

if TYPE_CHECKING:
    from oasforge.resolvers.registry import TypeResolverRegistry

logger = logging.getLogger(__name__)


# Lowercased type name -> (schema type, format)
PRIMITIVE_TYPES: dict[str, tuple[str, Optional[str]]] = {
    "string": (SchemaTypes.STRING, None),
    "str": (SchemaTypes.STRING, None),
    "symbol": (SchemaTypes.STRING, None),
    "integer": (SchemaTypes.INTEGER, "int32"),
    "int": (SchemaTypes.INTEGER, "int32"),
    "long": (SchemaTypes.INTEGER, "int64"),
    "float": (SchemaTypes.NUMBER, "float"),
    "double": (SchemaTypes.NUMBER, "double"),
    "number": (SchemaTypes.NUMBER, "double"),
    "bigdecimal": (SchemaTypes.NUMBER, "double"),
    "decimal": (SchemaTypes.NUMBER, "double"),
    "numeric": (SchemaTypes.NUMBER, None),
    "boolean": (SchemaTypes.BOOLEAN, None),
    "bool": (SchemaTypes.BOOLEAN, None),
    "trueclass": (SchemaTypes.BOOLEAN, None),
    "falseclass": (SchemaTypes.BOOLEAN, None),
    "date": (SchemaTypes.STRING, "date"),
    "datetime": (SchemaTypes.STRING, "date-time"),
    "date-time": (SchemaTypes.STRING, "date-time"),
    "time": (SchemaTypes.STRING, "date-time"),
    "uuid": (SchemaTypes.STRING, "uuid"),
    "object": (SchemaTypes.OBJECT, None),
    "hash": (SchemaTypes.OBJECT, None),
    "dict": (SchemaTypes.OBJECT, None),
    "array": (SchemaTypes.ARRAY, None),
    "list": (SchemaTypes.ARRAY, None),
    "file": (SchemaTypes.FILE, None),
    "uploadedfile": (SchemaTypes.FILE, None),
}

PYTHON_TYPES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "float",
    bool: "boolean",
    dict: "object",
    list: "array",
    tuple: "array",
    set: "array",
    bytes: "file",
    datetime.datetime: "datetime",
    datetime.date: "date",
    datetime.time: "time",
    decimal.Decimal: "decimal",
    uuid.UUID: "uuid",
}


class PrimitiveResolver(TypeResolver):
    """Maps primitive type names and Python builtins to schemas.

    Handles every token. A name missing from :data:`PRIMITIVE_TYPES` is
    reduced to its last namespace segment and looked up again; failing
    that, a string format is inferred from the name suffix and the result
    is a plain ``string`` schema.
    """

    name = "primitive"
    fallback = True

    def handles(self, token: Any) -> bool:
        return True

    def build_schema(self, token: Any, registry: Optional[TypeResolverRegistry] = None) -> Schema:
        entry = self.lookup(token)
        if entry is not None:
            schema_type, fmt = entry
            return Schema(type=schema_type, format=fmt)

        name = last_segment(type_name(token))
        fmt = infer_format(name)
        logger.debug("Unknown type %r, falling back to string (format=%s)", token, fmt)
        return Schema(type=SchemaTypes.STRING, format=fmt)

    @staticmethod
    def lookup(token: Any) -> Optional[tuple[str, Optional[str]]]:
        """Return ``(type, format)`` for a known primitive token, else ``None``."""
        if token is None:
            return PRIMITIVE_TYPES["string"]
        if isinstance(token, type) and token in PYTHON_TYPES:
            return PRIMITIVE_TYPES[PYTHON_TYPES[token]]

        name = type_name(token)
        entry = PRIMITIVE_TYPES.get(name.lower())
        if entry is None:
            entry = PRIMITIVE_TYPES.get(last_segment(name).lower())
        return entry
