"""Resolver for Python :class:`enum.Enum` classes and ``Literal[...]`` types."""

from __future__ import annotations

import enum
import typing
from typing import TYPE_CHECKING, Any, Literal, Optional

from oasforge.constants import SchemaTypes
from oasforge.models import Schema
from oasforge.resolvers.base import TypeResolver

if TYPE_CHECKING:
    from oasforge.resolvers.registry import TypeResolverRegistry


class EnumResolver(TypeResolver):
    """Renders an ``Enum`` subclass or a ``Literal`` as a schema listing its values.

    The schema type follows the values: all booleans give ``boolean``, all
    integers ``integer``, all numbers ``number``, anything else ``string``
    (with non-string values stringified).
    """

    name = "enum"

    def handles(self, token: Any) -> bool:
        if isinstance(token, type) and issubclass(token, enum.Enum):
            return True
        return typing.get_origin(token) is Literal

    def build_schema(self, token: Any, registry: Optional[TypeResolverRegistry] = None) -> Schema:
        if typing.get_origin(token) is Literal:
            values = list(typing.get_args(token))
            description = None
        else:
            values = [member.value for member in token]
            description = _enum_doc(token)
        schema_type = _values_type(values)
        if schema_type == SchemaTypes.STRING:
            values = [v if isinstance(v, str) else str(v) for v in values]
        return Schema(type=schema_type, enum=values, description=description)


def _values_type(values: list[Any]) -> str:
    if values and all(isinstance(v, bool) for v in values):
        return SchemaTypes.BOOLEAN
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return SchemaTypes.INTEGER
    if values and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return SchemaTypes.NUMBER
    return SchemaTypes.STRING


def _enum_doc(token: type) -> Optional[str]:
    doc = vars(token).get("__doc__")
    # Older Pythons give every Enum subclass a generic "An enumeration." docstring.
    if not doc or doc.startswith("An enumeration"):
        return None
    return doc.strip().splitlines()[0]
