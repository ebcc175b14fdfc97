"""The type resolver chain.

:meth:`TypeResolverRegistry.resolve` returns the schema built by the first
resolver that handles a token, or the :data:`UNRESOLVED` sentinel when none
does. A miss is never an error: callers that need a schema regardless use
:meth:`TypeResolverRegistry.resolve_or_default`, which logs the miss and
returns a ``string`` schema.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from oasforge.chain import StrategyChain
from oasforge.constants import SchemaTypes
from oasforge.models import Schema
from oasforge.resolvers.array import ArrayResolver
from oasforge.resolvers.enumeration import EnumResolver
from oasforge.resolvers.primitive import PrimitiveResolver

logger = logging.getLogger(__name__)


class _Unresolved:
    """Type of :data:`UNRESOLVED`. Falsy, so ``if schema:`` reads naturally."""

    _instance = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()
"""Returned by :meth:`TypeResolverRegistry.resolve` when no resolver matches."""


class TypeResolverRegistry(StrategyChain):
    """Ordered chain of type resolvers.

    Example::

        registry = default_type_resolvers()
        registry.register(MoneyResolver(), before="primitive")
        registry.resolve("Money")
    """

    required_methods = ("handles", "build_schema")
    kind = "type resolver"

    def resolve(self, token: Any) -> Union[Schema, _Unresolved]:
        """Build a schema for *token* with the first matching resolver.

        Returns:
            The schema, or :data:`UNRESOLVED` if no resolver handles *token*.
        """
        resolver = self.find(token)
        if resolver is None:
            return UNRESOLVED
        return resolver.build_schema(token, self)

    def resolve_or_default(self, token: Any) -> Schema:
        """Like :meth:`resolve`, but a miss yields a ``string`` schema."""
        schema = self.resolve(token)
        if schema is UNRESOLVED:
            logger.debug("No type resolver handles %r, defaulting to string", token)
            return Schema(type=SchemaTypes.STRING)
        return schema


def default_type_resolvers() -> TypeResolverRegistry:
    """A fresh chain holding the built-in resolvers: enum, array, primitive."""
    return TypeResolverRegistry([EnumResolver(), ArrayResolver(), PrimitiveResolver()])
