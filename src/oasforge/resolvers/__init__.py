"""Type resolvers: turn type tokens into schemas.

Public API:

* :class:`TypeResolverRegistry` -- ordered, first-match-wins resolver chain.
* :func:`default_type_resolvers` -- a chain with the built-in resolvers.
* :data:`UNRESOLVED` -- the "no resolver matched" sentinel.
* :class:`TypeResolver` -- optional base class for custom resolvers.
"""

from oasforge.resolvers.array import ArrayResolver
from oasforge.resolvers.base import TypeResolver
from oasforge.resolvers.enumeration import EnumResolver
from oasforge.resolvers.primitive import PrimitiveResolver
from oasforge.resolvers.registry import UNRESOLVED, TypeResolverRegistry, default_type_resolvers

__all__ = [
    "ArrayResolver",
    "EnumResolver",
    "PrimitiveResolver",
    "TypeResolver",
    "TypeResolverRegistry",
    "UNRESOLVED",
    "default_type_resolvers",
]
