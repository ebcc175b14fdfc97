"""Base class for type resolvers.

A type resolver turns one kind of type token into a :class:`~oasforge.models.Schema`.
Resolvers are registered into a
:class:`~oasforge.resolvers.registry.TypeResolverRegistry`; the registry
asks each resolver in turn whether it :meth:`~TypeResolver.handles` a token
and lets the first taker build the schema.

Third-party resolvers only need ``handles`` and ``build_schema``; inheriting
from :class:`TypeResolver` is optional.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from oasforge.models import Schema

if TYPE_CHECKING:
    from oasforge.resolvers.registry import TypeResolverRegistry


_NAMESPACE_SEPARATOR_RE = re.compile(r"::|\.")

_FORMAT_SUFFIXES = (
    ("UUID", "uuid"),
    ("DateTime", "date-time"),
    ("Date", "date"),
    ("Email", "email"),
    ("URI", "uri"),
    ("URL", "uri"),
    ("Url", "uri"),
)


class TypeResolver(ABC):
    """Abstract base class for type resolvers.

    Attributes:
        name: Identifier used by ``before=``/``after=`` on registration.
        fallback: ``True`` for a resolver that handles every token and must
            stay at the tail of the chain.
    """

    name: str = ""
    fallback: bool = False

    @abstractmethod
    def handles(self, token: Any) -> bool:
        """Return True if this resolver can build a schema for *token*."""

    @abstractmethod
    def build_schema(self, token: Any, registry: TypeResolverRegistry) -> Schema:
        """Build the schema for *token*.

        Args:
            token: A type token this resolver handles.
            registry: The chain this resolver sits in, for resolving
                nested tokens such as array item types.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


def type_name(token: Any) -> str:
    """Best-effort string name for a type token."""
    if isinstance(token, str):
        return token.strip()
    name = getattr(token, "__name__", None)
    if isinstance(name, str):
        return name
    return str(token)


def last_segment(name: str) -> str:
    """``Grape::API::Boolean`` and ``app.types.Boolean`` both become ``Boolean``."""
    return _NAMESPACE_SEPARATOR_RE.split(name)[-1]


def infer_format(name: str) -> Optional[str]:
    """Guess a string format from a type name suffix (``UserUUID`` -> ``uuid``)."""
    for suffix, fmt in _FORMAT_SUFFIXES:
        if name.endswith(suffix):
            return fmt
    return None
